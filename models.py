from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

# Bilingual text: a partial locale -> string mapping.
# A missing locale is not the same as an empty string.
I18nText = dict[str, str]

SUPPORTED_LOCALES = ("zh", "en")

SECTION_TYPES = ("gallery", "options", "richText", "specs", "service", "divider")
SECTION_AREAS = ("media", "sticky", "main", "aside")

SectionArea = Literal["media", "sticky", "main", "aside"]


# ---------------------------------------------------------------------------
# Content records (keep unknown fields)
# ---------------------------------------------------------------------------


class GalleryItem(BaseModel):
    """One gallery image. ``url`` may be empty for editor placeholder rows."""

    model_config = ConfigDict(extra="allow")

    id: str
    url: str = ""
    objectKey: str | None = None  # storage reference
    alt_i18n: I18nText | None = None


class SpecRow(BaseModel):
    """A spec table row. Legacy fields are read-only fallbacks."""

    model_config = ConfigDict(extra="allow")

    key: str
    label_i18n: I18nText = {}
    value_i18n: I18nText = {}

    # legacy fallbacks
    k: str | None = None
    label: str | None = None
    name: str | None = None
    v: str | None = None
    value: str | None = None


class OptionItem(BaseModel):
    model_config = ConfigDict(extra="allow")

    key: str
    label_i18n: I18nText = {}

    # legacy fallbacks
    label: str | None = None
    name: str | None = None
    value: str | None = None


class OptionGroup(BaseModel):
    model_config = ConfigDict(extra="allow")

    key: str
    name_i18n: I18nText = {}
    options: list[OptionItem] = []

    # legacy fallbacks
    name: str | None = None
    title: str | None = None
    label: str | None = None


# Field names on content records that are typed as optional strings.
# Anything else under these names is ignored during normalization.
LEGACY_STRING_FIELDS = {
    SpecRow: ("k", "label", "name", "v", "value"),
    OptionItem: ("label", "name", "value"),
    OptionGroup: ("name", "title", "label"),
}


# ---------------------------------------------------------------------------
# Layout sections (closed union, rebuilt on every normalization)
# ---------------------------------------------------------------------------


class _SectionBase(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str
    title_i18n: I18nText | None = None


class GalleryProps(BaseModel):
    includeCoverHover: bool = True


class RichTextData(BaseModel):
    text_i18n: I18nText = Field(default_factory=lambda: {"zh": "", "en": ""})


class GallerySection(_SectionBase):
    type: Literal["gallery"] = "gallery"
    area: Literal["media"] = "media"
    props: GalleryProps = Field(default_factory=GalleryProps)


class OptionsSection(_SectionBase):
    type: Literal["options"] = "options"
    area: Literal["sticky"] = "sticky"


class RichTextSection(_SectionBase):
    type: Literal["richText"] = "richText"
    area: Literal["main", "sticky"] = "main"
    data: RichTextData = Field(default_factory=RichTextData)


class SpecsSection(_SectionBase):
    type: Literal["specs"] = "specs"
    area: Literal["main"] = "main"


class ServiceSection(_SectionBase):
    type: Literal["service"] = "service"
    area: Literal["aside"] = "aside"


class DividerSection(_SectionBase):
    type: Literal["divider"] = "divider"
    area: Literal["main", "sticky", "aside"] = "main"


DetailSection = Annotated[
    Union[
        GallerySection,
        OptionsSection,
        RichTextSection,
        SpecsSection,
        ServiceSection,
        DividerSection,
    ],
    Field(discriminator="type"),
]


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------


class ProductDetailV2(BaseModel):
    """Canonical product detail page content (schema v2).

    Unknown top-level fields are kept as extras so newer editors can
    round-trip data this version does not understand.
    """

    model_config = ConfigDict(extra="allow")

    schema_version: Literal[2] = 2
    gallery: list[GalleryItem] = []
    specs: list[SpecRow] = []
    option_groups: list[OptionGroup] = []
    sections: list[DetailSection]


def dump_detail(detail: ProductDetailV2) -> dict[str, Any]:
    """Serialize to a JSON-compatible dict, omitting fields never supplied."""
    return detail.model_dump(mode="json", exclude_unset=True)
