"""
Product detail normalizer: arbitrary / legacy JSON -> canonical schema v2.

Two paths:
  A) Already v2 (schema_version == 2 and a sections list): re-run every
     field normalizer to close gaps (missing ids, duplicate keys, bad areas).
  B) Legacy: start from the default section skeleton and seed the old
     description text into its richText block.

Both the admin editor and the storefront go through ensure_detail_v2(),
so neither ever sees a non-canonical shape. Nothing in here raises on bad
input: malformed entries are skipped, missing fields are defaulted and
unknown section types are dropped.
"""

import logging
import uuid
from types import MappingProxyType
from typing import Any, NamedTuple

from pydantic import BaseModel

from i18n import has_cjk, normalize_i18n
from models import (
    LEGACY_STRING_FIELDS,
    SECTION_AREAS,
    DetailSection,
    DividerSection,
    GalleryItem,
    GalleryProps,
    GallerySection,
    I18nText,
    OptionGroup,
    OptionItem,
    OptionsSection,
    ProductDetailV2,
    RichTextData,
    RichTextSection,
    ServiceSection,
    SpecRow,
    SpecsSection,
    dump_detail,
)
from parser import as_record

logger = logging.getLogger(__name__)


class LegacyLabel(NamedTuple):
    """Canonical key + English text for a historical Chinese label."""

    key: str
    en: str


# Historical spec labels -> canonical key / English label
SPEC_LABEL_MAP = MappingProxyType(
    {
        "件数": LegacyLabel("pieces", "Pieces"),
        "交付时间": LegacyLabel("lead_time", "Lead Time"),
        "交期": LegacyLabel("lead_time", "Lead Time"),
    }
)

# Historical option group names -> canonical key / English name
OPTION_GROUP_NAME_MAP = MappingProxyType(
    {
        "颜色": LegacyLabel("color", "Color"),
        "尺码": LegacyLabel("size", "Size"),
    }
)

# Checked in order; the first one present wins
LEGACY_DESCRIPTION_FIELDS = ("description_i18n", "description", "desc_i18n", "desc")

_ROOT_FIELDS = frozenset({"schema_version", "gallery", "specs", "option_groups", "sections"})


# ===== Small helpers =====


def random_id() -> str:
    return str(uuid.uuid4())


def as_list(value: Any) -> list:
    return value if isinstance(value, list) else []


def clean_text(value: Any) -> str:
    """Trimmed string form of a scalar. Non-scalars read as ""."""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return ""


def first_present(obj: dict[str, Any], *names: str) -> Any:
    """First value under ``names`` that is not missing/None."""
    for name in names:
        value = obj.get(name)
        if value is not None:
            return value
    return None


def _first_scalar(obj: dict[str, Any], *names: str) -> str:
    """Text of the first string/number value under ``names``.

    Non-scalar values are skipped so they cannot shadow a usable field.
    """
    for name in names:
        value = obj.get(name)
        if isinstance(value, str) or (isinstance(value, (int, float)) and not isinstance(value, bool)):
            return clean_text(value)
    return ""


def _passthrough(obj: dict[str, Any], model: type[BaseModel], *managed: str) -> dict[str, Any]:
    """Copy unknown fields for a record, minus the ones we rebuild.

    Legacy fallback fields are typed as strings on the model, so any
    non-string value under those names is ignored.
    """
    out = {k: v for k, v in obj.items() if isinstance(k, str) and k not in managed}
    for name in LEGACY_STRING_FIELDS.get(model, ()):
        if name in out and out[name] is not None and not isinstance(out[name], str):
            del out[name]
    return out


def _seed_i18n(text: I18nText, legacy: str, en_hint: str | None = None) -> I18nText:
    """Fill blank zh/en slots from a legacy scalar label.

    zh takes the legacy text as-is. en takes the lookup-table hint, or the
    legacy text when it has no CJK characters.
    """
    if not text.get("zh") and legacy:
        text["zh"] = legacy
    if not text.get("en"):
        if en_hint:
            text["en"] = en_hint
        elif legacy and not has_cjk(legacy):
            text["en"] = legacy
    return text


# ===== Keys =====


def dedupe_key(used: set[str], preferred: Any, fallback_prefix: str) -> str:
    """Return a key unique within ``used`` and register it there.

    A blank preferred key becomes ``{prefix}_{len(used)+1}``. Collisions get
    ``_2``, ``_3``, ... appended until the key is free.
    """
    base = clean_text(preferred) or f"{fallback_prefix}_{len(used) + 1}"
    key = base
    n = 2
    while key in used:
        key = f"{base}_{n}"
        n += 1
    used.add(key)
    return key


# ===== Gallery =====


def normalize_gallery(raw: Any) -> list[GalleryItem]:
    """Clean gallery entries. Bare strings are URLs; blank ones are skipped.

    Record entries are kept even with an empty url: the admin builder needs
    placeholder rows, and the storefront ignores them.
    """
    items: list[GalleryItem] = []
    for entry in as_list(raw):
        if isinstance(entry, str):
            url = entry.strip()
            if url:
                items.append(GalleryItem(id=random_id(), url=url))
            continue

        obj = as_record(entry)
        if obj is None:
            logger.debug("Skipping gallery entry of type %s", type(entry).__name__)
            continue

        fields = _passthrough(obj, GalleryItem, "id", "url", "objectKey", "alt_i18n")
        fields["id"] = clean_text(obj.get("id")) or random_id()
        fields["url"] = clean_text(obj.get("url"))
        object_key = clean_text(obj.get("objectKey"))
        if object_key:
            fields["objectKey"] = object_key
        alt = normalize_i18n(obj.get("alt_i18n"))
        if alt is not None:
            fields["alt_i18n"] = alt
        items.append(GalleryItem.model_validate(fields))
    return items


# ===== Specs =====


def normalize_specs(raw: Any, label_map: MappingProxyType = SPEC_LABEL_MAP) -> list[SpecRow]:
    """Normalize spec rows, merging legacy k/v scalars into bilingual text.

    Keys are unique within the returned list.
    """
    rows: list[SpecRow] = []
    used: set[str] = set()

    for entry in as_list(raw):
        obj = as_record(entry)
        if obj is None:
            continue

        legacy_label = _first_scalar(obj, "k", "label", "name")
        legacy_value = _first_scalar(obj, "v", "value", "val")
        mapped = label_map.get(legacy_label)

        label_i18n = _seed_i18n(
            normalize_i18n(obj.get("label_i18n")) or {},
            legacy_label,
            mapped.en if mapped else None,
        )
        value_i18n = _seed_i18n(normalize_i18n(obj.get("value_i18n")) or {}, legacy_value)

        preferred = clean_text(obj.get("key")) or (mapped.key if mapped else "") or legacy_label
        fields = _passthrough(obj, SpecRow, "key", "label_i18n", "value_i18n")
        fields.update(
            key=dedupe_key(used, preferred, "spec"),
            label_i18n=label_i18n,
            value_i18n=value_i18n,
        )
        rows.append(SpecRow.model_validate(fields))

    return rows


# ===== Option groups =====


def _normalize_options(raw: Any) -> list[OptionItem]:
    options: list[OptionItem] = []
    # Fresh scope per group: the same option key may appear in two groups
    used: set[str] = set()

    for entry in as_list(raw):
        if isinstance(entry, str):
            label = entry.strip()
            if label:
                options.append(
                    OptionItem(key=dedupe_key(used, label, "opt"), label_i18n={"zh": label, "en": label})
                )
            continue

        obj = as_record(entry)
        if obj is None:
            continue

        legacy_label = _first_scalar(obj, "label", "name", "value")
        label_i18n = normalize_i18n(obj.get("label_i18n")) or {}
        # Option labels are usually codes or sizes ("M", "XL"): both locales
        # take the legacy text regardless of script
        for loc in ("zh", "en"):
            if not label_i18n.get(loc) and legacy_label:
                label_i18n[loc] = legacy_label

        preferred = _first_scalar(obj, "key", "id", "value") or legacy_label
        fields = _passthrough(obj, OptionItem, "key", "label_i18n")
        fields.update(key=dedupe_key(used, preferred, "opt"), label_i18n=label_i18n)
        options.append(OptionItem.model_validate(fields))

    return options


def normalize_option_groups(
    raw: Any, name_map: MappingProxyType = OPTION_GROUP_NAME_MAP
) -> list[OptionGroup]:
    """Normalize option groups and, independently, each group's options.

    Empty option lists are kept; merchandisers fill them in later.
    """
    groups: list[OptionGroup] = []
    used: set[str] = set()

    for entry in as_list(raw):
        obj = as_record(entry)
        if obj is None:
            continue

        legacy_name = _first_scalar(obj, "name", "title", "label")
        mapped = name_map.get(legacy_name)
        name_i18n = _seed_i18n(
            normalize_i18n(obj.get("name_i18n")) or {},
            legacy_name,
            mapped.en if mapped else None,
        )

        preferred = _first_scalar(obj, "key", "id") or (mapped.key if mapped else "") or legacy_name
        fields = _passthrough(obj, OptionGroup, "key", "name_i18n", "options")
        fields.update(
            key=dedupe_key(used, preferred, "group"),
            name_i18n=name_i18n,
            options=_normalize_options(obj.get("options")),
        )
        groups.append(OptionGroup.model_validate(fields))

    return groups


# ===== Sections =====


def _default_gallery_section() -> GallerySection:
    return GallerySection(
        id=random_id(),
        type="gallery",
        area="media",
        title_i18n={"zh": "画廊", "en": "Gallery"},
        props=GalleryProps(includeCoverHover=True),
    )


def default_sections(overview: I18nText | None = None) -> list[DetailSection]:
    """The 5-block fallback layout: gallery, options, richText, specs, service."""
    return [
        _default_gallery_section(),
        OptionsSection(
            id=random_id(), type="options", area="sticky", title_i18n={"zh": "可选项", "en": "Options"}
        ),
        RichTextSection(
            id=random_id(),
            type="richText",
            area="main",
            title_i18n={"zh": "概览", "en": "Overview"},
            data=RichTextData(text_i18n=overview if overview is not None else {"zh": "", "en": ""}),
        ),
        SpecsSection(id=random_id(), type="specs", area="main", title_i18n={"zh": "规格", "en": "Specs"}),
        ServiceSection(id=random_id(), type="service", area="aside", title_i18n={"zh": "服务", "en": "Service"}),
    ]


def _section_area(raw: Any) -> str:
    area = clean_text(raw)
    return area if area in SECTION_AREAS else "main"


def _build_section(obj: dict[str, Any]) -> DetailSection | None:
    """Rebuild one section with its area forced/coerced. None = drop it."""
    section_type = clean_text(obj.get("type"))
    if not section_type:
        return None

    area = _section_area(obj.get("area"))
    base: dict[str, Any] = {"id": clean_text(obj.get("id")) or random_id()}
    title = normalize_i18n(obj.get("title_i18n"))
    if title is not None:
        base["title_i18n"] = title

    if section_type == "gallery":
        props = as_record(obj.get("props")) or {}
        include_cover_hover = props.get("includeCoverHover") is not False
        return GallerySection(
            type="gallery", area="media", props=GalleryProps(includeCoverHover=include_cover_hover), **base
        )
    elif section_type == "options":
        return OptionsSection(type="options", area="sticky", **base)
    elif section_type == "specs":
        return SpecsSection(type="specs", area="main", **base)
    elif section_type == "service":
        return ServiceSection(type="service", area="aside", **base)
    elif section_type == "divider":
        return DividerSection(type="divider", area="main" if area == "media" else area, **base)
    elif section_type == "richText":
        data = as_record(obj.get("data")) or {}
        text = normalize_i18n(data.get("text_i18n"))
        return RichTextSection(
            type="richText",
            area=area if area in ("main", "sticky") else "main",
            data=RichTextData(text_i18n=text if text is not None else {"zh": "", "en": ""}),
            **base,
        )
    else:
        # Blocks from a newer editor; the renderer cannot draw them
        logger.debug("Dropping section of unknown type %r", section_type)
        return None


def _ensure_layout(sections: list[DetailSection]) -> list[DetailSection]:
    """Never empty, and always at least one gallery (the media column needs it)."""
    if not sections:
        return default_sections()
    if not any(s.type == "gallery" for s in sections):
        sections.insert(0, _default_gallery_section())
    return sections


def normalize_sections(raw: Any) -> list[DetailSection]:
    sections: list[DetailSection] = []
    for entry in as_list(raw):
        obj = as_record(entry)
        if obj is None:
            continue
        section = _build_section(obj)
        if section is not None:
            sections.append(section)
    return _ensure_layout(sections)


# ===== Schema detection + orchestration =====


def _as_number(value: Any) -> float | None:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        try:
            return float(value.strip() or 0)
        except ValueError:
            return None
    return None


def is_detail_v2(value: Any) -> bool:
    """True for a record versioned 2 (numerically) with a sections list."""
    obj = as_record(value)
    if obj is None:
        return False
    return _as_number(obj.get("schema_version")) == 2 and isinstance(obj.get("sections"), list)


def _legacy_description(obj: dict[str, Any]) -> I18nText:
    legacy = first_present(obj, *LEGACY_DESCRIPTION_FIELDS)
    if isinstance(legacy, str):
        return {"zh": legacy, "en": ""}
    text = normalize_i18n(legacy) or {}
    return {"zh": text.get("zh", ""), "en": text.get("en", "")}


def ensure_detail_v2(value: Any) -> ProductDetailV2:
    """Return the canonical v2 form of any input value. Never raises."""
    obj = as_record(value) or {}

    if is_detail_v2(obj):
        sections = normalize_sections(obj.get("sections"))
    else:
        sections = default_sections(overview=_legacy_description(obj))

    fields = {k: v for k, v in obj.items() if isinstance(k, str) and k not in _ROOT_FIELDS}
    fields.update(
        schema_version=2,
        gallery=normalize_gallery(obj.get("gallery")),
        specs=normalize_specs(obj.get("specs")),
        option_groups=normalize_option_groups(obj.get("option_groups")),
        sections=_ensure_layout(sections),
    )
    return ProductDetailV2.model_validate(fields)


def normalize_detail(value: Any) -> dict[str, Any]:
    """ensure_detail_v2() serialized to plain JSON-compatible data."""
    return dump_detail(ensure_detail_v2(value))
