"""
Default product detail template and template merging.

New products start from the template; existing details are topped up with
template spec rows / option groups they are missing, without reordering or
overwriting what the merchandiser already entered.
"""

import copy
import logging
from typing import Any

from parser import NOT_AN_OBJECT, DetailFormatError, as_record

logger = logging.getLogger(__name__)

TEMPLATE_SETTING_KEY = "product_detail_template"

# Identity fields used when merging, in priority order
_SPEC_IDENTITY = ("k", "label", "key", "name")
_GROUP_IDENTITY = ("key", "name", "title", "label")


def default_detail_template() -> dict[str, Any]:
    """Fresh copy of the built-in template (already canonical v2).

    Values are left empty on purpose so they can be filled per product.
    """
    return {
        "schema_version": 2,
        "gallery": [],
        "specs": [
            {
                "key": "pieces",
                "label_i18n": {"zh": "件数", "en": "Pieces"},
                "value_i18n": {"zh": "", "en": ""},
            },
            {
                "key": "lead_time",
                "label_i18n": {"zh": "交付时间", "en": "Lead Time"},
                "value_i18n": {"zh": "", "en": ""},
            },
        ],
        "option_groups": [
            {"key": "color", "name_i18n": {"zh": "颜色", "en": "Color"}, "options": []},
            {"key": "size", "name_i18n": {"zh": "尺码", "en": "Size"}, "options": []},
        ],
        "sections": [
            {
                "id": "gallery",
                "type": "gallery",
                "area": "media",
                "title_i18n": {"zh": "画廊", "en": "Gallery"},
                "props": {"includeCoverHover": True},
            },
            {"id": "options", "type": "options", "area": "sticky", "title_i18n": {"zh": "可选项", "en": "Options"}},
            {
                "id": "overview",
                "type": "richText",
                "area": "main",
                "title_i18n": {"zh": "概览", "en": "Overview"},
                "data": {"text_i18n": {"zh": "", "en": ""}},
            },
            {"id": "specs", "type": "specs", "area": "main", "title_i18n": {"zh": "规格", "en": "Specs"}},
            {"id": "service", "type": "service", "area": "aside", "title_i18n": {"zh": "服务", "en": "Service"}},
        ],
    }


def _identity(entry: dict[str, Any], names: tuple[str, ...]) -> str:
    """First non-blank string among ``names``."""
    for name in names:
        value = entry.get(name)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return ""


def _merge_by_identity(template: Any, user: Any, names: tuple[str, ...]) -> list[dict[str, Any]]:
    """User entries first (in order), then template entries not yet present.

    Entries that are not records or carry no identity are left out.
    """
    merged: list[dict[str, Any]] = []
    seen: set[str] = set()

    for source in (user, template):
        if not isinstance(source, list):
            continue
        for entry in source:
            obj = as_record(entry)
            if obj is None:
                continue
            ident = _identity(obj, names)
            if not ident or (source is template and ident in seen):
                continue
            seen.add(ident)
            merged.append(obj)

    return merged


def merge_detail_with_template(template: Any, detail: Any) -> dict[str, Any]:
    """Top up ``detail`` with template specs / option groups it lacks.

    Returns the template when there is no detail at all. The result is not
    normalized; run it through ensure_detail_v2() before use.

    Raises DetailFormatError when ``detail`` is present but not an object.
    """
    template_obj = as_record(template)
    if detail is None:
        return copy.deepcopy(template_obj) if template_obj is not None else default_detail_template()

    if template_obj is None:
        if template is not None:
            logger.warning("Detail template is not an object, falling back to the default template")
        template_obj = default_detail_template()

    detail_obj = as_record(detail)
    if detail_obj is None:
        raise DetailFormatError(NOT_AN_OBJECT)

    out = dict(detail_obj)

    specs = _merge_by_identity(template_obj.get("specs"), detail_obj.get("specs"), _SPEC_IDENTITY)
    if specs:
        out["specs"] = specs

    groups = _merge_by_identity(
        template_obj.get("option_groups"), detail_obj.get("option_groups"), _GROUP_IDENTITY
    )
    if groups:
        out["option_groups"] = groups

    return copy.deepcopy(out)
