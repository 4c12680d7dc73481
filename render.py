"""
Single-locale render view of a product detail (storefront read path).

Normalizes first, then resolves every bilingual field with the locale
fallback chain so templates only ever deal with plain strings.
"""

from typing import Any

from i18n import pick_localized_text
from models import SECTION_AREAS, DetailSection, ProductDetailV2
from normalizer import ensure_detail_v2


def _render_section(section: DetailSection, locale: str) -> dict[str, Any]:
    out: dict[str, Any] = {
        "id": section.id,
        "type": section.type,
        "area": section.area,
        "title": pick_localized_text(section.title_i18n, locale),
    }
    if section.type == "gallery":
        out["include_cover_hover"] = section.props.includeCoverHover
    elif section.type == "richText":
        out["text"] = pick_localized_text(section.data.text_i18n, locale)
    return out


def render_view(detail: ProductDetailV2, locale: str) -> dict[str, Any]:
    """Flatten an already-canonical detail for one locale."""
    sections = [_render_section(s, locale) for s in detail.sections]

    areas: dict[str, list[str]] = {area: [] for area in SECTION_AREAS}
    for section in sections:
        areas[section["area"]].append(section["id"])

    return {
        "locale": locale,
        # Placeholder rows from the editor have no url yet
        "gallery": [
            {"id": item.id, "url": item.url, "alt": pick_localized_text(item.alt_i18n, locale)}
            for item in detail.gallery
            if item.url
        ],
        "specs": [
            {
                "key": row.key,
                "label": pick_localized_text(row.label_i18n, locale),
                "value": pick_localized_text(row.value_i18n, locale),
            }
            for row in detail.specs
        ],
        "option_groups": [
            {
                "key": group.key,
                "name": pick_localized_text(group.name_i18n, locale),
                "options": [
                    {"key": opt.key, "label": pick_localized_text(opt.label_i18n, locale)}
                    for opt in group.options
                ],
            }
            for group in detail.option_groups
        ],
        "sections": sections,
        "areas": areas,
    }


def render_detail(value: Any, locale: str) -> dict[str, Any]:
    """Normalize any input value and render it for ``locale``."""
    return render_view(ensure_detail_v2(value), locale)
