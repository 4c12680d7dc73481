"""Shared fixtures for the product detail test suite."""
import copy

import pytest

# ── Minimal detail payloads in the shapes seen in the wild ──────────────

LEGACY_DETAIL = {
    "title": "Classic Tee",
    "description": "纯棉短袖T恤",
    "gallery": ["https://cdn.example.com/tee/front.jpg", "  ", {"url": "https://cdn.example.com/tee/back.jpg"}],
    "specs": [
        {"k": "件数", "v": "1"},
        {"k": "交期", "v": "3-5天"},
        {"label": "Weight", "value": "180g"},
    ],
    "option_groups": [
        {"name": "颜色", "options": ["白", "黑"]},
        {"name": "尺码", "options": ["S", "M", "L", "M"]},
    ],
}

DRIFTED_V2_DETAIL = {
    "schema_version": "2",
    "gallery": [{"id": "img-1", "url": " https://cdn.example.com/mug.jpg ", "alt_i18n": {"zh": "马克杯", "en": "Mug"}}],
    "specs": [
        {"key": "pieces", "label_i18n": {"zh": "件数", "en": "Pieces"}, "value_i18n": {"zh": "2", "en": "2"}},
        {"key": "pieces", "label_i18n": {"zh": "件数"}, "value_i18n": {"zh": "4"}},
    ],
    "option_groups": [],
    "sections": [
        {"id": "ov", "type": "richText", "area": "aside", "data": {"text_i18n": {"zh": "陶瓷杯", "en": "Ceramic mug"}}},
        {"id": "car", "type": "carousel", "area": "media"},
        {"id": "svc", "type": "service", "area": "main"},
    ],
    "seo": {"slug": "ceramic-mug"},
}

# Inputs that must never make the normalizer raise
MESSY_INPUTS = [
    None,
    42,
    "not a detail",
    [],
    [{"schema_version": 2}],
    {},
    {"schema_version": 2, "sections": "nope"},
    {"schema_version": 2, "sections": [None, 1, "x", {"type": ""}, {"type": "hero"}]},
    {"schema_version": 2, "sections": [{"type": "specs"}], "gallery": "x", "specs": {"a": 1}},
    {
        "specs": [{}, {}, {"key": "spec_2"}, {"k": 5, "v": True}, "row", None],
        "option_groups": [{}, {"options": [None, "", "a", "a", {"id": 3}, {}]}, {"key": "group_1"}],
        "gallery": [None, 1, "", {"id": " ", "url": None, "objectKey": "", "alt_i18n": "x"}],
    },
    {"description_i18n": {"zh": "中文", "en": "English", "fr": "x"}, "desc": "ignored"},
    {"schema_version": 2.0, "sections": [{"type": "divider", "area": "media"}], "extra": None},
]


@pytest.fixture
def legacy_detail():
    return copy.deepcopy(LEGACY_DETAIL)


@pytest.fixture
def drifted_v2_detail():
    return copy.deepcopy(DRIFTED_V2_DETAIL)
