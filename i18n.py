"""
Bilingual (zh/en) text helpers.

Stored text is a partial locale map. Display code asks for one locale and
gets the best available string via the fallback chain:
requested locale -> zh -> en -> "".
"""

import re
from typing import Any

from models import SUPPORTED_LOCALES, I18nText
from parser import as_record

# CJK Unified Ideographs
_CJK = re.compile(r"[\u4e00-\u9fff]")


def has_cjk(text: str) -> bool:
    return bool(_CJK.search(text))


def _non_blank(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def pick_localized_text(value: Any, locale: str) -> str:
    """Return the best display string for ``locale``.

    Plain strings are returned verbatim. Anything that is not a string or a
    record resolves to "".
    """
    if isinstance(value, str):
        return value
    obj = as_record(value)
    if obj is None:
        return ""

    for candidate in (locale, "zh", "en"):
        text = obj.get(candidate)
        if _non_blank(text):
            return text
    return ""


def normalize_i18n(value: Any) -> I18nText | None:
    """Narrow arbitrary input to an I18nText.

    Only string ``zh``/``en`` values survive. Returns None when the input is
    not a record at all, and ``{}`` for a record with nothing usable.
    """
    obj = as_record(value)
    if obj is None:
        return None
    return {loc: obj[loc] for loc in SUPPORTED_LOCALES if isinstance(obj.get(loc), str)}
