"""
Boundary helpers for untyped detail JSON.

Narrows arbitrary values to plain records and parses the admin editor's
freeform JSON text. This is the only place that reports a failure; every
normalizer downstream is total.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Literal

import orjson

logger = logging.getLogger(__name__)

NOT_AN_OBJECT = "detail must be a JSON object"


class DetailFormatError(ValueError):
    """A detail payload that must be a JSON object was something else."""


def as_record(value: Any) -> dict[str, Any] | None:
    """Return ``value`` if it is a plain key/value record, else None."""
    if isinstance(value, dict):
        return value
    return None


# ---------------------------------------------------------------------------
# Safe parse
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ParseSuccess:
    value: dict[str, Any] = field(default_factory=dict)
    ok: Literal[True] = True

    def to_dict(self) -> dict[str, Any]:
        return {"ok": True, "value": self.value}


@dataclass(frozen=True)
class ParseFailure:
    error: str
    ok: Literal[False] = False

    def to_dict(self) -> dict[str, Any]:
        return {"ok": False, "error": self.error}


ParseResult = ParseSuccess | ParseFailure


def safe_parse_json_object(raw: Any) -> ParseResult:
    """Parse JSON text into a record. Never raises.

    Syntax errors and non-object top-level values come back as a
    ParseFailure carrying a readable reason. Integers wider than 64 bits
    read as floats, the same as a browser's JSON.parse.
    """
    if raw is None:
        raw = ""
    elif not isinstance(raw, (str, bytes, bytearray)):
        raw = str(raw)

    try:
        parsed = orjson.loads(raw)
    except orjson.JSONDecodeError as exc:
        logger.debug("Rejecting detail text: %s", exc)
        return ParseFailure(error=f"invalid JSON: {exc}")

    obj = as_record(parsed)
    if obj is None:
        return ParseFailure(error=NOT_AN_OBJECT)
    return ParseSuccess(value=obj)


# orjson only writes integers in this range
_MIN_INT = -(2**63)
_MAX_INT = 2**64 - 1


def _widen_ints(value: Any) -> Any:
    """Copy of ``value`` with out-of-range integers written as strings."""
    if isinstance(value, int) and not isinstance(value, bool):
        return value if _MIN_INT <= value <= _MAX_INT else str(value)
    if isinstance(value, dict):
        return {k: _widen_ints(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_widen_ints(v) for v in value]
    return value


def stringify_pretty(value: Any) -> str:
    """Serialize for the editor's JSON text box (2-space indent).

    Integers too wide for 64 bits come out as quoted digit strings so the
    digits survive the trip back through the editor.
    """
    if value is None:
        value = {}
    try:
        out = orjson.dumps(value, option=orjson.OPT_INDENT_2)
    except TypeError as exc:
        logger.debug("Widening integers for editor text: %s", exc)
        out = orjson.dumps(_widen_ints(value), option=orjson.OPT_INDENT_2)
    return out.decode("utf-8")
