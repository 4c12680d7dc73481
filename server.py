"""
FastAPI server for the product detail admin tool and storefront.

Every endpoint goes through the normalizer so callers only ever receive
canonical schema v2:
- GET  /api/detail/template   → current default template
- POST /api/detail/normalize  → any JSON → canonical v2
- POST /api/detail/parse      → editor JSON text → parse result + canonical v2
- POST /api/detail/merge      → detail topped up with the template
- POST /api/detail/render     → single-locale render view
- POST /api/detail/diagnose   → repair report
"""

import dataclasses
import logging
from pathlib import Path
from typing import Any

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import ORJSONResponse
from pydantic import BaseModel

from diagnostics import diagnose_detail
from normalizer import normalize_detail
from parser import NOT_AN_OBJECT, DetailFormatError, ParseSuccess, safe_parse_json_object
from render import render_detail
from template import default_detail_template, merge_detail_with_template

logger = logging.getLogger("server")

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class ParseRequest(BaseModel):
    """Raw text from the editor's freeform JSON box."""

    raw: str


# ---------------------------------------------------------------------------
# Template loading
# ---------------------------------------------------------------------------

TEMPLATE_FILE = Path(__file__).parent / "detail_template.json"

# Canonical template, populated at startup
_template: dict[str, Any] = {}


def _load_template() -> None:
    """Load the template override if present, else the built-in default."""
    global _template

    template = default_detail_template()
    if TEMPLATE_FILE.exists():
        parsed = safe_parse_json_object(TEMPLATE_FILE.read_bytes())
        if isinstance(parsed, ParseSuccess):
            template = parsed.value
            logger.info("Loaded detail template from %s", TEMPLATE_FILE)
        else:
            logger.warning("Ignoring %s (%s), using default template", TEMPLATE_FILE, parsed.error)

    _template = normalize_detail(template)


# ---------------------------------------------------------------------------
# App setup
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Product Detail API",
    default_response_class=ORJSONResponse,
)

app.add_middleware(GZipMiddleware, minimum_size=500)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000"],
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
    max_age=86400,
)


@app.on_event("startup")
async def startup() -> None:
    _load_template()


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


async def _read_detail(request: Request) -> dict[str, Any] | None:
    """Parse the request body with orjson so responses can always be written.

    An empty or non-object body reads as None, which the normalizer treats
    as an empty detail. Malformed JSON is a 422.
    """
    raw = await request.body()
    if not raw.strip():
        return None
    parsed = safe_parse_json_object(raw)
    if isinstance(parsed, ParseSuccess):
        return parsed.value
    if parsed.error == NOT_AN_OBJECT:
        return None
    raise HTTPException(status_code=422, detail=parsed.error)


@app.get("/api/detail/template")
async def get_template():
    """Return the template new products start from."""
    return _template


@app.post("/api/detail/normalize")
async def normalize(request: Request):
    """Return the canonical v2 form of any JSON body."""
    return normalize_detail(await _read_detail(request))


@app.post("/api/detail/parse")
async def parse(request: ParseRequest):
    """Parse editor text; on success also return the canonical detail."""
    result = safe_parse_json_object(request.raw)
    body = result.to_dict()
    if isinstance(result, ParseSuccess):
        body["detail"] = normalize_detail(result.value)
    return body


@app.post("/api/detail/merge")
async def merge(request: Request):
    """Top up ``{"detail": ...}`` with missing template specs / option groups."""
    body = await _read_detail(request) or {}
    try:
        merged = merge_detail_with_template(_template or default_detail_template(), body.get("detail"))
    except DetailFormatError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    return normalize_detail(merged)


@app.post("/api/detail/render")
async def render(request: Request, locale: str = "zh"):
    """Return the single-locale view the storefront renders."""
    return render_detail(await _read_detail(request), locale)


@app.post("/api/detail/diagnose")
async def diagnose(request: Request):
    """Return the repairs normalization applies to this body."""
    return dataclasses.asdict(diagnose_detail(await _read_detail(request)))
