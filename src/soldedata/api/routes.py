"""API routes for soldedata."""

from __future__ import annotations

import json
import logging
import time
from datetime import datetime, timezone
from typing import Any
from urllib.parse import parse_qsl

from fastapi import APIRouter, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from soldedata import __version__
from soldedata.models.session import ScrapeOptions, clean_phone_number, is_valid_phone_number
from soldedata.settings import get_settings

logger = logging.getLogger(__name__)

router = APIRouter()

SERVICE_NAME = "MTN CI Scraper API"

_FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


# ---------------------------------------------------------------------------
# Request / response models
# ---------------------------------------------------------------------------


class ScrapeRequest(BaseModel):
    """Body of a ``POST /scrape-mtn`` request.

    ``phone_number`` is checked by the route rather than by the model so a
    missing or malformed number yields the documented 400 payload. Zero or
    empty overrides mean "use the configured default".
    """

    model_config = ConfigDict(populate_by_name=True)

    phone_number: str | int | None = Field(None, description="Subscriber number, 8 to 15 digits.")
    timeout: int | None = Field(None, gt=0, description="Navigation timeout in milliseconds.")
    wait_after_click: int | None = Field(
        None, gt=0, alias="waitAfterClick", description="Delay (ms) when no navigation follows submission."
    )
    retries: int | None = Field(None, ge=1, le=10, description="Maximum number of attempts.")

    @field_validator("timeout", "wait_after_click", "retries", mode="before")
    @classmethod
    def _unset_when_falsy(cls, value: Any) -> Any:
        if value in (0, "0", "", None):
            return None
        return value

    def options(self) -> ScrapeOptions:
        return ScrapeOptions(timeout=self.timeout, wait_after_click=self.wait_after_click, retries=self.retries)


def _bad_request(message: str) -> JSONResponse:
    return JSONResponse(status_code=400, content={"success": False, "error": message})


async def _read_scrape_request(request: Request) -> ScrapeRequest:
    """Parse a JSON or urlencoded body into a ``ScrapeRequest``.

    Raises:
        RequestValidationError: If the body is malformed or a field is invalid.
    """
    raw = await request.body()
    content_type = request.headers.get("content-type", "")
    try:
        if content_type.startswith(_FORM_CONTENT_TYPE):
            payload: Any = dict(parse_qsl(raw.decode("utf-8", errors="replace"), keep_blank_values=True))
        else:
            payload = json.loads(raw) if raw.strip() else {}
    except ValueError as e:
        error = {"loc": ("body",), "msg": f"Malformed JSON body: {e}", "type": "json_invalid"}
        raise RequestValidationError([error]) from e
    try:
        return ScrapeRequest.model_validate(payload)
    except ValidationError as e:
        raise RequestValidationError(e.errors()) from e


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.post("/scrape-mtn")
async def scrape_balance(request: Request) -> JSONResponse:
    """Run an extraction and return its result (200 on success, 500 otherwise).

    Accepts ``application/json`` and ``application/x-www-form-urlencoded``
    bodies.
    """
    from soldedata.scraper.orchestrator import run_extraction

    started = time.monotonic()
    req = await _read_scrape_request(request)

    if req.phone_number is None or str(req.phone_number).strip() == "":
        return _bad_request('The "phone_number" parameter is required')

    phone_number = clean_phone_number(req.phone_number)
    if not is_valid_phone_number(phone_number):
        return _bad_request("Invalid phone number format. Use 8 to 15 digits.")

    logger.info("Starting extraction for %s", phone_number)
    settings = get_settings()
    result = await run_extraction(phone_number, req.options(), settings=settings)

    body = result.to_response(include_screenshot=settings.scraper.include_screenshot)
    body["execution_time_ms"] = int((time.monotonic() - started) * 1000)
    return JSONResponse(status_code=200 if result.success else 500, content=body)


@router.get("/health")
def health() -> dict[str, str]:
    return {
        "status": "ok",
        "service": SERVICE_NAME,
        "version": __version__,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/")
def index() -> dict[str, Any]:
    """Describe the service and show an example request."""
    defaults = get_settings().scraper
    return {
        "message": "MTN Côte d'Ivoire data balance scraping API",
        "version": __version__,
        "endpoints": {
            "scrape": "POST /scrape-mtn",
            "health": "GET /health",
        },
        "example": {
            "url": "/scrape-mtn",
            "method": "POST",
            "body": {
                "phone_number": "0707070707",
                "timeout": defaults.timeout_ms,
                "waitAfterClick": defaults.wait_after_click_ms,
                "retries": defaults.retries,
            },
        },
    }
