"""
api.py - FastAPI HTTP layer for quick entry and dropdown normalization.

Exposes the pure pipeline over HTTP for the review form:
  - GET  /health
  - GET  /options
  - POST /match/{field}
  - POST /parse
  - POST /normalize
  - POST /quick-entry
  - POST /validate
  - GET  /history, DELETE /history

No matching or parsing logic is implemented here. Appending to the ledger
and calling the external extractor stay with the caller.
"""

from __future__ import annotations

import os
from typing import Any, Optional

import uvicorn
from fastapi import Body, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from catalog import CatalogError, load_options
from history import CommandHistory
from logging_config import get_logger, level_from_env, setup_logging
from match import match_field
from models import FIELD_NAMES
from parse import parse_manual_command
from review import merge_quick_entry, needs_fallback, normalize_extraction
from validate import validate_entry

logger = get_logger("bookmate-api")

app = FastAPI(
    title="BookMate Quick Entry API",
    version="1.0.0",
)

# Allows the review form to call from another local host/port.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

command_history = CommandHistory()


class MatchRequest(BaseModel):
    text: Optional[str] = ""
    comment: Optional[str] = None


class ParseRequest(BaseModel):
    command: str = Field(..., description="Free-text quick-entry command.")


class QuickEntryRequest(BaseModel):
    """Quick-entry submission; snake_case and camelCase keys both accepted."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    command: str
    extracted: Optional[dict[str, Any]] = Field(
        default=None,
        description="External extractor output, used only when the parse needs a fallback.",
    )
    selected_operation: Optional[str] = None
    selected_payment: Optional[str] = None


def _server_error(event: str, exc: Exception, detail: str) -> HTTPException:
    logger.error(
        "%s | error_type=%s | error=%s",
        event,
        type(exc).__name__,
        exc,
        exc_info=True,
    )
    return HTTPException(status_code=500, detail=detail)


@app.get("/health")
def health() -> dict[str, str]:
    """Service health check."""
    return {"status": "ok"}


@app.get("/options")
def options_endpoint() -> dict[str, Any]:
    """Return the active dropdown catalogs."""
    try:
        opts = load_options()
    except CatalogError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    return {
        "properties": opts.properties.values,
        "typeOfOperation": opts.type_of_operation.values,
        "typeOfPayment": opts.type_of_payment.values,
        "counts": {
            "properties": len(opts.properties.values),
            "typeOfOperation": len(opts.type_of_operation.values),
            "typeOfPayment": len(opts.type_of_payment.values),
        },
    }


@app.post("/match/{field}")
def match_endpoint(field: str, request: MatchRequest) -> dict[str, Any]:
    """Match free text onto one dropdown field."""
    if field not in FIELD_NAMES:
        raise HTTPException(
            status_code=404,
            detail=f"Unknown field: {field}. Expected one of {list(FIELD_NAMES)}",
        )
    try:
        result = match_field(field, request.text, request.comment, load_options())
    except CatalogError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except Exception as exc:
        raise _server_error("api_match_error", exc, "Unexpected server error while matching.") from exc
    return result.model_dump()


@app.post("/parse")
def parse_endpoint(request: ParseRequest) -> dict[str, Any]:
    """Parse one quick-entry command. Successful commands go into history."""
    try:
        result = parse_manual_command(request.command, load_options())
    except CatalogError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except Exception as exc:
        raise _server_error("api_parse_error", exc, "Unexpected server error while parsing.") from exc

    if result.ok:
        command_history.add(request.command)

    payload = result.model_dump(by_alias=True)
    payload["needsFallback"] = needs_fallback(result)
    return payload


@app.post("/normalize")
def normalize_endpoint(payload: dict[str, Any] = Body(...)) -> dict[str, Any]:
    """Normalize external extractor output into a review-form entry."""
    extracted = dict(payload)
    comment = extracted.pop("comment", None)
    try:
        normalized = normalize_extraction(extracted, comment, load_options())
    except (CatalogError, ValueError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except Exception as exc:
        raise _server_error("api_normalize_error", exc, "Unexpected server error while normalizing.") from exc
    return normalized.model_dump(by_alias=True)


@app.post("/quick-entry")
def quick_entry_endpoint(request: QuickEntryRequest) -> dict[str, Any]:
    """Parse a command and merge it with optional extractor output and selections."""
    try:
        opts = load_options()
        parsed = parse_manual_command(request.command, opts)
        entry = merge_quick_entry(
            request.command,
            parsed,
            extracted=request.extracted,
            selected_operation=request.selected_operation,
            selected_payment=request.selected_payment,
        )
    except (CatalogError, ValueError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except Exception as exc:
        raise _server_error("api_quick_entry_error", exc, "Unexpected server error in quick entry.") from exc

    logger.info(
        "api_quick_entry | confidence=%.2f | fallback_used=%s",
        parsed.confidence,
        bool(request.extracted) and needs_fallback(parsed),
    )
    return entry.model_dump(by_alias=True)


@app.post("/validate")
def validate_endpoint(payload: dict[str, Any] = Body(...)) -> dict[str, Any]:
    """Validate a review-form entry before it is appended to the ledger."""
    try:
        result = validate_entry(payload, load_options())
    except CatalogError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return result.model_dump(by_alias=True)


@app.get("/history")
def history_endpoint() -> dict[str, Any]:
    """Return recent successful commands, most recent first."""
    return {"commands": command_history.load()}


@app.delete("/history")
def clear_history_endpoint() -> dict[str, str]:
    """Forget all saved commands."""
    command_history.clear()
    return {"status": "cleared"}


if __name__ == "__main__":
    setup_logging(level=level_from_env())
    port = int(os.getenv("PORT", "8000"))
    uvicorn.run("api:app", host="0.0.0.0", port=port, reload=False)
