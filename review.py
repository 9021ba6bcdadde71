"""
review.py - Turning drafts into review-form entries.

Two entry points sit between the pure core and the review form:

    normalize_extraction(extracted)   external extractor output -> LedgerEntry
    merge_quick_entry(command, ...)   parser draft (+ extractor output) -> LedgerEntry

Merge policy for quick entry:
    - the parser draft is the base
    - extractor output overlays it only when the parse needs a fallback
    - the user's literal command is always the detail
    - an explicitly selected operation or payment always wins
    - column rules run last
"""

from __future__ import annotations

from datetime import date
from typing import Any, Mapping, Optional

from catalog import DEFAULT_PROPERTY, load_options
from logging_config import get_logger
from match import normalize_dropdown_fields
from models import LedgerEntry, MatchOptions, NormalizedExtraction, ParseResult
from normalize import coerce_amount, coerce_text
from parse import OK_CONFIDENCE, today_parts
from rules import apply_column_rules

logger = get_logger(__name__)

# Extracted operations scoring below this are cleared so the form asks the user.
OPERATION_KEEP_CONFIDENCE = 0.7

ENTRY_FIELDS = (
    "day",
    "month",
    "year",
    "property",
    "typeOfOperation",
    "typeOfPayment",
    "detail",
    "ref",
    "debit",
    "credit",
)


def needs_fallback(result: ParseResult) -> bool:
    """True when the parser draft should be handed to the external extractor."""
    return not result.ok or result.confidence < OK_CONFIDENCE


def _text_field(source: Mapping[str, Any], key: str) -> str:
    return coerce_text(source.get(key)).strip()


def normalize_extraction(
    extracted: Mapping[str, Any],
    comment: Any = None,
    options: Optional[MatchOptions] = None,
    today: Optional[date] = None,
) -> NormalizedExtraction:
    """Fill defaults, snap dropdown fields to the catalog and apply column rules."""
    opts = options or load_options()
    source = extracted if isinstance(extracted, Mapping) else {}
    today_day, today_month, today_year = today_parts(today)

    normalized = normalize_dropdown_fields(
        {
            "property": _text_field(source, "property") or opts.properties.default or DEFAULT_PROPERTY,
            "typeOfOperation": _text_field(source, "typeOfOperation"),
            "typeOfPayment": _text_field(source, "typeOfPayment"),
        },
        comment,
        opts,
    )

    operation = normalized.type_of_operation.value
    debit, credit, rule = apply_column_rules(
        operation,
        coerce_amount(source.get("debit")),
        coerce_amount(source.get("credit")),
    )

    if normalized.type_of_operation.confidence < OPERATION_KEEP_CONFIDENCE:
        logger.debug(
            "normalize_extraction | operation_cleared=%r | confidence=%.2f",
            operation,
            normalized.type_of_operation.confidence,
        )
        operation = ""

    entry = LedgerEntry(
        day=_text_field(source, "day") or today_day,
        month=_text_field(source, "month") or today_month,
        year=_text_field(source, "year") or today_year,
        property=normalized.property.value,
        type_of_operation=operation,
        type_of_payment=normalized.type_of_payment.value,
        detail=_text_field(source, "detail"),
        ref=_text_field(source, "ref"),
        debit=debit,
        credit=credit,
    )

    logger.info(
        "normalize_extraction | property=%r | operation=%r | payment=%r | rule=%s",
        entry.property,
        entry.type_of_operation,
        entry.type_of_payment,
        rule.prefix if rule else None,
    )
    return NormalizedExtraction(
        entry=entry,
        confidence={
            "property": normalized.property.confidence,
            "typeOfOperation": normalized.type_of_operation.confidence,
            "typeOfPayment": normalized.type_of_payment.confidence,
        },
    )


def merge_quick_entry(
    command: str,
    parsed: ParseResult,
    extracted: Optional[Mapping[str, Any]] = None,
    selected_operation: Optional[str] = None,
    selected_payment: Optional[str] = None,
    today: Optional[date] = None,
) -> LedgerEntry:
    """Combine the parser draft, optional extractor output and user selections."""
    merged: dict[str, Any] = {}
    if parsed.data is not None:
        merged.update(parsed.data.model_dump(by_alias=True))

    if extracted and needs_fallback(parsed):
        for key in ENTRY_FIELDS:
            if key in extracted and extracted[key] is not None:
                merged[key] = extracted[key]
        logger.info("merge_quick_entry | fallback_applied=True | confidence=%.2f", parsed.confidence)

    merged["detail"] = coerce_text(command)

    if selected_operation and selected_operation.strip():
        merged["typeOfOperation"] = selected_operation.strip()
    if selected_payment and selected_payment.strip():
        merged["typeOfPayment"] = selected_payment.strip()

    today_day, today_month, today_year = today_parts(today)
    operation = coerce_text(merged.get("typeOfOperation")).strip()
    debit, credit, _ = apply_column_rules(
        operation,
        coerce_amount(merged.get("debit")),
        coerce_amount(merged.get("credit")),
    )

    return LedgerEntry(
        day=coerce_text(merged.get("day")).strip() or today_day,
        month=coerce_text(merged.get("month")).strip() or today_month,
        year=coerce_text(merged.get("year")).strip() or today_year,
        property=coerce_text(merged.get("property")).strip(),
        type_of_operation=operation,
        type_of_payment=coerce_text(merged.get("typeOfPayment")).strip(),
        detail=coerce_text(merged.get("detail")),
        ref=coerce_text(merged.get("ref")).strip(),
        debit=debit,
        credit=credit,
    )
