"""
parse.py - Quick-entry command parser.

Turns one free-text line such as

    "alesia - 2000 - debit - cash - landscaping"

into a draft ledger entry without calling any external service. The result
carries a confidence score and a reasons trail; callers treat ok=False or a
low score as the cue to ask the external extractor for help.

Pipeline (confidence is additive, capped at 1.0):
    1. transaction type   +0.40  credit/income vs debit/expense vocabulary
    2. amount             +0.40  first number, currency stripped
    3. date               +0.10  DD/MM/YYYY, DD-MM-YYYY, YYYY-MM-DD (BE aware)
    4. property           +0.05  matcher score > 0.5, then whole-word fallback
    5. payment type       +0.20  matcher result must be matched
    6. operation          +0.30  matcher result must be matched, then column rules
    7. detail                    leftover text, 'Manual entry' when empty
"""

from __future__ import annotations

import re
from datetime import date, datetime
from typing import Any, Optional

from catalog import DEFAULT_PROPERTY, DEFAULT_PROPERTY_SHORTCUTS, load_options
from logging_config import get_logger
from match import match_property, match_type_of_operation, match_type_of_payment
from models import MatchOptions, ParsedCommand, ParseResult
from normalize import (
    CURRENCY_SYMBOLS_RE,
    CURRENCY_WORDS_RE,
    coerce_text,
    format_amount,
    month_abbrev,
    split_words,
    strip_currency,
    to_gregorian_year,
)
from rules import apply_column_rules

logger = get_logger(__name__)

TYPE_WEIGHT = 0.4
AMOUNT_WEIGHT = 0.4
DATE_WEIGHT = 0.1
PROPERTY_WEIGHT = 0.05
PAYMENT_WEIGHT = 0.2
OPERATION_WEIGHT = 0.3

# Looser than the matcher's own 0.8: the 0.5 default never passes.
PROPERTY_ACCEPT_CONFIDENCE = 0.5
OK_CONFIDENCE = 0.75

DEFAULT_DETAIL = "Manual entry"

# Credit vocabulary is checked first, so "credit ... payment" is credit.
CREDIT_RE = re.compile(r"(credit|income|in|revenue|sales|rental|deposit)\b", re.ASCII)
DEBIT_RE = re.compile(r"(debit|expense|exp|out|payment|paid|cost)\b", re.ASCII)

AMOUNT_RE = re.compile(r"\b(\d{1,3}(?:,\d{3})*(?:\.\d{1,2})?|\d+(?:\.\d{1,2})?)\b", re.ASCII)
# The amount as typed, with an adjacent currency symbol or word, for cutting it out of the detail.
AMOUNT_TOKEN_RE = re.compile(
    rf"(?:{CURRENCY_SYMBOLS_RE.pattern}\s*)?{AMOUNT_RE.pattern}(?:{CURRENCY_WORDS_RE.pattern})?",
    re.ASCII | re.IGNORECASE,
)

DAY_FIRST_RE = re.compile(r"\b(\d{1,2})[/-](\d{1,2})[/-](\d{4})\b", re.ASCII)
YEAR_FIRST_RE = re.compile(r"\b(\d{4})[/-](\d{1,2})[/-](\d{1,2})\b", re.ASCII)
BUDDHIST_ERA_RE = re.compile(r"\bbe\b|พ\.ศ\.", re.ASCII)

# Whole-word triggers checked in order when the matcher finds no property.
EMERGENCY_PROPERTY_WORDS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("family",), "family"),
    (("shaun",), "shaun"),
    (("maria",), "maria"),
    (("alesia",), "alesia"),
    (("lanna",), "lanna"),
    (("parents", "parent"), "parents"),
    (("sia", "moon"), "sia"),
)

SEPARATORS_RE = re.compile(r"[,\-]+")
WHITESPACE_RE = re.compile(r"\s+")


def detect_transaction_type(text: str) -> Optional[str]:
    """Return 'credit', 'debit' or None from income/expense vocabulary."""
    lower = coerce_text(text).lower()
    if CREDIT_RE.search(lower):
        return "credit"
    if DEBIT_RE.search(lower):
        return "debit"
    return None


def extract_amount(text: str) -> Optional[float]:
    """Return the first number in the text, ignoring currency and thousands separators.

    Supports 2000, 2,000, ฿2,000, 2000 thb, 2000 baht, 12.50.
    """
    normalized = strip_currency(text)
    match = AMOUNT_RE.search(normalized)
    if not match:
        return None
    try:
        return float(match.group(1).replace(",", ""))
    except ValueError:
        return None


def remove_amount_token(text: str) -> str:
    """Cut the first amount, as typed, out of the text."""
    match = AMOUNT_TOKEN_RE.search(text)
    if not match:
        return text
    return f"{text[: match.start()]} {text[match.end() :]}"


def parse_date(text: str) -> Optional[tuple[str, str, str]]:
    """Find a DD/MM/YYYY, DD-MM-YYYY or YYYY-MM-DD date.

    Buddhist Era years (flagged by 'BE' or 'พ.ศ.', or any year above 2100)
    are converted to Gregorian.

    Returns:
        (day, month, year) as ('07', 'Oct', '2025'), or None.
    """
    raw = coerce_text(text)
    is_buddhist_era = bool(BUDDHIST_ERA_RE.search(raw.lower()))

    day_first = DAY_FIRST_RE.search(raw)
    if day_first:
        day, month, year = day_first.group(1), day_first.group(2), day_first.group(3)
        parsed = _build_date(day, month, year, is_buddhist_era)
        if parsed:
            return parsed

    year_first = YEAR_FIRST_RE.search(raw)
    if year_first:
        year, month, day = year_first.group(1), year_first.group(2), year_first.group(3)
        parsed = _build_date(day, month, year, is_buddhist_era)
        if parsed:
            return parsed

    return None


def _build_date(day: str, month: str, year: str, is_buddhist_era: bool) -> Optional[tuple[str, str, str]]:
    month_name = month_abbrev(month)
    if not month_name:
        logger.debug("parse_date | rejected_month=%r", month)
        return None
    gregorian = to_gregorian_year(int(year), is_buddhist_era)
    return day.zfill(2), month_name, str(gregorian)


def today_parts(today: Optional[date] = None) -> tuple[str, str, str]:
    """Today's (day, month, year) in ledger format."""
    current = today or datetime.now().date()
    return f"{current.day:02d}", month_abbrev(current.month), str(current.year)


def extract_property(text: str, options: MatchOptions) -> Optional[str]:
    """Detect the property via the matcher, then a whole-word trigger scan."""
    result = match_property(text, options=options)
    if result.confidence > PROPERTY_ACCEPT_CONFIDENCE:
        return result.value

    words = set(split_words(text))
    catalog = options.properties
    for triggers, shortcut_key in EMERGENCY_PROPERTY_WORDS:
        if not any(trigger in words for trigger in triggers):
            continue
        target = catalog.shortcuts.get(shortcut_key) or DEFAULT_PROPERTY_SHORTCUTS.get(shortcut_key)
        if target and target in catalog.values:
            logger.debug("extract_property | fallback_word=%r | value=%r", shortcut_key, target)
            return target
    return None


def extract_payment(text: str, options: MatchOptions) -> Optional[str]:
    result = match_type_of_payment(text, options=options)
    return result.value if result.matched else None


def extract_operation(text: str, options: MatchOptions) -> Optional[str]:
    result = match_type_of_operation(text, options=options)
    return result.value if result.matched else None


def extract_detail(text: str, detected_keywords: list[str]) -> str:
    """Strip detected tokens and separators; what is left is the description."""
    detail = coerce_text(text)
    for keyword in detected_keywords:
        if not keyword:
            continue
        pattern = re.compile(rf"\b{re.escape(keyword)}\b", re.IGNORECASE)
        detail = pattern.sub("", detail)

    detail = SEPARATORS_RE.sub(" ", detail)
    detail = WHITESPACE_RE.sub(" ", detail).strip()
    return detail or DEFAULT_DETAIL


def parse_manual_command(
    text: Any,
    options: Optional[MatchOptions] = None,
    today: Optional[date] = None,
) -> ParseResult:
    """Parse one quick-entry command into a draft ledger entry.

    Never raises. Every field has a safe default, and success is reported
    only through `ok` and `confidence`.

    Args:
        text: The user's command, e.g. "debit 2000 salaries cash".
        options: Catalogs to match against. Defaults to load_options().
        today: Date used when the command has none. Defaults to today.

    Returns:
        ParseResult. ok is True only when confidence >= 0.75, an amount was
        found, and an operation, a payment or a transaction type was found.

    Examples:
        >>> result = parse_manual_command("alesia - 2000 - debit - cash - landscaping")
        >>> result.data.property, result.data.debit, result.data.type_of_payment
        ('Alesia House', 2000.0, 'Cash')
        >>> parse_manual_command("").ok
        False
    """
    raw = coerce_text(text)
    if not raw.strip():
        return ParseResult(ok=False, confidence=0.0, reasons=["Input is empty"])

    opts = options or load_options()
    normalized = raw.lower().strip()
    reasons: list[str] = []
    confidence = 0.0
    debit = 0.0
    credit = 0.0

    # 1. Transaction type.
    transaction_type = detect_transaction_type(normalized)
    if transaction_type:
        confidence += TYPE_WEIGHT
        reasons.append(f"Detected {transaction_type} transaction")
    else:
        reasons.append("No transaction type specified - defaulting to debit")

    # 2. Amount.
    amount = extract_amount(raw)
    if amount is not None:
        if transaction_type == "credit":
            credit = amount
        else:
            debit = amount
        confidence += AMOUNT_WEIGHT
        column = "credit" if transaction_type == "credit" else "debit - default"
        reasons.append(f"Extracted amount: {format_amount(amount)} ({column})")

    # 3. Date.
    parsed_date = parse_date(raw)
    if parsed_date:
        day, month, year = parsed_date
        confidence += DATE_WEIGHT
        reasons.append(f"Parsed date: {day}/{month}/{year}")
    else:
        day, month, year = today_parts(today)

    # 4. Property.
    property_name = extract_property(normalized, opts)
    if property_name:
        confidence += PROPERTY_WEIGHT
        reasons.append(f"Detected property: {property_name}")

    # 5. Payment type.
    payment = extract_payment(normalized, opts)
    if payment:
        confidence += PAYMENT_WEIGHT
        reasons.append(f"Detected payment: {payment}")

    # 6. Operation type, then the column rules it implies.
    operation = extract_operation(normalized, opts)
    if operation:
        confidence += OPERATION_WEIGHT
        reasons.append(f"Detected operation: {operation}")
        if amount is not None:
            debit, credit, rule = apply_column_rules(operation, debit, credit)
            if rule is not None:
                reasons.append(rule.label)

    # 7. Detail.
    detected_keywords = [transaction_type or "", payment or "", operation or "", property_name or ""]
    detail_source = remove_amount_token(raw) if amount is not None else raw
    detail = extract_detail(detail_source, detected_keywords)

    confidence = round(min(confidence, 1.0), 4)
    has_amount = amount is not None
    has_operation = operation is not None
    has_payment_or_type = payment is not None or transaction_type is not None
    ok = confidence >= OK_CONFIDENCE and has_amount and (has_operation or has_payment_or_type)

    data = ParsedCommand(
        day=day,
        month=month,
        year=year,
        property=property_name or opts.properties.default or DEFAULT_PROPERTY,
        type_of_operation=operation or "",
        type_of_payment=payment or opts.type_of_payment.default or "",
        detail=detail,
        ref="",
        debit=debit,
        credit=credit,
    )

    logger.info(
        "parse_complete | ok=%s | confidence=%.2f | type=%s | debit=%s | credit=%s | property=%r | operation=%r | payment=%r",
        ok,
        confidence,
        transaction_type,
        debit,
        credit,
        data.property,
        data.type_of_operation,
        data.type_of_payment,
    )
    return ParseResult(ok=ok, data=data, confidence=confidence, reasons=reasons)
