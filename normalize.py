"""
normalize.py - Text normalization shared by the matcher and the parser.

Core helpers:
    build_search_text(text, comment)  -> lower-cased, trimmed match input
    strip_currency(text)              -> text without currency symbols/words
    format_amount(amount)             -> shortest decimal string for an amount
    month_abbrev(month)               -> 'Jan'..'Dec' or ''
    to_gregorian_year(year, is_be)    -> Buddhist Era year converted when needed
    split_words(text)                 -> tokens split on whitespace, dash, comma
    coerce_amount(value)              -> non-negative float from form/extractor input

Design principles:
    - Pure transformations, no I/O
    - Invalid input degrades to neutral defaults ('' or 0), never raises
"""

from __future__ import annotations

import math
import re
from typing import Any

from logging_config import get_logger

logger = get_logger(__name__)

BUDDHIST_ERA_OFFSET = 543
# Any year above this is assumed to be Buddhist Era (2025 CE == 2568 BE).
BUDDHIST_ERA_CUTOFF = 2100

CURRENCY_SYMBOLS_RE = re.compile(r"[฿$€£¥]")
CURRENCY_WORDS_RE = re.compile(r"\s+(thb|baht|bath|dollar|usd)\b", re.IGNORECASE)
WORD_SPLIT_RE = re.compile(r"[\s\-,]+")

# Fixed English names; calendar.month_abbr follows the process locale.
MONTH_ABBREVIATIONS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)


def coerce_text(value: Any) -> str:
    """Return `value` as a string; None and non-text become ''."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return ""


def build_search_text(text: Any, comment: Any = None) -> str:
    """Join text and optional comment into one lower-cased match input."""
    return f"{coerce_text(text)} {coerce_text(comment)}".lower().strip()


def strip_currency(text: str) -> str:
    """Remove currency symbols (฿$€£¥) and trailing currency words."""
    cleaned = CURRENCY_SYMBOLS_RE.sub("", coerce_text(text))
    cleaned = CURRENCY_WORDS_RE.sub("", cleaned)
    return cleaned.strip()


def format_amount(amount: float) -> str:
    """Format an amount the way a user would type it: 2000, 2000.5, 12.75."""
    if amount is None or not math.isfinite(amount):
        return ""
    if float(amount).is_integer():
        return str(int(amount))
    return repr(float(amount))


def month_abbrev(month: Any) -> str:
    """Convert a 1-12 month number to its English three-letter abbreviation."""
    try:
        number = int(month)
    except (TypeError, ValueError):
        return ""
    if 1 <= number <= 12:
        return MONTH_ABBREVIATIONS[number - 1]
    return ""


def to_gregorian_year(year: int, is_buddhist_era: bool = False) -> int:
    """Subtract the Buddhist Era offset when flagged or when the year is implausibly high."""
    if is_buddhist_era or year > BUDDHIST_ERA_CUTOFF:
        converted = year - BUDDHIST_ERA_OFFSET
        logger.debug("to_gregorian_year | raw=%s | converted=%s", year, converted)
        return converted
    return year


def split_words(text: str) -> list[str]:
    """Split lower-cased text into words on whitespace, dashes and commas."""
    return [word for word in WORD_SPLIT_RE.split(coerce_text(text).lower()) if word]


def coerce_amount(value: Any) -> float:
    """Normalize an amount from a form or extractor into a non-negative float.

    Accepts numbers and strings like '2,000', '฿1,234.50', '2000 THB'.
    Blank, unparseable, non-finite and negative input becomes 0.0.
    """
    if value is None or isinstance(value, bool):
        return 0.0

    if isinstance(value, (int, float)):
        number = float(value)
    else:
        cleaned = strip_currency(str(value)).replace(",", "").strip()
        if not cleaned:
            return 0.0
        try:
            number = float(cleaned)
        except ValueError:
            logger.warning("coerce_amount | parse_failed | raw=%r | fallback=0.0", value)
            return 0.0

    if not math.isfinite(number):
        logger.warning("coerce_amount | non_finite=%r | fallback=0.0", value)
        return 0.0
    if number < 0:
        logger.warning("coerce_amount | negative=%r | fallback=0.0", value)
        return 0.0
    return number
