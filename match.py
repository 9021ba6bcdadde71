"""
match.py - Fuzzy option matching for dropdown fields.

Maps noisy free text (receipt fields, quick-entry commands, AI output) onto
one entry of a small fixed catalog and says how much to trust the result.

Each field runs an ordered list of scoring strategies. A strategy looks at
the whole catalog and returns its single best (value, confidence) candidate
or None. The reducer keeps the highest-confidence candidate, earlier
strategies winning ties, and stops once a candidate reaches 1.0:

    property        shortcut -> exact -> keyword -> similarity (>= 0.7 only)
    typeOfOperation exact -> keyword -> similarity
    typeOfPayment   exact -> keyword -> similarity

A winner below MATCHED_THRESHOLD is replaced by the catalog default when the
field has one (property, payment). The operation field has no default and
returns its best guess unmatched.

Nothing here raises for string input; empty input returns the documented
default with matched=False.
"""

from __future__ import annotations

from functools import partial
from typing import Any, Callable, Mapping, Optional, Sequence

from rapidfuzz.distance import Levenshtein

from catalog import load_options
from logging_config import get_logger
from models import FIELD_NAMES, MatchOptions, MatchResult, NormalizedFields, OptionCatalog
from normalize import build_search_text

logger = get_logger(__name__)

# Confidence at which a match is applied without human review.
MATCHED_THRESHOLD = 0.8
# Confidence reported for a default fallback value.
DEFAULT_CONFIDENCE = 0.5
# Property names are short and collide easily, so plain similarity needs more.
PROPERTY_SIMILARITY_FLOOR = 0.7

CONTAINMENT_SCORE = 0.9

KEYWORD_INPUT_PREFIX_SCORE = 0.85
KEYWORD_PREFIX_SCORE = 0.9
KEYWORD_INPUT_CONTAINS_SCORE = 0.95
KEYWORD_CONTAINS_INPUT_SCORE = 0.85
KEYWORD_WORD_EQUAL_SCORE = 0.95
KEYWORD_WORD_SIMILARITY_MIN = 0.8
KEYWORD_WORD_SIMILARITY_WEIGHT = 0.9
# Shorter keywords must not match as a prefix ("sia" inside "siam", "alesia").
KEYWORD_MIN_PREFIX_LENGTH = 4
KEYWORD_MIN_WORD_LENGTH = 4

Candidate = tuple[str, float]
Strategy = Callable[[str, OptionCatalog], Optional[Candidate]]


def calculate_similarity(str1: str, str2: str) -> float:
    """Normalized Levenshtein similarity between two strings (0.0-1.0).

    Exact match scores 1.0 and containment in either direction scores 0.9,
    so an empty string against a non-empty one also scores 0.9.
    Otherwise the score is 1 - distance / max(len1, len2).
    """
    s1 = str(str1 or "").lower().strip()
    s2 = str(str2 or "").lower().strip()

    if s1 == s2:
        return 1.0

    if s1 in s2 or s2 in s1:
        return CONTAINMENT_SCORE

    distance = Levenshtein.distance(s1, s2)
    return 1.0 - distance / max(len(s1), len(s2))


def match_keywords(search_text: str, keywords: Sequence[str]) -> float:
    """Score search text against the trigger keywords of one catalog value."""
    input_lower = str(search_text or "").lower().strip()
    if not input_lower:
        return 0.0

    input_words = input_lower.split()
    max_score = 0.0

    for keyword in keywords:
        keyword_lower = str(keyword or "").lower().strip()
        if not keyword_lower:
            continue

        if input_lower == keyword_lower:
            return 1.0

        if " " not in keyword_lower and " " not in input_lower:
            if input_lower.startswith(keyword_lower) and len(input_lower) > len(keyword_lower):
                if len(keyword_lower) >= KEYWORD_MIN_PREFIX_LENGTH:
                    max_score = max(max_score, KEYWORD_INPUT_PREFIX_SCORE)
            elif keyword_lower.startswith(input_lower) and len(keyword_lower) > len(input_lower):
                max_score = max(max_score, KEYWORD_PREFIX_SCORE)
        else:
            if keyword_lower in input_lower:
                max_score = max(max_score, KEYWORD_INPUT_CONTAINS_SCORE)
            elif input_lower in keyword_lower:
                max_score = max(max_score, KEYWORD_CONTAINS_INPUT_SCORE)

        # Whole-word comparison ("salaries" ~ "salary") without substrings.
        for input_word in input_words:
            for keyword_word in keyword_lower.split():
                if input_word == keyword_word:
                    max_score = max(max_score, KEYWORD_WORD_EQUAL_SCORE)
                elif (
                    len(input_word) >= KEYWORD_MIN_WORD_LENGTH
                    and len(keyword_word) >= KEYWORD_MIN_WORD_LENGTH
                ):
                    similarity = calculate_similarity(input_word, keyword_word)
                    if similarity > KEYWORD_WORD_SIMILARITY_MIN:
                        max_score = max(max_score, similarity * KEYWORD_WORD_SIMILARITY_WEIGHT)

    return max_score


# -- Strategies --


def shortcut_strategy(search_text: str, catalog: OptionCatalog) -> Optional[Candidate]:
    """Resolve a whitespace token that is a known single-word alias."""
    if not catalog.shortcuts:
        return None
    for word in search_text.split():
        target = catalog.shortcuts.get(word)
        if target:
            return target, 1.0
    return None


def exact_strategy(search_text: str, catalog: OptionCatalog) -> Optional[Candidate]:
    """Case-insensitive equality with a catalog value."""
    for value in catalog.values:
        if search_text == value.lower():
            return value, 1.0
    return None


def keyword_strategy(search_text: str, catalog: OptionCatalog) -> Optional[Candidate]:
    """Best keyword score over catalog values that have keywords."""
    best: Optional[Candidate] = None
    for value in catalog.values:
        value_keywords = catalog.keywords.get(value)
        if not value_keywords:
            continue
        score = match_keywords(search_text, value_keywords)
        if score > 0.0 and (best is None or score > best[1]):
            best = (value, score)
    return best


def similarity_strategy(
    search_text: str,
    catalog: OptionCatalog,
    floor: float = 0.0,
) -> Optional[Candidate]:
    """Best whole-string similarity, ignoring scores under `floor`."""
    best: Optional[Candidate] = None
    for value in catalog.values:
        score = calculate_similarity(search_text, value)
        if score <= 0.0 or score < floor:
            continue
        if best is None or score > best[1]:
            best = (value, score)
    return best


PROPERTY_STRATEGIES: tuple[Strategy, ...] = (
    shortcut_strategy,
    exact_strategy,
    keyword_strategy,
    partial(similarity_strategy, floor=PROPERTY_SIMILARITY_FLOOR),
)
OPERATION_STRATEGIES: tuple[Strategy, ...] = (
    exact_strategy,
    keyword_strategy,
    similarity_strategy,
)
PAYMENT_STRATEGIES: tuple[Strategy, ...] = (
    exact_strategy,
    keyword_strategy,
    similarity_strategy,
)


def best_candidate(
    search_text: str,
    catalog: OptionCatalog,
    strategies: Sequence[Strategy],
) -> Optional[Candidate]:
    """Run strategies in priority order and keep the strongest candidate."""
    best: Optional[Candidate] = None
    for strategy in strategies:
        candidate = strategy(search_text, catalog)
        if candidate is None:
            continue
        if best is None or candidate[1] > best[1]:
            best = candidate
        if best[1] >= 1.0:
            break
    return best


def match_option(
    text: Any,
    comment: Any,
    catalog: OptionCatalog,
    strategies: Sequence[Strategy] = OPERATION_STRATEGIES,
    field_name: str = "option",
) -> MatchResult:
    """Match text (plus optional comment) against one catalog."""
    search_text = build_search_text(text, comment)
    if not search_text:
        if catalog.default is not None:
            return MatchResult(value=catalog.default, confidence=DEFAULT_CONFIDENCE, matched=False)
        return MatchResult(value="", confidence=0.0, matched=False)

    best = best_candidate(search_text, catalog, strategies)
    if best is not None and best[1] >= MATCHED_THRESHOLD:
        value, confidence = best
        logger.debug(
            "match_option | field=%s | input=%r | value=%r | confidence=%.3f | matched=True",
            field_name,
            search_text,
            value,
            confidence,
        )
        return MatchResult(value=value, confidence=min(confidence, 1.0), matched=True)

    if catalog.default is not None:
        logger.debug(
            "match_option | field=%s | input=%r | best=%r | fallback=%r",
            field_name,
            search_text,
            best,
            catalog.default,
        )
        return MatchResult(value=catalog.default, confidence=DEFAULT_CONFIDENCE, matched=False)

    if best is None:
        logger.debug("match_option | field=%s | input=%r | no_candidate=True", field_name, search_text)
        return MatchResult(value="", confidence=0.0, matched=False)

    logger.debug(
        "match_option | field=%s | input=%r | value=%r | confidence=%.3f | matched=False",
        field_name,
        search_text,
        best[0],
        best[1],
    )
    return MatchResult(value=best[0], confidence=best[1], matched=False)


def match_property(text: Any, comment: Any = None, options: Optional[MatchOptions] = None) -> MatchResult:
    """Match a property name. Defaults to 'Sia Moon - Land - General'."""
    opts = options or load_options()
    return match_option(text, comment, opts.properties, PROPERTY_STRATEGIES, "property")


def match_type_of_operation(
    text: Any,
    comment: Any = None,
    options: Optional[MatchOptions] = None,
) -> MatchResult:
    """Match an operation/category name. No default: unmatched input keeps the best guess."""
    opts = options or load_options()
    return match_option(text, comment, opts.type_of_operation, OPERATION_STRATEGIES, "typeOfOperation")


def match_type_of_payment(
    text: Any,
    comment: Any = None,
    options: Optional[MatchOptions] = None,
) -> MatchResult:
    """Match a payment method. Defaults to 'Cash'."""
    opts = options or load_options()
    return match_option(text, comment, opts.type_of_payment, PAYMENT_STRATEGIES, "typeOfPayment")


FIELD_MATCHERS: dict[str, Callable[..., MatchResult]] = {
    "property": match_property,
    "typeOfOperation": match_type_of_operation,
    "typeOfPayment": match_type_of_payment,
}


def match_field(
    field_name: str,
    text: Any,
    comment: Any = None,
    options: Optional[MatchOptions] = None,
) -> MatchResult:
    """Dispatch on a JSON field name.

    Raises:
        KeyError: `field_name` is not one of property, typeOfOperation, typeOfPayment.
    """
    if field_name not in FIELD_MATCHERS:
        raise KeyError(f"Unknown field {field_name!r}; expected one of {list(FIELD_NAMES)}")
    return FIELD_MATCHERS[field_name](text, comment, options)


def normalize_dropdown_fields(
    data: Mapping[str, Any],
    comment: Any = None,
    options: Optional[MatchOptions] = None,
) -> NormalizedFields:
    """Match all three dropdown fields of a partially filled record."""
    opts = options or load_options()
    source = data or {}
    return NormalizedFields(
        property=match_property(source.get("property") or "", comment, opts),
        type_of_operation=match_type_of_operation(source.get("typeOfOperation") or "", comment, opts),
        type_of_payment=match_type_of_payment(source.get("typeOfPayment") or "", comment, opts),
    )
