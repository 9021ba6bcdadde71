"""
test_match.py - Fuzzy option matcher tests

End-to-end checks for:
- calculate_similarity
- match_keywords
- best_candidate (strategy priority)
- match_property / match_type_of_operation / match_type_of_payment
- match_field / normalize_dropdown_fields

Usage: python test_match.py
"""

from __future__ import annotations

import os
import sys

# Ensure local imports resolve from project root.
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from catalog import default_options, options_from_dict
from match import (
    MATCHED_THRESHOLD,
    best_candidate,
    calculate_similarity,
    match_field,
    match_keywords,
    match_property,
    match_type_of_operation,
    match_type_of_payment,
    normalize_dropdown_fields,
)
from models import OptionCatalog


def _configure_output_symbols() -> tuple[str, str, str]:
    try:
        if hasattr(sys.stdout, "reconfigure"):
            sys.stdout.reconfigure(encoding="utf-8", errors="replace")
    except Exception:
        pass

    try:
        "✓✗═".encode(sys.stdout.encoding or "utf-8")
        return "✓", "✗", "═"
    except Exception:
        return "[OK]", "[FAIL]", "="


PASS, FAIL, LINE = _configure_output_symbols()


def _nearly_equal(a: float, b: float, tol: float = 1e-9) -> bool:
    return abs(a - b) <= tol


def _synthetic_options():
    return options_from_dict(
        {
            "properties": ["Villa A", "Villa B"],
            "typeOfOperation": ["EXP - Cleaning", "Revenue - Rent"],
            "typeOfPayment": ["Cash", "Card"],
            "keywords": {
                "typeOfOperation": {
                    "EXP - Cleaning": ["cleaning", "maid"],
                    "Not In Catalog": ["villa"],
                },
            },
            "defaults": {"property": "Villa A", "typeOfPayment": "Cash"},
        }
    )


def main() -> int:
    passed = 0
    failed = 0

    def check(name: str, condition: bool) -> None:
        nonlocal passed, failed
        if condition:
            print(f"    {PASS} {name}")
            passed += 1
        else:
            print(f"    {FAIL} {name}")
            failed += 1

    print(LINE * 62)
    print("  Fuzzy Option Matcher Tests")
    print(LINE * 62)

    options = default_options()
    synthetic = _synthetic_options()

    # Category 1: calculate_similarity
    print("\n  [1] calculate_similarity")
    check("Identical strings score 1.0", calculate_similarity("Cash", "cash") == 1.0)
    check("Empty side counts as contained", _nearly_equal(calculate_similarity("", "cash"), 0.9))
    check("Containment scores 0.9", _nearly_equal(calculate_similarity("gas", "gas bill"), 0.9))
    check(
        "Levenshtein ratio kitten/sitting",
        _nearly_equal(calculate_similarity("kitten", "sitting"), 1.0 - 3 / 7),
    )
    check(
        "Disjoint strings score 0.0",
        _nearly_equal(calculate_similarity("abc", "xyz"), 0.0),
    )

    # Category 2: match_keywords
    print("\n  [2] match_keywords")
    check("Empty input scores 0", match_keywords("", ["cash"]) == 0.0)
    check("Exact keyword scores 1.0", match_keywords("Cash", ["cash"]) == 1.0)
    check(
        "Input starting with keyword scores 0.85",
        _nearly_equal(match_keywords("gardening", ["garden"]), 0.85),
    )
    check(
        "Keyword starting with input scores 0.9",
        _nearly_equal(match_keywords("gar", ["garden"]), 0.9),
    )
    check(
        "Keyword inside multi-word input scores 0.95",
        _nearly_equal(match_keywords("paid cash today", ["cash"]), 0.95),
    )
    check(
        "Short keyword prefix is ignored",
        match_keywords("gasoline", ["gas"]) < 0.8,
    )

    # Category 3: best_candidate
    print("\n  [3] best_candidate")
    catalog = OptionCatalog(values=["A", "B"])
    first = lambda text, cat: ("A", 0.9)  # noqa: E731
    second = lambda text, cat: ("B", 0.9)  # noqa: E731
    stronger = lambda text, cat: ("B", 0.95)  # noqa: E731
    perfect = lambda text, cat: ("A", 1.0)  # noqa: E731
    calls: list[str] = []

    def never(text, cat):
        calls.append(text)
        return ("B", 1.0)

    check("Earlier strategy wins ties", best_candidate("x", catalog, [first, second]) == ("A", 0.9))
    check("Strictly higher score replaces best", best_candidate("x", catalog, [first, stronger]) == ("B", 0.95))
    check("Stops after a 1.0 candidate", best_candidate("x", catalog, [perfect, never]) == ("A", 1.0) and not calls)
    check("No candidates returns None", best_candidate("x", catalog, []) is None)

    # Category 4: property
    print("\n  [4] match_property")
    result = match_property("alesia", options=options)
    check("Shortcut 'alesia' -> Alesia House", result.value == "Alesia House" and result.confidence == 1.0)
    check("Shortcut result is matched", result.matched)

    result = match_property("alesia - 2000 debit cash", options=options)
    check("Shortcut token inside a command wins", result.value == "Alesia House" and result.confidence == 1.0)

    result = match_property("sia", options=options)
    check("'sia' never resolves to Alesia House", result.value == "Sia Moon - Land - General")

    result = match_property("Lanna House", options=options)
    check("Exact catalog value scores 1.0", result.value == "Lanna House" and result.confidence == 1.0)

    result = match_property("", options=options)
    check(
        "Empty input -> default at 0.5",
        result.value == "Sia Moon - Land - General" and result.confidence == 0.5 and not result.matched,
    )

    result = match_property("xyz qqq", options=options)
    check("Unknown text -> default, not matched", result.value == "Sia Moon - Land - General" and not result.matched)

    result = match_property("   ", options=options)
    check("Whitespace-only input treated as empty", result.confidence == 0.5 and not result.matched)

    result = match_property("villa b", options=synthetic)
    check("Synthetic catalog exact match", result.value == "Villa B" and result.matched)

    result = match_property("zzz", options=synthetic)
    check("Synthetic catalog default respected", result.value == "Villa A" and result.confidence == 0.5)

    # Category 5: operation
    print("\n  [5] match_type_of_operation")
    result = match_type_of_operation("salaries", options=options)
    check("Keyword 'salaries' -> Employees Salaries", result.value == "EXP - HR - Employees Salaries" and result.matched)

    result = match_type_of_operation("", "garden work", options=options)
    check(
        "Comment alone is matched",
        result.value == "EXP - Repairs & Maintenance - Landscaping" and result.matched,
    )

    result = match_type_of_operation("", options=options)
    check("Empty input -> '' at 0.0", result.value == "" and result.confidence == 0.0 and not result.matched)

    result = match_type_of_operation("zzzz", options=options)
    check("No candidate -> '' unmatched", result.value == "" and not result.matched)

    result = match_type_of_operation("maid", options=synthetic)
    check("Synthetic keyword match", result.value == "EXP - Cleaning" and result.confidence == 1.0)

    result = match_type_of_operation("villa", options=synthetic)
    check("Keywords for values outside the catalog are ignored", result.value != "Not In Catalog")

    # Category 6: payment
    print("\n  [6] match_type_of_payment")
    result = match_type_of_payment("cash", options=options)
    check("Exact 'cash' -> Cash", result.value == "Cash" and result.confidence == 1.0)

    result = match_type_of_payment("bangkok bank shaun", options=options)
    check(
        "Full keyword phrase beats partial word overlap",
        result.value == "Bank Transfer - Bangkok Bank - Shaun Ducker" and result.confidence == 1.0,
    )

    result = match_type_of_payment("Credit Card", options=options)
    check("Case-insensitive exact match", result.value == "Credit card" and result.matched)

    result = match_type_of_payment(None, options=options)
    check("None input -> Cash default", result.value == "Cash" and result.confidence == 0.5)

    # Category 7: dispatch and batch normalization
    print("\n  [7] match_field / normalize_dropdown_fields")
    result = match_field("typeOfPayment", "ktb", options=options)
    check(
        "match_field dispatches on JSON field name",
        result.value == "Bank transfer - Krung Thai Bank - Sia Moon Company Limited",
    )
    try:
        match_field("bogus", "x", options=options)
        check("Unknown field raises KeyError", False)
    except KeyError:
        check("Unknown field raises KeyError", True)

    normalized = normalize_dropdown_fields(
        {"property": "lanna", "typeOfOperation": "water", "typeOfPayment": "ktb"},
        options=options,
    )
    check("Normalized property", normalized.property.value == "Lanna House")
    check("Normalized operation", normalized.type_of_operation.value == "EXP - Utilities - Water")
    check(
        "Normalized payment",
        normalized.type_of_payment.value == "Bank transfer - Krung Thai Bank - Sia Moon Company Limited",
    )

    # Category 8: invariants
    print("\n  [8] Invariants")
    samples = ["", "alesia", "cash", "salary", "random words here", "ค่าแรง", "2000 debit landscaping"]
    results = []
    for text in samples:
        results.append(match_property(text, options=options))
        results.append(match_type_of_operation(text, options=options))
        results.append(match_type_of_payment(text, options=options))
    check("Confidence always within [0, 1]", all(0.0 <= r.confidence <= 1.0 for r in results))
    check(
        "matched implies confidence >= threshold",
        all(r.confidence >= MATCHED_THRESHOLD for r in results if r.matched),
    )
    check(
        "Confidence >= threshold implies matched",
        all(r.matched for r in results if r.confidence >= MATCHED_THRESHOLD),
    )
    check(
        "Matched values come from the catalog",
        all(
            r.value in options.properties.values
            or r.value in options.type_of_operation.values
            or r.value in options.type_of_payment.values
            for r in results
            if r.matched
        ),
    )
    check(
        "Repeated calls are deterministic",
        all(match_type_of_operation(text, options=options) == match_type_of_operation(text, options=options) for text in samples),
    )
    check(
        "Thai keyword matches Cash",
        match_type_of_payment("ค่าแรง", options=options).value == "Cash",
    )

    print(f"\n{LINE * 62}")
    print(f"  Results: {passed}/{passed + failed} passed")
    if failed == 0:
        print(f"  Matcher: COMPLETE {PASS}")
    else:
        print(f"  Matcher: {failed} FAILED")
    print(f"{LINE * 62}")
    return failed


def test_match_suite() -> None:
    assert main() == 0


if __name__ == "__main__":
    raise SystemExit(1 if main() else 0)
