"""
catalog.py - Option catalog configuration.

The matcher and parser never import option lists directly. They receive a
MatchOptions value, and this module is where one comes from when the caller
has none:

    load_options()           -> built-in catalog, or BOOKMATE_OPTIONS_FILE
    load_options(path)       -> catalog read from a JSON file
    options_from_dict(raw)   -> catalog from an already-parsed payload

Two JSON shapes are accepted:
    {"properties": [...], "typeOfOperation": [...], "typeOfPayment": [...],
     "keywords": {"properties": {...}, "typeOfOperation": {...}, ...}}
    {"property": [...], "typeOfOperation": [...], "typeOfPayment": [...]}
The second one is the live-dropdowns file synced from the spreadsheet and
carries no keywords.
"""

from __future__ import annotations

import json
import os
import threading
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv

from logging_config import get_logger
from models import MatchOptions, OptionCatalog

logger = get_logger(__name__)

try:
    load_dotenv()
except UnicodeDecodeError:
    load_dotenv(encoding="cp1252")

OPTIONS_FILE_ENV = "BOOKMATE_OPTIONS_FILE"

DEFAULT_PROPERTY = "Sia Moon - Land - General"
DEFAULT_PAYMENT = "Cash"

# Spreadsheet section headers that show up in the operation dropdown range.
HEADER_ROWS = {"FIXED COSTS", "Fixed Costs", "EXPENSES", "REVENUES", "Property"}

DEFAULT_PROPERTY_SHORTCUTS: dict[str, str] = {
    "alesia": "Alesia House",
    "lanna": "Lanna House",
    "parents": "Parents House",
    "sia": "Sia Moon - Land - General",
    "sia moon": "Sia Moon - Land - General",
    "shaun": "Shaun Ducker - Personal",
    "maria": "Maria Ren - Personal",
    "family": "Family",
}

DEFAULT_PROPERTIES: list[str] = [
    "Sia Moon - Land - General",
    "Alesia House",
    "Lanna House",
    "Parents House",
    "Shaun Ducker - Personal",
    "Maria Ren - Personal",
    "Family",
]

DEFAULT_OPERATIONS: list[str] = [
    "Revenue - Commision",
    "Revenue - Sales",
    "Revenue - Services",
    "Revenue - Rental Income",
    "EXP - Utilities - Gas",
    "EXP - Utilities - Water",
    "EXP - Utilities  - Electricity",
    "EXP - Administration & General - License & Certificates",
    "EXP - Construction - Structure",
    "EXP - Construction - Wall",
    "EXP - Construction - Electric Supplies",
    "EXP - HR - Employees Salaries",
    "EXP - Appliances & Electronics",
    "EXP - Windows, Doors, Locks & Hardware",
    "EXP - Decor",
    "EXP - Repairs & Maintenance - Furniture & Decorative Items",
    "EXP - Repairs & Maintenance - Waste Removal",
    "EXP - Repairs & Maintenance - Tools & Equipment",
    "EXP - Repairs & Maintenance - Painting & Decoration",
    "EXP - Repairs & Maintenance - Electrical & Mechanical",
    "EXP - Repairs & Maintenance - Landscaping",
    "EXP - Sales & Marketing - Professional Marketing Services",
    "EXP - Other Expenses",
    "Transfer",
]

# Owner accounts come after the generic methods: their keywords carry the
# owners' names, which are also property shortcuts, and ties go to the
# earlier value.
DEFAULT_PAYMENTS: list[str] = [
    "Cash",
    "Bank transfer - Krung Thai Bank - Sia Moon Company Limited",
    "Bank Transfer - Bangkok Bank - Shaun Ducker",
    "Bank Transfer - Bangkok Bank - Maria Ren",
    "Credit card",
]

DEFAULT_KEYWORDS: dict[str, dict[str, list[str]]] = {
    "properties": {
        "Sia Moon - Land - General": ["sia moon"],
        "Alesia House": ["alesia"],
        "Lanna House": ["lanna"],
        "Parents House": ["parents", "parent"],
        "Shaun Ducker - Personal": ["shaun ducker"],
        "Maria Ren - Personal": ["maria ren"],
        "Family": ["family"],
    },
    "typeOfOperation": {
        "Revenue - Commision": ["commission", "commision", "referral"],
        "Revenue - Sales": ["sales", "sale", "sold"],
        "Revenue - Services": ["services", "service"],
        "Revenue - Rental Income": ["rental", "booking", "airbnb"],
        "EXP - Utilities - Gas": ["gas", "lpg"],
        "EXP - Utilities - Water": ["water"],
        "EXP - Utilities  - Electricity": ["electricity"],
        "EXP - Administration & General - License & Certificates": ["license", "licence", "certificate", "permit"],
        "EXP - Construction - Structure": ["structure", "foundation", "concrete"],
        "EXP - Construction - Wall": ["wall", "materials", "construction", "labour", "labor"],
        "EXP - Construction - Electric Supplies": ["electric", "electrical", "cable", "wiring"],
        "EXP - HR - Employees Salaries": ["salary", "salaries", "staff", "wages"],
        "EXP - Appliances & Electronics": ["aircon", "purifier", "electronics", "appliance"],
        "EXP - Windows, Doors, Locks & Hardware": ["door", "window", "lock", "hardware"],
        "EXP - Decor": ["decor", "decoration", "pillow"],
        "EXP - Repairs & Maintenance - Furniture & Decorative Items": ["furniture", "sofa", "wardrobe"],
        "EXP - Repairs & Maintenance - Waste Removal": ["waste", "garbage", "rubbish"],
        "EXP - Repairs & Maintenance - Tools & Equipment": ["tools", "equipment", "drill"],
        "EXP - Repairs & Maintenance - Painting & Decoration": ["painting", "paint"],
        "EXP - Repairs & Maintenance - Electrical & Mechanical": ["repair", "maintenance", "termite", "plumbing"],
        "EXP - Repairs & Maintenance - Landscaping": ["landscaping", "garden", "gardening", "lawn"],
        "EXP - Sales & Marketing - Professional Marketing Services": ["marketing", "advertising"],
        "EXP - Other Expenses": ["misc", "miscellaneous"],
    },
    "typeOfPayment": {
        "Bank Transfer - Bangkok Bank - Shaun Ducker": ["bangkok bank shaun", "bbl shaun"],
        "Bank Transfer - Bangkok Bank - Maria Ren": ["bangkok bank maria", "bbl maria"],
        "Bank transfer - Krung Thai Bank - Sia Moon Company Limited": [
            "transfer",
            "krung thai",
            "ktb",
            "โอน",
        ],
        "Cash": ["cash", "ค่าแรง"],
        "Credit card": ["card", "visa", "mastercard"],
    },
}

_cache: dict[str, MatchOptions] = {}
_cache_lock = threading.Lock()


class CatalogError(ValueError):
    """Raised when an option catalog file cannot be read or understood."""


def _string_list(raw: Any) -> list[str]:
    if not isinstance(raw, (list, tuple)):
        return []
    return [str(item).strip() for item in raw if str(item or "").strip()]


def options_from_dict(raw: dict[str, Any]) -> MatchOptions:
    """Build MatchOptions from either supported JSON shape."""
    if not isinstance(raw, dict):
        raise CatalogError(f"Option catalog must be a JSON object, got {type(raw).__name__}")

    properties = _string_list(raw.get("properties", raw.get("property")))
    operations = [
        item
        for item in _string_list(raw.get("typeOfOperation", raw.get("typeOfOperations")))
        if item not in HEADER_ROWS
    ]
    payments = _string_list(raw.get("typeOfPayment", raw.get("typeOfPayments")))

    keywords = raw.get("keywords") if isinstance(raw.get("keywords"), dict) else {}
    shortcuts = raw.get("shortcuts") if isinstance(raw.get("shortcuts"), dict) else DEFAULT_PROPERTY_SHORTCUTS
    defaults = raw.get("defaults") if isinstance(raw.get("defaults"), dict) else {}

    # A shortcut may only resolve to something the dropdown offers.
    usable_shortcuts = {word: target for word, target in shortcuts.items() if target in properties}

    options = MatchOptions(
        properties=OptionCatalog(
            values=properties,
            keywords=keywords.get("properties", {}),
            default=defaults.get("property", DEFAULT_PROPERTY),
            shortcuts=usable_shortcuts,
        ),
        type_of_operation=OptionCatalog(
            values=operations,
            keywords=keywords.get("typeOfOperation", {}),
            default=defaults.get("typeOfOperation"),
        ),
        type_of_payment=OptionCatalog(
            values=payments,
            keywords=keywords.get("typeOfPayment", {}),
            default=defaults.get("typeOfPayment", DEFAULT_PAYMENT),
        ),
    )
    logger.debug(
        "catalog_built | properties=%s | operations=%s | payments=%s | shortcuts=%s",
        len(options.properties.values),
        len(options.type_of_operation.values),
        len(options.type_of_payment.values),
        len(usable_shortcuts),
    )
    return options


def default_options() -> MatchOptions:
    """Return the built-in catalog."""
    with _cache_lock:
        cached = _cache.get("<builtin>")
    if cached is not None:
        return cached

    options = options_from_dict(
        {
            "properties": DEFAULT_PROPERTIES,
            "typeOfOperation": DEFAULT_OPERATIONS,
            "typeOfPayment": DEFAULT_PAYMENTS,
            "keywords": DEFAULT_KEYWORDS,
        }
    )
    with _cache_lock:
        _cache["<builtin>"] = options
    return options


def load_options(path: Optional[str] = None) -> MatchOptions:
    """Load the option catalog.

    Resolution order: explicit `path`, then BOOKMATE_OPTIONS_FILE, then the
    built-in catalog. File-backed catalogs are cached per resolved path.

    Raises:
        CatalogError: the file is missing, unreadable, or not a JSON object.
    """
    target = str(path or "").strip() or os.getenv(OPTIONS_FILE_ENV, "").strip()
    if not target:
        return default_options()

    resolved = Path(target).resolve()
    key = str(resolved)
    with _cache_lock:
        cached = _cache.get(key)
    if cached is not None:
        return cached

    if not resolved.is_file():
        raise CatalogError(f"Option catalog not found: {target} (resolved: {resolved})")

    try:
        raw = json.loads(resolved.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise CatalogError(f"Failed to read option catalog '{target}': {exc}") from exc

    options = options_from_dict(raw)
    with _cache_lock:
        _cache[key] = options

    logger.info(
        "catalog_loaded | path=%s | properties=%s | operations=%s | payments=%s",
        resolved,
        len(options.properties.values),
        len(options.type_of_operation.values),
        len(options.type_of_payment.values),
    )
    return options


def clear_options_cache() -> None:
    """Forget every cached catalog (tests and live-reload use this)."""
    with _cache_lock:
        _cache.clear()
