"""
validate.py - Entry validation before the ledger-append call.

validate_entry() checks required fields, catalog membership and amounts and
returns a ValidationResult; it never raises for bad payloads. Transfers
(typeOfOperation == 'Transfer') follow their own rules: property optional,
ref required, detail names the direction, exactly one amount column set.
"""

from __future__ import annotations

import math
from typing import Any, Mapping, Optional, Union

from catalog import load_options
from logging_config import get_logger
from models import LedgerEntry, MatchOptions, ValidationResult
from normalize import coerce_text

logger = get_logger(__name__)

TRANSFER_OPERATION = "Transfer"
UNCATEGORIZED = "Uncategorized"
TRANSFER_DETAIL_MARKERS = ("transfer to", "transfer from")


def _invalid(error: str) -> ValidationResult:
    logger.info("validate_entry | valid=False | error=%r", error)
    return ValidationResult(is_valid=False, error=error)


def _to_number(value: Any) -> Optional[float]:
    if value is None or value == "":
        return 0.0
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def validate_entry(
    payload: Union[Mapping[str, Any], LedgerEntry],
    options: Optional[MatchOptions] = None,
) -> ValidationResult:
    """Validate and trim a review-form payload.

    Args:
        payload: camelCase mapping (as the form posts it) or a LedgerEntry.
        options: Catalogs the dropdown values must belong to.

    Returns:
        ValidationResult with the cleaned LedgerEntry, or an error message.
    """
    if isinstance(payload, LedgerEntry):
        payload = payload.model_dump(by_alias=True)
    if not isinstance(payload, Mapping):
        return _invalid("Payload must be a JSON object")

    day = coerce_text(payload.get("day")).strip()
    month = coerce_text(payload.get("month")).strip()
    year = coerce_text(payload.get("year")).strip()
    property_name = coerce_text(payload.get("property")).strip()
    operation = coerce_text(payload.get("typeOfOperation")).strip()
    payment = coerce_text(payload.get("typeOfPayment")).strip()
    detail = coerce_text(payload.get("detail")).strip()
    ref = coerce_text(payload.get("ref")).strip()
    is_transfer = operation == TRANSFER_OPERATION

    if not (day and month and year and operation and payment and detail):
        return _invalid(
            "Missing required fields: day, month, year, typeOfOperation, "
            "typeOfPayment, and detail are all required"
        )
    if not is_transfer and not property_name:
        return _invalid("Property is required for revenue and expense entries")
    if is_transfer and not ref:
        return _invalid(
            "Ref is required for transfer entries. Both transfer rows must share the same ref value."
        )
    if operation == UNCATEGORIZED:
        return _invalid(
            'Please select a valid category from the dropdown. "Uncategorized" entries '
            "cannot be sent to the sheet."
        )

    opts = options or load_options()
    valid_properties = opts.properties.values
    if not is_transfer and property_name not in valid_properties:
        return _invalid(
            f'Invalid property "{property_name}". Please select from: {", ".join(valid_properties)}'
        )
    if operation not in opts.type_of_operation.values:
        return _invalid(
            f'Invalid operation type "{operation}". Please select a valid category from the dropdown.'
        )
    if payment not in opts.type_of_payment.values:
        return _invalid(
            f'Invalid payment type "{payment}". Please select from: '
            f'{", ".join(opts.type_of_payment.values)}'
        )

    debit = _to_number(payload.get("debit"))
    credit = _to_number(payload.get("credit"))
    if debit is None:
        return _invalid("Debit must be a valid number")
    if credit is None:
        return _invalid("Credit must be a valid number")
    if debit < 0:
        return _invalid("Debit cannot be negative")
    if credit < 0:
        return _invalid("Credit cannot be negative")

    if is_transfer:
        detail_lower = detail.lower()
        if not any(marker in detail_lower for marker in TRANSFER_DETAIL_MARKERS):
            return _invalid('Transfer entries must have detail containing "Transfer to" or "Transfer from"')
        if debit > 0 and credit > 0:
            return _invalid("Transfer entries must have either debit OR credit, not both")
        if debit == 0 and credit == 0:
            return _invalid("Transfer entries must have either a debit or credit value (cannot be zero)")

    entry = LedgerEntry(
        day=day,
        month=month,
        year=year,
        property=property_name,
        type_of_operation=operation,
        type_of_payment=payment,
        detail=detail,
        ref=ref,
        debit=debit,
        credit=credit,
    )
    logger.debug("validate_entry | valid=True | operation=%r | transfer=%s", operation, is_transfer)
    return ValidationResult(is_valid=True, data=entry)
