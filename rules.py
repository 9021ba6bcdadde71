"""
rules.py - Ledger column rules keyed on category name prefixes.

Revenue categories always post as credit and expense categories always post
as debit, whatever the free text or the extractor said. The table is the
single place this lives; the parser, the extraction normalizer and the
quick-entry merge all call apply_column_rules().
"""

from __future__ import annotations

from typing import NamedTuple, Optional

from logging_config import get_logger

logger = get_logger(__name__)

DEBIT = "debit"
CREDIT = "credit"


class ColumnRule(NamedTuple):
    prefix: str
    column: str
    label: str


COLUMN_RULES: tuple[ColumnRule, ...] = (
    ColumnRule(prefix="Revenue", column=CREDIT, label="Revenue → Auto-switched to credit"),
    ColumnRule(prefix="EXP", column=DEBIT, label="Expense → Auto-switched to debit"),
)


def rule_for_operation(operation: Optional[str]) -> Optional[ColumnRule]:
    """Return the rule whose prefix the operation name starts with, if any."""
    if not operation:
        return None
    for rule in COLUMN_RULES:
        if operation.startswith(rule.prefix):
            return rule
    return None


def apply_column_rules(
    operation: Optional[str],
    debit: float,
    credit: float,
) -> tuple[float, float, Optional[ColumnRule]]:
    """Move the amount into the column the operation forces.

    The move only happens when the amount sits in the opposite column. The
    whole amount (debit + credit) lands in the forced column.

    Returns:
        (debit, credit, rule) where rule is the ColumnRule that fired, or None.
    """
    debit = float(debit or 0.0)
    credit = float(credit or 0.0)
    rule = rule_for_operation(operation)
    if rule is None:
        return debit, credit, None

    total = debit + credit
    if rule.column == CREDIT and debit > 0:
        logger.info(
            "column_rule | operation=%r | moved=%s | from=debit | to=credit",
            operation,
            total,
        )
        return 0.0, total, rule
    if rule.column == DEBIT and credit > 0:
        logger.info(
            "column_rule | operation=%r | moved=%s | from=credit | to=debit",
            operation,
            total,
        )
        return total, 0.0, rule
    return debit, credit, None
