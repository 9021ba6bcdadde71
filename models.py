"""
models.py - Data Models for the quick-entry pipeline

Every module communicates through these models:

    catalog.py  ->  MatchOptions (three OptionCatalogs)
    match.py    ->  MatchResult, NormalizedFields
    parse.py    ->  ParseResult (wrapping a ParsedCommand)
    review.py   ->  LedgerEntry, NormalizedExtraction
    validate.py ->  ValidationResult

Design principles:
1. All models are transient values built by one call and never mutated
   by the caller afterwards
2. Python attributes are snake_case; JSON uses the spreadsheet's camelCase
   names (typeOfOperation, typeOfPayment) through aliases
3. Confidence is always a 0.0-1.0 float

Schema relationships:
    OptionCatalog --used by--> MatchOptions
    LedgerEntry   --base of--> ParsedCommand
    ParsedCommand --used by--> ParseResult.data
    LedgerEntry   --used by--> ValidationResult.data, NormalizedExtraction.entry
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

FIELD_NAMES = ("property", "typeOfOperation", "typeOfPayment")


class MatchResult(BaseModel):
    """Outcome of mapping free text onto one catalog entry.

    `matched` is True only when confidence reached the trusted-match
    threshold (0.8). Default fallbacks carry a nonzero confidence (0.5)
    but are never matched.
    """

    model_config = ConfigDict(frozen=True)

    value: str = Field(
        ...,
        description=(
            "Chosen catalog string, or the field default ('Sia Moon - Land - "
            "General' for property, 'Cash' for payment, '' for operation)."
        ),
    )
    confidence: float = Field(
        ...,
        ge=0.0,
        le=1.0,
        description="Match strength from 0.0 (nothing) to 1.0 (exact).",
    )
    matched: bool = Field(
        ...,
        description="True iff confidence >= 0.8 and the value is not a default fallback.",
    )


class OptionCatalog(BaseModel):
    """Valid choices for one dropdown field plus the hints used to match them."""

    model_config = ConfigDict(extra="ignore")

    values: list[str] = Field(
        default_factory=list,
        description="Ordered valid choices. Earlier entries win score ties.",
    )
    keywords: dict[str, list[str]] = Field(
        default_factory=dict,
        description=(
            "Trigger words/phrases per catalog value. Keys that are not in "
            "`values` are ignored by the matcher."
        ),
    )
    default: Optional[str] = Field(
        default=None,
        description="Value returned when nothing matches. None means no default.",
    )
    shortcuts: dict[str, str] = Field(
        default_factory=dict,
        description="Single-word aliases that resolve immediately with confidence 1.0.",
    )

    @field_validator("values", mode="before")
    @classmethod
    def _clean_values(cls, value: Any) -> list[str]:
        source = value if isinstance(value, (list, tuple)) else []
        result: list[str] = []
        for raw in source:
            text = str(raw or "").strip()
            if text:
                result.append(text)
        return result

    @field_validator("keywords", mode="before")
    @classmethod
    def _clean_keywords(cls, value: Any) -> dict[str, list[str]]:
        source = value if isinstance(value, dict) else {}
        result: dict[str, list[str]] = {}
        for key, raw in source.items():
            name = str(key or "").strip()
            if not name:
                continue
            words = raw if isinstance(raw, (list, tuple)) else [raw]
            cleaned = [str(word).strip() for word in words if str(word or "").strip()]
            if cleaned:
                result[name] = cleaned
        return result

    @field_validator("shortcuts", mode="before")
    @classmethod
    def _clean_shortcuts(cls, value: Any) -> dict[str, str]:
        source = value if isinstance(value, dict) else {}
        result: dict[str, str] = {}
        for key, raw in source.items():
            word = str(key or "").strip().lower()
            target = str(raw or "").strip()
            if word and target:
                result[word] = target
        return result


class MatchOptions(BaseModel):
    """The three catalogs the matcher and parser work against."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    properties: OptionCatalog = Field(default_factory=OptionCatalog)
    type_of_operation: OptionCatalog = Field(default_factory=OptionCatalog)
    type_of_payment: OptionCatalog = Field(default_factory=OptionCatalog)

    def for_field(self, field_name: str) -> OptionCatalog:
        """Return the catalog for a JSON field name (property, typeOfOperation, typeOfPayment)."""
        if field_name == "property":
            return self.properties
        if field_name == "typeOfOperation":
            return self.type_of_operation
        if field_name == "typeOfPayment":
            return self.type_of_payment
        raise KeyError(field_name)


class NormalizedFields(BaseModel):
    """Match results for all three dropdown fields of one record."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    property: MatchResult
    type_of_operation: MatchResult
    type_of_payment: MatchResult


class LedgerEntry(BaseModel):
    """One ledger row as the review form and the ledger-append API see it."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    day: str = ""
    month: str = Field(default="", description="Three-letter English abbreviation, e.g. 'Oct'.")
    year: str = ""
    property: str = ""
    type_of_operation: str = ""
    type_of_payment: str = ""
    detail: str = ""
    ref: str = ""
    debit: float = Field(default=0.0, ge=0.0)
    credit: float = Field(default=0.0, ge=0.0)


class ParsedCommand(LedgerEntry):
    """Draft entry produced by the quick-entry command parser."""

    detail: str = "Manual entry"


class ParseResult(BaseModel):
    """Parser output: a draft plus how much to trust it."""

    ok: bool = False
    data: Optional[ParsedCommand] = None
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    reasons: list[str] = Field(
        default_factory=list,
        description="Human-readable trail of what each pipeline step found.",
    )


class NormalizedExtraction(BaseModel):
    """Externally extracted entry after dropdown normalization."""

    entry: LedgerEntry
    confidence: dict[str, float] = Field(
        default_factory=dict,
        description="Per-field match confidence keyed by JSON field name.",
    )


class ValidationResult(BaseModel):
    """Outcome of checking an entry before it is appended to the ledger."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    is_valid: bool
    data: Optional[LedgerEntry] = None
    error: Optional[str] = None
