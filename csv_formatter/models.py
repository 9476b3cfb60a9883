from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from . import rules

Record = Tuple[Optional[str], ...]


class QuoteMode(str, Enum):
    MINIMAL = "minimal"
    ALL = "all"
    ALL_NON_NULL = "all_non_null"
    NONE = "none"
    NON_NUMERIC = "non_numeric"


class CleaningStrategy(str, Enum):
    KEEP = "keep"
    DROP = "drop"
    FAIL = "fail"


class Dialect(BaseModel):
    """Lexical rules for one side (input or output) of a conversion."""

    model_config = ConfigDict(frozen=True)

    delimiter: str = ","
    quote: Optional[str] = '"'
    quote_mode: QuoteMode = QuoteMode.MINIMAL
    escape: Optional[str] = None
    record_separator: str = "\n"
    ignore_surrounding_space: bool = False
    ignore_empty_lines: bool = False

    @field_validator("delimiter", "quote", "escape")
    @classmethod
    def _single_character(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and len(value) != 1:
            raise ValueError(f"expected a single character, got {value!r}")
        return value

    @field_validator("record_separator")
    @classmethod
    def _non_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("record separator must not be empty")
        return value

    @model_validator(mode="after")
    def _distinct_specials(self) -> "Dialect":
        named = [("delimiter", self.delimiter), ("quote", self.quote), ("escape", self.escape)]
        present = [(name, ch) for name, ch in named if ch is not None]
        for i, (name, ch) in enumerate(present):
            for other_name, other in present[i + 1:]:
                if ch == other:
                    raise ValueError(f"{name} and {other_name} are both {ch!r}")
            if ch in self.record_separator:
                raise ValueError(f"record separator {self.record_separator!r} contains the {name} {ch!r}")
        if self.escape is not None:
            # escape + n/r/t reads back as a control character
            named.append(("record separator", self.record_separator))
            for name, value in named:
                clash = [code for code in rules.ESCAPE_CODES if value is not None and code in value]
                if clash:
                    raise ValueError(f"{name} {value!r} contains the escape code {clash[0]!r}")
        return self

    @property
    def special_characters(self) -> frozenset:
        """Characters that cannot appear bare in an unquoted output field."""
        chars = set(self.record_separator) | set(rules.LINE_BREAKS)
        chars.add(self.delimiter)
        if self.quote is not None:
            chars.add(self.quote)
        if self.escape is not None:
            chars.add(self.escape)
        return frozenset(chars)


class ConversionSettings(BaseModel):
    """
    Raw, unresolved conversion options as given on the command line or
    in a form. Tokens are resolved by ``dialect.resolve_settings``.
    """

    input_delimiter: str = rules.DEFAULT_DELIMITER
    input_record_separator: str = rules.DEFAULT_RECORD_SEPARATOR
    input_quote: str = rules.DEFAULT_QUOTE
    input_quote_mode: str = rules.DEFAULT_INPUT_QUOTE_MODE
    input_escape: str = rules.NULL_TOKEN
    input_encoding: Optional[str] = rules.DEFAULT_ENCODING
    ignore_surrounding_space: bool = False
    ignore_empty_lines: bool = False

    output_delimiter: str = rules.DEFAULT_DELIMITER
    output_record_separator: str = rules.DEFAULT_RECORD_SEPARATOR
    output_quote: str = rules.DEFAULT_QUOTE
    output_quote_mode: str = rules.DEFAULT_OUTPUT_QUOTE_MODE
    output_escape: str = rules.NULL_TOKEN
    output_encoding: str = rules.DEFAULT_ENCODING

    cleaning_strategy: str = rules.DEFAULT_CLEANING_STRATEGY
    flatten: bool = False


class ConvertedCsv(BaseModel):
    sha256: str
    encoding: str = Field(default="utf-8")
    content_b64: str


class ReportSummary(BaseModel):
    records_read: int = 0
    records_written: int = 0
    records_dropped: int = 0
    ragged_records: int = 0
    expected_width: Optional[int] = Field(default=None, examples=[None])
    warnings: int = 0


class ReportItem(BaseModel):
    row: Optional[int] = None
    issue: str
    value: Optional[str] = None
    action: str


class ConversionReport(BaseModel):
    summary: ReportSummary = Field(default_factory=ReportSummary)
    conversions: Dict[str, Any] = Field(default_factory=dict)
    warnings: List[ReportItem] = Field(default_factory=list)


class ConvertResponse(BaseModel):
    converted_csv: ConvertedCsv
    report: ConversionReport


class HealthResponse(BaseModel):
    ok: bool = True
