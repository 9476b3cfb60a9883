"""
csv_formatter - convert delimited text between two CSV dialects.

    from csv_formatter import Dialect, Parser, Printer, QuoteMode

    with Parser(open("in.csv", newline=""), Dialect(delimiter=";")) as parser, \
            Printer(open("out.csv", "w", newline=""), Dialect(quote_mode=QuoteMode.ALL)) as printer:
        printer.print_records(parser)
"""

from .convert import convert_stream, convert_text
from .dialect import build_dialect, resolve_settings
from .errors import (
    CsvFormatterError,
    InvalidConfig,
    MalformedField,
    ParseError,
    RaggedRecord,
    UnescapableField,
    UnterminatedQuote,
)
from .models import CleaningStrategy, ConversionSettings, Dialect, QuoteMode, Record
from .parser import Parser, parse
from .printer import Printer, flatten_field
from .validator import RecordValidator

__version__ = "0.1.0"

__all__ = [
    "CleaningStrategy",
    "ConversionSettings",
    "CsvFormatterError",
    "Dialect",
    "InvalidConfig",
    "MalformedField",
    "ParseError",
    "Parser",
    "Printer",
    "QuoteMode",
    "RaggedRecord",
    "Record",
    "RecordValidator",
    "UnescapableField",
    "UnterminatedQuote",
    "build_dialect",
    "convert_stream",
    "convert_text",
    "flatten_field",
    "parse",
    "resolve_settings",
    "__version__",
]
