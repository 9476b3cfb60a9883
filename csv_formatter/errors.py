"""
Exceptions raised while converting between CSV dialects.

Hierarchy:
    CsvFormatterError
    ├── InvalidConfig         Bad dialect token or settings; raised before any I/O.
    ├── ParseError            Input does not follow the input dialect's grammar.
    │   ├── UnterminatedQuote End of stream inside a quoted field.
    │   └── MalformedField    Stray character after a closing quote, dangling escape.
    ├── UnescapableField      Output dialect cannot represent a field.
    └── RaggedRecord          Record width differs from the first record (fail strategy).
"""

from __future__ import annotations

from typing import Optional, Sequence


class CsvFormatterError(Exception):
    """Base class for all conversion errors."""


class InvalidConfig(CsvFormatterError, ValueError):
    """
    Raised when a dialect token or a conversion setting cannot be resolved.

    Args:
        message: Human-readable description.
        setting: Name of the offending setting, if known.
        token: The raw token that failed to resolve.
    """

    def __init__(self, message: str, setting: Optional[str] = None, token: Optional[str] = None) -> None:
        super().__init__(message)
        self.setting = setting
        self.token = token

    def __str__(self) -> str:
        base = super().__str__()
        parts = []
        if self.setting:
            parts.append(f"setting={self.setting}")
        if self.token is not None:
            parts.append(f"token={self.token!r}")
        if parts:
            return f"{base} | {' '.join(parts)}"
        return base


class ParseError(CsvFormatterError):
    """
    Raised when the input stream is malformed.

    Args:
        message: Human-readable description.
        record_number: 1-based number of the record being parsed.
        line_number: 1-based physical line where the problem was detected.
    """

    def __init__(self, message: str, record_number: int, line_number: Optional[int] = None) -> None:
        super().__init__(message)
        self.record_number = record_number
        self.line_number = line_number

    def __str__(self) -> str:
        base = super().__str__()
        parts = [f"record={self.record_number}"]
        if self.line_number is not None:
            parts.append(f"line={self.line_number}")
        return f"{base} | {' '.join(parts)}"


class UnterminatedQuote(ParseError):
    """Raised when the stream ends inside a quoted field.

    ``record_number`` and ``line_number`` point at where the field began.
    """


class MalformedField(ParseError):
    """Raised on a stray character after a closing quote or an escape at end of stream."""


class UnescapableField(CsvFormatterError):
    """
    Raised when the output dialect has no way to write a field safely.

    Args:
        message: Human-readable description.
        field: The field content.
        character: The character that needed escaping.
    """

    def __init__(self, message: str, field: str, character: Optional[str] = None) -> None:
        super().__init__(message)
        self.field = field
        self.character = character

    def __str__(self) -> str:
        base = super().__str__()
        parts = [f"field={self.field!r}"]
        if self.character is not None:
            parts.append(f"character={self.character!r}")
        return f"{base} | {' '.join(parts)}"


class RaggedRecord(CsvFormatterError):
    """
    Raised under the ``fail`` cleaning strategy when a record's width
    differs from the width of the first record.

    Args:
        message: Human-readable description.
        record_number: 1-based record number (skipped blank lines not counted).
        width: Number of fields actually found.
        expected: Number of fields in the first record.
        record: The offending record.
    """

    def __init__(
        self,
        message: str,
        record_number: int,
        width: int,
        expected: int,
        record: Sequence[Optional[str]] = (),
    ) -> None:
        super().__init__(message)
        self.record_number = record_number
        self.width = width
        self.expected = expected
        self.record = tuple(record)

    def __str__(self) -> str:
        base = super().__str__()
        return f"{base} | record={self.record_number} width={self.width} expected={self.expected}"
