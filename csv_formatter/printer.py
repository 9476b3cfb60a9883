"""
Record printer: applies an output dialect's quoting policy field by field.

Quoting policies (``Dialect.quote_mode``):

- ``all``           every field is quoted, null as an empty quoted token
- ``all_non_null``  every present field is quoted, null as an empty bare token
- ``non_numeric``   everything except plain decimal numbers is quoted
- ``minimal``       only fields that would not survive re-parsing bare are quoted
- ``none``          nothing is quoted; special characters are escaped

Inside quotes the quote character is doubled, unless the dialect has an
escape character, in which case quote and escape characters are escaped
instead. Bare fields always escape the escape character itself. A field
that needs protection the dialect cannot give raises ``UnescapableField``.

With ``flatten`` on, LF, CR and TAB inside fields are written as escape +
``n``/``r``/``t`` after the quoting and escaping step, so the escape codes
read back as the original control characters.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Iterable, Optional, Sequence

from . import rules
from .errors import InvalidConfig, UnescapableField
from .models import Dialect, QuoteMode

logger = logging.getLogger(__name__)

_NUMBER = re.compile(r"-?(?:[0-9]+\.?[0-9]*|\.[0-9]+)")


def is_numeric(value: str) -> bool:
    """True for an optionally negative decimal number with at most one point."""
    return _NUMBER.fullmatch(value) is not None


def flatten_field(field: Optional[str], escape: str) -> Optional[str]:
    """
    Replace LF, CR and TAB with ``escape`` + n/r/t.

    Fields without control characters are returned as the same object.
    """
    if field is None:
        return None
    if not any(ch in rules.CONTROL_CODES for ch in field):
        return field
    out = []
    for ch in field:
        code = rules.CONTROL_CODES.get(ch)
        if code is None:
            out.append(ch)
        else:
            out.append(escape)
            out.append(code)
    return "".join(out)


class Printer:
    """
    Writes records to a text sink under an output dialect.

    Args:
        sink: Object with ``write(str)``, ``flush()`` and ``close()``.
        dialect: Output dialect.
        flatten: Write control characters as escape codes; needs an
            escape character.
        closing: Close ``sink`` when the printer is closed.
    """

    def __init__(self, sink: Any, dialect: Dialect, flatten: bool = False, closing: bool = True) -> None:
        if flatten and dialect.escape is None:
            raise InvalidConfig("Cannot flatten lines without an escape character.", setting="flatten")
        self.dialect = dialect
        self.flatten = flatten
        self.records_written = 0
        self._sink = sink
        self._closing = closing
        # Flattened characters become escape codes, so they neither need quotes nor plain escaping.
        self._flat = frozenset(rules.CONTROL_CODES) if flatten else frozenset()
        self._specials = dialect.special_characters - self._flat
        # Characters that force quoting under the minimal policy.
        self._triggers = self._specials - {dialect.escape}

    def __enter__(self) -> "Printer":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
        return None

    def close(self) -> None:
        try:
            self._sink.flush()
        finally:
            if self._closing:
                self._sink.close()

    def print_record(self, fields: Sequence[Optional[str]]) -> None:
        d = self.dialect
        line = d.delimiter.join(self.format_field(f) for f in fields)
        self._sink.write(line + d.record_separator)
        self.records_written += 1

    def print_records(self, records: Iterable[Sequence[Optional[str]]]) -> None:
        for record in records:
            self.print_record(record)

    # ── per-field policy ─────────────────────────────────────────────────

    def format_field(self, value: Optional[str]) -> str:
        d = self.dialect
        mode = d.quote_mode

        if value is None:
            if mode is QuoteMode.ALL and d.quote is not None:
                return d.quote + d.quote
            return ""

        if mode is QuoteMode.NONE or d.quote is None or not self.needs_quotes(value):
            return self._bare(value)
        return self._quoted(value)

    def needs_quotes(self, value: str) -> bool:
        mode = self.dialect.quote_mode
        if mode in (QuoteMode.ALL, QuoteMode.ALL_NON_NULL):
            return True
        if mode is QuoteMode.NONE:
            return False
        if mode is QuoteMode.NON_NUMERIC and not is_numeric(value):
            return True
        if not value:
            return False
        for edge in (value[0], value[-1]):
            if edge.isspace() and edge not in self._flat:
                return True
        return any(ch in self._triggers for ch in value)

    def _quoted(self, value: str) -> str:
        quote, escape = self.dialect.quote, self.dialect.escape
        if escape is None:
            body = value.replace(quote, quote + quote)
        else:
            body = value.replace(escape, escape + escape).replace(quote, escape + quote)
            if self.flatten:
                body = flatten_field(body, escape)
        return quote + body + quote

    def _bare(self, value: str) -> str:
        specials = self._specials
        if not any(ch in specials for ch in value):
            return flatten_field(value, self.dialect.escape) if self.flatten else value
        escape = self.dialect.escape
        if escape is None:
            bad = next(ch for ch in value if ch in specials)
            raise UnescapableField(
                "Field needs escaping but the output dialect has no escape character",
                field=value,
                character=bad,
            )
        out = []
        for ch in value:
            if ch in specials:
                out.append(escape)
                out.append(rules.CONTROL_CODES.get(ch, ch) if ch in rules.LINE_BREAKS else ch)
            else:
                out.append(ch)
        field = "".join(out)
        return flatten_field(field, escape) if self.flatten else field
