"""
Character-level CSV parser driven by an explicit state machine.

Each lexer state has one handler taking a single character ("" at end of
stream). A handler either stays silent (``None``) or reports an ``Event``
that tells the record loop to close the current field, the current record,
skip a blank line, or stop. Handlers are looked up in a table so every
transition lives in exactly one place:

    FIELD_START     -> UNQUOTED | QUOTED | UNQUOTED_ESCAPE | (field/record end)
    UNQUOTED        -> UNQUOTED | UNQUOTED_ESCAPE | (field/record end)
    UNQUOTED_ESCAPE -> UNQUOTED
    QUOTED          -> QUOTED | QUOTE_END | QUOTED_ESCAPE | AFTER_QUOTE
    QUOTED_ESCAPE   -> QUOTED
    QUOTE_END       -> QUOTED (doubled quote) | AFTER_QUOTE
    AFTER_QUOTE     -> (field/record end)

Record separators are recognized permissively: LF, CR LF and a lone CR
always end a record, as does the dialect's configured separator.

Usage::

    with Parser(open("in.csv", newline=""), dialect) as parser:
        for record in parser:
            ...
"""

from __future__ import annotations

import io
import logging
from enum import Enum
from typing import Any, Callable, Dict, Iterator, List, Optional, Union

from . import rules
from .errors import MalformedField, UnterminatedQuote
from .models import Dialect, Record

logger = logging.getLogger(__name__)


class State(Enum):
    FIELD_START = "field_start"
    UNQUOTED = "unquoted"
    UNQUOTED_ESCAPE = "unquoted_escape"
    QUOTED = "quoted"
    QUOTED_ESCAPE = "quoted_escape"
    QUOTE_END = "quote_end"
    AFTER_QUOTE = "after_quote"


class Event(Enum):
    FIELD = "field"
    RECORD = "record"
    EMPTY_LINE = "empty_line"
    END = "end"


class CharReader:
    """Buffered one-character-at-a-time view of a text stream, with lookahead."""

    def __init__(self, source: Any, chunk_size: int = rules.READ_CHUNK_SIZE) -> None:
        self._source = source
        self._chunk_size = chunk_size
        self._buf = ""
        self._pos = 0
        self._eof = False
        self.line_number = 1

    def _fill(self, n: int) -> None:
        while len(self._buf) - self._pos < n and not self._eof:
            chunk = self._source.read(self._chunk_size)
            if not chunk:
                self._eof = True
                break
            self._buf = self._buf[self._pos:] + chunk
            self._pos = 0

    def peek(self, n: int = 1) -> str:
        self._fill(n)
        return self._buf[self._pos:self._pos + n]

    def read(self) -> str:
        """Return the next character, or "" at end of stream."""
        if self._pos >= len(self._buf):
            self._fill(1)
            if self._pos >= len(self._buf):
                return ""
        ch = self._buf[self._pos]
        self._pos += 1
        if ch == "\n" or (ch == "\r" and self.peek() != "\n"):
            self.line_number += 1
        return ch

    def skip(self, n: int) -> None:
        for _ in range(n):
            self.read()


class Parser:
    """
    Lazy, single-pass record iterator over a character stream.

    Args:
        source: Object with ``read(size) -> str`` (a str is wrapped in StringIO).
        dialect: Input dialect.
        closing: Close ``source`` when the parser is closed.

    Attributes:
        record_number: Number of records produced so far. Skipped blank
            lines are not counted.
    """

    def __init__(self, source: Union[str, Any], dialect: Dialect, closing: bool = True) -> None:
        if isinstance(source, str):
            source = io.StringIO(source)
        self.dialect = dialect
        self.record_number = 0
        self._source = source
        self._closing = closing
        self._reader = CharReader(source)

        sep = dialect.record_separator
        self._separator = None if sep in ("\n", "\r", "\r\n") else sep
        self._spaces = rules.SURROUNDING_SPACE.replace(dialect.delimiter, "")

        self._state = State.FIELD_START
        self._field: List[str] = []
        self._fields: List[str] = []
        self._quoted = False
        self._protected = 0
        self._line_has_content = False
        self._quote_line = 1

        self._handlers: Dict[State, Callable[[str], Optional[Event]]] = {
            State.FIELD_START: self._field_start,
            State.UNQUOTED: self._unquoted,
            State.UNQUOTED_ESCAPE: self._unquoted_escape,
            State.QUOTED: self._quoted_char,
            State.QUOTED_ESCAPE: self._quoted_escape,
            State.QUOTE_END: self._quote_end,
            State.AFTER_QUOTE: self._after_quote,
        }
        self._records = self._parse()

    # ── iteration / resource handling ────────────────────────────────────

    def __iter__(self) -> "Parser":
        return self

    def __next__(self) -> Record:
        return next(self._records)

    def close(self) -> None:
        self._records.close()
        if self._closing:
            self._source.close()

    def __enter__(self) -> "Parser":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
        return None

    # ── record loop ──────────────────────────────────────────────────────

    def _parse(self) -> Iterator[Record]:
        reader = self._reader
        handlers = self._handlers
        while True:
            event = handlers[self._state](reader.read())
            if event is None:
                continue
            if event is Event.FIELD:
                self._finish_field()
            elif event is Event.RECORD:
                yield self._finish_record()
            elif event is Event.EMPTY_LINE:
                logger.debug("Skipping empty line %d", reader.line_number - 1)
                self._line_has_content = False
            else:
                if self._fields or self._line_has_content:
                    yield self._finish_record()
                return

    def _finish_field(self) -> None:
        text = "".join(self._field)
        if not self._quoted and self.dialect.ignore_surrounding_space:
            text = text[:self._protected] + text[self._protected:].rstrip(self._spaces)
        self._fields.append(text)
        self._field = []
        self._quoted = False
        self._protected = 0
        self._state = State.FIELD_START

    def _finish_record(self) -> Record:
        self._finish_field()
        record = tuple(self._fields)
        self._fields = []
        self._line_has_content = False
        self.record_number += 1
        return record

    def _at_separator(self, ch: str) -> bool:
        """True if ``ch`` starts a record separator; consumes the rest of it."""
        if ch == "\n":
            return True
        if ch == "\r":
            if self._reader.peek() == "\n":
                self._reader.read()
            return True
        sep = self._separator
        if sep is not None and ch == sep[0]:
            tail = sep[1:]
            if not tail or self._reader.peek(len(tail)) == tail:
                self._reader.skip(len(tail))
                return True
        return False

    def _escaped(self, ch: str) -> str:
        return rules.ESCAPE_CODES.get(ch, ch)

    # ── state handlers ───────────────────────────────────────────────────

    def _field_start(self, ch: str) -> Optional[Event]:
        d = self.dialect
        if ch == "":
            return Event.END
        if ch == d.delimiter:
            self._line_has_content = True
            return Event.FIELD
        if self._at_separator(ch):
            if d.ignore_empty_lines and not self._fields and not self._line_has_content:
                return Event.EMPTY_LINE
            return Event.RECORD
        self._line_has_content = True
        if d.ignore_surrounding_space and ch in self._spaces:
            return None
        if ch == d.quote:
            self._quoted = True
            self._quote_line = self._reader.line_number
            self._state = State.QUOTED
        elif ch == d.escape:
            self._state = State.UNQUOTED_ESCAPE
        else:
            self._field.append(ch)
            self._state = State.UNQUOTED
        return None

    def _unquoted(self, ch: str) -> Optional[Event]:
        d = self.dialect
        if ch == "":
            return Event.END
        if ch == d.delimiter:
            return Event.FIELD
        if self._at_separator(ch):
            return Event.RECORD
        if ch == d.escape:
            self._state = State.UNQUOTED_ESCAPE
        else:
            self._field.append(ch)
        return None

    def _unquoted_escape(self, ch: str) -> Optional[Event]:
        if ch == "":
            raise MalformedField(
                "Escape character at end of stream",
                record_number=self.record_number + 1,
                line_number=self._reader.line_number,
            )
        self._field.append(self._escaped(ch))
        self._protected = len(self._field)
        self._state = State.UNQUOTED
        return None

    def _quoted_char(self, ch: str) -> Optional[Event]:
        d = self.dialect
        if ch == "":
            raise UnterminatedQuote(
                "End of stream inside a quoted field",
                record_number=self.record_number + 1,
                line_number=self._quote_line,
            )
        if ch == d.quote:
            # With an escape character configured, doubling is not an escape.
            self._state = State.QUOTE_END if d.escape is None else State.AFTER_QUOTE
        elif ch == d.escape:
            self._state = State.QUOTED_ESCAPE
        else:
            self._field.append(ch)
        return None

    def _quoted_escape(self, ch: str) -> Optional[Event]:
        if ch == "":
            raise UnterminatedQuote(
                "End of stream inside a quoted field",
                record_number=self.record_number + 1,
                line_number=self._quote_line,
            )
        self._field.append(self._escaped(ch))
        self._state = State.QUOTED
        return None

    def _quote_end(self, ch: str) -> Optional[Event]:
        if ch == self.dialect.quote:
            self._field.append(ch)
            self._state = State.QUOTED
            return None
        self._state = State.AFTER_QUOTE
        return self._after_quote(ch)

    def _after_quote(self, ch: str) -> Optional[Event]:
        if ch == "":
            return Event.END
        if ch == self.dialect.delimiter:
            return Event.FIELD
        if self._at_separator(ch):
            return Event.RECORD
        if ch in self._spaces:
            return None
        raise MalformedField(
            f"Unexpected character {ch!r} after closing quote",
            record_number=self.record_number + 1,
            line_number=self._reader.line_number,
        )


def parse(text: str, dialect: Dialect) -> List[Record]:
    """Parse a whole string into a list of records."""
    with Parser(text, dialect) as parser:
        return list(parser)
