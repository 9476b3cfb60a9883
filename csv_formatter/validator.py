"""
Record width enforcement.

The first record fixes the expected width. Every later record with a
different number of fields is handled according to the cleaning strategy:
logged and kept, logged and dropped, or rejected with ``RaggedRecord``.
Records are never padded or truncated.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Iterator, Optional, Sequence

from .errors import RaggedRecord
from .models import CleaningStrategy, Record

logger = logging.getLogger(__name__)

DiagnosticSink = Callable[[str], None]


def _log_diagnostic(message: str) -> None:
    logger.warning(message)


class RecordValidator:
    """
    Args:
        strategy: What to do with records of unexpected width.
        diagnostic: Receives one line per kept/dropped record. Defaults to
            the module logger at WARNING.

    Attributes:
        expected_width: Field count of the first record, ``None`` until seen.
        record_number: Number of records checked so far.
        kept: Ragged records passed through.
        dropped: Ragged records discarded.
    """

    def __init__(self, strategy: CleaningStrategy, diagnostic: Optional[DiagnosticSink] = None) -> None:
        self.strategy = strategy
        self.diagnostic = diagnostic or _log_diagnostic
        self.expected_width: Optional[int] = None
        self.record_number = 0
        self.kept = 0
        self.dropped = 0

    def check(self, record: Sequence[Optional[str]]) -> bool:
        """
        Return True if ``record`` should be written, False if it is dropped.

        Raises:
            RaggedRecord: Under the ``fail`` strategy, on a width mismatch.
        """
        self.record_number += 1
        width = len(record)
        if self.expected_width is None:
            self.expected_width = width
            return True
        if width == self.expected_width:
            return True

        message = (
            f"Record {self.record_number} has {width} fields "
            f"(expected {self.expected_width}): {list(record)!r}"
        )
        if self.strategy is CleaningStrategy.FAIL:
            raise RaggedRecord(
                message,
                record_number=self.record_number,
                width=width,
                expected=self.expected_width,
                record=record,
            )
        self.diagnostic(message)
        if self.strategy is CleaningStrategy.DROP:
            self.dropped += 1
            return False
        self.kept += 1
        return True

    def filter(self, records: Iterable[Record]) -> Iterator[Record]:
        """Lazily yield the records that pass ``check``."""
        for record in records:
            if self.check(record):
                yield record
