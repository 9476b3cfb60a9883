"""
Conversion driver: Parser -> RecordValidator -> Printer.

Responsibilities:
- input decoding (explicit encoding, or detection via charset-normalizer)
- record-by-record conversion between two dialects
- the report/envelope returned by the HTTP API
"""

from __future__ import annotations

import base64
import codecs
import hashlib
import io
import logging
from typing import Any, Dict, Optional, Tuple

from charset_normalizer import from_bytes

from .dialect import resolve_settings
from .errors import InvalidConfig
from .models import (
    CleaningStrategy,
    ConversionReport,
    ConversionSettings,
    Dialect,
    ReportItem,
)
from .parser import Parser
from .printer import Printer
from .validator import DiagnosticSink, RecordValidator

logger = logging.getLogger(__name__)

AUTO_ENCODING = "auto"


def _sha256_hex(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def check_encoding(name: str, setting: str) -> str:
    """Return the canonical codec name, or raise InvalidConfig."""
    try:
        return codecs.lookup(name).name
    except LookupError:
        raise InvalidConfig(f"Unknown encoding {name!r}.", setting=setting, token=name) from None


def decode_input(raw: bytes, encoding: Optional[str] = None) -> Tuple[str, Dict[str, Any]]:
    """
    Decode input bytes to text.

    Rules:
    - An explicit encoding is used as given (strict); a UTF-8 BOM is dropped.
    - Without one (``None`` or ``"auto"``), detect best-effort via
      charset-normalizer, fall back to UTF-8, then to UTF-8 with
      replacement characters. Fallbacks are reported.
    """
    if encoding and encoding.lower() != AUTO_ENCODING:
        decode_used = check_encoding(encoding, "input_encoding")
        if decode_used == "utf-8" and raw.startswith(codecs.BOM_UTF8):
            decode_used = "utf-8-sig"
        return raw.decode(decode_used), {
            "detected": None,
            "decode_used": decode_used,
            "decode_fallback": False,
        }

    detected = None
    match = from_bytes(raw).best()
    if match is not None:
        detected = match.encoding

    decode_used = detected or "utf-8"
    # Decode UTF-8 with a BOM as utf-8-sig so the BOM does not end up in the first field.
    if raw.startswith(codecs.BOM_UTF8) and decode_used.lower().replace("-", "_") in ("utf_8", "utf8"):
        decode_used = "utf-8-sig"

    decode_fallback = False
    try:
        text = raw.decode(decode_used)
    except (UnicodeDecodeError, LookupError):
        try:
            text = raw.decode("utf-8")
            decode_used = "utf-8"
        except UnicodeDecodeError:
            text = raw.decode("utf-8", errors="replace")
            decode_used = "utf-8"
        decode_fallback = True
        logger.warning("Decoding with %s failed; fell back to %s", detected, decode_used)

    return text, {
        "detected": detected,
        "decode_used": decode_used,
        "decode_fallback": decode_fallback,
    }


def convert_stream(
    source: Any,
    sink: Any,
    input_dialect: Dialect,
    output_dialect: Dialect,
    strategy: CleaningStrategy,
    flatten: bool = False,
    diagnostic: Optional[DiagnosticSink] = None,
    closing: bool = True,
) -> ConversionReport:
    """
    Convert every record of ``source`` into ``sink``.

    Records are pulled one at a time; record i is validated and written
    before record i+1 is read. ``source`` and ``sink`` are closed on every
    exit path unless ``closing`` is False.

    Raises:
        InvalidConfig: If ``flatten`` is requested without an output escape.
        ParseError, UnescapableField, RaggedRecord: Propagated unchanged.
    """
    if flatten and output_dialect.escape is None:
        if closing:
            source.close()
            sink.close()
        raise InvalidConfig("Cannot flatten lines without an escape character.", setting="flatten")

    report = ConversionReport()
    action = "kept" if strategy is CleaningStrategy.KEEP else "dropped"

    def on_ragged(message: str) -> None:
        report.warnings.append(
            ReportItem(row=validator.record_number, issue="ragged_record", value=message, action=action)
        )
        if diagnostic is None:
            logger.warning(message)
        else:
            diagnostic(message)

    validator = RecordValidator(strategy, on_ragged)

    with Parser(source, input_dialect, closing=closing) as parser:
        with Printer(sink, output_dialect, flatten=flatten, closing=closing) as printer:
            for record in validator.filter(parser):
                printer.print_record(record)

    summary = report.summary
    summary.records_read = validator.record_number
    summary.records_written = printer.records_written
    summary.records_dropped = validator.dropped
    summary.ragged_records = validator.kept + validator.dropped
    summary.expected_width = validator.expected_width
    summary.warnings = len(report.warnings)
    report.conversions = {
        "input_dialect": input_dialect.model_dump(mode="json"),
        "output_dialect": output_dialect.model_dump(mode="json"),
        "cleaning_strategy": strategy.value,
        "flatten": flatten,
    }

    logger.info(
        "Converted %d of %d records (%d dropped, %d ragged kept)",
        summary.records_written, summary.records_read, validator.dropped, validator.kept,
    )
    return report


def convert_text(text: str, settings: ConversionSettings) -> Tuple[str, ConversionReport]:
    """Convert an in-memory string; returns the output text and the report."""
    input_dialect, output_dialect, strategy = resolve_settings(settings)
    sink = io.StringIO()
    report = convert_stream(
        io.StringIO(text),
        sink,
        input_dialect,
        output_dialect,
        strategy,
        flatten=settings.flatten,
        closing=False,
    )
    return sink.getvalue(), report


def convert_csv_bytes(raw: bytes, settings: ConversionSettings) -> Dict[str, Any]:
    """
    Convert uploaded bytes.
    Returns a dict matching the API's response envelope.
    """
    output_encoding = check_encoding(settings.output_encoding, "output_encoding")
    # Resolve before decoding so configuration errors come first.
    resolve_settings(settings)

    text, decoding = decode_input(raw, settings.input_encoding)
    converted, report = convert_text(text, settings)
    content = converted.encode(output_encoding)

    report.conversions["encoding"] = dict(decoding, output=output_encoding)
    return {
        "converted_csv": {
            "sha256": _sha256_hex(content),
            "encoding": output_encoding,
            "content_b64": base64.b64encode(content).decode("ascii"),
        },
        "report": report.model_dump(),
    }
