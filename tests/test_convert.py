import io

import pytest

from csv_formatter.convert import (
    convert_csv_bytes,
    convert_stream,
    convert_text,
    decode_input,
)
from csv_formatter.errors import InvalidConfig, RaggedRecord, UnterminatedQuote
from csv_formatter.models import CleaningStrategy, ConversionSettings, Dialect, QuoteMode
from csv_formatter.parser import parse

RAGGED = "a,b,c\nd,e\n"


def run(text, strategy, **output):
    messages = []
    sink = io.StringIO()
    report = convert_stream(
        io.StringIO(text),
        sink,
        Dialect(),
        Dialect(**output),
        strategy,
        diagnostic=messages.append,
        closing=False,
    )
    return sink.getvalue(), report, messages


def test_ragged_fail():
    with pytest.raises(RaggedRecord) as exc:
        run(RAGGED, CleaningStrategy.FAIL)
    assert (exc.value.record_number, exc.value.width, exc.value.expected) == (2, 2, 3)


def test_ragged_drop():
    out, report, messages = run(RAGGED, CleaningStrategy.DROP)
    assert out == "a,b,c\n"
    assert report.summary.records_read == 2
    assert report.summary.records_dropped == 1
    assert len(messages) == 1


def test_ragged_keep():
    out, report, messages = run(RAGGED, CleaningStrategy.KEEP)
    assert out == "a,b,c\nd,e\n"
    assert messages == ["Record 2 has 2 fields (expected 3): ['d', 'e']"]
    assert report.warnings[0].row == 2
    assert report.warnings[0].action == "kept"


def test_blank_lines_do_not_count_as_records():
    settings = ConversionSettings(ignore_empty_lines=True, output_quote_mode="minimal", cleaning_strategy="fail")
    out, report = convert_text("a,b\n\nc,d\n", settings)
    assert out == "a,b\nc,d\n"
    assert report.summary.records_read == 2


def test_dialect_conversion():
    settings = ConversionSettings(
        input_delimiter="semicolon",
        output_delimiter="tab",
        output_quote_mode="minimal",
        output_record_separator="crlf",
    )
    out, report = convert_text('name;note\r\nAnn;"x; y"\r\nBob;"line\nbreak"\r\n', settings)
    assert out == 'name\tnote\r\nAnn\tx; y\r\nBob\t"line\nbreak"\r\n'
    assert report.summary.records_written == 3
    assert report.conversions["output_dialect"]["delimiter"] == "\t"


def test_default_output_quotes_all():
    out, _ = convert_text("a,1\n", ConversionSettings())
    assert out == '"a","1"\n'


def test_flatten():
    settings = ConversionSettings(flatten=True, output_escape="backslash", output_quote_mode="none")
    out, _ = convert_text('"a\nb",c\n', settings)
    assert out == "a\\nb,c\n"


def test_flatten_writes_each_escape_once_inside_quotes():
    settings = ConversionSettings(flatten=True, output_escape="backslash")
    out, _ = convert_text('"a\nb\tc",d\n', settings)
    assert out == '"a\\nb\\tc","d"\n'


def test_flattened_output_reads_back_as_control_characters():
    settings = ConversionSettings(
        flatten=True,
        input_escape="backslash",
        output_escape="backslash",
        output_quote_mode="minimal",
    )
    out, _ = convert_text('"a\r\nb",c\\\\d\n', settings)
    assert out == "a\\r\\nb,c\\\\d\n"
    assert parse(out, Dialect(escape="\\")) == [("a\r\nb", "c\\d")]


def test_flatten_without_escape_is_rejected_before_reading():
    source = io.StringIO("a\n")
    with pytest.raises(InvalidConfig):
        convert_stream(source, io.StringIO(), Dialect(), Dialect(), CleaningStrategy.FAIL, flatten=True, closing=False)
    assert source.tell() == 0


def test_flatten_without_escape_closes_both_streams():
    source, sink = io.StringIO("a\n"), io.StringIO()
    with pytest.raises(InvalidConfig):
        convert_stream(source, sink, Dialect(), Dialect(), CleaningStrategy.FAIL, flatten=True)
    assert source.closed
    assert sink.closed


def test_parse_error_closes_streams():
    source, sink = io.StringIO('a,"b'), io.StringIO()
    with pytest.raises(UnterminatedQuote):
        convert_stream(source, sink, Dialect(), Dialect(), CleaningStrategy.FAIL)
    assert source.closed
    assert sink.closed


def test_decode_input_explicit_encoding():
    text, info = decode_input("é,ü\n".encode("latin-1"), "latin-1")
    assert text == "é,ü\n"
    assert info["decode_used"] == "iso8859-1"


def test_decode_input_strips_utf8_bom():
    text, info = decode_input(b"\xef\xbb\xbfa,b\n", "utf-8")
    assert text == "a,b\n"
    assert info["decode_used"] == "utf-8-sig"


def test_decode_input_detects_encoding():
    text, info = decode_input("name,city\nPaul,Montréal\n".encode("utf-8"), "auto")
    assert "Montréal" in text
    assert not info["decode_fallback"]


def test_unknown_encoding():
    with pytest.raises(InvalidConfig):
        decode_input(b"a\n", "no-such-codec")


def test_convert_csv_bytes_envelope():
    data = convert_csv_bytes(b"a;b\n", ConversionSettings(input_delimiter="semicolon"))
    assert data["converted_csv"]["encoding"] == "utf-8"
    assert data["report"]["summary"]["records_written"] == 1
    assert data["report"]["conversions"]["encoding"]["output"] == "utf-8"


def test_output_quote_mode_all_non_null_in_pipeline():
    settings = ConversionSettings(output_quote_mode="notnull", output_delimiter="pipe")
    out, _ = convert_text('a,,""\n', settings)
    assert out == '"a"|""|""\n'


def test_non_numeric_output():
    settings = ConversionSettings(output_quote_mode="text")
    out, _ = convert_text("123,-4.5,,12a,1.2.3\n", settings)
    assert out == '123,-4.5,"","12a","1.2.3"\n'


def test_output_dialect_model_is_reported():
    settings = ConversionSettings(output_quote_mode="minimal")
    _, report = convert_text("x\n", settings)
    assert report.conversions["output_dialect"]["quote_mode"] == QuoteMode.MINIMAL.value
