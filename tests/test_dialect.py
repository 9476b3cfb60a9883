import pytest
from pydantic import ValidationError

from csv_formatter.dialect import (
    build_dialect,
    resolve_char,
    resolve_cleaning_strategy,
    resolve_quote_mode,
    resolve_record_separator,
    resolve_settings,
    resolve_string,
)
from csv_formatter.errors import InvalidConfig
from csv_formatter.models import CleaningStrategy, ConversionSettings, Dialect, QuoteMode


@pytest.mark.parametrize(
    "token, expected",
    [
        ("comma", ","),
        ("semicolon", ";"),
        ("tab", "\t"),
        ("\\t", "\t"),
        ("pipe", "|"),
        ("double", '"'),
        ("single", "'"),
        ("backslash", "\\"),
        ("\\\\", "\\"),
        ("x", "x"),
        ("null", None),
    ],
)
def test_resolve_char(token, expected):
    assert resolve_char(token) == expected


@pytest.mark.parametrize(
    "token, expected",
    [("newline", "\n"), ("\\n", "\n"), ("crlf", "\r\n"), ("lf+nl", "\r\n"), ("\\r", "\r"), ("##", "##")],
)
def test_resolve_string(token, expected):
    assert resolve_string(token) == expected


def test_unknown_multi_character_token_for_character_setting():
    with pytest.raises(InvalidConfig) as exc:
        resolve_char("commas", "delimiter")
    assert exc.value.setting == "delimiter"
    assert exc.value.token == "commas"
    assert "commas" in str(exc.value)


def test_empty_token_is_not_a_character():
    with pytest.raises(InvalidConfig):
        resolve_char("")


def test_record_separator_required():
    with pytest.raises(InvalidConfig):
        resolve_record_separator("null")
    assert resolve_record_separator("||") == "||"


@pytest.mark.parametrize(
    "token, expected",
    [
        ("minimal", QuoteMode.MINIMAL),
        ("all", QuoteMode.ALL),
        ("notnull", QuoteMode.ALL_NON_NULL),
        ("text", QuoteMode.NON_NUMERIC),
        ("none", QuoteMode.NONE),
        ("ALL", QuoteMode.ALL),
    ],
)
def test_resolve_quote_mode(token, expected):
    assert resolve_quote_mode(token) is expected


def test_unknown_quote_mode():
    with pytest.raises(InvalidConfig) as exc:
        resolve_quote_mode("sometimes")
    assert "Unknown quote mode" in str(exc.value)


def test_resolve_cleaning_strategy():
    assert resolve_cleaning_strategy("Drop") is CleaningStrategy.DROP
    with pytest.raises(InvalidConfig):
        resolve_cleaning_strategy("pad")


def test_build_dialect():
    d = build_dialect(delimiter="tab", record_separator="crlf", quote="single", quote_mode="text", escape="backslash")
    assert d == Dialect(
        delimiter="\t", record_separator="\r\n", quote="'", quote_mode=QuoteMode.NON_NUMERIC, escape="\\"
    )


def test_build_dialect_without_delimiter():
    with pytest.raises(InvalidConfig):
        build_dialect(delimiter="null")


def test_build_dialect_rejects_clashing_characters():
    with pytest.raises(InvalidConfig) as exc:
        build_dialect(delimiter="comma", quote=",", side="input")
    assert exc.value.setting == "input"


def test_build_dialect_rejects_separator_containing_delimiter():
    with pytest.raises(InvalidConfig):
        build_dialect(delimiter="semicolon", record_separator=";;")


def test_dialect_model_validation():
    with pytest.raises(ValidationError):
        Dialect(delimiter=",,")
    with pytest.raises(ValidationError):
        Dialect(quote="\\", escape="\\")
    with pytest.raises(ValidationError):
        Dialect(record_separator="")


@pytest.mark.parametrize(
    "fields",
    [
        {"delimiter": "t"},
        {"quote": "n"},
        {"record_separator": "end"},
        {"escape": "r"},
    ],
)
def test_escape_code_letters_rejected_with_escape(fields):
    fields.setdefault("escape", "\\")
    with pytest.raises(ValidationError):
        Dialect(quote_mode=QuoteMode.NONE, **fields)


def test_escape_code_letters_allowed_without_escape():
    assert Dialect(delimiter="t").delimiter == "t"
    assert Dialect(record_separator="end").record_separator == "end"


def test_build_dialect_rejects_escape_code_delimiter():
    with pytest.raises(InvalidConfig) as exc:
        build_dialect(delimiter="t", escape="backslash", side="output")
    assert "escape code" in str(exc.value)


def test_dialect_is_immutable():
    d = Dialect()
    with pytest.raises(ValidationError):
        d.delimiter = ";"


def test_resolve_settings_defaults():
    input_dialect, output_dialect, strategy = resolve_settings(ConversionSettings())
    assert input_dialect.quote_mode is QuoteMode.MINIMAL
    assert output_dialect.quote_mode is QuoteMode.ALL
    assert output_dialect.record_separator == "\n"
    assert input_dialect.escape is None
    assert strategy is CleaningStrategy.FAIL


def test_resolve_settings_flatten_needs_escape():
    with pytest.raises(InvalidConfig) as exc:
        resolve_settings(ConversionSettings(flatten=True))
    assert "escape" in str(exc.value)
    resolve_settings(ConversionSettings(flatten=True, output_escape="backslash"))
