"""
Resolution of symbolic configuration tokens into dialect values.

Tokens are what a user types: ``comma``, ``tab``, ``\\t``, ``newline``,
``double``, ``null`` or a literal character. Everything here is pure; no
stream is touched, so configuration errors surface before any I/O.
"""

from __future__ import annotations

from typing import Optional, Tuple

from pydantic import ValidationError

from . import rules
from .errors import InvalidConfig
from .models import CleaningStrategy, ConversionSettings, Dialect, QuoteMode


def resolve_string(token: Optional[str]) -> Optional[str]:
    """Map a token to the string it names; unknown tokens map to themselves."""
    if token is None or token == rules.NULL_TOKEN:
        return None
    return rules.STRING_TOKENS.get(token, token)


def resolve_char(token: Optional[str], setting: str = "character") -> Optional[str]:
    value = resolve_string(token)
    if value is None:
        return None
    if len(value) != 1:
        raise InvalidConfig(f"Could not map {token!r} to a character.", setting=setting, token=token)
    return value


def resolve_required_char(token: Optional[str], setting: str) -> str:
    value = resolve_char(token, setting)
    if value is None:
        raise InvalidConfig(f"A {setting} is required.", setting=setting, token=token)
    return value


def resolve_record_separator(token: Optional[str], setting: str = "record_separator") -> str:
    value = resolve_string(token)
    if not value:
        raise InvalidConfig("A record separator is required.", setting=setting, token=token)
    return value


def resolve_quote_mode(token: str, setting: str = "quote_mode") -> QuoteMode:
    name = rules.QUOTE_MODE_TOKENS.get((token or "").strip().lower())
    if name is None:
        raise InvalidConfig("Unknown quote mode.", setting=setting, token=token)
    return QuoteMode(name)


def resolve_cleaning_strategy(token: str) -> CleaningStrategy:
    try:
        return CleaningStrategy((token or "").strip().lower())
    except ValueError:
        raise InvalidConfig(
            "Unknown cleaning strategy (expected keep, drop or fail).",
            setting="cleaning_strategy",
            token=token,
        ) from None


def build_dialect(
    delimiter: str = rules.DEFAULT_DELIMITER,
    record_separator: str = rules.DEFAULT_RECORD_SEPARATOR,
    quote: Optional[str] = rules.DEFAULT_QUOTE,
    quote_mode: str = rules.DEFAULT_INPUT_QUOTE_MODE,
    escape: Optional[str] = rules.NULL_TOKEN,
    ignore_surrounding_space: bool = False,
    ignore_empty_lines: bool = False,
    side: str = "",
) -> Dialect:
    """
    Resolve every token and assemble a validated ``Dialect``.

    ``side`` ("input"/"output") only prefixes setting names in errors.

    Raises:
        InvalidConfig: If any token is unknown or the resolved characters
            violate the dialect invariants (e.g. quote == delimiter).
    """
    prefix = f"{side}_" if side else ""
    values = dict(
        delimiter=resolve_required_char(delimiter, f"{prefix}delimiter"),
        record_separator=resolve_record_separator(record_separator, f"{prefix}record_separator"),
        quote=resolve_char(quote, f"{prefix}quote"),
        quote_mode=resolve_quote_mode(quote_mode, f"{prefix}quote_mode"),
        escape=resolve_char(escape, f"{prefix}escape"),
        ignore_surrounding_space=ignore_surrounding_space,
        ignore_empty_lines=ignore_empty_lines,
    )
    try:
        return Dialect(**values)
    except ValidationError as e:
        reasons = "; ".join(err["msg"] for err in e.errors())
        raise InvalidConfig(f"Inconsistent {side or 'dialect'} settings: {reasons}", setting=side or None) from e


def resolve_settings(settings: ConversionSettings) -> Tuple[Dialect, Dialect, CleaningStrategy]:
    """
    Resolve a full set of conversion settings.

    Returns:
        ``(input_dialect, output_dialect, cleaning_strategy)``.

    Raises:
        InvalidConfig: On any bad token, or when flattening is requested
            without an output escape character.
    """
    input_dialect = build_dialect(
        delimiter=settings.input_delimiter,
        record_separator=settings.input_record_separator,
        quote=settings.input_quote,
        quote_mode=settings.input_quote_mode,
        escape=settings.input_escape,
        ignore_surrounding_space=settings.ignore_surrounding_space,
        ignore_empty_lines=settings.ignore_empty_lines,
        side="input",
    )
    # Input-only flags; the printer ignores them.
    output_dialect = build_dialect(
        delimiter=settings.output_delimiter,
        record_separator=settings.output_record_separator,
        quote=settings.output_quote,
        quote_mode=settings.output_quote_mode,
        escape=settings.output_escape,
        ignore_surrounding_space=True,
        ignore_empty_lines=True,
        side="output",
    )
    strategy = resolve_cleaning_strategy(settings.cleaning_strategy)
    if settings.flatten and output_dialect.escape is None:
        raise InvalidConfig("Cannot flatten lines without an escape character.", setting="flatten")
    return input_dialect, output_dialect, strategy
