"""
csv-formatter - convert delimited text between two CSV dialects

Usage:
    csv-formatter [options] [input-file]

Reads stdin when no input file is given and writes stdout unless -O is set.
Dialect settings accept symbolic tokens (comma, semicolon, tab, pipe,
newline, crlf, double, single, backslash, null) or a literal character.

Example:
    csv-formatter -f semicolon -F tab -M minimal --cleaning-strategy drop in.csv -O out.tsv
"""

import argparse
import io
import logging
import sys

from . import rules
from .convert import AUTO_ENCODING, check_encoding, convert_stream, decode_input
from .dialect import resolve_settings
from .errors import CsvFormatterError, InvalidConfig
from .models import ConversionSettings

logger = logging.getLogger(__name__)


def parse_args(argv):
    parser = argparse.ArgumentParser(
        prog="csv-formatter",
        description="Convert delimited text between two CSV dialects.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )

    parser.add_argument(
        "input_files", nargs="*", metavar="input-file",
        help="input file; if not specified, stdin serves as input",
    )

    group = parser.add_argument_group("input dialect")
    group.add_argument("-f", "--input-field-separator", default=rules.DEFAULT_DELIMITER,
                       help="field separator of the input")
    group.add_argument("-r", "--input-record-separator", default=rules.DEFAULT_RECORD_SEPARATOR,
                       help="record separator of the input (LF and CRLF are always accepted)")
    group.add_argument("-q", "--input-quote", default=rules.DEFAULT_QUOTE,
                       help="quote character of the input")
    group.add_argument("-m", "--input-quote-mode", default=rules.DEFAULT_INPUT_QUOTE_MODE,
                       help="quote mode of the input (all, none, notnull, text, minimal)")
    group.add_argument("-x", "--input-escape", default=rules.NULL_TOKEN,
                       help="escape character of the input")
    group.add_argument("-e", "--input-encoding", default=rules.DEFAULT_ENCODING,
                       help="encoding of the input; 'auto' to detect")
    group.add_argument("-i", "--ignore-surrounding-space", action="store_true",
                       help="ignore spaces around unquoted input fields")
    group.add_argument("-l", "--ignore-empty-lines", action="store_true",
                       help="skip empty lines in the input")

    group = parser.add_argument_group("output dialect")
    group.add_argument("-O", "--output", default=None,
                       help="output file; if not specified, stdout serves as output")
    group.add_argument("-F", "--output-field-separator", default=rules.DEFAULT_DELIMITER,
                       help="field separator of the output")
    group.add_argument("-R", "--output-record-separator", default=rules.DEFAULT_RECORD_SEPARATOR,
                       help="record separator of the output")
    group.add_argument("-Q", "--output-quote", default=rules.DEFAULT_QUOTE,
                       help="quote character of the output")
    group.add_argument("-M", "--output-quote-mode", default=rules.DEFAULT_OUTPUT_QUOTE_MODE,
                       help="quote mode of the output (all, none, notnull, text, minimal)")
    group.add_argument("-X", "--output-escape", default=rules.NULL_TOKEN,
                       help="escape character of the output")
    group.add_argument("-E", "--output-encoding", default=rules.DEFAULT_ENCODING,
                       help="encoding of the output")

    parser.add_argument("--cleaning-strategy", default=rules.DEFAULT_CLEANING_STRATEGY,
                        help="what to do with too small or large records (keep, drop, fail)")
    parser.add_argument("--flatten", action="store_true",
                        help="replace line feeds, carriage returns and tabs with escape sequences")
    parser.add_argument("-v", "--verbose", action="store_true", help="log progress to stderr")

    return parser.parse_args(argv)


def settings_from_args(args):
    return ConversionSettings(
        input_delimiter=args.input_field_separator,
        input_record_separator=args.input_record_separator,
        input_quote=args.input_quote,
        input_quote_mode=args.input_quote_mode,
        input_escape=args.input_escape,
        input_encoding=args.input_encoding,
        ignore_surrounding_space=args.ignore_surrounding_space,
        ignore_empty_lines=args.ignore_empty_lines,
        output_delimiter=args.output_field_separator,
        output_record_separator=args.output_record_separator,
        output_quote=args.output_quote,
        output_quote_mode=args.output_quote_mode,
        output_escape=args.output_escape,
        output_encoding=args.output_encoding,
        cleaning_strategy=args.cleaning_strategy,
        flatten=args.flatten,
    )


def open_input(path, encoding):
    """
    Open the input as a text stream. Line endings are left untouched so the
    parser sees CR LF. ``auto`` reads the whole input to detect its encoding.
    """
    if encoding.lower() == AUTO_ENCODING:
        if path is None:
            raw = sys.stdin.buffer.read()
        else:
            with open(path, "rb") as f:
                raw = f.read()
        text, info = decode_input(raw)
        logger.info("Input decoded as %s", info["decode_used"])
        return io.StringIO(text)

    encoding = check_encoding(encoding, "input_encoding")
    if path is None:
        return io.TextIOWrapper(sys.stdin.buffer, encoding=encoding, newline="")
    return open(path, "r", encoding=encoding, newline="")


def open_output(path, encoding):
    encoding = check_encoding(encoding, "output_encoding")
    if path is None:
        return io.TextIOWrapper(sys.stdout.buffer, encoding=encoding, newline="")
    return open(path, "w", encoding=encoding, newline="")


def run(args):
    settings = settings_from_args(args)
    if len(args.input_files) > 1:
        raise InvalidConfig("Multiple input files are not supported.", setting="input_files")
    input_dialect, output_dialect, strategy = resolve_settings(settings)

    path = args.input_files[0] if args.input_files else None
    source = open_input(path, settings.input_encoding)
    try:
        sink = open_output(args.output, settings.output_encoding)
    except Exception:
        source.close()
        raise
    return convert_stream(
        source, sink, input_dialect, output_dialect, strategy, flatten=settings.flatten,
    )


def main(argv=None):
    args = parse_args(sys.argv[1:] if argv is None else argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="[csv-formatter] %(levelname)s: %(message)s",
        stream=sys.stderr,
    )
    try:
        run(args)
    except (CsvFormatterError, UnicodeError, OSError) as e:
        logger.error("%s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
