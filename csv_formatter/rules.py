"""
Dialect tokens and conversion defaults.

Symbolic names accepted wherever a dialect character or string is
configured, plus the defaults applied when a setting is omitted.
"""

NULL_TOKEN = "null"

# Symbolic token -> concrete string. Anything not listed resolves to itself.
STRING_TOKENS = {
    "\\n": "\n",
    "newline": "\n",
    "nl": "\n",
    "\\r": "\r",
    "linefeed": "\r",
    "lf": "\r",
    "cr": "\r",
    "\\r\\n": "\r\n",
    "linefeed+newline": "\r\n",
    "lf+nl": "\r\n",
    "crlf": "\r\n",
    "comma": ",",
    "semicolon": ";",
    "colon": ":",
    "pipe": "|",
    "space": " ",
    "tab": "\t",
    "\\t": "\t",
    "double": '"',
    "doublequote": '"',
    '\\"': '"',
    "single": "'",
    "singlequote": "'",
    "\\'": "'",
    "backslash": "\\",
    "\\": "\\",
    "\\\\": "\\",
}

QUOTE_MODE_TOKENS = {
    "minimal": "minimal",
    "all": "all",
    "notnull": "all_non_null",
    "all_non_null": "all_non_null",
    "text": "non_numeric",
    "non_numeric": "non_numeric",
    "none": "none",
}

# Escape short codes: escape + key <-> value
ESCAPE_CODES = {"n": "\n", "r": "\r", "t": "\t"}
CONTROL_CODES = {v: k for k, v in ESCAPE_CODES.items()}

# Characters that always end a record on input, whatever the dialect says.
LINE_BREAKS = ("\n", "\r")

# Trimmed by ignore_surrounding_space (unless one of them is the delimiter).
SURROUNDING_SPACE = " \t"

DEFAULT_DELIMITER = "comma"
DEFAULT_RECORD_SEPARATOR = "newline"
DEFAULT_QUOTE = "double"
DEFAULT_INPUT_QUOTE_MODE = "minimal"
DEFAULT_OUTPUT_QUOTE_MODE = "all"
DEFAULT_CLEANING_STRATEGY = "fail"
DEFAULT_ENCODING = "UTF-8"

ACCEPTED_UPLOAD_SUFFIXES = (".csv", ".tsv", ".txt")

READ_CHUNK_SIZE = 8192
