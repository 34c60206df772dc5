"""
CSV Writer
==========

Writes decoded rows as CSV lines. Quoting follows the conventions of PHP's
``fputcsv`` so output stays byte-compatible with files produced by earlier
tooling:

    - a field is wrapped in quotes when it contains the delimiter, the quote
      or escape character, a NUL byte, or whitespace (space, tab, CR, LF)
    - quote characters inside a field are doubled
    - when quote and escape differ, an escape followed by a quote collapses
      to the bare escape character

Lines end with a single ``\\n`` and there is no trailing delimiter.
"""

from typing import Iterable, TextIO

from ooxml2csv.config import DEFAULT_CONFIG, ConversionConfig

LINE_TERMINATOR = "\n"
_ALWAYS_QUOTED = " \t\r\n\0"


def needs_quoting(field: str, config: ConversionConfig = DEFAULT_CONFIG) -> bool:
    specials = _ALWAYS_QUOTED + config.delimiter + config.quote + config.escape
    return any(char in field for char in specials)


def escape_field(field: str, config: ConversionConfig = DEFAULT_CONFIG) -> str:
    quote, escape = config.quote, config.escape
    fixed = field.replace(quote, quote + quote)
    if quote != escape:
        fixed = fixed.replace(escape + quote, escape)
    if needs_quoting(fixed, config):
        return f"{quote}{fixed}{quote}"
    return fixed


def format_row(fields: Iterable[str], config: ConversionConfig = DEFAULT_CONFIG) -> str:
    return (
        config.delimiter.join(escape_field(field, config) for field in fields)
        + LINE_TERMINATOR
    )


class CsvRowWriter:
    """Writes one CSV line per row to an open text stream."""

    def __init__(self, stream: TextIO, config: ConversionConfig = DEFAULT_CONFIG):
        self.stream = stream
        self.config = config
        self.rows_written = 0

    def write_row(self, fields: Iterable[str]) -> None:
        self.stream.write(format_row(fields, self.config))
        self.rows_written += 1
