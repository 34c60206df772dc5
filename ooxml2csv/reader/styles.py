"""
Style/Format Classifier
=======================

Cells reference their style by position in the ``<cellXfs>`` list of
``xl/styles.xml``. A style entry that applies a number format points to a
numeric-format id, and custom ids are defined in ``<numFmts>`` with a format
code string. Whether a raw number is displayed as a date is therefore a two
step lookup::

    cell s="3" -> cellXfs/xf[3] numFmtId="165" -> numFmt 165 "dd.mm.yyyy"

The resulting table is keyed by the style position, never by the format id.
Built-in format ids (no ``<numFmt>`` definition) classify as OTHER.
"""

import logging
import re
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Mapping, Optional

from ooxml2csv.reader.xml_tree import iter_nodes

logger = logging.getLogger(__name__)


class FormatKind(Enum):
    DATE = "date"
    DATETIME = "datetime"
    OTHER = "other"


StyleTable = Mapping[int, FormatKind]

# day, month and year tokens, optionally followed by hours and minutes
_DATE_PATTERN = re.compile(
    r"(d{1,2}[ -./]m{1,3}[ -./]y{1,4})( h{1,2}:m{1,2})?", re.IGNORECASE
)

_FALSE_VALUES = {"", "0", "false"}


def classify_format_code(format_code: Optional[str]) -> FormatKind:
    """Classify a number format code as a date, a date with time, or other."""
    if not format_code:
        return FormatKind.OTHER
    # backslash escapes a literal character, e.g. dd\.mm\.yyyy
    match = _DATE_PATTERN.search(format_code.replace("\\", ""))
    if match is None:
        return FormatKind.OTHER
    return FormatKind.DATETIME if match.group(2) else FormatKind.DATE


def _is_applied(value: Optional[str]) -> bool:
    return value is not None and value.strip().lower() not in _FALSE_VALUES


def read_style_table(path: str | Path) -> StyleTable:
    """
    Build the style position -> FormatKind table from the styles part.

    Only styles that apply a number format get an entry; every other style
    resolves to OTHER at lookup time. Reading stops once ``<cellXfs>`` has
    been processed.
    """
    path = Path(path)
    if not path.is_file():
        logger.debug(f"No styles part at [{path}]")
        return MappingProxyType({})

    formats: Dict[str, FormatKind] = {}
    table: Dict[int, FormatKind] = {}

    for tag, node in iter_nodes(path, {"numfmt", "cellxfs"}):
        if tag == "numfmt":
            num_fmt_id = node.attr("numfmtid")
            if num_fmt_id is not None:
                formats[num_fmt_id] = classify_format_code(node.attr("formatcode"))
            continue

        for index, xf in enumerate(node.children.get("xf", [])):
            if _is_applied(xf.attr("applynumberformat")):
                table[index] = formats.get(xf.attr("numfmtid"), FormatKind.OTHER)
        break

    logger.debug(
        f"Loaded {len(formats)} custom number formats, {len(table)} styles with number format"
    )
    return MappingProxyType(table)
