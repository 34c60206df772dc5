"""
Row Decoder
===========

Streams the ``<row>`` elements of a worksheet part and turns them into dense
``RowRecord`` objects.

Spreadsheets store rows and cells sparsely: an empty row is simply missing,
and so is an empty cell. The decoder reconstructs the rectangle:

    - a gap in row numbers is filled with blank rows that have as many fields
      as the row following the gap
    - a gap in column letters within a row is filled with empty fields, so
      field 0 is always column A

Cell values are decoded with the shared string table and the style table.
Numbers whose style classifies as a date are Excel serial day counts and are
rendered with the configured date or datetime pattern.
"""

from __future__ import annotations

import datetime
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Generator, List, Optional, Sequence

from openpyxl.utils.cell import (
    column_index_from_string,
    coordinate_from_string,
    get_column_letter,
)
from openpyxl.utils.exceptions import CellCoordinatesException

from ooxml2csv.config import DEFAULT_CONFIG, ConversionConfig
from ooxml2csv.exceptions import XmlParseError
from ooxml2csv.reader.shared_strings import string_item_text
from ooxml2csv.reader.styles import FormatKind, StyleTable
from ooxml2csv.reader.xml_tree import XmlNode, iter_nodes

logger = logging.getLogger(__name__)

# serial day 25569 is 1970-01-01
UNIX_EPOCH_SERIAL = 25569
SECONDS_PER_DAY = 86400
_UNIX_EPOCH = datetime.datetime(1970, 1, 1)

CELL_TYPE_SHARED_STRING = "s"
CELL_TYPE_INLINE_STRING = "inlineStr"


@dataclass(frozen=True)
class CellAddress:
    column: int
    row: int

    @classmethod
    def parse(cls, coordinate: Optional[str]) -> CellAddress:
        """Parse a coordinate such as ``C7`` into column 3, row 7."""
        if not coordinate:
            raise XmlParseError("Cell is missing its coordinate attribute")
        try:
            letters, row = coordinate_from_string(coordinate)
            return cls(column=column_index_from_string(letters), row=row)
        except (CellCoordinatesException, ValueError) as exc:
            raise XmlParseError(
                f"Invalid cell coordinate: {coordinate!r}", cause=exc
            ) from exc

    @property
    def column_letter(self) -> str:
        return get_column_letter(self.column)

    def __str__(self) -> str:
        return f"{self.column_letter}{self.row}"


@dataclass(frozen=True)
class RowRecord:
    row_number: int
    fields: List[str]


def excel_serial_to_datetime(serial: float) -> datetime.datetime:
    """Convert an Excel serial day count into a naive UTC datetime."""
    seconds = round((serial - UNIX_EPOCH_SERIAL) * SECONDS_PER_DAY)
    return _UNIX_EPOCH + datetime.timedelta(seconds=seconds)


def _parse_row_number(value: Optional[str]) -> int:
    if value is None:
        raise XmlParseError("Row is missing its row number attribute")
    try:
        row_number = int(value)
    except ValueError as exc:
        raise XmlParseError(f"Invalid row number: {value!r}", cause=exc) from exc
    if row_number < 1:
        raise XmlParseError(f"Invalid row number: {value!r}")
    return row_number


class RowDecoder:
    """Decodes single ``<row>`` nodes against the workbook lookup tables."""

    def __init__(
        self,
        shared_strings: Sequence[str],
        style_table: StyleTable,
        config: ConversionConfig = DEFAULT_CONFIG,
    ):
        self.shared_strings = shared_strings
        self.style_table = style_table
        self.config = config

    def decode_row(self, row: XmlNode) -> RowRecord:
        row_number = _parse_row_number(row.attr("r"))
        fields: List[str] = []

        for cell in row.children.get("c", []):
            has_value = "v" in cell.children or "is" in cell.children
            coordinate = cell.attr("r")

            if has_value or coordinate is not None:
                address = CellAddress.parse(coordinate)
                if address.column <= len(fields):
                    raise XmlParseError(
                        f"Cell {coordinate} in row {row_number} is out of column order"
                    )
                fields.extend([""] * (address.column - 1 - len(fields)))

            fields.append(self.decode_cell(cell) if has_value else "")

        return RowRecord(row_number=row_number, fields=fields)

    def decode_cell(self, cell: XmlNode) -> str:
        cell_type = cell.attr("t")
        if cell_type == CELL_TYPE_INLINE_STRING:
            return string_item_text(cell.first("is"))

        raw = cell.child_text("v") or ""
        if cell_type == CELL_TYPE_SHARED_STRING:
            return self._shared_string(raw)

        kind = self._format_kind(cell.attr("s"))
        if kind is FormatKind.OTHER:
            return raw

        pattern = (
            self.config.datetime_format
            if kind is FormatKind.DATETIME
            else self.config.date_format
        )
        try:
            return excel_serial_to_datetime(float(raw)).strftime(pattern)
        except (ValueError, OverflowError):
            logger.debug(f"Date styled cell has no usable serial: [{raw}]")
            return raw

    def _shared_string(self, raw: str) -> str:
        try:
            index = int(raw)
        except ValueError:
            return raw
        if 0 <= index < len(self.shared_strings):
            return self.shared_strings[index]
        logger.debug(f"Shared string id {index} out of range, keeping literal")
        return raw

    def _format_kind(self, style: Optional[str]) -> FormatKind:
        if style is None:
            return FormatKind.OTHER
        try:
            return self.style_table.get(int(style), FormatKind.OTHER)
        except ValueError:
            return FormatKind.OTHER


def iter_rows(
    sheet_path: str | Path,
    shared_strings: Sequence[str],
    style_table: StyleTable,
    config: ConversionConfig = DEFAULT_CONFIG,
) -> Generator[RowRecord, Any, None]:
    """
    Yield every row of a worksheet part, rows omitted by the source included.

    Only one row is held in memory at a time.

    Raises:
        XmlParseError: The part is malformed, a row or cell coordinate is
            missing or invalid, or rows are not in ascending order.
    """
    decoder = RowDecoder(shared_strings, style_table, config)
    expected = 1

    for _, node in iter_nodes(sheet_path, {"row"}):
        record = decoder.decode_row(node)
        if record.row_number < expected:
            raise XmlParseError(f"Row {record.row_number} is out of order")

        while expected < record.row_number:
            yield RowRecord(row_number=expected, fields=[""] * len(record.fields))
            expected += 1

        yield record
        expected += 1
