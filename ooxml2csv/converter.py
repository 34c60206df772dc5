"""
XLSX to CSV Converter
=====================

Converts one worksheet of an Office Open XML spreadsheet (.xlsx) into a CSV
file without loading the workbook into memory.

The package is extracted into a private working directory, then three parts
are read:

    xl/sharedStrings.xml: shared string table (optional)
    xl/styles.xml: number formats, used to detect date cells (optional)
    xl/worksheets/sheetN.xml: the rows to convert

The shared strings and styles become immutable lookup tables before the
worksheet is streamed row by row straight into the CSV file.

Usage
-----
    >>> from ooxml2csv.converter import XlsxToCsvConverter
    >>>
    >>> XlsxToCsvConverter("data.xlsx").convert("data.csv")
    True
    >>>
    >>> # extract once, convert several sheets
    >>> with XlsxToCsvConverter("data.xlsx") as converter:
    ...     converter.convert("first.csv", sheet_number=1)
    ...     converter.convert("second.csv", sheet_number=2)

Known Limitations
-----------------
- Sheets are addressed by their part number, not by their display name
- Formulas are not evaluated, the cached value is written
- Built-in date formats (no custom format code) are written as raw serials
- A late failure may leave a partially written CSV file behind
"""

from __future__ import annotations

import contextlib
import logging
from pathlib import Path

from ooxml2csv.config import DEFAULT_CONFIG, ConversionConfig
from ooxml2csv.exceptions import (
    DirectoryCreateError,
    InputNotFoundError,
    OutputWriteError,
    SheetNotFoundError,
)
from ooxml2csv.reader.shared_strings import read_shared_strings
from ooxml2csv.reader.styles import read_style_table
from ooxml2csv.reader.worksheet import iter_rows
from ooxml2csv.util.package import (
    DEFAULT_PACKAGE_LIMITS,
    PackageLimits,
    extract_package,
)
from ooxml2csv.util.work_dir import work_dir
from ooxml2csv.writer.csv_writer import CsvRowWriter

logger = logging.getLogger(__name__)

SHARED_STRINGS_PART = "xl/sharedStrings.xml"
STYLES_PART = "xl/styles.xml"
WORKSHEET_PART = "xl/worksheets/sheet{number}.xml"


class XlsxToCsvConverter:
    """
    Converts worksheets of one spreadsheet package to CSV.

    Used as a context manager, the package is extracted on the first
    conversion and the working directory lives until the block exits.
    Otherwise every ``convert`` call extracts and cleans up on its own.
    """

    def __init__(
        self,
        xlsx_path: str | Path,
        *,
        limits: PackageLimits = DEFAULT_PACKAGE_LIMITS,
        work_root: str | Path | None = None,
    ):
        self.xlsx_path = Path(xlsx_path)
        self.limits = limits
        self.work_root = work_root
        self._stack: contextlib.ExitStack | None = None
        self._extracted: Path | None = None

    def __enter__(self) -> XlsxToCsvConverter:
        if self._stack is None:
            self._stack = contextlib.ExitStack()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        """Remove the working directory, if any."""
        stack, self._stack, self._extracted = self._stack, None, None
        if stack is not None:
            stack.close()

    def convert(
        self,
        csv_path: str | Path,
        sheet_number: int = 1,
        config: ConversionConfig | None = None,
    ) -> bool:
        """
        Write worksheet ``sheet_number`` (1-based) of the package to ``csv_path``.

        Returns:
            True once the CSV file has been written completely.

        Raises:
            InputNotFoundError: The package does not exist.
            ExtractionError: The package is not a valid archive, or the
                worksheet part does not exist.
            DirectoryCreateError: The destination or working directory
                cannot be created.
            OutputWriteError: The CSV file cannot be written.
            XmlParseError: A part is malformed.
        """
        if sheet_number < 1:
            raise ValueError(f"Sheet numbers start at 1, got {sheet_number}")
        config = config or DEFAULT_CONFIG

        if self._stack is not None:
            return self._convert(Path(csv_path), sheet_number, config)
        with self:
            return self._convert(Path(csv_path), sheet_number, config)

    def _unpack(self) -> Path:
        if self._extracted is not None:
            return self._extracted

        if not self.xlsx_path.exists():
            raise InputNotFoundError(str(self.xlsx_path))

        target = self._stack.enter_context(work_dir(self.work_root))
        extract_package(self.xlsx_path, target, limits=self.limits)
        self._extracted = target
        return target

    def _convert(self, csv_path: Path, sheet_number: int, config: ConversionConfig) -> bool:
        root = self._unpack()

        sheet_path = root / WORKSHEET_PART.format(number=sheet_number)
        if not sheet_path.is_file():
            raise SheetNotFoundError(sheet_number)

        shared_strings = read_shared_strings(root / SHARED_STRINGS_PART)
        style_table = read_style_table(root / STYLES_PART)

        try:
            csv_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise DirectoryCreateError(
                f'Directory "{csv_path.parent}" was not created', cause=exc
            ) from exc

        try:
            handle = open(csv_path, "w", encoding=config.encoding, newline="")
        except OSError as exc:
            raise OutputWriteError(
                f"Unable to create csv file on path {csv_path}", cause=exc
            ) from exc

        with handle:
            writer = CsvRowWriter(handle, config)
            for record in iter_rows(sheet_path, shared_strings, style_table, config):
                try:
                    writer.write_row(record.fields)
                except OSError as exc:
                    raise OutputWriteError(
                        f"Unable to write csv file on path {csv_path}", cause=exc
                    ) from exc

        logger.info(
            "Converted sheet %d: %d rows -> %s",
            sheet_number,
            writer.rows_written,
            csv_path,
        )
        return True
