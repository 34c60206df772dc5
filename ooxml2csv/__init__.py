"""
ooxml2csv: Streaming XLSX to CSV converter.

Converts a worksheet of an Office Open XML spreadsheet into a CSV file one
row at a time, resolving shared strings and date formatted numbers, and
filling the rows and columns the spreadsheet leaves out.
"""

from pathlib import Path

from ooxml2csv.config import DEFAULT_CONFIG, ConversionConfig
from ooxml2csv.converter import XlsxToCsvConverter
from ooxml2csv.exceptions import (
    ConversionError,
    DirectoryCreateError,
    ExtractionError,
    InputNotFoundError,
    OutputWriteError,
    SheetNotFoundError,
    XmlParseError,
    ZipBombError,
)

__version__ = "0.1.0"


def convert_xlsx_to_csv(
    xlsx_path: str | Path,
    csv_path: str | Path,
    sheet_number: int = 1,
    config: ConversionConfig | None = None,
) -> bool:
    """
    Convert one worksheet of an XLSX file into a CSV file.

    Args:
        xlsx_path: Path to the spreadsheet package.
        csv_path: Destination file. Missing parent directories are created.
        sheet_number: 1-based worksheet part number.
        config: Delimiter, quoting and date settings. Defaults to
            ``DEFAULT_CONFIG`` (``;`` delimited, ``dd.mm.yyyy`` dates).

    Returns:
        True once the file has been written.

    Raises:
        ConversionError: One of its subclasses, depending on what failed.

    Example:
        >>> import ooxml2csv
        >>> ooxml2csv.convert_xlsx_to_csv("report.xlsx", "out/report.csv")
        True
    """
    return XlsxToCsvConverter(xlsx_path).convert(csv_path, sheet_number, config)


__all__ = [
    # Version
    "__version__",
    # Main functions
    "convert_xlsx_to_csv",
    "XlsxToCsvConverter",
    # Configuration
    "ConversionConfig",
    "DEFAULT_CONFIG",
    # Errors
    "ConversionError",
    "InputNotFoundError",
    "ExtractionError",
    "ZipBombError",
    "SheetNotFoundError",
    "DirectoryCreateError",
    "OutputWriteError",
    "XmlParseError",
]
