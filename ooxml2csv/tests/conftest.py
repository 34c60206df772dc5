import zipfile
from pathlib import Path
from typing import Callable, Dict

import pytest

MAIN_NS = "http://schemas.openxmlformats.org/spreadsheetml/2006/main"

CONTENT_TYPES = (
    '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
    '<Types xmlns="http://schemas.openxmlformats.org/package/2006/content-types">'
    '<Default Extension="xml" ContentType="application/xml"/>'
    "</Types>"
)


def worksheet_xml(rows: str) -> str:
    return (
        '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
        f'<worksheet xmlns="{MAIN_NS}" '
        'xmlns:r="http://schemas.openxmlformats.org/officeDocument/2006/relationships" '
        'xmlns:x14ac="http://schemas.microsoft.com/office/spreadsheetml/2009/9/ac">'
        f"<sheetData>{rows}</sheetData></worksheet>"
    )


def shared_strings_xml(*strings: str) -> str:
    items = "".join(f"<si><t>{s}</t></si>" for s in strings)
    return (
        '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
        f'<sst xmlns="{MAIN_NS}" count="{len(strings)}" uniqueCount="{len(strings)}">'
        f"{items}</sst>"
    )


# style 0: general, style 1: custom date, style 2: custom datetime,
# style 3: built-in date id 14, style 4: date format not applied
STYLES_XML = (
    '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
    f'<styleSheet xmlns="{MAIN_NS}">'
    '<numFmts count="2">'
    '<numFmt numFmtId="164" formatCode="dd\\.mm\\.yyyy"/>'
    '<numFmt numFmtId="165" formatCode="dd/mm/yyyy hh:mm"/>'
    "</numFmts>"
    '<cellStyleXfs count="1"><xf numFmtId="0" fontId="0"/></cellStyleXfs>'
    '<cellXfs count="5">'
    '<xf numFmtId="0" fontId="0" xfId="0"/>'
    '<xf numFmtId="164" fontId="0" xfId="0" applyNumberFormat="1"/>'
    '<xf numFmtId="165" fontId="0" xfId="0" applyNumberFormat="1"/>'
    '<xf numFmtId="14" fontId="0" xfId="0" applyNumberFormat="1"/>'
    '<xf numFmtId="164" fontId="0" xfId="0" applyNumberFormat="0"/>'
    "</cellXfs>"
    '<dxfs count="1"><dxf><numFmt numFmtId="166" formatCode="yyyy"/></dxf></dxfs>'
    "</styleSheet>"
)


def build_package(path: Path, parts: Dict[str, str]) -> Path:
    with zipfile.ZipFile(path, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        zf.writestr("[Content_Types].xml", CONTENT_TYPES)
        for name, data in parts.items():
            zf.writestr(name, data)
    return path


@pytest.fixture
def make_xlsx(tmp_path: Path) -> Callable[..., Path]:
    """Write a minimal spreadsheet package and return its path."""

    def _make(
        rows: str,
        strings=("A", "B", "Hello"),
        styles: str | None = STYLES_XML,
        extra_sheets: Dict[int, str] | None = None,
        name: str = "book.xlsx",
    ) -> Path:
        parts = {"xl/worksheets/sheet1.xml": worksheet_xml(rows)}
        if strings is not None:
            parts["xl/sharedStrings.xml"] = shared_strings_xml(*strings)
        if styles is not None:
            parts["xl/styles.xml"] = styles
        for number, sheet_rows in (extra_sheets or {}).items():
            parts[f"xl/worksheets/sheet{number}.xml"] = worksheet_xml(sheet_rows)
        return build_package(tmp_path / name, parts)

    return _make


@pytest.fixture
def write_part(tmp_path: Path) -> Callable[[str, str], Path]:
    """Write a single XML part to disk."""

    def _write(name: str, content: str) -> Path:
        path = tmp_path / name
        path.write_text(content, encoding="utf-8")
        return path

    return _write
