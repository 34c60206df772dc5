import tempfile
from pathlib import Path
from unittest import TestCase

import pytest
from openpyxl import Workbook

import ooxml2csv
from ooxml2csv import (
    ConversionConfig,
    DirectoryCreateError,
    ExtractionError,
    InputNotFoundError,
    OutputWriteError,
    SheetNotFoundError,
    XlsxToCsvConverter,
    XmlParseError,
    converter,
)
from ooxml2csv.writer import csv_writer

tc = TestCase()

ROWS = (
    '<row r="1"><c r="A1" t="s"><v>0</v></c><c r="B1" t="s"><v>1</v></c>'
    '<c r="C1" t="s"><v>2</v></c></row>'
    '<row r="3"><c r="A3"><v>1.5</v></c><c r="C3" s="1"><v>44197</v></c></row>'
    '<row r="5"><c r="B5" s="2"><v>44197.5</v></c></row>'
)

EXPECTED = 'A;B;Hello\n;;\n1.5;;01.01.2021\n;\n;"01.01.2021 12:00"\n'


def _read(path: Path) -> str:
    return path.read_text(encoding="utf-8")


def test_convert(make_xlsx, tmp_path) -> None:
    source = make_xlsx(ROWS)
    destination = tmp_path / "out.csv"

    tc.assertTrue(XlsxToCsvConverter(source).convert(destination))
    tc.assertEqual(EXPECTED, _read(destination))


def test_convert_with_module_function(make_xlsx, tmp_path) -> None:
    destination = tmp_path / "nested" / "dir" / "out.csv"

    tc.assertTrue(ooxml2csv.convert_xlsx_to_csv(make_xlsx(ROWS), destination))
    tc.assertEqual(EXPECTED, _read(destination))


def test_convert_with_config(make_xlsx, tmp_path) -> None:
    destination = tmp_path / "out.csv"
    config = ConversionConfig(
        delimiter=",", date_format="%Y-%m-%d", datetime_format="%Y-%m-%dT%H:%M"
    )

    XlsxToCsvConverter(make_xlsx(ROWS)).convert(destination, config=config)

    tc.assertEqual(
        "A,B,Hello\n,,\n1.5,,2021-01-01\n,\n,2021-01-01T12:00\n", _read(destination)
    )


def test_gap_rows_match_their_neighbours(make_xlsx, tmp_path) -> None:
    source = make_xlsx(
        '<row r="1"><c r="A1"><v>1</v></c><c r="B1"><v>2</v></c></row>'
        '<row r="3"><c r="A3"><v>3</v></c><c r="B3"><v>4</v></c></row>'
        '<row r="5"><c r="A5"><v>5</v></c><c r="B5"><v>6</v></c></row>'
    )
    destination = tmp_path / "out.csv"

    XlsxToCsvConverter(source).convert(destination)

    tc.assertListEqual(
        ["1;2", ";", "3;4", ";", "5;6"], _read(destination).splitlines()
    )


def test_conversion_is_repeatable(make_xlsx, tmp_path) -> None:
    source = make_xlsx(ROWS)
    first, second = tmp_path / "first.csv", tmp_path / "second.csv"

    XlsxToCsvConverter(source).convert(first)
    XlsxToCsvConverter(source).convert(second)

    tc.assertEqual(first.read_bytes(), second.read_bytes())


def test_package_without_optional_parts(make_xlsx, tmp_path) -> None:
    source = make_xlsx(
        '<row r="1"><c r="A1" t="s"><v>0</v></c><c r="B1" s="1"><v>44197</v></c></row>',
        strings=None,
        styles=None,
    )
    destination = tmp_path / "out.csv"

    XlsxToCsvConverter(source).convert(destination)

    tc.assertEqual("0;44197\n", _read(destination))


def test_workbook_written_by_openpyxl(tmp_path) -> None:
    wb = Workbook()
    ws = wb.active
    ws.append(["name", "qty"])
    ws.append(["apple", 3])
    ws["A4"] = "pear; green"
    ws["B4"] = 5
    source = tmp_path / "openpyxl.xlsx"
    wb.save(source)
    destination = tmp_path / "out.csv"

    XlsxToCsvConverter(source).convert(destination)

    tc.assertEqual('name;qty\napple;3\n;\n"pear; green";5\n', _read(destination))


##########
# Errors #
##########


def test_missing_input_fails_before_work_dir_is_created(tmp_path, monkeypatch) -> None:
    created = []
    monkeypatch.setattr(tempfile, "mkdtemp", lambda *a, **kw: created.append(a))

    with pytest.raises(InputNotFoundError):
        XlsxToCsvConverter(tmp_path / "missing.xlsx").convert(tmp_path / "out.csv")

    tc.assertListEqual([], created)
    tc.assertFalse((tmp_path / "out.csv").exists())


def test_invalid_package(tmp_path) -> None:
    source = tmp_path / "book.xlsx"
    source.write_text("this is not a zip archive")
    work_root = tmp_path / "work"
    work_root.mkdir()

    with pytest.raises(ExtractionError):
        XlsxToCsvConverter(source, work_root=work_root).convert(tmp_path / "out.csv")

    tc.assertListEqual([], list(work_root.iterdir()))


def test_missing_sheet(make_xlsx, tmp_path) -> None:
    destination = tmp_path / "out.csv"

    with pytest.raises(SheetNotFoundError):
        XlsxToCsvConverter(make_xlsx(ROWS)).convert(destination, sheet_number=2)

    tc.assertFalse(destination.exists())


def test_invalid_sheet_number(make_xlsx, tmp_path) -> None:
    with pytest.raises(ValueError):
        XlsxToCsvConverter(make_xlsx(ROWS)).convert(tmp_path / "out.csv", 0)


def test_malformed_sheet_cleans_up(make_xlsx, tmp_path) -> None:
    source = make_xlsx('<row><c r="A1"><v>1</v></c></row>')
    work_root = tmp_path / "work"
    work_root.mkdir()

    with pytest.raises(XmlParseError):
        XlsxToCsvConverter(source, work_root=work_root).convert(tmp_path / "out.csv")

    tc.assertListEqual([], list(work_root.iterdir()))


def test_destination_directory_cannot_be_created(make_xlsx, tmp_path) -> None:
    blocker = tmp_path / "file.txt"
    blocker.write_text("")

    with pytest.raises(DirectoryCreateError):
        XlsxToCsvConverter(make_xlsx(ROWS)).convert(blocker / "out.csv")


def test_destination_cannot_be_opened(make_xlsx, tmp_path) -> None:
    destination = tmp_path / "taken"
    destination.mkdir()

    with pytest.raises(OutputWriteError):
        XlsxToCsvConverter(make_xlsx(ROWS)).convert(destination)


def test_write_failure_is_an_output_error(make_xlsx, tmp_path, monkeypatch) -> None:
    def _disk_full(self, fields) -> None:
        raise OSError(28, "No space left on device")

    monkeypatch.setattr(csv_writer.CsvRowWriter, "write_row", _disk_full)

    with pytest.raises(OutputWriteError):
        XlsxToCsvConverter(make_xlsx(ROWS)).convert(tmp_path / "out.csv")


def test_sheet_read_failure_is_not_an_output_error(make_xlsx, tmp_path, monkeypatch) -> None:
    def _unreadable(*args, **kwargs):
        raise OSError(5, "Input/output error")
        yield

    monkeypatch.setattr(converter, "iter_rows", _unreadable)

    with pytest.raises(OSError) as excinfo:
        XlsxToCsvConverter(make_xlsx(ROWS)).convert(tmp_path / "out.csv")

    tc.assertNotIsInstance(excinfo.value, OutputWriteError)


###########
# Cleanup #
###########


def test_work_dir_removed_after_conversion(make_xlsx, tmp_path) -> None:
    work_root = tmp_path / "work"
    work_root.mkdir()

    XlsxToCsvConverter(make_xlsx(ROWS), work_root=work_root).convert(
        tmp_path / "out.csv"
    )

    tc.assertListEqual([], list(work_root.iterdir()))


def test_context_manager_extracts_once(make_xlsx, tmp_path) -> None:
    source = make_xlsx(
        ROWS, extra_sheets={2: '<row r="1"><c r="A1"><v>second</v></c></row>'}
    )
    work_root = tmp_path / "work"
    work_root.mkdir()

    with XlsxToCsvConverter(source, work_root=work_root) as converter:
        converter.convert(tmp_path / "one.csv", sheet_number=1)
        converter.convert(tmp_path / "two.csv", sheet_number=2)
        tc.assertEqual(1, len(list(work_root.iterdir())))

    tc.assertListEqual([], list(work_root.iterdir()))
    tc.assertEqual(EXPECTED, _read(tmp_path / "one.csv"))
    tc.assertEqual("second\n", _read(tmp_path / "two.csv"))


def test_parallel_converters_use_separate_work_dirs(make_xlsx, tmp_path) -> None:
    source = make_xlsx(ROWS)
    work_root = tmp_path / "work"
    work_root.mkdir()

    with XlsxToCsvConverter(source, work_root=work_root) as first:
        with XlsxToCsvConverter(source, work_root=work_root) as second:
            first.convert(tmp_path / "a.csv")
            second.convert(tmp_path / "b.csv")
            tc.assertEqual(2, len(list(work_root.iterdir())))

    tc.assertEqual(_read(tmp_path / "a.csv"), _read(tmp_path / "b.csv"))
