from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Sequence

import ooxml2csv
from ooxml2csv.config import DEFAULT_CONFIG, ConversionConfig


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ooxml2csv",
        description="Convert one worksheet of an XLSX file into a CSV file.",
    )
    parser.add_argument("source", type=Path, help="Path to the XLSX file.")
    parser.add_argument("destination", type=Path, help="Path of the CSV file to write.")
    parser.add_argument(
        "--sheet",
        type=int,
        default=1,
        help="1-based worksheet number (default: 1).",
    )
    parser.add_argument(
        "--delimiter",
        default=DEFAULT_CONFIG.delimiter,
        help=f"Field delimiter (default: {DEFAULT_CONFIG.delimiter!r}).",
    )
    parser.add_argument(
        "--quote",
        default=DEFAULT_CONFIG.quote,
        help=f"Quote character (default: {DEFAULT_CONFIG.quote!r}).",
    )
    parser.add_argument(
        "--escape",
        default=DEFAULT_CONFIG.escape,
        help=f"Escape character (default: {DEFAULT_CONFIG.escape!r}).",
    )
    parser.add_argument(
        "--date-format",
        default=DEFAULT_CONFIG.date_format,
        help="strftime pattern for date cells.",
    )
    parser.add_argument(
        "--datetime-format",
        default=DEFAULT_CONFIG.datetime_format,
        help="strftime pattern for date and time cells.",
    )
    parser.add_argument(
        "--encoding",
        default=DEFAULT_CONFIG.encoding,
        help=f"Encoding of the CSV file (default: {DEFAULT_CONFIG.encoding}).",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    try:
        args, unknown = parser.parse_known_args(argv)
    except SystemExit as exc:
        code = exc.code if isinstance(exc.code, int) else 1
        return code

    if unknown:
        unknown_str = " ".join(unknown)
        print(
            f"ooxml2csv: warning: unsupported arguments: {unknown_str}",
            file=sys.stderr,
        )
        return 1

    try:
        config = ConversionConfig(
            delimiter=args.delimiter,
            quote=args.quote,
            escape=args.escape,
            date_format=args.date_format,
            datetime_format=args.datetime_format,
            encoding=args.encoding,
        )
        ooxml2csv.convert_xlsx_to_csv(
            args.source, args.destination, sheet_number=args.sheet, config=config
        )
        return 0
    except Exception as exc:
        print(f"ooxml2csv: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
