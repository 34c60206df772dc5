"""
Spreadsheet package handling.

An ``.xlsx`` package is a ZIP archive of XML parts. Before anything is
written to the working directory the archive directory is checked against
``PackageLimits``: a worksheet of a few megabytes can legitimately expand
a hundredfold, an archive that expands to gigabytes cannot.
"""

from __future__ import annotations

import logging
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from ooxml2csv.exceptions import ExtractionError, ZipBombError

logger = logging.getLogger(__name__)

MIB = 1024 * 1024


@dataclass(frozen=True)
class PackageLimits:
    """Upper bounds a package must stay within to be extracted."""

    max_parts: int = 50_000
    max_part_bytes: int = 1024 * MIB
    max_package_bytes: int = 4096 * MIB
    max_part_ratio: float = 500.0
    max_package_ratio: float = 200.0


DEFAULT_PACKAGE_LIMITS = PackageLimits()


def _expansion(uncompressed: int, compressed: int) -> float:
    if uncompressed == 0:
        return 0.0
    if compressed <= 0:
        return float("inf")
    return uncompressed / compressed


def _part_problem(part: zipfile.ZipInfo, limits: PackageLimits) -> Optional[str]:
    if part.file_size > limits.max_part_bytes:
        return f"part {part.filename} expands to {part.file_size} bytes"
    ratio = _expansion(part.file_size, part.compress_size)
    if ratio > limits.max_part_ratio:
        return f"part {part.filename} expands {ratio:.1f} times"
    return None


def validate_package(
    zf: zipfile.ZipFile,
    *,
    limits: PackageLimits = DEFAULT_PACKAGE_LIMITS,
    source: str | None = None,
) -> None:
    """
    Reject packages whose parts would flood the working directory.

    Raises:
        ZipBombError: A part or the package as a whole exceeds ``limits``.
    """
    parts: List[zipfile.ZipInfo] = [info for info in zf.infolist() if not info.is_dir()]
    problem = None

    if len(parts) > limits.max_parts:
        problem = f"package has {len(parts)} parts, at most {limits.max_parts} allowed"
    else:
        problem = next(
            filter(None, (_part_problem(part, limits) for part in parts)), None
        )

    if problem is None:
        unpacked = sum(part.file_size for part in parts)
        packed = sum(part.compress_size for part in parts)
        ratio = _expansion(unpacked, packed)
        if unpacked > limits.max_package_bytes:
            problem = f"package expands to {unpacked} bytes"
        elif ratio > limits.max_package_ratio:
            problem = f"package expands {ratio:.1f} times"

    if problem is not None:
        where = f" [{source}]" if source else ""
        raise ZipBombError(f"Spreadsheet package rejected: {problem}{where}")


def extract_package(
    package_path: str | Path,
    target_dir: str | Path,
    *,
    limits: PackageLimits = DEFAULT_PACKAGE_LIMITS,
) -> None:
    """
    Validate the spreadsheet package and extract all of its parts.

    Raises:
        ExtractionError: The file is not a readable ZIP archive.
        ZipBombError: The archive exceeds the configured limits.
    """
    source = str(package_path)
    try:
        zf = zipfile.ZipFile(package_path, "r")
    except (zipfile.BadZipFile, OSError) as exc:
        raise ExtractionError(
            f"Unable to open spreadsheet package {source}: {exc}", cause=exc
        ) from exc

    with zf:
        validate_package(zf, limits=limits, source=source)
        try:
            zf.extractall(target_dir)
        except (zipfile.BadZipFile, OSError, RuntimeError, EOFError) as exc:
            raise ExtractionError(
                f"Unable to extract spreadsheet package {source}: {exc}", cause=exc
            ) from exc

    logger.debug(f"Extracted [{source}] to [{target_dir}]")
