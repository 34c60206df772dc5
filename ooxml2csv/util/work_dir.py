import contextlib
import logging
import shutil
import tempfile
from pathlib import Path
from typing import Generator

from ooxml2csv.exceptions import DirectoryCreateError

logger = logging.getLogger(__name__)

WORK_DIR_PREFIX = "ooxml2csv-"


@contextlib.contextmanager
def work_dir(root: str | Path | None = None) -> Generator[Path, None, None]:
    """
    Create a private working directory and remove it on every exit path.

    Each call gets a fresh directory, so conversions running side by side in
    one process never share extracted parts.
    """
    try:
        path = Path(tempfile.mkdtemp(prefix=WORK_DIR_PREFIX, dir=root))
    except OSError as exc:
        raise DirectoryCreateError(
            f"Working directory was not created: {exc}", cause=exc
        ) from exc

    logger.debug(f"Created working directory [{path}]")
    try:
        yield path
    finally:
        shutil.rmtree(path, ignore_errors=True)
        logger.debug(f"Removed working directory [{path}]")
