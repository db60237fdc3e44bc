"""Extract GTFS tables from the feed's zip archive into the data directory."""

import logging
import os
import shutil
import tempfile
import zipfile
from typing import Iterable, Optional

from gtfs2geojson.errors import ArchiveError

logger = logging.getLogger("gtfs2geojson.archive")


def table_path(data_dir: str, name: str) -> str:
    return os.path.join(data_dir, name)


def has_tables(data_dir: str, names: Iterable[str]) -> bool:
    return all(os.path.exists(table_path(data_dir, name)) for name in names)


def _find_member(zf: zipfile.ZipFile, name: str) -> Optional[zipfile.ZipInfo]:
    """Exact match first, then a file of that name inside a folder of the zip."""
    members = [info for info in zf.infolist() if not info.is_dir()]
    for info in members:
        if info.filename == name:
            return info
    for info in members:
        if info.filename.endswith("/" + name):
            return info
    return None


def extract_tables(zip_path: str, data_dir: str, names: Iterable[str]) -> list[str]:
    """Write the named tables from the archive into data_dir.

    Each table is written to a temporary file and moved into place, so a
    reader never sees a half-written table.

    Returns the names of the extracted tables.
    Raises ArchiveError if the archive is missing, not a zip, or lacks a table.
    """
    if not os.path.exists(zip_path):
        raise ArchiveError(f"GTFS archive not found: {zip_path}")

    os.makedirs(data_dir, exist_ok=True)
    extracted = []
    try:
        with zipfile.ZipFile(zip_path) as zf:
            for name in names:
                info = _find_member(zf, name)
                if info is None:
                    raise ArchiveError(f"{name} not found in {zip_path}")

                fd, tmp_path = tempfile.mkstemp(dir=data_dir, prefix=f".{name}.")
                try:
                    with zf.open(info) as src, os.fdopen(fd, "wb") as dst:
                        shutil.copyfileobj(src, dst)
                    os.replace(tmp_path, table_path(data_dir, name))
                except BaseException:
                    if os.path.exists(tmp_path):
                        os.remove(tmp_path)
                    raise

                extracted.append(name)
                logger.info(f"Extracted {info.filename} ({info.file_size} bytes) to {data_dir}")
    except zipfile.BadZipFile as e:
        raise ArchiveError(f"Invalid GTFS archive {zip_path}: {e}") from e

    return extracted
