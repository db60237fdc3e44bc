"""Read GTFS tables into header-keyed string records.

Tables are read with pandas with every cell kept as the raw string: no dtype
inference and no NA conversion, so an empty cell stays ``""`` and column
presence is exactly the header of the file. Numeric coercion is left to the
callers through the lenient ``parse_float`` / ``parse_int`` helpers.
"""

import io
import logging
import math
import os
import re
from typing import IO, Iterator, Optional, Union

import pandas as pd

from gtfs2geojson import config

logger = logging.getLogger("gtfs2geojson.parser")

# Table content as text or bytes, a path to a file, or a readable stream
TableSource = Union[str, bytes, os.PathLike, IO]

_FLOAT_PREFIX_RE = re.compile(r"\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_INT_PREFIX_RE = re.compile(r"\s*[+-]?\d+")


def parse_float(value: Optional[str]) -> float:
    """Parse the leading decimal number of a cell, NaN when there is none.

    Examples:
        "41.38" -> 41.38
        " 2.5km" -> 2.5
        "" -> nan
    """
    match = _FLOAT_PREFIX_RE.match(value or "")
    if match is None:
        return math.nan
    return float(match.group(0))


def parse_int(value: Optional[str]) -> Optional[int]:
    """Parse the leading integer of a cell, None when there is none."""
    match = _INT_PREFIX_RE.match(value or "")
    if match is None:
        return None
    return int(match.group(0))


def _as_buffer(source: TableSource):
    if isinstance(source, bytes):
        source = source.decode("utf-8-sig")
    if isinstance(source, str):
        return io.StringIO(source.lstrip("\ufeff"))
    return source


def _read_csv(source: TableSource, **kwargs):
    return pd.read_csv(
        _as_buffer(source),
        dtype=str,
        keep_default_na=False,
        na_filter=False,
        index_col=False,
        encoding="utf-8-sig",
        on_bad_lines="warn",
        **kwargs,
    )


def _normalize(df: pd.DataFrame) -> pd.DataFrame:
    # Text streams keep the BOM on the first header; short rows read as NaN
    df.columns = [str(c).lstrip("\ufeff") for c in df.columns]
    return df.fillna("")


def read_table(source: TableSource) -> pd.DataFrame:
    """Read a whole GTFS table. Empty content gives an empty DataFrame."""
    try:
        df = _read_csv(source)
    except pd.errors.EmptyDataError:
        logger.warning("GTFS table has no header, treating as empty")
        return pd.DataFrame()
    df = _normalize(df)
    logger.info(f"Read GTFS table: {len(df)} rows, columns={list(df.columns)}")
    return df


def records(source: TableSource) -> list[dict]:
    """Read a whole GTFS table as a list of records, in file order."""
    return read_table(source).to_dict("records")


def iter_records(source: TableSource, chunksize: Optional[int] = None) -> Iterator[dict]:
    """Stream a GTFS table one record at a time.

    Only one chunk of rows is held in memory at once, so this is the reader to
    use for large files that are consumed in order.
    """
    try:
        reader = _read_csv(source, chunksize=chunksize or config.CSV_CHUNK_SIZE)
    except pd.errors.EmptyDataError:
        logger.warning("GTFS table has no header, treating as empty")
        return

    with reader:
        for chunk in reader:
            yield from _normalize(chunk).to_dict("records")


def column(df: pd.DataFrame, name: str) -> pd.Series:
    """Return a column of a table, or a column of empty cells if it is absent."""
    if name in df.columns:
        return df[name]
    return pd.Series("", index=df.index, dtype=object)
