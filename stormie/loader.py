"""
Dataset loader (compressed CSV -> StormEvent list)
==================================================

This module reads the NOAA storm data export (`StormData.csv.bz2`) and converts
each row into a `StormEvent` object.

Key ideas:
- Columns are found by header name via a `ColumnMap`, never by position.
- The decompressor is picked from the file extension (.bz2, .gz, .xz; anything
  else is read as plain text).
- Every data row must have exactly as many fields as the header.
- Cells are read as text and converted here with pandas, so malformed values
  surface as a `LoadError` naming the file, row and column instead of being
  silently coerced.
- Empty numeric cells become None (the aggregator counts them as zero).
"""

from __future__ import annotations
from pathlib import Path
from typing import List, Optional
import bz2
import csv
import gzip
import lzma
import os

import numpy as np
import pandas as pd
import structlog

from .errors import LoadError
from .models import ColumnMap, StormEvent

logger = structlog.get_logger(__name__)

_OPENERS = {".bz2": bz2.open, ".gz": gzip.open, ".xz": lzma.open}

# Some REMARKS cells in the NOAA export are very long.
csv.field_size_limit(2 ** 31 - 1)


def _to_str(x) -> str:
    if x is None or pd.isna(x):
        return ""
    return str(x).strip()


def _open_text(path: str, encoding: str):
    opener = _OPENERS.get(Path(path).suffix.lower(), open)
    return opener(path, "rt", encoding=encoding, newline="")


def read_storm_frame(path: str, columns: ColumnMap, encoding: str = "utf-8") -> pd.DataFrame:
    """Read the configured columns of the file into a DataFrame of strings.

    Raises:
        LoadError: missing/unreadable file, empty file, missing column, or a
            data row whose field count differs from the header.
    """
    if not os.path.exists(path):
        raise LoadError(path, "file not found")

    wanted = list(columns.as_dict().values())
    data: List[List[str]] = []
    try:
        with _open_text(path, encoding) as f:
            reader = csv.reader(f)
            header = next(reader, None)
            if not header:
                raise LoadError(path, "file is empty")
            header = [h.strip() for h in header]
            missing = [c for c in wanted if c not in header]
            if missing:
                raise LoadError(path, f"missing column(s) {missing}. Available={header}")
            positions = [header.index(c) for c in wanted]
            for row in reader:
                if not row:
                    continue
                if len(row) != len(header):
                    raise LoadError(
                        path,
                        f"malformed row at line {reader.line_num}: "
                        f"expected {len(header)} fields, saw {len(row)}",
                    )
                data.append([row[p] for p in positions])
    except (OSError, EOFError, lzma.LZMAError, UnicodeDecodeError, csv.Error) as e:
        raise LoadError(path, f"unreadable file: {e}") from e

    return pd.DataFrame(data, columns=wanted, dtype=str)


def _numeric_column(df: pd.DataFrame, col: str, path: str, *, integer: bool) -> List[Optional[float]]:
    """Convert a text column to numbers, raising LoadError on bad cells."""
    if df.empty:
        return []
    text = df[col].map(_to_str)
    values = pd.to_numeric(text.where(text != ""), errors="coerce")
    bad = (text != "") & values.isna()
    if bad.any():
        row = int(bad.idxmax())
        raise LoadError(path, f"non-numeric value {text[row]!r} in column {col!r} (data row {row + 1})")
    infinite = values.notna() & ~np.isfinite(values.astype(float))
    if infinite.any():
        row = int(infinite.idxmax())
        raise LoadError(path, f"non-finite value {text[row]!r} in column {col!r} (data row {row + 1})")
    negative = values < 0
    if negative.any():
        row = int(negative.idxmax())
        raise LoadError(path, f"negative value {text[row]!r} in column {col!r} (data row {row + 1})")
    if integer:
        fractional = values.notna() & (values != values.round())
        if fractional.any():
            row = int(fractional.idxmax())
            raise LoadError(path, f"non-integer count {text[row]!r} in column {col!r} (data row {row + 1})")
        return [None if pd.isna(v) else int(v) for v in values]
    return [None if pd.isna(v) else float(v) for v in values]


def load_storm_csv(path, columns: Optional[ColumnMap] = None, encoding: str = "utf-8") -> List[StormEvent]:
    """Load storm events from a (compressed) CSV file with a header row.

    Raises:
        LoadError: missing/unreadable file, missing column, short or long
            data row, non-numeric or negative count/mantissa.
    """
    path = str(Path(path))
    columns = columns or ColumnMap()
    df = read_storm_frame(path, columns, encoding=encoding)

    fatalities = _numeric_column(df, columns.fatalities, path, integer=True)
    injuries = _numeric_column(df, columns.injuries, path, integer=True)
    prop = _numeric_column(df, columns.prop_mantissa, path, integer=False)
    crop = _numeric_column(df, columns.crop_mantissa, path, integer=False)

    events: List[StormEvent] = []
    rows = zip(
        df[columns.category], fatalities, injuries,
        prop, df[columns.prop_exp], crop, df[columns.crop_exp],
    )
    for i, (cat, fat, inj, pm, pe, cm, ce) in enumerate(rows):
        events.append(StormEvent(
            event_id=i,
            raw_category=str(cat),
            fatalities=fat,
            injuries=inj,
            prop_mantissa=pm,
            prop_exp=_to_str(pe),
            crop_mantissa=cm,
            crop_exp=_to_str(ce),
        ))

    logger.info("Loaded storm events", path=path, rows=len(events), columns=list(columns.as_dict().values()))
    return events
