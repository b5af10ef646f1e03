"""
Blackbox CSV loader.

Reads flight controller exports into RawLog. Header names are kept as
written (minus surrounding whitespace) since alias resolution happens per
row; blank cells become None.
"""

import logging
from pathlib import Path

import pandas as pd

from flightlog.models.raw import RawLog
from flightlog.models.telemetry import ProcessedLog
from flightlog.services.analyzer import analyze_log


logger = logging.getLogger(__name__)


SUPPORTED_SUFFIXES = (".csv",)


def load_rows(filepath: Path) -> RawLog:
    """
    Read a blackbox CSV into a RawLog.

    Raises:
        ValueError: if the file is not a CSV or contains no data rows
    """
    filepath = Path(filepath)
    if filepath.suffix.lower() not in SUPPORTED_SUFFIXES:
        raise ValueError(f"Unsupported log file: {filepath.name}")

    try:
        df = pd.read_csv(filepath, encoding="utf-8-sig", skipinitialspace=True)
    except pd.errors.EmptyDataError as e:
        raise ValueError(f"Log file is empty: {filepath.name}") from e

    df.columns = df.columns.str.strip()
    df = df.dropna(how="all")
    if df.empty:
        raise ValueError(f"Log file has no data rows: {filepath.name}")

    # object dtype first so NaN can be replaced by None in numeric columns
    df = df.astype(object).where(pd.notna(df), None)
    rows = df.to_dict(orient="records")

    logger.debug(f"Loaded {len(rows)} rows x {len(df.columns)} columns from {filepath.name}")
    return RawLog(
        name=filepath.stem,
        rows=rows,
        source_file=filepath,
        columns=df.columns.tolist(),
    )


def parse_log_file(filepath: Path) -> ProcessedLog:
    """Load a blackbox CSV and run the full analysis."""
    return analyze_log(load_rows(filepath))
