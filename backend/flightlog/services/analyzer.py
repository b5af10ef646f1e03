"""
Log analysis entry point.

Turns a RawLog into a ProcessedLog: chart series, flight path, flight info
and the flight summary, all derived from the same rows.
"""

import hashlib
import logging
from pathlib import Path
from typing import Optional, Sequence

from flightlog.models.raw import RawLog, Row
from flightlog.models.telemetry import ProcessedLog
from flightlog.services.feature_extractor import generate_flight_summary
from flightlog.services.log_processor import process_metadata, process_raw_data


logger = logging.getLogger(__name__)


def analyze_log(raw: RawLog, log_id: Optional[str] = None) -> ProcessedLog:
    """
    Run the full analysis over a raw log.

    Raises:
        ValueError: if the log has no rows
    """
    if not raw.rows:
        raise ValueError(f"Log {raw.name} has no rows")

    log_data, flight_path = process_raw_data(raw.rows)
    flight_info = process_metadata(raw.rows)
    summary = generate_flight_summary(raw.rows)

    processed = ProcessedLog(
        id=log_id or _generate_id(raw),
        name=raw.name,
        row_count=raw.row_count,
        log_data=log_data,
        flight_path=flight_path,
        flight_info=flight_info,
        summary=summary,
        source_file=raw.source_file,
        columns=list(raw.columns),
    )
    logger.info(
        f"Analyzed {raw.name}: {raw.row_count} rows, "
        f"{len(processed.populated_channels)} channels, {len(flight_path)} path points, "
        f"{len(summary.events)} events"
    )
    return processed


def analyze_rows(rows: Sequence[Optional[Row]], name: str = "uploaded") -> ProcessedLog:
    """Analyze rows that did not come from a file (e.g. an API upload)."""
    columns = list(next((row for row in rows if row), {}).keys())
    return analyze_log(RawLog(name=name, rows=list(rows), columns=columns))


def _generate_id(raw: RawLog) -> str:
    source = Path(raw.source_file) if raw.source_file is not None else None
    if source is not None and source.exists():
        stat = source.stat()
        id_string = f"{source.name}_{stat.st_size}_{stat.st_mtime}"
    else:
        id_string = f"{raw.name}_{raw.row_count}_{','.join(raw.columns)}"
    return hashlib.sha256(id_string.encode()).hexdigest()[:16]
