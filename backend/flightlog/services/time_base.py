"""
Time base detection for flight logs.

Picks the time column of a log, decides whether it is absolute (epoch) or
relative, and infers its unit:
- absolute: seconds if the first sample is below 1e12, else milliseconds
- relative: microseconds if the first sample is above 1e6, else milliseconds
Absolute values <= 0 are placeholders written before GPS lock and are ignored.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional, Sequence

import numpy as np

from flightlog.models.raw import Row
from flightlog.services.header_resolver import find_key, first_row, parse_numeric


logger = logging.getLogger(__name__)


# Candidate time columns, highest priority first
TIME_KEYS = [
    "unix_time",
    "blackbox.sensor_values.gps_data.unix_time",
    "time",
    "blackbox.steady_time",
    "blackbox.wall_time",
]
ABSOLUTE_TIME_MARKER = "unix_time"
UNIX_TIME_KEYS = [key for key in TIME_KEYS if ABSOLUTE_TIME_MARKER in key]

EPOCH_MS_THRESHOLD = 1.0e12   # epoch seconds below, epoch milliseconds above
RELATIVE_US_THRESHOLD = 1.0e6  # relative milliseconds below, microseconds above


@dataclass(frozen=True)
class TimeBase:
    """Detected time axis of a log."""

    key: str
    is_absolute: bool
    start: float  # raw minimum of valid samples
    end: float    # raw maximum of valid samples

    @property
    def ms_per_unit(self) -> float:
        if self.is_absolute:
            return 1000.0 if self.start < EPOCH_MS_THRESHOLD else 1.0
        return 0.001 if self.start > RELATIVE_US_THRESHOLD else 1.0

    @property
    def start_ms(self) -> float:
        """Absolute start in epoch ms, or 0 for relative logs."""
        return self.start * self.ms_per_unit if self.is_absolute else 0.0

    @property
    def duration_ms(self) -> float:
        return (self.end - self.start) * self.ms_per_unit

    @property
    def duration_seconds(self) -> float:
        return self.duration_ms / 1000.0

    @property
    def duration_label(self) -> str:
        return format_duration(self.duration_ms)

    def is_valid(self, raw: Optional[float]) -> bool:
        if raw is None:
            return False
        return raw > 0 if self.is_absolute else True

    def raw_time(self, row: Optional[Row]) -> Optional[float]:
        """Parsed time value of a row, or None if missing/unusable."""
        if not row:
            return None
        raw = parse_numeric(row.get(self.key))
        return raw if self.is_valid(raw) else None

    def to_seconds(self, raw: float) -> float:
        """Seconds since the first valid sample."""
        return (raw - self.start) * self.ms_per_unit / 1000.0


def format_duration(duration_ms: float) -> str:
    """Format as '<minutes> min <seconds> sec', or 'N/A' for non-positive spans."""
    if not duration_ms > 0:
        return "N/A"
    total_seconds = int(duration_ms // 1000)
    minutes, seconds = divmod(total_seconds, 60)
    return f"{minutes} min {seconds} sec"


def is_absolute_key(key: str) -> bool:
    return ABSOLUTE_TIME_MARKER in key


def detect_time_base(rows: Sequence[Optional[Row]], keys: Sequence[str] = TIME_KEYS) -> Optional[TimeBase]:
    """
    Detect the time base of a row collection.

    The column is taken from the first non-empty row. Returns None if no
    candidate column exists or it holds no valid sample.
    """
    key = find_key(first_row(rows), keys)
    if key is None:
        logger.debug(f"No time column found; looked for: {', '.join(keys)}")
        return None

    absolute = is_absolute_key(key)
    values = _scan_column(rows, key)
    if absolute:
        values = values[values > 0]
    if values.size == 0:
        logger.debug(f"Time column '{key}' has no valid samples")
        return None

    return TimeBase(
        key=key,
        is_absolute=absolute,
        start=float(np.min(values)),
        end=float(np.max(values)),
    )


def _scan_column(rows: Sequence[Optional[Row]], key: str) -> np.ndarray:
    def parsed(row: Optional[Row]) -> float:
        value: Any = parse_numeric(row.get(key)) if row else None
        return np.nan if value is None else float(value)

    values = np.fromiter((parsed(row) for row in rows), dtype=np.float64, count=len(rows))
    return values[~np.isnan(values)]
