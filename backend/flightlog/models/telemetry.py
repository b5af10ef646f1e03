"""
Normalized flight log data model.

Chart series, flight path and flight info derived from raw blackbox rows:
- chart x values are seconds from the start of the log's time base
- flight path times are milliseconds (absolute epoch or relative)
- missing samples are omitted, never zero-filled
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from flightlog.models.summary import FlightSummary


@dataclass
class DataPoint:
    """Single chart sample."""

    x: float  # seconds since log start
    y: float


# Canonical channel name -> ordered points
LogData = dict[str, list[DataPoint]]


@dataclass
class FlightPathPoint:
    """Geospatial sample for map rendering."""

    lat: float
    lng: float
    alt: float   # absolute altitude as logged (not baseline-relative)
    time: float  # milliseconds, same convention as the chart time axis


@dataclass
class FlightInfo:
    """Display-level timing information for a log."""

    takeoff_time: str
    total_duration: str
    takeoff_timestamp_ms: float = 0.0
    is_relative_time: bool = True


@dataclass
class ProcessedLog:
    """
    Everything derived from one row collection.

    Built by the log analysis entry point and cached by the repository.
    """

    id: str
    name: str
    row_count: int
    log_data: LogData
    flight_path: list[FlightPathPoint]
    flight_info: FlightInfo
    summary: FlightSummary
    source_file: Optional[Path] = None
    columns: list[str] = field(default_factory=list)

    def series(self, channel: str) -> list[DataPoint]:
        return self.log_data.get(channel, [])

    @property
    def populated_channels(self) -> list[str]:
        """Channels that produced at least one point."""
        return [key for key, points in self.log_data.items() if points]


@dataclass
class LogListing:
    """Lightweight description of a log for listing."""

    id: str
    name: str
    source_file: Optional[str]
    row_count: int
    duration_s: float
    total_duration: str
    is_relative_time: bool
    event_count: int
    has_gps: bool

    @classmethod
    def from_log(cls, log: ProcessedLog) -> "LogListing":
        return cls(
            id=log.id,
            name=log.name,
            source_file=str(log.source_file) if log.source_file else None,
            row_count=log.row_count,
            duration_s=log.summary.duration_seconds,
            total_duration=log.flight_info.total_duration,
            is_relative_time=log.flight_info.is_relative_time,
            event_count=len(log.summary.events),
            has_gps=len(log.flight_path) > 0,
        )
