"""
Chart series and flight path builder.

Single pass over the raw rows producing one ordered point series per
canonical channel, the derived magnetic field magnitude and the GPS flight
path. Also derives the display-level flight info (takeoff time, duration).
"""

import logging
import os
from datetime import datetime, timezone
from typing import Optional, Sequence
from zoneinfo import ZoneInfo

from flightlog.models.raw import Row
from flightlog.models.telemetry import DataPoint, FlightInfo, FlightPathPoint, LogData
from flightlog.services import channels
from flightlog.services.channels import BaselineTransform, CHANNEL_METADATA, CHART_CHANNELS
from flightlog.services.header_resolver import find_value, get_value
from flightlog.services.time_base import (
    EPOCH_MS_THRESHOLD,
    TIME_KEYS,
    UNIX_TIME_KEYS,
    TimeBase,
    detect_time_base,
)
from flightlog.utils.coordinates import normalize_fixed_point


logger = logging.getLogger(__name__)


DISPLAY_TIMEZONE = os.getenv("FLIGHTLOG_TIMEZONE", "Asia/Taipei")

# Logs often stamp 5 Hz samples with a 1 Hz clock. Rows sharing a raw time
# value are spread 0.2 s apart. This assumes 5 Hz and is not derived from the
# actual sample rate; downstream time sync relies on the exact spacing.
SUB_SAMPLE_SPACING_S = 0.2

NO_ABSOLUTE_TIME = "N/A (no absolute timestamp)"
NOT_AVAILABLE = "N/A"


def process_metadata(rows: Sequence[Optional[Row]]) -> FlightInfo:
    """
    Derive takeoff time and total duration of a log.

    The takeoff time is the first positive unix timestamp, rendered in
    DISPLAY_TIMEZONE. Logs without one are reported as relative.
    """
    time_base = detect_time_base(rows)
    total_duration = time_base.duration_label if time_base else NOT_AVAILABLE

    takeoff = _first_unix_timestamp(rows)
    if takeoff is not None:
        takeoff_ms = takeoff * 1000 if takeoff < EPOCH_MS_THRESHOLD else takeoff
        return FlightInfo(
            takeoff_time=format_timestamp(takeoff_ms),
            total_duration=total_duration,
            takeoff_timestamp_ms=takeoff_ms,
            is_relative_time=False,
        )

    if time_base is None:
        return FlightInfo(
            takeoff_time=NOT_AVAILABLE,
            total_duration=NOT_AVAILABLE,
            takeoff_timestamp_ms=0.0,
            is_relative_time=True,
        )

    return FlightInfo(
        takeoff_time=NO_ABSOLUTE_TIME,
        total_duration=total_duration,
        takeoff_timestamp_ms=0.0,
        is_relative_time=True,
    )


def format_timestamp(timestamp_ms: float, tz_name: str = DISPLAY_TIMEZONE) -> str:
    """Render epoch milliseconds in `tz_name`, or N/A when out of datetime range."""
    try:
        moment = datetime.fromtimestamp(timestamp_ms / 1000.0, tz=timezone.utc).astimezone(ZoneInfo(tz_name))
    except (OverflowError, OSError, ValueError) as e:
        logger.warning(f"Cannot render timestamp {timestamp_ms} ms: {e}")
        return NOT_AVAILABLE
    return moment.strftime("%Y-%m-%d %H:%M:%S")


def _first_unix_timestamp(rows: Sequence[Optional[Row]]) -> Optional[float]:
    for row in rows:
        ts = find_value(row, UNIX_TIME_KEYS)
        if ts is not None and ts > 0:
            return float(ts)
    return None


def initial_altitude(rows: Sequence[Optional[Row]]) -> Optional[float]:
    """First resolvable altitude, the baseline for relative altitude."""
    for row in rows:
        alt = get_value(row, channels.ALTITUDE)
        if alt is not None:
            return float(alt)
    return None


def process_raw_data(rows: Sequence[Optional[Row]]) -> tuple[LogData, list[FlightPathPoint]]:
    """
    Build chart series and flight path.

    Returns:
        (log_data, flight_path); both empty when the log has no time column
    """
    time_base = detect_time_base(rows)
    if time_base is None:
        logger.error(f"No suitable time column found for chart processing. Looked for: {', '.join(TIME_KEYS)}")
        return {}, []

    baselines = {"initial_altitude": initial_altitude(rows)}

    log_data: LogData = {key: [] for key in CHART_CHANNELS}
    log_data[channels.MAGNET_TOTAL] = []
    flight_path: list[FlightPathPoint] = []

    last_raw_time: Optional[float] = None
    sub_sample = 0

    for row in rows:
        raw_time = time_base.raw_time(row)
        if raw_time is None:
            continue

        if raw_time != last_raw_time:
            sub_sample = 0
            last_raw_time = raw_time

        t = time_base.to_seconds(raw_time) + sub_sample * SUB_SAMPLE_SPACING_S
        sub_sample += 1

        values = _append_channels(row, t, log_data, baselines)

        magnet = [values.get(key) for key in (channels.MAGNET_X, channels.MAGNET_Y, channels.MAGNET_Z)]
        if all(v is not None for v in magnet):
            total = sum(v * v for v in magnet)
            log_data[channels.MAGNET_TOTAL].append(DataPoint(x=t, y=total))

        point = _path_point(row, t, time_base)
        if point is not None:
            flight_path.append(point)

    return log_data, flight_path


def _append_channels(row: Row, t: float, log_data: LogData, baselines: dict) -> dict[str, float]:
    """Append transformed values of a row; returns them by channel."""
    values: dict[str, float] = {}
    for key in CHART_CHANNELS:
        value = get_value(row, key)
        if value is None:
            continue

        metadata = CHANNEL_METADATA.get(key)
        transform = metadata.transform if metadata else None
        if isinstance(transform, BaselineTransform):
            value = transform.apply(value, baselines.get(transform.requires))
        elif transform is not None:
            value = transform.apply(value)

        log_data[key].append(DataPoint(x=t, y=value))
        values[key] = value
    return values


def _path_point(row: Row, t: float, time_base: TimeBase) -> Optional[FlightPathPoint]:
    lat = get_value(row, channels.LATITUDE)
    lng = get_value(row, channels.LONGITUDE)
    alt = get_value(row, channels.ALTITUDE)  # absolute, for map rendering

    if lat is None or lng is None or alt is None or lat == 0 or lng == 0:
        return None

    lat, lng = normalize_fixed_point(lat, lng)

    # Same millisecond convention as the chart time axis
    time_ms = time_base.start_ms + t * 1000 if time_base.is_absolute else t * 1000
    return FlightPathPoint(lat=lat, lng=lng, alt=alt, time=time_ms)
