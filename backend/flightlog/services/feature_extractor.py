"""
Flight feature extraction.

Single pass over the raw rows keeping running aggregates and a set of
independent event detectors:
- battery staging: critical then low voltage, each fires once per log
- overcurrent: first sample above the profile's continuous limit
- high Z vibration: rising edge above 60 m/s^2, re-armed when it drops back
- motor saturation: PWM above 18500 for more than 1 s without dropping below
- flight mode, arm state and failsafe code transitions
- error bitmask: one event per flipped bit, plus "System OK" on full recovery

The result is a FlightSummary meant as context for an analysis agent.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence

from flightlog.models.raw import Row
from flightlog.models.summary import (
    AttitudeSummary,
    BatteryProfile,
    BatterySummary,
    EventType,
    EventValue,
    FlightEvent,
    FlightPhases,
    FlightSummary,
    GpsStats,
    MotorStats,
    VibrationSummary,
)
from flightlog.services import channels
from flightlog.services.battery import auto_detect_battery_profile
from flightlog.services.codes import describe_error_bit, describe_failsafe, describe_flight_mode
from flightlog.services.header_resolver import Numeric, get_value
from flightlog.services.time_base import TIME_KEYS, TimeBase, detect_time_base
from flightlog.utils.coordinates import max_distance_from_origin, normalize_fixed_point


logger = logging.getLogger(__name__)


HIGH_VIBRATION_THRESHOLD = 60.0  # m/s^2
SATURATION_THRESHOLD = 18500     # motor PWM
SATURATION_EVENT_S = 1.0
DURATION_DECIMALS = 9
MIN_BATTERY_VOLTAGE = 5.0        # below this the ESC is not reporting a real pack voltage
RADIANS_ATTITUDE_LIMIT = 7.0     # |roll|, |pitch| below this are taken as radians
RAD_TO_DEG = 57.3
ERROR_MASK_BITS = 32
ERROR_MASK = (1 << ERROR_MASK_BITS) - 1


@dataclass
class _MotorState:
    index: int
    max_value: Optional[float] = None
    total: float = 0.0
    count: int = 0
    saturated_duration: float = 0.0  # cumulative, for stats
    run_duration: float = 0.0        # current uninterrupted run above threshold
    is_saturated: bool = False

    def to_stats(self) -> MotorStats:
        return MotorStats(
            id=self.index + 1,
            max_value=self.max_value,
            avg_value=self.total / self.count if self.count else 0.0,
            saturated_duration=self.saturated_duration,
        )


@dataclass
class _DetectorState:
    """Mutable state threaded through one summary pass."""

    events: list[FlightEvent] = field(default_factory=list)
    error_codes: dict[str, None] = field(default_factory=dict)  # insertion-ordered set

    last_time: Optional[float] = None

    # Extrema and running sums
    max_altitude: Optional[float] = None
    min_voltage: Optional[float] = None
    max_current: Optional[float] = None
    current_sum: float = 0.0
    current_count: int = 0
    max_vibration: dict[str, Optional[float]] = field(
        default_factory=lambda: {"x": None, "y": None, "z": None}
    )
    vibration_z_sum: float = 0.0
    vibration_z_count: int = 0
    max_roll: Optional[float] = None
    max_pitch: Optional[float] = None
    motors: list[_MotorState] = field(default_factory=lambda: [_MotorState(i) for i in range(len(channels.MOTORS))])
    min_satellites: Optional[float] = None
    satellites_sum: float = 0.0
    satellites_count: int = 0
    max_hdop: Optional[float] = None
    hdop_sum: float = 0.0
    hdop_count: int = 0
    gps_lat: list[float] = field(default_factory=list)
    gps_lng: list[float] = field(default_factory=list)

    # Battery detection
    profile: Optional[BatteryProfile] = None
    profile_voltage: Optional[float] = None
    low_voltage_triggered: bool = False
    critical_voltage_triggered: bool = False
    overcurrent_triggered: bool = False

    # Edge detectors
    high_vibration_active: bool = False
    was_armed: bool = False
    last_error_mask: int = 0
    last_failsafe: Numeric = 0
    last_flight_mode: Optional[Numeric] = None

    def emit(self, timestamp: float, event_type: EventType, description: str, value: Optional[EventValue] = None):
        self.events.append(FlightEvent(timestamp, event_type, description, value))


def generate_flight_summary(rows: Sequence[Optional[Row]]) -> FlightSummary:
    """
    Build the flight summary for a full row collection.

    Raises:
        ValueError: if rows is empty
    """
    if not rows:
        raise ValueError("No data provided for analysis")

    time_base = detect_time_base(rows)
    if time_base is None:
        logger.warning(f"No time column found (looked for: {', '.join(TIME_KEYS)}); event timestamps will be 0")

    state = _DetectorState()

    start_voltage = _first_voltage(rows)
    if start_voltage is not None and start_voltage > 0:
        _configure_battery(state, start_voltage)

    for row in rows:
        t = _row_timestamp(time_base, row, state.last_time)
        dt = 0.0 if state.last_time is None else max(0.0, t - state.last_time)
        state.last_time = t

        altitude = get_value(row, channels.ALTITUDE)
        if altitude is not None:
            state.max_altitude = _max(state.max_altitude, altitude)

        _update_battery(state, row, t)
        _update_attitude(state, row)
        _update_vibration(state, row, t)
        _update_motors(state, row, t, dt)
        _update_gps(state, row)
        _detect_mode_change(state, row, t)
        _detect_arming(state, row, t)
        _detect_error_bits(state, row, t)
        _detect_failsafe(state, row, t)

    summary = _build_summary(state, rows, time_base, start_voltage)
    logger.debug(
        f"Flight summary: {len(summary.events)} events, "
        f"{len(summary.error_codes)} distinct errors, duration {summary.duration_seconds:.1f}s"
    )
    return summary


# ============================================================================
# Per-row updates
# ============================================================================

def _row_timestamp(time_base: Optional[TimeBase], row: Optional[Row], previous: Optional[float]) -> float:
    """Seconds since log start; rows without a usable time keep the previous one."""
    fallback = previous if previous is not None else 0.0
    if time_base is None:
        return fallback
    raw = time_base.raw_time(row)
    return time_base.to_seconds(raw) if raw is not None else fallback


def _first_voltage(rows: Sequence[Optional[Row]]) -> Optional[float]:
    for row in rows:
        volt = get_value(row, channels.ESC_VOLTAGE)
        if volt is not None:
            return float(volt)
    return None


def _configure_battery(state: _DetectorState, voltage: float) -> None:
    state.profile = auto_detect_battery_profile(voltage)
    state.profile_voltage = voltage
    logger.info(f"Battery profile detected: {state.profile.cell_count}S from {voltage:.2f}V")


def _update_battery(state: _DetectorState, row: Optional[Row], t: float) -> None:
    volt = get_value(row, channels.ESC_VOLTAGE)
    if volt is not None:
        # Late configuration when the log starts without a voltage reading
        if state.profile is None and volt > MIN_BATTERY_VOLTAGE:
            _configure_battery(state, float(volt))
        if volt > 0:
            state.min_voltage = _min(state.min_voltage, volt)

    curr = get_value(row, channels.ESC_CURRENT)
    if curr is not None:
        state.max_current = _max(state.max_current, curr)
        state.current_sum += curr
        state.current_count += 1

    profile = state.profile
    if profile is None:
        return

    if volt is not None and volt > MIN_BATTERY_VOLTAGE:
        if volt < profile.min_voltage and not state.critical_voltage_triggered:
            state.emit(
                t,
                EventType.BATTERY_WARNING,
                f"Critical Battery Voltage (< {profile.min_voltage:.1f}V, {profile.cell_count}S)",
                volt,
            )
            state.critical_voltage_triggered = True
        elif volt < profile.warning_voltage and not state.low_voltage_triggered:
            state.emit(
                t,
                EventType.BATTERY_WARNING,
                f"Low Battery Voltage (< {profile.warning_voltage:.1f}V - System 0%)",
                volt,
            )
            state.low_voltage_triggered = True

    if curr is not None and curr > profile.max_continuous_current and not state.overcurrent_triggered:
        state.emit(
            t,
            EventType.BATTERY_WARNING,
            f"Battery Overcurrent Detected (> {profile.max_continuous_current:g}A)",
            curr,
        )
        state.overcurrent_triggered = True


def _attitude_degrees(value: Numeric) -> float:
    angle = abs(value)
    return angle * RAD_TO_DEG if angle < RADIANS_ATTITUDE_LIMIT else angle


def _update_attitude(state: _DetectorState, row: Optional[Row]) -> None:
    roll = get_value(row, channels.ROLL)
    if roll is not None:
        state.max_roll = _max(state.max_roll, _attitude_degrees(roll))

    pitch = get_value(row, channels.PITCH)
    if pitch is not None:
        state.max_pitch = _max(state.max_pitch, _attitude_degrees(pitch))


def _update_vibration(state: _DetectorState, row: Optional[Row], t: float) -> None:
    axes = {"x": channels.VIBRATION_X, "y": channels.VIBRATION_Y, "z": channels.VIBRATION_Z}
    for axis, channel in axes.items():
        value = get_value(row, channel)
        if value is not None:
            state.max_vibration[axis] = _max(state.max_vibration[axis], abs(value))

    vz = get_value(row, channels.VIBRATION_Z)
    if vz is None:
        return
    vz = abs(vz)
    state.vibration_z_sum += vz
    state.vibration_z_count += 1

    if vz > HIGH_VIBRATION_THRESHOLD and not state.high_vibration_active:
        state.emit(t, EventType.HIGH_VIBRATION, f"High Z-Axis Vibration Detected ({vz:.1f} m/s²)", vz)
        state.high_vibration_active = True
    elif vz < HIGH_VIBRATION_THRESHOLD and state.high_vibration_active:
        state.high_vibration_active = False


def _update_motors(state: _DetectorState, row: Optional[Row], t: float, dt: float) -> None:
    for motor, channel in zip(state.motors, channels.MOTORS):
        value = get_value(row, channel)
        if value is None:
            continue

        motor.count += 1
        motor.total += value
        motor.max_value = _max(motor.max_value, value)

        if value > SATURATION_THRESHOLD:
            # Rounded so summed sample gaps land exactly on the 1.0s boundary
            motor.saturated_duration = round(motor.saturated_duration + dt, DURATION_DECIMALS)
            motor.run_duration = round(motor.run_duration + dt, DURATION_DECIMALS)
            if not motor.is_saturated and motor.run_duration > SATURATION_EVENT_S:
                state.emit(
                    t,
                    EventType.MOTOR_SATURATION,
                    f"Motor {motor.index + 1} Saturated (> {SATURATION_THRESHOLD})",
                    value,
                )
                motor.is_saturated = True
        else:
            motor.run_duration = 0.0
            motor.is_saturated = False


def _update_gps(state: _DetectorState, row: Optional[Row]) -> None:
    sats = get_value(row, channels.SATELLITES)
    if sats is not None:
        state.min_satellites = _min(state.min_satellites, sats)
        state.satellites_sum += sats
        state.satellites_count += 1

    hdop = get_value(row, channels.HDOP)
    if hdop is not None:
        state.max_hdop = _max(state.max_hdop, hdop)
        state.hdop_sum += hdop
        state.hdop_count += 1

    lat = get_value(row, channels.LATITUDE)
    lng = get_value(row, channels.LONGITUDE)
    if lat and lng:
        lat, lng = normalize_fixed_point(lat, lng)
        state.gps_lat.append(lat)
        state.gps_lng.append(lng)


def _detect_mode_change(state: _DetectorState, row: Optional[Row], t: float) -> None:
    mode = get_value(row, channels.FLIGHT_MODE)
    if mode is None or mode == state.last_flight_mode:
        return
    state.emit(t, EventType.MODE_CHANGE, f"Flight mode changed: {describe_flight_mode(mode)}", _as_code(mode))
    state.last_flight_mode = mode


def _detect_arming(state: _DetectorState, row: Optional[Row], t: float) -> None:
    armed = get_value(row, channels.ARMED)
    if armed is None:
        return
    is_armed = armed > 0
    if is_armed == state.was_armed:
        return
    if is_armed:
        state.emit(t, EventType.ARMING, "Vehicle Armed", _as_code(armed))
    else:
        state.emit(t, EventType.DISARMING, "Vehicle Disarmed", _as_code(armed))
    state.was_armed = is_armed


def _detect_error_bits(state: _DetectorState, row: Optional[Row], t: float) -> None:
    value = get_value(row, channels.ERROR)
    if value is None:
        return
    mask = int(value) & ERROR_MASK
    previous = state.last_error_mask
    if mask == previous:
        return

    diff = mask ^ previous
    for bit in range(ERROR_MASK_BITS):
        if not (diff >> bit) & 1:
            continue
        error_id = bit + 1
        desc = describe_error_bit(bit)
        if (mask >> bit) & 1:
            state.emit(t, EventType.ERROR, f"Error raised: {desc}", error_id)
            state.error_codes.setdefault(f"{error_id}: {desc}", None)
        else:
            state.emit(t, EventType.ERROR, f"Error cleared: {desc}", error_id)

    if mask == 0 and previous != 0:
        state.emit(t, EventType.ERROR, "System recovered (System OK)", 0)

    state.last_error_mask = mask


def _detect_failsafe(state: _DetectorState, row: Optional[Row], t: float) -> None:
    fs = get_value(row, channels.FAILSAFE)
    if fs is None or fs == state.last_failsafe:
        return
    if fs != 0:
        state.emit(t, EventType.FAILSAFE, f"Failsafe triggered: {describe_failsafe(fs)}", _as_code(fs))
    else:
        state.emit(t, EventType.FAILSAFE, "Failsafe cleared (fs_none)", _as_code(fs))
    state.last_failsafe = fs


# ============================================================================
# Post-pass
# ============================================================================

def _build_summary(
    state: _DetectorState,
    rows: Sequence[Optional[Row]],
    time_base: Optional[TimeBase],
    start_voltage: Optional[float],
) -> FlightSummary:
    events = list(state.events)
    phases = _flight_phases(events)

    if state.profile is not None:
        events.insert(0, _battery_detected_event(state.profile, state.profile_voltage))

    end_voltage = get_value(rows[-1], channels.ESC_VOLTAGE)

    return FlightSummary(
        duration_seconds=time_base.duration_seconds if time_base else 0.0,
        max_altitude=state.max_altitude,
        max_distance=max_distance_from_origin(state.gps_lat, state.gps_lng),
        battery=BatterySummary(
            start_voltage=start_voltage,
            end_voltage=float(end_voltage) if end_voltage is not None else None,
            min_voltage=state.min_voltage,
            max_current=state.max_current,
            avg_current=state.current_sum / state.current_count if state.current_count else 0.0,
        ),
        vibration=VibrationSummary(
            max_x=state.max_vibration["x"],
            max_y=state.max_vibration["y"],
            max_z=state.max_vibration["z"],
            avg_z=state.vibration_z_sum / state.vibration_z_count if state.vibration_z_count else 0.0,
        ),
        attitude=AttitudeSummary(max_roll=state.max_roll, max_pitch=state.max_pitch),
        motor_stats=[motor.to_stats() for motor in state.motors],
        gps_stats=GpsStats(
            min_satellites=state.min_satellites,
            max_hdop=state.max_hdop,
            avg_satellites=state.satellites_sum / state.satellites_count if state.satellites_count else 0.0,
            avg_hdop=state.hdop_sum / state.hdop_count if state.hdop_count else 0.0,
        ),
        events=events,
        error_codes=list(state.error_codes),
        flight_phases=phases,
        battery_profile=state.profile,
    )


def _flight_phases(events: list[FlightEvent]) -> FlightPhases:
    """
    Takeoff is the first arming, landing the last disarming. Crash is the last
    non-zero error/failsafe event after landing (any, if there is no landing);
    this misfires on logs that never disarm.
    """
    takeoff = next((e for e in events if e.type == EventType.ARMING), None)
    landing = next((e for e in reversed(events) if e.type == EventType.DISARMING), None)
    crash = next(
        (
            e for e in reversed(events)
            if e.type in (EventType.ERROR, EventType.FAILSAFE) and e.value != 0
        ),
        None,
    )

    crash_time = None
    if crash is not None and (landing is None or crash.timestamp > landing.timestamp):
        crash_time = crash.timestamp

    return FlightPhases(
        takeoff_time=takeoff.timestamp if takeoff else None,
        landing_time=landing.timestamp if landing else None,
        crash_time=crash_time,
    )


def _battery_detected_event(profile: BatteryProfile, voltage: Optional[float]) -> FlightEvent:
    start = voltage if voltage is not None else 0.0
    return FlightEvent(
        timestamp=0.0,
        type=EventType.BATTERY_WARNING,
        description=(
            f"Battery Detected: {profile.cell_count}S (Start: {start:.1f}V, "
            f"Warn: {profile.warning_voltage:g}V, Crit: {profile.min_voltage:g}V)"
        ),
        value=profile.cell_count,
    )


def _as_code(value: Numeric) -> Numeric:
    """Integral floats as int, so codes render as 5 rather than 5.0."""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def _max(current: Optional[float], value: float) -> float:
    return value if current is None or value > current else current


def _min(current: Optional[float], value: float) -> float:
    return value if current is None or value < current else current
