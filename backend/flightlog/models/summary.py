"""
Flight summary data model (v1).

Aggregate statistics and detected events for a single log. Built once per
call by the feature extractor and not modified afterwards.

Conventions:
- event timestamps are seconds since the first valid time sample
- extrema with no samples are None (no sentinel values)
- averages with no samples are 0.0
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union


SUMMARY_VERSION = "v1"

EventValue = Union[int, float, str]


class EventType(str, Enum):
    """Kind of a detected flight event."""

    ERROR = "ERROR"
    FAILSAFE = "FAILSAFE"
    ARMING = "ARMING"
    DISARMING = "DISARMING"
    MODE_CHANGE = "MODE_CHANGE"
    IMPACT_DETECTED = "IMPACT_DETECTED"
    HIGH_VIBRATION = "HIGH_VIBRATION"
    MOTOR_SATURATION = "MOTOR_SATURATION"
    BATTERY_WARNING = "BATTERY_WARNING"


@dataclass(frozen=True)
class FlightEvent:
    """A single detected event."""

    timestamp: float
    type: EventType
    description: str
    value: Optional[EventValue] = None

    def to_dict(self) -> dict:
        result = {
            "timestamp": self.timestamp,
            "type": self.type.value,
            "description": self.description,
        }
        if self.value is not None:
            result["value"] = self.value
        return result


@dataclass(frozen=True)
class BatteryProfile:
    """
    Battery configuration inferred from pack voltage.

    Approximate: cell count is chosen by voltage bracket, not measured.
    """

    cell_count: int
    warning_voltage: float
    min_voltage: float
    max_continuous_current: float
    max_burst_current: float

    def to_dict(self) -> dict:
        return {
            "cellCount": self.cell_count,
            "warningVoltage": self.warning_voltage,
            "minVoltage": self.min_voltage,
            "maxContinuousCurrent": self.max_continuous_current,
            "maxBurstCurrent": self.max_burst_current,
        }


@dataclass
class BatterySummary:
    start_voltage: Optional[float] = None
    end_voltage: Optional[float] = None
    min_voltage: Optional[float] = None  # lowest sample > 0
    max_current: Optional[float] = None
    avg_current: float = 0.0


@dataclass
class VibrationSummary:
    """Absolute vibration per axis (m/s^2)."""

    max_x: Optional[float] = None
    max_y: Optional[float] = None
    max_z: Optional[float] = None
    avg_z: float = 0.0


@dataclass
class AttitudeSummary:
    """Absolute roll/pitch extrema in degrees."""

    max_roll: Optional[float] = None
    max_pitch: Optional[float] = None


@dataclass
class MotorStats:
    id: int  # 1-based for display
    max_value: Optional[float] = None
    avg_value: float = 0.0
    saturated_duration: float = 0.0  # total seconds above the saturation threshold


@dataclass
class GpsStats:
    min_satellites: Optional[float] = None
    max_hdop: Optional[float] = None
    avg_satellites: float = 0.0
    avg_hdop: float = 0.0


@dataclass
class FlightPhases:
    """Phase timestamps (seconds) derived from the event list."""

    takeoff_time: Optional[float] = None
    landing_time: Optional[float] = None
    crash_time: Optional[float] = None


@dataclass
class FlightSummary:
    """
    Structured summary of one flight log.

    Typically serialized with to_context() and handed to an external
    analysis agent as context.
    """

    duration_seconds: float
    max_altitude: Optional[float]
    max_distance: Optional[float]
    battery: BatterySummary
    vibration: VibrationSummary
    attitude: AttitudeSummary
    motor_stats: list[MotorStats]
    gps_stats: GpsStats
    events: list[FlightEvent] = field(default_factory=list)
    error_codes: list[str] = field(default_factory=list)
    flight_phases: FlightPhases = field(default_factory=FlightPhases)
    battery_profile: Optional[BatteryProfile] = None
    version: str = SUMMARY_VERSION

    def events_of(self, *types: EventType) -> list[FlightEvent]:
        return [e for e in self.events if e.type in types]

    def to_dict(self) -> dict:
        """Render with the camelCase keys used by the analysis consumer."""
        return {
            "version": self.version,
            "durationSeconds": self.duration_seconds,
            "maxAltitude": self.max_altitude,
            "maxDistance": self.max_distance,
            "battery": {
                "startVoltage": self.battery.start_voltage,
                "endVoltage": self.battery.end_voltage,
                "minVoltage": self.battery.min_voltage,
                "maxCurrent": self.battery.max_current,
                "avgCurrent": self.battery.avg_current,
            },
            "batteryProfile": self.battery_profile.to_dict() if self.battery_profile else None,
            "vibration": {
                "maxX": self.vibration.max_x,
                "maxY": self.vibration.max_y,
                "maxZ": self.vibration.max_z,
                "avgZ": self.vibration.avg_z,
            },
            "attitude": {
                "maxRoll": self.attitude.max_roll,
                "maxPitch": self.attitude.max_pitch,
            },
            "motorStats": [
                {
                    "id": m.id,
                    "maxVal": m.max_value,
                    "avgVal": m.avg_value,
                    "saturatedDuration": m.saturated_duration,
                }
                for m in self.motor_stats
            ],
            "gpsStats": {
                "minSatellites": self.gps_stats.min_satellites,
                "maxHDOP": self.gps_stats.max_hdop,
                "avgSatellites": self.gps_stats.avg_satellites,
                "avgHDOP": self.gps_stats.avg_hdop,
            },
            "events": [e.to_dict() for e in self.events],
            "errorCodes": list(self.error_codes),
            "flightPhases": {
                "takeoffTime": self.flight_phases.takeoff_time,
                "landingTime": self.flight_phases.landing_time,
                "crashTime": self.flight_phases.crash_time,
            },
        }

    def to_context(self) -> str:
        """Indented JSON text for use as analysis context."""
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False)
