"""
Canonical channel tables.

HEADER_MAPPINGS lists, for every canonical channel, the column names used by
the different firmware exports. Order is priority: the first alias present in
a row wins. CHANNEL_METADATA carries display info and the unit transform
applied when building chart series.
"""

from dataclasses import dataclass
from typing import Callable, Optional, Union


RAD_TO_DEG = 57.3
STICK_RANGE = 0.55  # raw stick deflection at 100%
THROTTLE_CENTER_PWM = 15000
THROTTLE_HALF_RANGE_PWM = 4500


# Canonical channel names used directly by the services
MOTORS = [f"blackbox.motor[{i}]" for i in range(4)]
ESC_VOLTAGE = "blackbox.esc_info.esc[0].voltage"
ESC_CURRENT = "blackbox.esc_info.esc[0].current"
ROLL = "blackbox.attitude.roll"
PITCH = "blackbox.attitude.pitch"
YAW = "blackbox.attitude.yaw"
ERROR = "blackbox.error"
FAILSAFE = "blackbox.fs_act"
ARMED = "blackbox.armed"
FLIGHT_MODE = "blackbox.receiver_panel.flight_mode"
VIBRATION_X = "blackbox.vibr_.x"
VIBRATION_Y = "blackbox.vibr_.y"
VIBRATION_Z = "blackbox.vibr_.z"
MAGNET_X = "blackbox.sensor_values.magnet_x"
MAGNET_Y = "blackbox.sensor_values.magnet_y"
MAGNET_Z = "blackbox.sensor_values.magnet_z"
MAGNET_TOTAL = "magnet_total"
LATITUDE = "blackbox.sensor_values.gps_data.latitude"
LONGITUDE = "blackbox.sensor_values.gps_data.longitude"
ALTITUDE = "blackbox.sensor_values.gps_data.altitude"
SATELLITES = "blackbox.sensor_values.gps_data.satellite_num"
HDOP = "blackbox.sensor_values.gps_data.hori_dop"


def _esc_aliases(index: int, field_name: str, short: str) -> list[str]:
    n = index + 1
    return [
        f"blackbox.esc_info.esc[{index}].{field_name}",
        f"esc{n}_{field_name}",
        f"esc{n}_{short}",
        f"ESC{n}_{field_name.upper()}",
        f"ESC{n}_{short.upper()}",
        f"esc{n} {field_name.replace('_', ' ')}",
    ]


def _motor_aliases(index: int) -> list[str]:
    n = index + 1
    return [f"blackbox.motor[{index}]", f"motor_{n}", f"motor{n}", f"Motor{n}", f"MOTOR{n}", f"Motor {n}"]


HEADER_MAPPINGS: dict[str, list[str]] = {
    # Power
    **{MOTORS[i]: _motor_aliases(i) for i in range(4)},
    **{f"blackbox.esc_info.esc[{i}].current": _esc_aliases(i, "current", "curr") for i in range(4)},
    **{f"blackbox.esc_info.esc[{i}].step_time": _esc_aliases(i, "step_time", "time") for i in range(4)},
    **{f"blackbox.esc_info.esc[{i}].voltage": _esc_aliases(i, "voltage", "volt") for i in range(4)},
    **{f"blackbox.esc_info.esc[{i}].temperature": _esc_aliases(i, "temperature", "temp") for i in range(4)},

    # Flight control
    ROLL: [ROLL, "roll", "att_x", "Roll", "ATT_X"],
    PITCH: [PITCH, "pitch", "att_y", "Pitch", "ATT_Y"],
    YAW: [YAW, "yaw", "att_z", "Yaw", "ATT_Z"],
    FAILSAFE: [FAILSAFE, "fs_act", "FS", "FS_ACT", "Failsafe", "failsafe"],
    ERROR: [ERROR, "error", "ERR", "Error", "ERROR"],
    "blackbox.rat_ctrl_cmd_.z": ["blackbox.rat_ctrl_cmd_.z", "rat_ctrl_cmd_z", "rat_ctrl_z", "RateControlCmdZ"],
    "blackbox.sensor_values.gyro_x": ["blackbox.sensor_values.gyro_x", "gyro_x", "gyroX", "GyroX", "GYRO_X"],
    "blackbox.sensor_values.gyro_y": ["blackbox.sensor_values.gyro_y", "gyro_y", "gyroY", "GyroY", "GYRO_Y"],
    "blackbox.sensor_values.gyro_z": ["blackbox.sensor_values.gyro_z", "gyro_z", "gyroZ", "GyroZ", "GYRO_Z"],
    "blackbox.feedback_ctrler_.vel_x": ["blackbox.feedback_ctrler_.vel_x", "feedback_ctrler_vel_x", "velX_I", "feedback_vel_x"],
    "blackbox.feedback_ctrler_.vel_y": ["blackbox.feedback_ctrler_.vel_y", "feedback_ctrler_vel_y", "velY_S"],
    "blackbox.feedback_ctrler_.vel_z": ["blackbox.feedback_ctrler_.vel_z", "feedback_ctrler_vel_z", "velZ_S"],
    "blackbox.target_ctrler_.vel_x": ["blackbox.target_ctrler_.vel_x", "target_ctrler_vel_x", "velX_S", "target_vel_x"],
    HDOP: [HDOP, "hori_dop", "HDOP", "hDOP"],
    "blackbox.sensor_values.gps_data.vert_dop": ["blackbox.sensor_values.gps_data.vert_dop", "vert_dop", "VDOP", "vDOP"],
    SATELLITES: [SATELLITES, "satellite_num", "sats", "numSat", "Sats"],
    ALTITUDE: [ALTITUDE, "altitude", "alt", "Altitude"],
    LATITUDE: [LATITUDE, "latitude", "lat", "Latitude"],
    LONGITUDE: [LONGITUDE, "longitude", "lon", "lng", "Longitude"],
    "blackbox.sensor_values.vehicle_optical_flow.of_distance_m": [
        "blackbox.sensor_values.vehicle_optical_flow.of_distance_m",
        "of_distance_m",
    ],
    "blackbox.sensor_values.accel_x": ["blackbox.sensor_values.accel_x", "acc_x", "accel_x", "blackbox.ins_information.acc_x"],
    "blackbox.sensor_values.accel_y": ["blackbox.sensor_values.accel_y", "acc_y", "accel_y", "blackbox.ins_information.acc_y"],
    "blackbox.sensor_values.accel_z": ["blackbox.sensor_values.accel_z", "acc_z", "accel_z", "blackbox.ins_information.acc_z"],

    # Impact
    ARMED: [ARMED, "is_armed", "isArmed", "ARMED", "armed", "is_arm", "blackbox.receiver_panel.is_armed"],
    VIBRATION_X: [VIBRATION_X, "vibr_x", "vibration_x", "VibrX", "VibrationX", "VIBR_X"],
    VIBRATION_Y: [VIBRATION_Y, "vibr_y", "vibration_y", "VibrY", "VibrationY", "VIBR_Y"],
    VIBRATION_Z: [VIBRATION_Z, "vibr_z", "vibration_z", "VibrZ", "VibrationZ", "VIBR_Z"],
    MAGNET_X: [MAGNET_X, "magnet_x", "MagX", "mag_x"],
    MAGNET_Y: [MAGNET_Y, "magnet_y", "MagY", "mag_y"],
    MAGNET_Z: [MAGNET_Z, "magnet_z", "MagZ", "mag_z"],

    # Control input
    "blackbox.receiver_panel.ail_value": ["blackbox.receiver_panel.ail_value", "ail_value", "AIL", "Aileron", "aileron"],
    "blackbox.receiver_panel.ele_value": ["blackbox.receiver_panel.ele_value", "ele_value", "ELE", "Elevator", "elevator"],
    "blackbox.receiver_panel.rud_value": ["blackbox.receiver_panel.rud_value", "rud_value", "RUD", "Rudder", "rudder"],
    "blackbox.receiver_panel.thr_value": ["blackbox.receiver_panel.thr_value", "thr_value", "THR", "Throttle", "throttle"],
    FLIGHT_MODE: [FLIGHT_MODE, "flight_mode", "FlightMode", "flightMode", "mode"],
    "blackbox.receiver_panel.velocity_x": [
        "blackbox.receiver_panel.velocity_x", "x_velocity", "vel_x", "velocityX", "VelX", "vx",
        "blackbox.ins_information.gps_v_x",
    ],
    "blackbox.receiver_panel.velocity_y": [
        "blackbox.receiver_panel.velocity_y", "y_velocity", "vel_y", "velocityY", "VelY", "vy",
        "blackbox.ins_information.gps_v_y",
    ],
    "blackbox.receiver_panel.velocity_z": [
        "blackbox.receiver_panel.velocity_z", "z_velocity", "vel_z", "velocityZ", "VelZ", "vz",
        "blackbox.ins_information.gps_v_z",
    ],
}


# ============================================================================
# Unit transforms
# ============================================================================

@dataclass(frozen=True)
class LinearTransform:
    """Stateless per-sample conversion."""

    fn: Callable[[float], float]

    def apply(self, value: float) -> float:
        return self.fn(value)


@dataclass(frozen=True)
class BaselineTransform:
    """
    Conversion relative to a per-log baseline.

    `requires` names the baseline the row processor must supply
    (e.g. "initial_altitude"). Without it the value passes through unchanged.
    """

    fn: Callable[[float, float], float]
    requires: str

    def apply(self, value: float, baseline: Optional[float]) -> float:
        if baseline is None:
            return value
        return self.fn(value, baseline)


Transform = Union[LinearTransform, BaselineTransform]


@dataclass(frozen=True)
class ChannelMetadata:
    """Display metadata for a canonical channel."""

    label: str
    unit: str
    description: str = ""
    transform: Optional[Transform] = None


def _rad_to_deg(value: float) -> float:
    return value * RAD_TO_DEG


def _stick_percent(value: float) -> float:
    return value / STICK_RANGE * 100


def _throttle_percent(value: float) -> float:
    return (value - THROTTLE_CENTER_PWM) / THROTTLE_HALF_RANGE_PWM * 100


_RAD = LinearTransform(_rad_to_deg)
_STICK = LinearTransform(_stick_percent)

CHANNEL_METADATA: dict[str, ChannelMetadata] = {
    ROLL: ChannelMetadata("Roll", "deg", "radians converted to degrees", _RAD),
    PITCH: ChannelMetadata("Pitch", "deg", "radians converted to degrees", _RAD),
    YAW: ChannelMetadata("Yaw", "deg", "radians converted to degrees", _RAD),
    "blackbox.rat_ctrl_cmd_.z": ChannelMetadata("Rate command Z", "deg/s", "rad/s converted to deg/s", _RAD),
    "blackbox.sensor_values.gyro_x": ChannelMetadata("Gyro X", "deg/s", "rad/s converted to deg/s", _RAD),
    "blackbox.sensor_values.gyro_y": ChannelMetadata("Gyro Y", "deg/s", "rad/s converted to deg/s", _RAD),
    "blackbox.sensor_values.gyro_z": ChannelMetadata("Gyro Z", "deg/s", "rad/s converted to deg/s", _RAD),
    "blackbox.receiver_panel.ail_value": ChannelMetadata("Aileron", "%", "raw -0.55..0.55 as percent", _STICK),
    "blackbox.receiver_panel.ele_value": ChannelMetadata("Elevator", "%", "raw -0.55..0.55 as percent", _STICK),
    "blackbox.receiver_panel.rud_value": ChannelMetadata("Rudder", "%", "raw -0.55..0.55 as percent", _STICK),
    "blackbox.receiver_panel.thr_value": ChannelMetadata(
        "Throttle", "%", "PWM 10500..19500 as percent around 15000", LinearTransform(_throttle_percent)
    ),
    ALTITUDE: ChannelMetadata(
        "Relative altitude",
        "m",
        "altitude above the first valid sample",
        BaselineTransform(lambda value, initial: value - initial, requires="initial_altitude"),
    ),
    "blackbox.sensor_values.vehicle_optical_flow.of_distance_m": ChannelMetadata("Optical flow altitude", "m"),
    **{MOTORS[i]: ChannelMetadata(f"Motor {i + 1}", "PWM", "raw flight controller command") for i in range(4)},
    ESC_CURRENT: ChannelMetadata("ESC 1 current", "A"),
    ESC_VOLTAGE: ChannelMetadata("ESC 1 voltage", "V"),
    ARMED: ChannelMetadata("Armed", ""),
    VIBRATION_X: ChannelMetadata("Vibration X", "m/s^2"),
    VIBRATION_Y: ChannelMetadata("Vibration Y", "m/s^2"),
    VIBRATION_Z: ChannelMetadata("Vibration Z", "m/s^2"),
    "blackbox.sensor_values.accel_x": ChannelMetadata("Accel X", "m/s^2"),
    "blackbox.sensor_values.accel_y": ChannelMetadata("Accel Y", "m/s^2"),
    "blackbox.sensor_values.accel_z": ChannelMetadata("Accel Z", "m/s^2"),
    MAGNET_X: ChannelMetadata("Magnet X", ""),
    MAGNET_Y: ChannelMetadata("Magnet Y", ""),
    MAGNET_Z: ChannelMetadata("Magnet Z", ""),
    MAGNET_TOTAL: ChannelMetadata("Magnetic field (sum of squares)", "", "x^2 + y^2 + z^2"),
    "blackbox.feedback_ctrler_.vel_x": ChannelMetadata("Feedback velocity X", "m/s"),
    "blackbox.feedback_ctrler_.vel_y": ChannelMetadata("Feedback velocity Y", "m/s"),
    "blackbox.feedback_ctrler_.vel_z": ChannelMetadata("Feedback velocity Z", "m/s"),
}


# Position channels feed the flight path, not the chart series
POSITION_CHANNELS = (LATITUDE, LONGITUDE)

CHART_CHANNELS: list[str] = [key for key in HEADER_MAPPINGS if key not in POSITION_CHANNELS]


def aliases_for(channel: str) -> list[str]:
    """Ordered header aliases for a channel (the name itself if unmapped)."""
    return HEADER_MAPPINGS.get(channel, [channel])
