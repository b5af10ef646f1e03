"""
Sample data generator for testing.

Generates blackbox-style CSV logs of a short multirotor flight: arm, climb,
a GPS circle, descent and disarm, with battery sag and optional anomalies.
"""

from pathlib import Path
from typing import Optional

import numpy as np
import pandas as pd


def generate_circle_flight(
    output_path: Path,
    duration_s: float = 60.0,
    sample_rate_hz: float = 5.0,
    center_lat: float = 24.7736,  # Example: Hsinchu area
    center_lon: float = 121.0443,
    radius_m: float = 40.0,
    cruise_alt_m: float = 30.0,
    start_voltage: float = 16.8,
    end_voltage: float = 14.2,
    start_unix_s: Optional[int] = 1735689600,
    vibration_spike_s: Optional[float] = None,
    error_bit: Optional[int] = None,
    failsafe_code: Optional[int] = None,
    seed: int = 0,
) -> Path:
    """
    Generate a circular flight log.

    Rows are stamped with whole-second unix time (several rows per second),
    coordinates in 1e7 fixed point, attitude in radians and stick/throttle
    in raw units. Pass start_unix_s=None for a relative millisecond clock.
    """
    rng = np.random.default_rng(seed)
    n_samples = int(duration_s * sample_rate_hz)
    t = np.arange(n_samples) / sample_rate_hz

    # Flight phases: 10% ground, 15% climb, 50% circle, 15% descent, 10% ground
    frac = t / duration_s
    climb = np.clip((frac - 0.10) / 0.15, 0.0, 1.0)
    descent = np.clip((frac - 0.75) / 0.15, 0.0, 1.0)
    alt_rel = cruise_alt_m * (climb - descent)
    armed = ((frac >= 0.05) & (frac < 0.95)).astype(int)

    circle = np.clip((frac - 0.25) / 0.50, 0.0, 1.0) * 2 * np.pi
    x_local = radius_m * np.sin(circle)
    y_local = radius_m * (1 - np.cos(circle))

    meters_per_deg_lat = 111000
    meters_per_deg_lon = 111000 * np.cos(np.radians(center_lat))
    lat = center_lat + y_local / meters_per_deg_lat
    lon = center_lon + x_local / meters_per_deg_lon

    voltage = np.linspace(start_voltage, end_voltage, n_samples) + rng.normal(0, 0.02, n_samples)
    current = np.where(armed == 1, 12.0 + 4.0 * climb * (1 - descent), 0.3) + rng.normal(0, 0.2, n_samples)

    hover_pwm = np.where(armed == 1, 15500.0, 10000.0)
    motors = [hover_pwm + rng.normal(0, 150, n_samples) for _ in range(4)]

    roll = rng.normal(0, 0.03, n_samples)
    pitch = rng.normal(0, 0.03, n_samples)
    vibr_z = np.abs(rng.normal(8.0, 2.0, n_samples))
    if vibration_spike_s is not None:
        spike = (t >= vibration_spike_s) & (t < vibration_spike_s + 1.0)
        vibr_z[spike] = 75.0

    error = np.zeros(n_samples, dtype=np.int64)
    if error_bit is not None:
        error[(frac >= 0.5) & (frac < 0.6)] = 1 << error_bit

    fs_act = np.zeros(n_samples, dtype=np.int64)
    if failsafe_code is not None:
        fs_act[frac >= 0.97] = failsafe_code

    mode = np.where(frac < 0.25, 2, 5)

    if start_unix_s is not None:
        time_column = ("unix_time", start_unix_s + np.floor(t).astype(np.int64))
    else:
        time_column = ("time", np.round(t * 1000).astype(np.int64))

    df = pd.DataFrame({
        time_column[0]: time_column[1],
        "is_armed": armed,
        "mode": mode,
        "error": [hex(int(v)) for v in error],
        "fs_act": fs_act,
        "esc1_voltage": np.round(voltage, 2),
        "esc1_current": np.round(current, 2),
        **{f"motor{i + 1}": np.round(m).astype(np.int64) for i, m in enumerate(motors)},
        "roll": np.round(roll, 4),
        "pitch": np.round(pitch, 4),
        "vibr_x": np.round(np.abs(rng.normal(5.0, 1.5, n_samples)), 2),
        "vibr_y": np.round(np.abs(rng.normal(5.0, 1.5, n_samples)), 2),
        "vibr_z": np.round(vibr_z, 2),
        "latitude": np.round(lat * 1e7).astype(np.int64),
        "longitude": np.round(lon * 1e7).astype(np.int64),
        "altitude": np.round(50.0 + alt_rel, 2),
        "satellite_num": rng.integers(12, 18, n_samples),
        "HDOP": np.round(rng.uniform(0.6, 1.2, n_samples), 2),
        "THR": np.round(hover_pwm, 0),
    })

    output_path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(output_path, index=False)
    return output_path


def generate_test_data_set(output_folder: Path) -> list[Path]:
    """Generate a set of sample logs."""
    output_folder.mkdir(parents=True, exist_ok=True)

    files = []

    files.append(generate_circle_flight(
        output_folder / "flight_001_nominal.csv",
        duration_s=60.0,
    ))

    files.append(generate_circle_flight(
        output_folder / "flight_002_vibration.csv",
        duration_s=90.0,
        vibration_spike_s=40.0,
        seed=1,
    ))

    files.append(generate_circle_flight(
        output_folder / "flight_003_low_battery_gps_fault.csv",
        duration_s=120.0,
        start_voltage=15.2,
        end_voltage=12.4,
        error_bit=6,
        failsafe_code=6,
        seed=2,
    ))

    files.append(generate_circle_flight(
        output_folder / "flight_004_relative_clock.csv",
        duration_s=45.0,
        start_unix_s=None,
        seed=3,
    ))

    return files


if __name__ == "__main__":
    output = Path("./data/logs")
    files = generate_test_data_set(output)
    print(f"Generated {len(files)} sample logs in {output}")
    for f in files:
        print(f"  - {f.name}")
