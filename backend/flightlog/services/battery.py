"""
Battery profile auto-detection.

Infers the series cell count of a pack from an observed voltage and derives
warning/critical thresholds and current limits. This is a bracket-based
approximation, not a measurement. The 4S bracket is calibrated against the
MCX-250421 datasheet (4S 8.7Ah, 17.2V full, 12.8V cut-off, 20A continuous,
40A pulse; system design maps 17V to 100% and 13.6V to 0%).
"""

from flightlog.models.summary import BatteryProfile


WARNING_VOLTS_PER_CELL = 3.5
MIN_VOLTS_PER_CELL = 3.2

# (voltage above, cell count, max continuous A, max burst A), checked high to low
_GENERIC_BRACKETS = [
    (58.0, 14, 120.0, 180.0),  # 58.8V full
    (41.0, 12, 120.0, 180.0),  # 50.4V full
    (30.0, 10, 100.0, 150.0),  # 42.0V full
    (26.0, 8, 80.0, 120.0),    # 33.6V full
    (18.0, 6, 60.0, 100.0),    # 25.2V full
]

FOUR_CELL_THRESHOLD = 12.5
FOUR_CELL_PROFILE = BatteryProfile(
    cell_count=4,
    warning_voltage=13.6,
    min_voltage=12.8,
    max_continuous_current=20.0,
    max_burst_current=40.0,
)

FALLBACK_CELLS = 3
FALLBACK_CONTINUOUS_CURRENT = 40.0
FALLBACK_BURST_CURRENT = 60.0


def _generic_profile(cells: int, continuous: float, burst: float) -> BatteryProfile:
    return BatteryProfile(
        cell_count=cells,
        warning_voltage=cells * WARNING_VOLTS_PER_CELL,
        min_voltage=cells * MIN_VOLTS_PER_CELL,
        max_continuous_current=continuous,
        max_burst_current=burst,
    )


def auto_detect_battery_profile(voltage: float) -> BatteryProfile:
    """Map a pack voltage to an assumed battery profile (3S fallback)."""
    if voltage > 0:
        for threshold, cells, continuous, burst in _GENERIC_BRACKETS:
            if voltage > threshold:
                return _generic_profile(cells, continuous, burst)
        if voltage > FOUR_CELL_THRESHOLD:
            return FOUR_CELL_PROFILE

    return _generic_profile(FALLBACK_CELLS, FALLBACK_CONTINUOUS_CURRENT, FALLBACK_BURST_CURRENT)
