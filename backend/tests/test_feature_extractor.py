"""
Tests for flight summary generation and event detection.
"""

import json

import pytest

from flightlog.models.summary import EventType
from flightlog.services.feature_extractor import generate_flight_summary


def timed(key, values, step_ms=1000):
    """Rows with a relative millisecond clock, one value of `key` per row."""
    return [{"time": i * step_ms, key: value} for i, value in enumerate(values)]


def descriptions(events):
    return [e.description for e in events]


class TestSummaryBasics:
    """Tests for input handling and time stamping."""

    def test_empty_rows_rejected(self):
        with pytest.raises(ValueError, match="No data provided"):
            generate_flight_summary([])

    def test_duration_from_time_base(self):
        summary = generate_flight_summary(timed("roll", [0.0, 0.0, 0.0], step_ms=2500))
        assert summary.duration_seconds == pytest.approx(5.0)

    def test_no_time_column(self):
        """Without a time base events are stamped 0 and duration is 0."""
        rows = [{"is_armed": 0}, {"is_armed": 1}, {"is_armed": 0}]
        summary = generate_flight_summary(rows)

        assert summary.duration_seconds == 0.0
        assert [e.timestamp for e in summary.events] == [0.0, 0.0]

    def test_row_without_time_reuses_previous(self):
        rows = [
            {"time": 0, "is_armed": 0},
            {"time": 2000, "is_armed": 0},
            {"time": "", "is_armed": 1},
        ]
        summary = generate_flight_summary(rows)

        assert summary.events_of(EventType.ARMING)[0].timestamp == pytest.approx(2.0)

    def test_none_rows_tolerated(self):
        rows = [{"time": 0, "esc1_voltage": 16.0}, None, {"time": 1000, "esc1_voltage": 15.9}]
        summary = generate_flight_summary(rows)

        assert summary.battery.min_voltage == pytest.approx(15.9)


class TestBatteryEvents:
    """Tests for battery profile detection and voltage/current events."""

    def test_critical_voltage_scenario(self):
        """A 4S pack falling below 12.8V raises a critical event at 1.0s."""
        rows = [{"time": 0, "esc1_voltage": 17.0}, {"time": 1000, "esc1_voltage": 12.5}]
        summary = generate_flight_summary(rows)

        assert summary.battery_profile.cell_count == 4
        assert summary.battery_profile.min_voltage == pytest.approx(12.8)

        head = summary.events[0]
        assert head.type == EventType.BATTERY_WARNING
        assert head.timestamp == 0.0
        assert head.description.startswith("Battery Detected: 4S")
        assert head.value == 4

        critical = [e for e in summary.events if e.description.startswith("Critical Battery Voltage")]
        assert len(critical) == 1
        assert critical[0].timestamp == pytest.approx(1.0)
        assert critical[0].value == pytest.approx(12.5)

    def test_detected_event_text(self):
        summary = generate_flight_summary(timed("esc1_voltage", [16.8, 16.7]))
        assert summary.events[0].description == "Battery Detected: 4S (Start: 16.8V, Warn: 13.6V, Crit: 12.8V)"

    def test_low_and_critical_fire_once(self):
        """Oscillating around the thresholds does not repeat events."""
        volts = [16.8, 13.5, 14.0, 13.4, 13.7, 12.7, 13.0, 12.6, 13.2, 12.5]
        summary = generate_flight_summary(timed("esc1_voltage", volts))
        texts = descriptions(summary.events_of(EventType.BATTERY_WARNING))

        assert sum(t.startswith("Low Battery Voltage") for t in texts) == 1
        assert sum(t.startswith("Critical Battery Voltage") for t in texts) == 1

        low = next(e for e in summary.events if e.description.startswith("Low Battery"))
        assert low.timestamp == pytest.approx(1.0)

    def test_low_fires_after_critical(self):
        """A direct drop below critical fires critical; low fires on the next sample."""
        summary = generate_flight_summary(timed("esc1_voltage", [16.8, 12.0, 12.1]))
        texts = descriptions(summary.events)

        assert texts[1].startswith("Critical Battery Voltage")
        assert texts[2].startswith("Low Battery Voltage")

    def test_voltage_below_five_ignored(self):
        """Readings at or below 5V are not battery readings for events."""
        summary = generate_flight_summary(timed("esc1_voltage", [16.8, 3.0, 0.0]))

        assert len(summary.events) == 1  # only the detection event
        assert summary.battery.min_voltage == pytest.approx(3.0)
        assert summary.battery.end_voltage == pytest.approx(0.0)

    def test_deferred_profile_detection(self):
        """A log starting at 0V detects the pack on the first real reading."""
        summary = generate_flight_summary(timed("esc1_voltage", [0.0, 0.0, 24.5, 24.4]))

        assert summary.battery.start_voltage == pytest.approx(0.0)
        assert summary.battery_profile.cell_count == 6
        assert "Start: 24.5V" in summary.events[0].description

    def test_no_voltage_no_profile(self):
        summary = generate_flight_summary(timed("roll", [0.1, 0.2]))

        assert summary.battery_profile is None
        assert summary.battery.start_voltage is None
        assert summary.battery.min_voltage is None
        assert summary.events == []

    def test_overcurrent_once(self):
        rows = [
            {"time": 0, "esc1_voltage": 16.8, "esc1_current": 10.0},
            {"time": 1000, "esc1_voltage": 16.6, "esc1_current": 25.0},
            {"time": 2000, "esc1_voltage": 16.5, "esc1_current": 30.0},
        ]
        summary = generate_flight_summary(rows)
        over = [e for e in summary.events if "Overcurrent" in e.description]

        assert len(over) == 1
        assert over[0].timestamp == pytest.approx(1.0)
        assert over[0].value == pytest.approx(25.0)
        assert summary.battery.max_current == pytest.approx(30.0)
        assert summary.battery.avg_current == pytest.approx(65.0 / 3)

    def test_average_current_counts_present_samples(self):
        rows = timed("esc1_current", [10.0, "", 20.0])
        summary = generate_flight_summary(rows)

        assert summary.battery.avg_current == pytest.approx(15.0)

    def test_end_voltage_from_last_row(self):
        rows = timed("esc1_voltage", [16.8, 16.5]) + [{"time": 5000}]
        summary = generate_flight_summary(rows)

        assert summary.battery.end_voltage is None


class TestVibrationEvents:
    """Tests for the high Z vibration detector."""

    def test_rearm_after_clearing(self):
        summary = generate_flight_summary(timed("vibr_z", [80, 10, 90]))
        events = summary.events_of(EventType.HIGH_VIBRATION)

        assert len(events) == 2
        assert [e.timestamp for e in events] == [pytest.approx(0.0), pytest.approx(2.0)]

    def test_sustained_high_vibration_fires_once(self):
        summary = generate_flight_summary(timed("vibr_z", [70, 75, 80, 65]))
        assert len(summary.events_of(EventType.HIGH_VIBRATION)) == 1

    def test_exact_threshold_does_not_clear(self):
        summary = generate_flight_summary(timed("vibr_z", [80, 60, 90]))
        assert len(summary.events_of(EventType.HIGH_VIBRATION)) == 1

    def test_absolute_values_and_average(self):
        rows = [
            {"time": 0, "vibr_x": -3.0, "vibr_y": 2.0, "vibr_z": -10.0},
            {"time": 1000, "vibr_x": 1.0, "vibr_y": -4.0, "vibr_z": 20.0},
            {"time": 2000, "vibr_x": 2.0},
        ]
        summary = generate_flight_summary(rows)

        assert summary.vibration.max_x == pytest.approx(3.0)
        assert summary.vibration.max_y == pytest.approx(4.0)
        assert summary.vibration.max_z == pytest.approx(20.0)
        assert summary.vibration.avg_z == pytest.approx(15.0)

    def test_missing_vibration_stays_none(self):
        summary = generate_flight_summary(timed("roll", [0.1]))

        assert summary.vibration.max_z is None
        assert summary.vibration.avg_z == 0.0


class TestMotorSaturation:
    """Tests for sustained motor saturation detection."""

    def test_fires_once_after_one_second(self):
        summary = generate_flight_summary(timed("motor1", [19000] * 5, step_ms=500))
        events = summary.events_of(EventType.MOTOR_SATURATION)

        assert len(events) == 1
        assert events[0].timestamp == pytest.approx(1.5)
        assert events[0].description == "Motor 1 Saturated (> 18500)"
        assert summary.motor_stats[0].saturated_duration == pytest.approx(2.0)

    def test_short_burst_resets_timer(self):
        """Dropping below threshold before 1s restarts the count."""
        values = [19000, 19000, 19000, 15000, 19000, 19000, 19000]
        times = [0, 500, 1000, 1200, 1400, 1800, 2200]
        rows = [{"time": t, "motor2": v} for t, v in zip(times, values)]
        summary = generate_flight_summary(rows)

        assert summary.events_of(EventType.MOTOR_SATURATION) == []
        assert summary.motor_stats[1].saturated_duration == pytest.approx(2.0)

    def test_run_of_exactly_one_second_does_not_fire(self):
        """Sub-second steps summing to 1.0s stay on the boundary."""
        rows = [{"time": 1200, "motor1": 15000}]
        rows += [{"time": t, "motor1": 19000} for t in (1400, 1800, 2200)]
        summary = generate_flight_summary(rows)

        assert summary.events_of(EventType.MOTOR_SATURATION) == []
        assert summary.motor_stats[0].saturated_duration == 1.0

    def test_fires_on_first_sample_past_one_second(self):
        rows = [{"time": t * 100, "motor1": 19000} for t in range(12)]
        events = generate_flight_summary(rows).events_of(EventType.MOTOR_SATURATION)

        assert len(events) == 1
        assert events[0].timestamp == pytest.approx(1.1)

    def test_two_intervals_two_events(self):
        values = [19000] * 4 + [15000] + [19000] * 4
        summary = generate_flight_summary(timed("motor3", values, step_ms=500))
        events = summary.events_of(EventType.MOTOR_SATURATION)

        assert len(events) == 2
        assert all("Motor 3" in e.description for e in events)

    def test_motor_stats(self):
        rows = [
            {"time": 0, "motor1": 15000, "motor4": 12000},
            {"time": 1000, "motor1": 16000},
        ]
        summary = generate_flight_summary(rows)
        stats = {m.id: m for m in summary.motor_stats}

        assert len(summary.motor_stats) == 4
        assert stats[1].max_value == 16000
        assert stats[1].avg_value == pytest.approx(15500.0)
        assert stats[4].avg_value == pytest.approx(12000.0)
        assert stats[2].max_value is None
        assert stats[2].avg_value == 0.0


class TestErrorBitmask:
    """Tests for error bitmask diffing."""

    def test_raise_and_clear_two_bits(self):
        summary = generate_flight_summary(timed("error", [0, 0b0101, 0]))
        errors = summary.events_of(EventType.ERROR)
        texts = descriptions(errors)

        raised = [e for e in errors if e.description.startswith("Error raised")]
        cleared = [e for e in errors if e.description.startswith("Error cleared")]
        assert len(raised) == 2
        assert len(cleared) == 2
        assert [e.value for e in raised] == [1, 3]
        assert texts.count("System recovered (System OK)") == 1
        assert texts[-1] == "System recovered (System OK)"

    def test_hex_mask(self):
        summary = generate_flight_summary(timed("error", ["0x0", "0x40"]))
        errors = summary.events_of(EventType.ERROR)

        assert len(errors) == 1
        assert errors[0].value == 7
        assert summary.error_codes == ["7: err_sensor_gps (GPS fault)"]

    def test_partial_change_only_diffs(self):
        summary = generate_flight_summary(timed("error", [0b01, 0b11, 0b10]))
        texts = descriptions(summary.events_of(EventType.ERROR))

        assert texts == [
            "Error raised: err_commun_rc_receiver (RC link lost)",
            "Error raised: err_commun_tele_receiver (telemetry link fault)",
            "Error cleared: err_commun_rc_receiver (RC link lost)",
        ]

    def test_missing_mask_is_skipped(self):
        """A row with no error value is not a zero mask."""
        summary = generate_flight_summary(timed("error", [4, "", None, 4]))
        assert len(summary.events_of(EventType.ERROR)) == 1

    def test_error_codes_deduplicated_in_order(self):
        summary = generate_flight_summary(timed("error", [4, 0, 1, 0, 4]))

        assert summary.error_codes == [
            "3: err_sensor_accelerometer (accelerometer fault)",
            "1: err_commun_rc_receiver (RC link lost)",
        ]

    def test_high_bit(self):
        summary = generate_flight_summary(timed("error", [1 << 31]))
        assert summary.events_of(EventType.ERROR)[0].value == 32


class TestStateTransitions:
    """Tests for mode, arming and failsafe events."""

    def test_mode_changes(self):
        summary = generate_flight_summary(timed("mode", [2, 2, 5, 99]))
        texts = descriptions(summary.events_of(EventType.MODE_CHANGE))

        assert texts == [
            "Flight mode changed: mode_alt_hold (Altitude Hold Mode)",
            "Flight mode changed: mode_loiter (Loiter Mode / GPS Mode)",
            "Flight mode changed: Unknown Mode 99",
        ]

    def test_mode_value_is_integral(self):
        summary = generate_flight_summary(timed("mode", ["5.0"]))
        assert summary.events[0].value == 5

    def test_arm_disarm(self):
        summary = generate_flight_summary(timed("is_armed", [0, 1, 1, 0]))

        assert [e.type for e in summary.events] == [EventType.ARMING, EventType.DISARMING]
        assert summary.flight_phases.takeoff_time == pytest.approx(1.0)
        assert summary.flight_phases.landing_time == pytest.approx(3.0)

    def test_missing_armed_ignored(self):
        summary = generate_flight_summary(timed("is_armed", [1, "", 1]))
        assert len(summary.events) == 1

    def test_failsafe_trigger_and_clear(self):
        summary = generate_flight_summary(timed("fs_act", [0, 3, 3, 0, 42]))
        texts = descriptions(summary.events_of(EventType.FAILSAFE))

        assert texts == [
            "Failsafe triggered: fs_rtl (return to launch - link lost or requested)",
            "Failsafe cleared (fs_none)",
            "Failsafe triggered: Unknown Failsafe 42",
        ]


class TestFlightPhases:
    """Tests for takeoff, landing and crash heuristics."""

    def test_crash_after_landing(self):
        rows = [
            {"time": 0, "is_armed": 1, "fs_act": 0},
            {"time": 1000, "is_armed": 0, "fs_act": 0},
            {"time": 2000, "is_armed": 0, "fs_act": 7},
        ]
        summary = generate_flight_summary(rows)

        assert summary.flight_phases.landing_time == pytest.approx(1.0)
        assert summary.flight_phases.crash_time == pytest.approx(2.0)

    def test_error_before_landing_is_not_crash(self):
        rows = [
            {"time": 0, "is_armed": 1, "error": 0},
            {"time": 1000, "is_armed": 1, "error": 2},
            {"time": 2000, "is_armed": 0, "error": 2},
        ]
        summary = generate_flight_summary(rows)

        assert summary.flight_phases.crash_time is None

    def test_zero_valued_events_ignored(self):
        """A failsafe cleared after landing is not a crash."""
        rows = [
            {"time": 0, "is_armed": 1, "fs_act": 3},
            {"time": 1000, "is_armed": 0, "fs_act": 3},
            {"time": 2000, "is_armed": 0, "fs_act": 0},
        ]
        summary = generate_flight_summary(rows)

        assert summary.flight_phases.landing_time == pytest.approx(1.0)
        assert summary.flight_phases.crash_time is None

    def test_no_landing_any_error_is_crash(self):
        summary = generate_flight_summary(timed("error", [0, 0, 8]))

        assert summary.flight_phases.landing_time is None
        assert summary.flight_phases.crash_time == pytest.approx(2.0)

    def test_clean_flight(self):
        summary = generate_flight_summary(timed("is_armed", [1, 1, 0]))
        assert summary.flight_phases.crash_time is None


class TestAggregates:
    """Tests for extrema and averages."""

    def test_monotonic_extrema(self):
        alts = [10.0, 35.5, 20.0, "", 34.9, -2.0]
        volts = [16.8, 0.0, 15.1, 15.3, 14.9, 15.0]
        rows = [
            {"time": i * 200, "altitude": a, "esc1_voltage": v}
            for i, (a, v) in enumerate(zip(alts, volts))
        ]
        summary = generate_flight_summary(rows)

        assert all(summary.max_altitude >= a for a in alts if a != "")
        assert all(summary.battery.min_voltage <= v for v in volts if v > 0)
        assert summary.max_altitude == pytest.approx(35.5)
        assert summary.battery.min_voltage == pytest.approx(14.9)

    def test_attitude_radian_heuristic(self):
        """Small magnitudes are radians; larger ones already degrees."""
        rows = [
            {"time": 0, "roll": 0.5, "pitch": -0.1},
            {"time": 1000, "roll": -30.0, "pitch": 6.0},
        ]
        summary = generate_flight_summary(rows)

        assert summary.attitude.max_roll == pytest.approx(30.0)
        assert summary.attitude.max_pitch == pytest.approx(6.0 * 57.3)

    def test_gps_stats_separate_counts(self):
        rows = [
            {"time": 0, "satellite_num": 10, "HDOP": 0.9},
            {"time": 1000, "satellite_num": 8},
            {"time": 2000, "satellite_num": 12, "HDOP": 1.5},
        ]
        summary = generate_flight_summary(rows)

        assert summary.gps_stats.min_satellites == 8
        assert summary.gps_stats.avg_satellites == pytest.approx(10.0)
        assert summary.gps_stats.max_hdop == pytest.approx(1.5)
        assert summary.gps_stats.avg_hdop == pytest.approx(1.2)

    def test_max_distance(self):
        rows = [
            {"time": 0, "lat": 240000000, "lng": 1210000000},
            {"time": 1000, "lat": 24.001, "lng": 121.0},
            {"time": 2000, "lat": 0, "lng": 121.0},
        ]
        summary = generate_flight_summary(rows)

        assert summary.max_distance == pytest.approx(111.2, rel=0.01)

    def test_no_gps_no_distance(self):
        summary = generate_flight_summary(timed("roll", [0.1]))
        assert summary.max_distance is None


class TestSerialization:
    """Tests for the context rendering."""

    def test_to_dict_keys(self):
        rows = [
            {"time": 0, "esc1_voltage": 16.8, "is_armed": 1, "motor1": 15000, "HDOP": 0.8},
            {"time": 1000, "esc1_voltage": 16.7, "is_armed": 0},
        ]
        data = generate_flight_summary(rows).to_dict()

        assert data["version"] == "v1"
        assert data["durationSeconds"] == pytest.approx(1.0)
        assert set(data["battery"]) == {"startVoltage", "endVoltage", "minVoltage", "maxCurrent", "avgCurrent"}
        assert data["batteryProfile"]["cellCount"] == 4
        assert data["motorStats"][0] == {"id": 1, "maxVal": 15000, "avgVal": 15000.0, "saturatedDuration": 0.0}
        assert data["gpsStats"]["maxHDOP"] == pytest.approx(0.8)
        assert data["flightPhases"] == {"takeoffTime": 0.0, "landingTime": 1.0, "crashTime": None}
        assert data["events"][0]["type"] == "BATTERY_WARNING"

    def test_event_without_value_omits_key(self):
        from flightlog.models.summary import FlightEvent

        event = FlightEvent(1.0, EventType.ERROR, "x")
        assert "value" not in event.to_dict()

    def test_context_is_json(self):
        rows = timed("error", [0, 4])
        context = generate_flight_summary(rows).to_context()
        parsed = json.loads(context)

        assert parsed["errorCodes"] == ["3: err_sensor_accelerometer (accelerometer fault)"]
        assert "\n  " in context
