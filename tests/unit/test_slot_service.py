"""Tests for slot enumeration and the availability backfill."""

from datetime import date, datetime

from schemas.availability_schema import AvailabilityWindow
from services.slot_service import (
    ensure_availability_format,
    generate_time_slots,
    needs_slot_backfill,
    parse_time,
    slots_to_candidates,
)


class TestGenerateTimeSlots:
    """Tests for generate_time_slots."""

    def test_half_hour_steps_before_end(self):
        """09:00-11:00 yields four half-hour starts."""
        assert generate_time_slots("09:00", "11:00") == ["09:00", "09:30", "10:00", "10:30"]

    def test_end_not_on_step_boundary(self):
        """Last slot is strictly before the end."""
        assert generate_time_slots("09:00", "10:15") == ["09:00", "09:30", "10:00"]

    def test_short_window_single_slot(self):
        assert generate_time_slots("09:00", "09:10") == ["09:00"]

    def test_inverted_window_is_empty(self):
        assert generate_time_slots("11:00", "09:00") == []

    def test_equal_bounds_is_empty(self):
        assert generate_time_slots("09:00", "09:00") == []

    def test_missing_or_garbage_input_is_empty(self):
        assert generate_time_slots(None, "10:00") == []
        assert generate_time_slots("", "10:00") == []
        assert generate_time_slots("9h", "10:00") == []
        assert generate_time_slots("09:00", "25:00") == []

    def test_late_window_does_not_wrap(self):
        """A window ending near midnight stops before it."""
        assert generate_time_slots("23:00", "23:59") == ["23:00", "23:30"]

    def test_custom_granularity(self):
        assert generate_time_slots("09:00", "10:00", granularity_minutes=15) == [
            "09:00", "09:15", "09:30", "09:45",
        ]

    def test_deterministic(self):
        assert generate_time_slots("08:00", "12:00") == generate_time_slots("08:00", "12:00")


class TestParseTime:
    def test_parses_hh_mm(self):
        assert parse_time("07:05").hour == 7
        assert parse_time(" 07:05 ").minute == 5

    def test_rejects_non_strings(self):
        assert parse_time(900) is None
        assert parse_time(None) is None


class TestEnsureAvailabilityFormat:
    """Tests for the stored-availability backfill."""

    def test_regenerates_missing_slots(self):
        windows = ensure_availability_format(
            [{"day": "Lundi", "startTime": "09:00", "endTime": "10:00"}]
        )
        assert len(windows) == 1
        assert windows[0].slots == ["09:00", "09:30"]

    def test_regenerates_empty_slots(self):
        windows = ensure_availability_format(
            [{"day": "Mardi", "startTime": "14:00", "endTime": "15:00", "slots": []}]
        )
        assert windows[0].slots == ["14:00", "14:30"]

    def test_keeps_existing_slots(self):
        windows = ensure_availability_format(
            [{"day": "Mardi", "startTime": "14:00", "endTime": "16:00", "slots": ["15:00"]}]
        )
        assert windows[0].slots == ["15:00"]

    def test_drops_incomplete_entries(self):
        windows = ensure_availability_format([
            {"day": "Lundi", "startTime": "09:00"},
            {"startTime": "09:00", "endTime": "10:00"},
            "Lundi 09:00",
            {"day": "Jeudi", "startTime": "09:00", "endTime": "10:00"},
        ])
        assert [w.day for w in windows] == ["Jeudi"]

    def test_non_list_gives_no_windows(self):
        assert ensure_availability_format(None) == []
        assert ensure_availability_format({"day": "Lundi"}) == []

    def test_accepts_window_objects(self):
        window = AvailabilityWindow(day="Lundi", start_time="09:00", end_time="10:00")
        assert ensure_availability_format([window])[0].slots == ["09:00", "09:30"]

    def test_document_uses_camel_case_keys(self):
        window = ensure_availability_format(
            [{"day": "Lundi", "startTime": "09:00", "endTime": "10:00"}]
        )[0]
        assert window.to_document() == {
            "day": "Lundi",
            "startTime": "09:00",
            "endTime": "10:00",
            "slots": ["09:00", "09:30"],
        }


class TestNeedsSlotBackfill:
    def test_detects_missing_slots(self):
        assert needs_slot_backfill([{"day": "Lundi", "startTime": "09:00", "endTime": "10:00"}])

    def test_complete_availability(self):
        assert not needs_slot_backfill(
            [{"day": "Lundi", "startTime": "09:00", "endTime": "10:00", "slots": ["09:00"]}]
        )

    def test_non_list(self):
        assert not needs_slot_backfill(None)


class TestSlotsToCandidates:
    def test_each_slot_blocks_an_hour(self):
        """Slots start every 30 minutes but last 60."""
        candidates = slots_to_candidates(date(2024, 1, 8), ["09:00", "09:30"])
        assert candidates[0].start == datetime(2024, 1, 8, 9, 0)
        assert candidates[0].end == datetime(2024, 1, 8, 10, 0)
        assert candidates[1].end == datetime(2024, 1, 8, 10, 30)

    def test_time_label(self):
        assert slots_to_candidates(date(2024, 1, 8), ["09:30"])[0].time == "09:30"

    def test_malformed_tokens_skipped(self):
        candidates = slots_to_candidates(date(2024, 1, 8), ["09:00", "nope", "10:00"])
        assert [c.time for c in candidates] == ["09:00", "10:00"]
