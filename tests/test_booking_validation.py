"""Booking request validator tests — check order, messages, local calendar."""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from portal.common.constants import BookingStatus
from portal.rooms.intervals import Interval
from portal.rooms.validation import (
    BookingDraft,
    RejectionKind,
    check_request,
    validate_booking_request,
)

ICT = ZoneInfo("Asia/Ho_Chi_Minh")
ROOM = uuid.uuid4()


def _draft(**overrides) -> BookingDraft:
    values = dict(
        title="Sprint planning",
        room_id=ROOM,
        start_time=datetime(2030, 3, 10, 9, 0),
        end_time=datetime(2030, 3, 10, 10, 0),
        description=None,
    )
    values.update(overrides)
    return BookingDraft(**values)


def _local(hour: int, minute: int = 0, day: int = 10) -> datetime:
    return datetime(2030, 3, day, hour, minute, tzinfo=ICT)


# ═════════════════════════════════════════════════════════════════════
# Structural checks
# ═════════════════════════════════════════════════════════════════════


class TestMissingFields:

    @pytest.mark.parametrize("field", ["title", "room_id", "start_time", "end_time"])
    def test_each_required_field(self, field):
        decision = check_request(_draft(**{field: None}), tz=ICT)
        assert not decision.accepted
        assert decision.rejection.kind == RejectionKind.missing_field
        assert decision.rejection.field == field
        assert decision.rejection.message == "Please fill in all required fields."

    def test_blank_title_is_missing(self):
        decision = check_request(_draft(title="   "), tz=ICT)
        assert decision.rejection.kind == RejectionKind.missing_field

    def test_description_is_optional(self):
        assert check_request(_draft(description=None), tz=ICT).accepted

    def test_missing_field_wins_over_invalid_range(self):
        decision = check_request(
            _draft(title=None, start_time=_local(11), end_time=_local(10)), tz=ICT
        )
        assert decision.rejection.kind == RejectionKind.missing_field


class TestCrossDay:

    def test_cross_day_rejected(self):
        decision = check_request(
            _draft(start_time=_local(23), end_time=_local(1, day=11)), tz=ICT
        )
        assert decision.rejection.kind == RejectionKind.cross_day_booking
        assert decision.rejection.field == "end_time"
        assert decision.rejection.message == (
            "Booking must be on the same day. Please select start and end "
            "times on the same date."
        )

    def test_cross_day_checked_before_time_order(self):
        # End is on an earlier day: the day check reports first
        decision = check_request(
            _draft(start_time=_local(9, day=11), end_time=_local(10, day=10)), tz=ICT
        )
        assert decision.rejection.kind == RejectionKind.cross_day_booking

    def test_same_utc_day_but_different_local_days(self):
        # 16:00–18:00 UTC is 23:00–01:00 in ICT
        decision = check_request(
            _draft(
                start_time=datetime(2030, 3, 10, 16, tzinfo=timezone.utc),
                end_time=datetime(2030, 3, 10, 18, tzinfo=timezone.utc),
            ),
            tz=ICT,
        )
        assert decision.rejection.kind == RejectionKind.cross_day_booking

    def test_different_utc_days_but_same_local_day(self):
        # 20:00 UTC on the 9th to 02:00 UTC on the 10th is 03:00–09:00 ICT on the 10th
        decision = check_request(
            _draft(
                start_time=datetime(2030, 3, 9, 20, tzinfo=timezone.utc),
                end_time=datetime(2030, 3, 10, 2, tzinfo=timezone.utc),
            ),
            tz=ICT,
        )
        assert decision.accepted


class TestTimeRange:

    def test_start_equal_end_rejected(self):
        decision = check_request(_draft(start_time=_local(9), end_time=_local(9)), tz=ICT)
        assert decision.rejection.kind == RejectionKind.invalid_time_range
        assert decision.rejection.message == "End time must be after start time."

    def test_end_before_start_rejected(self):
        decision = check_request(_draft(start_time=_local(10), end_time=_local(9)), tz=ICT)
        assert decision.rejection.kind == RejectionKind.invalid_time_range


# ═════════════════════════════════════════════════════════════════════
# Accepted candidate
# ═════════════════════════════════════════════════════════════════════


class TestCandidate:

    def test_naive_input_is_local_time(self):
        decision = check_request(_draft(), tz=ICT)
        assert decision.accepted
        interval = decision.candidate.interval
        assert interval.start == datetime(2030, 3, 10, 2, tzinfo=timezone.utc)
        assert interval.end == datetime(2030, 3, 10, 3, tzinfo=timezone.utc)

    def test_candidate_is_pending(self):
        decision = check_request(_draft(), tz=ICT)
        assert decision.candidate.status == BookingStatus.pending

    def test_title_and_description_are_trimmed(self):
        decision = check_request(
            _draft(title="  Retro  ", description="   "), tz=ICT
        )
        assert decision.candidate.title == "Retro"
        assert decision.candidate.description is None


# ═════════════════════════════════════════════════════════════════════
# Full validation (with snapshot)
# ═════════════════════════════════════════════════════════════════════


class TestValidateBookingRequest:

    def _approved(self, start: datetime, end: datetime) -> Interval:
        return Interval(start.astimezone(timezone.utc), end.astimezone(timezone.utc))

    def test_empty_snapshot_accepts_valid_request(self):
        assert validate_booking_request(_draft(), [], tz=ICT).accepted

    def test_overlap_rejected_with_conflict(self):
        existing = [self._approved(_local(9, 30), _local(10, 30))]
        decision = validate_booking_request(_draft(), existing, tz=ICT)
        assert decision.rejection.kind == RejectionKind.scheduling_conflict
        assert decision.rejection.field == "start_time"
        assert decision.rejection.message == (
            "This room is already booked for the selected time. Please "
            "choose a different time or room."
        )

    def test_back_to_back_accepted(self):
        existing = [
            self._approved(_local(8), _local(9)),
            self._approved(_local(10), _local(11)),
        ]
        assert validate_booking_request(_draft(), existing, tz=ICT).accepted

    def test_structural_failure_reported_before_conflict(self):
        existing = [self._approved(_local(9), _local(10))]
        decision = validate_booking_request(
            _draft(start_time=_local(10), end_time=_local(9)), existing, tz=ICT
        )
        assert decision.rejection.kind == RejectionKind.invalid_time_range

    def test_scenario_first_approved_then_overlapping_rejected(self):
        """A 09:00–10:00 approval blocks 09:30–10:30 but not 10:00–11:00."""
        existing = [
            self._approved(
                datetime(2024, 6, 1, 9, tzinfo=ICT), datetime(2024, 6, 1, 10, tzinfo=ICT)
            )
        ]

        overlapping = _draft(
            start_time=datetime(2024, 6, 1, 9, 30), end_time=datetime(2024, 6, 1, 10, 30)
        )
        adjacent = _draft(
            start_time=datetime(2024, 6, 1, 10), end_time=datetime(2024, 6, 1, 11)
        )

        assert (
            validate_booking_request(overlapping, existing, tz=ICT).rejection.kind
            == RejectionKind.scheduling_conflict
        )
        assert validate_booking_request(adjacent, existing, tz=ICT).accepted

    def test_idempotent(self):
        existing = [self._approved(_local(9, 30), _local(10, 30))]
        draft = _draft()
        first = validate_booking_request(draft, existing, tz=ICT)
        second = validate_booking_request(draft, existing, tz=ICT)
        assert first == second

    def test_default_calendar_is_utc(self):
        decision = validate_booking_request(
            _draft(
                start_time=datetime(2030, 3, 10, 23, tzinfo=timezone.utc),
                end_time=datetime(2030, 3, 10, 23, 59, tzinfo=timezone.utc) + timedelta(minutes=2),
            ),
            [],
        )
        assert decision.rejection.kind == RejectionKind.cross_day_booking
