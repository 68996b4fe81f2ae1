"""
Punctuality and worked-duration classification (pure functions).

Tests:
  - check-in at the end of the grace period is PRESENT
  - one second past the grace period is LATE, lateness counted from shift start
  - half-day demotion applies to PRESENT and LATE alike
  - a full day never promotes LATE back to PRESENT
"""

from __future__ import annotations

from datetime import datetime, time
from zoneinfo import ZoneInfo

import pytest

from emenu.services.classifier import (
    CHECK_OUT_TRANSITIONS,
    AttendanceState,
    AttendanceStatus,
    classify_duration,
    classify_punctuality,
    state_of,
)

TZ = ZoneInfo("Asia/Phnom_Penh")
NINE = time(9, 0)


def _on_monday(hour: int, minute: int = 0, second: int = 0) -> datetime:
    return datetime(2026, 10, 19, hour, minute, second, tzinfo=TZ)


class TestPunctuality:
    @pytest.mark.parametrize(
        "check_in",
        [_on_monday(8, 30), _on_monday(9, 0), _on_monday(9, 15, 0)],
    )
    def test_within_grace_is_present(self, check_in: datetime) -> None:
        result = classify_punctuality(NINE, 15, check_in)
        assert result.status is AttendanceStatus.PRESENT
        assert result.late_minutes == 0

    def test_one_second_past_grace_is_late(self) -> None:
        result = classify_punctuality(NINE, 15, _on_monday(9, 15, 1))
        assert result.status is AttendanceStatus.LATE
        assert result.late_minutes == 15

    def test_lateness_measured_from_shift_start(self) -> None:
        result = classify_punctuality(NINE, 15, _on_monday(10, 7, 30))
        assert result.status is AttendanceStatus.LATE
        assert result.late_minutes == 67

    def test_zero_threshold(self) -> None:
        assert classify_punctuality(NINE, 0, _on_monday(9, 0)).status is AttendanceStatus.PRESENT
        late = classify_punctuality(NINE, 0, _on_monday(9, 0, 59))
        assert late.status is AttendanceStatus.LATE
        assert late.late_minutes == 0

    def test_negative_threshold_rejected(self) -> None:
        with pytest.raises(ValueError):
            classify_punctuality(NINE, -1, _on_monday(9, 0))


class TestDuration:
    def test_short_day_demotes_late_to_half_day(self) -> None:
        result = classify_duration(
            _on_monday(9, 0), _on_monday(12, 30), 240, AttendanceStatus.LATE
        )
        assert result.total_work_minutes == 210
        assert result.status is AttendanceStatus.HALF_DAY

    def test_short_day_demotes_present_to_half_day(self) -> None:
        result = classify_duration(
            _on_monday(9, 0), _on_monday(12, 30), 240, AttendanceStatus.PRESENT
        )
        assert result.status is AttendanceStatus.HALF_DAY

    def test_full_day_keeps_late(self) -> None:
        result = classify_duration(
            _on_monday(9, 0), _on_monday(18, 0), 240, AttendanceStatus.LATE
        )
        assert result.total_work_minutes == 540
        assert result.status is AttendanceStatus.LATE

    def test_full_day_keeps_present(self) -> None:
        result = classify_duration(
            _on_monday(9, 0), _on_monday(18, 0), 240, AttendanceStatus.PRESENT
        )
        assert result.status is AttendanceStatus.PRESENT

    def test_exactly_threshold_is_not_half_day(self) -> None:
        result = classify_duration(
            _on_monday(9, 0), _on_monday(13, 0), 240, AttendanceStatus.PRESENT
        )
        assert result.total_work_minutes == 240
        assert result.status is AttendanceStatus.PRESENT

    def test_partial_minutes_truncated(self) -> None:
        result = classify_duration(
            _on_monday(9, 0), _on_monday(12, 59, 59), 240, AttendanceStatus.PRESENT
        )
        assert result.total_work_minutes == 239
        assert result.status is AttendanceStatus.HALF_DAY

    def test_check_out_must_follow_check_in(self) -> None:
        with pytest.raises(ValueError):
            classify_duration(_on_monday(9, 0), _on_monday(9, 0), 240, AttendanceStatus.PRESENT)

    def test_half_day_has_no_outgoing_transition(self) -> None:
        with pytest.raises(ValueError):
            classify_duration(
                _on_monday(9, 0), _on_monday(18, 0), 240, AttendanceStatus.HALF_DAY
            )


class TestTransitionTable:
    def test_nothing_promotes_to_present(self) -> None:
        for (before, _short), after in CHECK_OUT_TRANSITIONS.items():
            if after is AttendanceStatus.PRESENT:
                assert before is AttendanceStatus.PRESENT

    def test_every_short_day_ends_half_day(self) -> None:
        for (_before, short), after in CHECK_OUT_TRANSITIONS.items():
            assert (after is AttendanceStatus.HALF_DAY) == short

    def test_state_of(self) -> None:
        assert state_of(None) is AttendanceState.CHECKED_IN
        assert state_of(_on_monday(18, 0)) is AttendanceState.CHECKED_OUT
