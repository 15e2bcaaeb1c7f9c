"""
Tests for the Volume Landmark Estimator
"""
from datetime import datetime, timedelta, timezone

import pytest

from services.volume_landmarks import (
    VolumeLandmarkEstimator,
    VolumeLandmarks,
    landmarks_from_weekly_volumes,
    round_half_up,
    week_start,
)
from fixtures.training_fixtures import NOW, add_session


def bench(sets, reps=10):
    return ("Bench Press", [(60.0, reps, 7.0)] * sets)


class TestFormulas:

    def test_empty_history_gives_defaults(self):
        lm = landmarks_from_weekly_volumes([])
        assert lm.to_dict() == {
            "mev": 8,
            "mav": 16,
            "mrv": 24,
            "current_volume": 0,
            "weekly_progression": [],
        }

    def test_landmarks_from_history(self):
        """MEV = min non-zero, MRV = max x 1.2, MAV = MEV + 0.7 (MRV - MEV)"""
        lm = landmarks_from_weekly_volumes([30, 20, 40])
        assert lm.mev == 20
        assert lm.mrv == 48
        assert lm.mav == 40  # 20 + 28 * 0.7 = 39.6
        assert lm.current_volume == 30
        assert lm.weekly_progression == [30, 20, 40]

    def test_zero_weeks_ignored_for_mev(self):
        lm = landmarks_from_weekly_volumes([0, 12, 0, 10])
        assert lm.mev == 10
        assert lm.current_volume == 0

    def test_all_zero_weeks_keep_defaults_but_report_progression(self):
        lm = landmarks_from_weekly_volumes([0, 0, 0])
        assert (lm.mev, lm.mav, lm.mrv) == (8, 16, 24)
        assert lm.weekly_progression == [0, 0, 0]

    def test_progression_is_capped_at_eight_weeks(self):
        lm = landmarks_from_weekly_volumes(list(range(12, 0, -1)))
        assert lm.weekly_progression == [12, 11, 10, 9, 8, 7, 6, 5]

    @pytest.mark.parametrize("volumes", [[5], [5, 50], [100, 1, 30], [0, 3, 0, 7], [17, 17, 17]])
    def test_ordering_invariant(self, volumes):
        lm = landmarks_from_weekly_volumes(volumes)
        assert lm.mev <= lm.mav <= lm.mrv

    def test_round_half_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(3.5) == 4
        assert round_half_up(2.49) == 2


class TestWeekStart:

    def test_sunday_starts_the_week(self):
        assert week_start(datetime(2026, 10, 11, 9, tzinfo=timezone.utc)).isoformat() == "2026-10-11"

    def test_saturday_belongs_to_previous_sunday(self):
        assert week_start(datetime(2026, 10, 17, 23, tzinfo=timezone.utc)).isoformat() == "2026-10-11"

    def test_midweek(self):
        assert week_start(NOW).isoformat() == "2026-10-11"


class TestVolumeLandmarkEstimator:

    def test_no_history_returns_defaults(self, db_session, user_id):
        lm = VolumeLandmarkEstimator(db_session).estimate(user_id, "chest", now=NOW)
        assert lm == VolumeLandmarks.defaults()

    def test_unknown_muscle_group_raises(self, db_session, user_id):
        with pytest.raises(ValueError):
            VolumeLandmarkEstimator(db_session).estimate(user_id, "calves", now=NOW)

    def test_weekly_totals_from_sessions(self, db_session, user_id):
        add_session(db_session, user_id, NOW - timedelta(days=2), [bench(3)])    # this week: 30 reps
        add_session(db_session, user_id, NOW - timedelta(days=9), [bench(2)])    # last week: 20
        add_session(db_session, user_id, NOW - timedelta(days=16), [bench(2)])   # two weeks ago: 20 ...
        add_session(db_session, user_id, NOW - timedelta(days=15), [bench(2)])   # ... + 20 same week
        db_session.commit()

        lm = VolumeLandmarkEstimator(db_session).estimate(user_id, "chest", now=NOW)

        assert lm.weekly_progression == [30, 20, 40]
        assert lm.current_volume == 30
        assert (lm.mev, lm.mav, lm.mrv) == (20, 40, 48)

    def test_sessions_outside_window_ignored(self, db_session, user_id):
        add_session(db_session, user_id, NOW - timedelta(weeks=13), [bench(5)])
        db_session.commit()

        lm = VolumeLandmarkEstimator(db_session).estimate(user_id, "chest", now=NOW)
        assert lm == VolumeLandmarks.defaults()

    def test_history_without_matching_exercises(self, db_session, user_id):
        """Sessions exist but none train the group: defaults with zero weeks"""
        add_session(db_session, user_id, NOW - timedelta(days=1), [bench(3)])
        db_session.commit()

        lm = VolumeLandmarkEstimator(db_session).estimate(user_id, "back", now=NOW)
        assert (lm.mev, lm.mav, lm.mrv) == (8, 16, 24)
        assert lm.weekly_progression == [0]

    def test_other_users_sessions_ignored(self, db_session, user_id):
        add_session(db_session, "someone-else", NOW - timedelta(days=1), [bench(3)])
        db_session.commit()

        lm = VolumeLandmarkEstimator(db_session).estimate(user_id, "chest", now=NOW)
        assert lm == VolumeLandmarks.defaults()
