"""
Tests for the Training Metrics Aggregator
"""
from datetime import timedelta
from types import SimpleNamespace

import pytest

from services.training_metrics import (
    TrainingMetricsAggregator,
    adherence_rate,
    fatigue_index,
    intensity_distribution,
    progression_rate,
    readiness_score,
)
from fixtures.training_fixtures import NOW, add_planned, add_session


def _session(total_volume=0.0, rpe=None, set_rpes=()):
    sets = [SimpleNamespace(completed=True, rpe=r) for r in set_rpes]
    return SimpleNamespace(
        total_volume=total_volume,
        rpe=rpe,
        exercises=[SimpleNamespace(sets=sets)],
    )


class TestFormulas:

    def test_adherence_nothing_planned(self):
        assert adherence_rate(3, 0) == 0.0

    def test_adherence_can_exceed_one(self):
        assert adherence_rate(6, 5) == pytest.approx(1.2)

    def test_progression_needs_two_sessions(self):
        assert progression_rate([_session(1000)]) == 0.0

    def test_progression_oldest_to_newest(self):
        sessions = [_session(1100), _session(900), _session(1000)]  # newest first
        assert progression_rate(sessions) == pytest.approx(0.1)

    def test_progression_zero_baseline(self):
        assert progression_rate([_session(500), _session(0)]) == 0.0

    def test_fatigue_no_sessions(self):
        assert fatigue_index([]) == 0.0

    def test_fatigue_defaults_missing_rpe_to_five(self):
        assert fatigue_index([_session(rpe=None)]) == pytest.approx(6.0)

    def test_fatigue_is_capped(self):
        assert fatigue_index([_session(rpe=10), _session(rpe=9)]) == 10.0

    def test_readiness_unclamped_above_ten(self):
        """6 of 5 planned at fatigue 3: 10 - 3 + 2 x 1.2"""
        assert readiness_score(3.0, 1.2) == pytest.approx(9.4)
        assert readiness_score(0.0, 1.5) == pytest.approx(13.0)

    def test_readiness_floor_at_zero(self):
        assert readiness_score(10.0, 0.0) == 0.0

    def test_intensity_distribution_buckets(self):
        dist = intensity_distribution([_session(set_rpes=(5, 6, 7, 8, 9, 10))])
        assert dist == {"low": 33, "moderate": 33, "high": 33}

    def test_intensity_distribution_rounds_half_up(self):
        """1 of 8 sets is 12.5% and 7 of 8 is 87.5%"""
        dist = intensity_distribution([_session(set_rpes=(5, 7, 7, 7, 7, 7, 7, 7))])
        assert dist == {"low": 13, "moderate": 88, "high": 0}

    def test_intensity_distribution_sums_to_about_100(self):
        dist = intensity_distribution([_session(set_rpes=(5, 7, 7, 9, None, 10, 8))])
        assert 99 <= sum(dist.values()) <= 101

    def test_intensity_distribution_no_sets(self):
        assert intensity_distribution([_session()]) == {"low": 0, "moderate": 0, "high": 0}

    def test_incomplete_sets_not_counted(self):
        session = _session(set_rpes=(9,))
        session.exercises[0].sets.append(SimpleNamespace(completed=False, rpe=5))
        assert intensity_distribution([session]) == {"low": 0, "moderate": 0, "high": 100}


class TestTrainingMetricsAggregator:

    def test_empty_history(self, db_session, user_id):
        metrics = TrainingMetricsAggregator(db_session).compute(user_id, now=NOW)

        assert metrics.adherence_rate == 0.0
        assert metrics.progression_rate == 0.0
        assert metrics.fatigue_index == 0.0
        assert metrics.readiness_score == 10.0
        assert metrics.intensity_distribution == {"low": 0, "moderate": 0, "high": 0}
        assert set(metrics.weekly_volume) == {"chest", "back", "legs", "shoulders", "arms"}
        assert all(v == 0 for v in metrics.weekly_volume.values())

    def test_readiness_scenario_over_adherent_user(self, db_session, user_id):
        """Completed 6 of 5 planned sessions with mean RPE 2.5 -> fatigue 3, readiness 9.4"""
        for day in range(6):
            add_session(db_session, user_id, NOW - timedelta(days=day + 1), rpe=2.5)
        add_planned(db_session, user_id, 5)
        db_session.commit()

        metrics = TrainingMetricsAggregator(db_session).compute(user_id, now=NOW)

        assert metrics.adherence_rate == pytest.approx(1.2)
        assert metrics.fatigue_index == pytest.approx(3.0)
        assert metrics.readiness_score == pytest.approx(9.4)

    def test_only_completed_sessions_count_toward_adherence(self, db_session, user_id):
        add_session(db_session, user_id, NOW - timedelta(days=1), status="completed")
        add_session(db_session, user_id, NOW - timedelta(days=2), status="skipped")
        add_planned(db_session, user_id, 4)
        db_session.commit()

        metrics = TrainingMetricsAggregator(db_session).compute(user_id, now=NOW)
        assert metrics.adherence_rate == 0.25
        assert metrics.planned_workouts == 4

    def test_sessions_older_than_four_weeks_ignored(self, db_session, user_id):
        add_session(db_session, user_id, NOW - timedelta(weeks=5), rpe=10)
        db_session.commit()

        metrics = TrainingMetricsAggregator(db_session).compute(user_id, now=NOW)
        assert metrics.fatigue_index == 0.0

    def test_weekly_volume_and_intensity_from_sets(self, db_session, user_id):
        add_session(
            db_session, user_id, NOW - timedelta(days=1),
            [("Back Squat", [(100.0, 5, 6.0), (100.0, 5, 8.0)]), ("Barbell Row", [(60.0, 10, 9.0)])],
            total_volume=1600.0,
        )
        db_session.commit()

        metrics = TrainingMetricsAggregator(db_session).compute(user_id, now=NOW)

        assert metrics.weekly_volume["legs"] == 10
        assert metrics.weekly_volume["back"] == 10
        assert metrics.weekly_volume["chest"] == 0
        assert metrics.intensity_distribution == {"low": 33, "moderate": 33, "high": 33}
        assert metrics.volume_landmarks["legs"].current_volume == 10

    def test_rounding(self, db_session, user_id):
        for day, rpe in enumerate((7.0, 6.0, 6.0)):
            add_session(db_session, user_id, NOW - timedelta(days=day + 1), rpe=rpe)
        add_planned(db_session, user_id, 7)
        db_session.commit()

        metrics = TrainingMetricsAggregator(db_session).compute(user_id, now=NOW)

        assert metrics.adherence_rate == 0.43   # 3 / 7
        assert metrics.fatigue_index == 7.6     # 6.333 x 1.2
        assert metrics.readiness_score == 3.3   # 10 - 7.6 + 0.857
