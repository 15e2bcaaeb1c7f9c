"""
Tests for the Periodization Cycle Generator
"""
from datetime import date, timedelta
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from models import PeriodizationCycle
from services.periodization import (
    PeriodizationCycleGenerator,
    PeriodizationError,
    deload_phases,
    mesocycle_count,
    training_phases,
)

START = date(2026, 10, 12)


class TestPhases:

    def test_strength_twelve_weeks(self):
        """floor(40%, 40%, 20%) of 12 weeks -> 4, 4, 2"""
        phases = training_phases(["strength"], 12)
        assert [p["id"] for p in phases] == ["accumulation", "intensification", "realization"]
        assert [p["duration_weeks"] for p in phases] == [4, 4, 2]

    def test_phase_parameters(self):
        accumulation, intensification, realization = training_phases(["strength"], 10)
        assert accumulation["intensity_range"] == {"min": 65, "max": 80}
        assert accumulation["volume_multiplier"] == 1.2
        assert intensification["intensity_range"] == {"min": 80, "max": 95}
        assert intensification["volume_multiplier"] == 0.8
        assert realization["intensity_range"] == {"min": 90, "max": 105}
        assert realization["volume_multiplier"] == 0.6
        assert realization["deload_week"] is True
        assert not accumulation["deload_week"] and not intensification["deload_week"]

    def test_durations_are_floored(self):
        assert [p["duration_weeks"] for p in training_phases(["strength"], 7)] == [2, 2, 1]

    def test_non_strength_goals_produce_no_phases(self):
        assert training_phases(["endurance", "fat_loss"], 12) == []

    def test_mesocycle_count_rounds_up(self):
        assert mesocycle_count(12) == 3
        assert mesocycle_count(13) == 4
        assert mesocycle_count(1) == 1

    def test_deload_phases_copy_first_phase(self):
        phases = training_phases(["strength"], 12)
        deload = deload_phases(phases)
        assert len(deload) == 1
        assert deload[0]["id"] == "accumulation"
        assert deload[0]["deload_week"] is True
        # original untouched
        assert phases[0]["deload_week"] is False

    def test_deload_phases_without_phases(self):
        assert deload_phases([]) == []


class TestCreatePlan:

    def test_twelve_week_strength_plan(self, db_session, user_id):
        plan = PeriodizationCycleGenerator(db_session).create_plan(user_id, ["strength"], 12, today=START)

        macro = plan.macrocycle
        assert macro.id.startswith("macro_")
        assert macro.name == "12-Week Training Plan"
        assert macro.start_date == START
        assert macro.end_date == START + timedelta(weeks=12)
        assert [p["duration_weeks"] for p in macro.phases] == [4, 4, 2]

        assert len(plan.mesocycles) == 3
        assert len(plan.microcycles) == 12
        for i, meso in enumerate(plan.mesocycles):
            assert meso.id == f"meso_{macro.id}_{i}"
            assert meso.parent_cycle_id == macro.id
            assert meso.start_date == START + timedelta(weeks=4 * i)
            assert meso.duration_weeks == 4

            micros = [m for m in plan.microcycles if m.parent_cycle_id == meso.id]
            assert [m.id for m in micros] == [f"micro_{meso.id}_{j}" for j in range(4)]
            assert [m.is_deload for m in micros] == [False, False, False, True]
            assert micros[3].phases[0]["deload_week"] is True
            assert micros[0].phases == macro.phases

    def test_every_row_persisted(self, db_session, user_id):
        PeriodizationCycleGenerator(db_session).create_plan(user_id, ["strength"], 8, today=START)

        rows = db_session.query(PeriodizationCycle).filter_by(user_id=user_id).all()
        assert len(rows) == 1 + 2 + 8

    def test_non_strength_plan_still_builds_structure(self, db_session, user_id):
        plan = PeriodizationCycleGenerator(db_session).create_plan(user_id, ["endurance"], 4, today=START)

        assert plan.macrocycle.phases == []
        assert len(plan.mesocycles) == 1
        assert [m.is_deload for m in plan.microcycles] == [False, False, False, True]
        assert plan.microcycles[3].phases == []

    def test_partial_last_mesocycle(self, db_session, user_id):
        """Mesocycles are always 4 weeks, even past the macrocycle end"""
        plan = PeriodizationCycleGenerator(db_session).create_plan(user_id, ["strength"], 6, today=START)
        assert len(plan.mesocycles) == 2
        assert plan.mesocycles[1].end_date == START + timedelta(weeks=8)

    def test_invalid_duration(self, db_session, user_id):
        with pytest.raises(ValueError):
            PeriodizationCycleGenerator(db_session).create_plan(user_id, ["strength"], 0, today=START)

    def test_write_failure_raises_and_keeps_earlier_rows(self, user_id):
        """Rows are committed one at a time; no rollback of earlier rows"""
        db = MagicMock()
        db.commit.side_effect = [None, None, OperationalError("INSERT", {}, Exception("connection lost"))]

        with pytest.raises(PeriodizationError):
            PeriodizationCycleGenerator(db).create_plan(user_id, ["strength"], 12, today=START)

        assert db.add.call_count == 3
        db.rollback.assert_called_once()


class TestListCycles:

    def test_list_by_type(self, db_session, user_id):
        generator = PeriodizationCycleGenerator(db_session)
        generator.create_plan(user_id, ["strength"], 8, today=START)

        assert len(generator.list_cycles(user_id)) == 11
        assert len(generator.list_cycles(user_id, "macrocycle")) == 1
        assert len(generator.list_cycles(user_id, "mesocycle")) == 2
        assert len(generator.list_cycles(user_id, "microcycle")) == 8

    def test_unknown_type(self, db_session, user_id):
        with pytest.raises(ValueError):
            PeriodizationCycleGenerator(db_session).list_cycles(user_id, "weekly")

    def test_other_users_excluded(self, db_session, user_id):
        generator = PeriodizationCycleGenerator(db_session)
        generator.create_plan("someone-else", ["strength"], 4, today=START)
        assert generator.list_cycles(user_id) == []
