"""
Tests for nutrition goals reads and writes
"""
from unittest.mock import MagicMock

from sqlalchemy.exc import OperationalError

from models import NutritionGoal
from services import nutrition_goals
from services.nutrition_goals import NOTICES, NutritionGoalsService, NutritionTargets
from core.exceptions import StoreErrorKind


def test_defaults_when_no_goals_set(db_session, user_id):
    targets, notice = NutritionGoalsService(db_session).get_goals(user_id)

    assert targets == NutritionTargets()
    assert targets.calories == 2000
    assert targets.protein == 150
    assert notice == NOTICES[StoreErrorKind.NO_ROWS]


def test_save_then_read(db_session, user_id):
    service = NutritionGoalsService(db_session)
    saved = NutritionTargets(calories=2600, protein=180, carbs=300, fat=80, fiber=35, sugar=None, water=3000)

    assert service.save_goals(user_id, saved) == (True, None)

    targets, notice = service.get_goals(user_id)
    assert targets == saved
    assert notice is None


def test_saved_goals_equal_to_defaults_are_not_flagged(db_session, user_id):
    service = NutritionGoalsService(db_session)
    service.save_goals(user_id, NutritionTargets())

    targets, notice = service.get_goals(user_id)
    assert targets == NutritionTargets()
    assert notice is None


def test_save_updates_active_row(db_session, user_id):
    service = NutritionGoalsService(db_session)
    service.save_goals(user_id, NutritionTargets(calories=2200))
    service.save_goals(user_id, NutritionTargets(calories=1800))

    rows = db_session.query(NutritionGoal).filter_by(user_id=user_id).all()
    assert len(rows) == 1
    assert rows[0].calories == 1800


def test_save_failure_reports_error(user_id):
    db = MagicMock()
    db.commit.side_effect = OperationalError("INSERT", {}, Exception("connection refused"))

    success, error = NutritionGoalsService(db).save_goals(user_id, NutritionTargets())

    assert success is False
    assert error == "Could not save your nutrition goals. Please try again."
    db.rollback.assert_called_once()


def test_missing_table_serves_defaults(db_session, user_id, monkeypatch):
    monkeypatch.setattr(nutrition_goals, "table_exists", lambda db, name: False)

    targets, notice = NutritionGoalsService(db_session).get_goals(user_id)

    assert targets == NutritionTargets()
    assert notice == NOTICES[StoreErrorKind.MISSING_SCHEMA]


def test_unreachable_store_serves_defaults(user_id, monkeypatch):
    monkeypatch.setattr(nutrition_goals, "table_exists", lambda db, name: True)
    db = MagicMock()
    db.query.side_effect = OperationalError("SELECT", {}, Exception("could not connect to server"))

    targets, notice = NutritionGoalsService(db).get_goals(user_id)

    assert targets == NutritionTargets()
    assert notice == NOTICES[StoreErrorKind.CONNECTIVITY]


def test_other_users_goals_not_returned(db_session, user_id):
    service = NutritionGoalsService(db_session)
    service.save_goals("someone-else", NutritionTargets(calories=3000))

    targets, notice = service.get_goals(user_id)
    assert targets.calories == 2000
    assert notice is not None
