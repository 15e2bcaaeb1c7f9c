"""
Tests for recommendation context loading
"""
from datetime import timedelta

from sqlalchemy import event
from sqlalchemy.exc import OperationalError

from services.recommendation_context import RecommendationContextLoader
from fixtures.training_fixtures import (
    NOW,
    TODAY,
    add_journal,
    add_recovery,
    add_session,
    add_weight,
    add_wellness,
)


def _seed(db, user_id):
    add_session(db, user_id, NOW - timedelta(days=1))
    add_weight(db, user_id, TODAY - timedelta(days=7), 80.0)
    add_weight(db, user_id, TODAY, 80.6)
    add_wellness(db, user_id, TODAY - timedelta(days=1), stress_level=4.0, sleep_hours=7.5)
    add_wellness(db, user_id, TODAY, stress_level=6.0)
    add_journal(db, user_id, TODAY - timedelta(days=2))
    add_recovery(db, user_id, "stretching", NOW - timedelta(days=3))
    db.commit()


def test_loads_every_domain_newest_first(db_session, user_id):
    _seed(db_session, user_id)

    context = RecommendationContextLoader(db_session).load(user_id)

    assert [w.value for w in context.weight_history] == [80.6, 80.0]
    assert [w.date for w in context.wellness_scores] == [TODAY, TODAY - timedelta(days=1)]
    assert [w.sleep_hours for w in context.sleep_records] == [7.5]
    assert len(context.journal_entries) == 1
    assert len(context.recovery_sessions) == 1
    assert context.failed_fetches == []


def test_type_filter_limits_fetches(db_session, user_id):
    _seed(db_session, user_id)

    context = RecommendationContextLoader(db_session).load(user_id, "nutrition")

    assert len(context.weight_history) == 2
    assert context.wellness_scores == []
    assert context.recovery_sessions == []


def test_failed_fetch_becomes_empty_list(db_session, user_id, monkeypatch):
    _seed(db_session, user_id)
    loader = RecommendationContextLoader(db_session)

    def broken(_user_id):
        raise OperationalError("SELECT ...", {}, Exception("no such table: emotional_journal"))

    monkeypatch.setattr(loader, "_journal_entries", broken)

    context = loader.load(user_id)

    assert context.journal_entries == []
    assert context.failed_fetches == ["journal_entries"]
    # the other domains are unaffected
    assert len(context.weight_history) == 2
    assert len(context.recovery_sessions) == 1


def test_other_users_rows_excluded(db_session, user_id):
    _seed(db_session, "someone-else")

    context = RecommendationContextLoader(db_session).load(user_id)

    assert context.weight_history == []
    assert context.journal_entries == []


def test_only_rule_inputs_are_queried(db_session, user_id):
    _seed(db_session, user_id)
    statements = []

    def record(conn, cursor, statement, parameters, context, executemany):
        statements.append(statement)

    engine = db_session.get_bind()
    event.listen(engine, "before_cursor_execute", record)
    try:
        RecommendationContextLoader(db_session).load(user_id)
    finally:
        event.remove(engine, "before_cursor_execute", record)

    queried = " ".join(statements)
    assert "FROM workout_sessions" not in queried
    assert "FROM meal_plans" not in queried
    assert "FROM user_metrics_history" in queried
