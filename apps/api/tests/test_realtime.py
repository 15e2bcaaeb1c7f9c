"""
Tests for the realtime broadcast layer
"""
from uuid import UUID

from redis.exceptions import ConnectionError as RedisConnectionError, TimeoutError as RedisTimeoutError

from core import realtime
from core.realtime import RealtimeBroadcaster


def test_publish_envelope(broadcaster, fake_redis):
    assert broadcaster.publish("set_completed", {"session_id": "abc", "reps": 5}) is True

    channel, message = fake_redis.published[0]
    assert channel == "training_progress"
    assert message["type"] == "broadcast"
    assert message["event"] == "set_completed"
    assert message["payload"] == {"session_id": "abc", "reps": 5}
    assert "timestamp" in message


def test_non_json_values_serialized_as_strings(broadcaster, fake_redis):
    session_id = UUID("12345678-1234-5678-1234-567812345678")
    broadcaster.publish("set_completed", {"session_id": session_id})

    _, message = fake_redis.published[0]
    assert message["payload"]["session_id"] == str(session_id)


def test_no_redis_skips_publish(monkeypatch):
    monkeypatch.setattr(realtime, "get_redis_client", lambda: None)
    assert RealtimeBroadcaster(channel="training_progress").publish("set_completed", {}) is False


def test_redis_errors_are_swallowed(broadcaster, fake_redis):
    fake_redis.fail_with = RedisConnectionError("connection refused")
    assert broadcaster.publish("set_completed", {}) is False

    fake_redis.fail_with = RedisTimeoutError("timed out")
    assert broadcaster.publish("set_completed", {}) is False
    assert fake_redis.published == []


def test_default_channel_from_settings(fake_redis):
    from core.config import settings
    assert RealtimeBroadcaster(client=fake_redis).channel == settings.REALTIME_CHANNEL
