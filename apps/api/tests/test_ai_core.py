"""
Tests for the AI core HTTP client
"""
from unittest.mock import MagicMock

import requests

from core.config import settings
from services import ai_core
from services.ai_core import HttpAICoreClient, NullAICore


def _client(json_body=None, error=None):
    http = MagicMock()
    response = MagicMock()
    if error is not None:
        http.get.side_effect = error
        http.post.side_effect = error
    else:
        response.json.return_value = json_body
        http.get.return_value = response
        http.post.return_value = response
    return HttpAICoreClient("http://ai-core.local/", timeout=5, session=http), http


def test_fetches_recommendations():
    items = [{"title": "Try a tempo squat", "type": "workout"}, "garbage"]
    client, http = _client({"recommendations": items})

    assert client.rule_based_recommendations("user-1") == [items[0]]
    http.get.assert_called_once_with("http://ai-core.local/users/user-1/recommendations", timeout=5)


def test_accepts_bare_list_payload():
    client, _ = _client([{"title": "Walk"}])
    assert client.rule_based_recommendations("user-1") == [{"title": "Walk"}]


def test_transport_error_degrades_to_empty():
    client, _ = _client(error=requests.ConnectionError("refused"))
    assert client.rule_based_recommendations("user-1") == []


def test_bad_json_degrades_to_empty():
    client, http = _client()
    http.get.return_value.json.side_effect = ValueError("not json")
    assert client.rule_based_recommendations("user-1") == []


def test_unexpected_payload_shape():
    client, _ = _client({"recommendations": "none today"})
    assert client.rule_based_recommendations("user-1") == []


def test_record_session_posts_summary():
    client, http = _client({})
    client.record_session({"user_id": "user-1", "total_volume": 600})
    http.post.assert_called_once_with(
        "http://ai-core.local/sessions", json={"user_id": "user-1", "total_volume": 600}, timeout=5,
    )


def test_record_session_failure_is_logged_not_raised():
    client, _ = _client(error=requests.Timeout("slow"))
    client.record_session({"user_id": "user-1"})


def test_dependency_picks_client_from_settings(monkeypatch):
    monkeypatch.setattr(settings, "AI_CORE_URL", None)
    assert isinstance(ai_core.get_ai_core(), NullAICore)

    monkeypatch.setattr(settings, "AI_CORE_URL", "http://ai-core.local")
    assert isinstance(ai_core.get_ai_core(), HttpAICoreClient)
