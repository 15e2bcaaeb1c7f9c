"""
AI Core Collaborator

The AI core is an external service that supplies rule-based recommendations
and user segmentation. The recommendation engine merges its output with the
local threshold rules.

`NullAICore` is the default when no AI_CORE_URL is configured.
`HttpAICoreClient` talks to the service over HTTP and degrades to "no
recommendations" on any transport or payload error.
"""

from typing import Any, Dict, List, Optional
import logging

import requests

from core.config import settings

logger = logging.getLogger(__name__)


class AICoreClient:
    """Interface the recommendation engine depends on."""

    def rule_based_recommendations(self, user_id: str) -> List[Dict[str, Any]]:
        raise NotImplementedError

    def record_session(self, summary: Dict[str, Any]) -> None:
        """Feed a completed-session summary for segmentation."""
        raise NotImplementedError


class NullAICore(AICoreClient):

    def rule_based_recommendations(self, user_id: str) -> List[Dict[str, Any]]:
        return []

    def record_session(self, summary: Dict[str, Any]) -> None:
        logger.debug(f"AI core disabled, dropping session summary for {summary.get('user_id')}")


class HttpAICoreClient(AICoreClient):

    def __init__(self, base_url: str, timeout: Optional[int] = None, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout or settings.EXTERNAL_API_TIMEOUT
        self.http = session or requests.Session()

    def rule_based_recommendations(self, user_id: str) -> List[Dict[str, Any]]:
        url = f"{self.base_url}/users/{user_id}/recommendations"
        try:
            response = self.http.get(url, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning(f"AI core recommendations unavailable for {user_id}: {e}")
            return []

        items = data.get("recommendations", []) if isinstance(data, dict) else data
        if not isinstance(items, list):
            logger.warning(f"AI core returned unexpected payload for {user_id}: {type(items).__name__}")
            return []
        return [item for item in items if isinstance(item, dict)]

    def record_session(self, summary: Dict[str, Any]) -> None:
        url = f"{self.base_url}/sessions"
        try:
            response = self.http.post(url, json=summary, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            logger.warning(f"AI core session feed failed for {summary.get('user_id')}: {e}")


def get_ai_core() -> AICoreClient:
    """FastAPI dependency: HTTP client when configured, otherwise a no-op."""
    if settings.AI_CORE_URL:
        return HttpAICoreClient(settings.AI_CORE_URL)
    return NullAICore()
