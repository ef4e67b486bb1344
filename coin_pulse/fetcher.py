from __future__ import annotations

import logging
import time
from typing import Any, Callable, Mapping, Optional

import requests

from .config import DEFAULT_USER_AGENT
from .errors import FetchFailed

logger = logging.getLogger(__name__)

BACKOFF_STEP_SECONDS = 0.5


class ResilientFetcher:
    """GET-and-decode JSON with linear backoff between attempts."""

    def __init__(
        self,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: float = 10.0,
        max_attempts: int = 3,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "User-Agent": user_agent,
                "Accept": "application/json",
            }
        )
        self._timeout = timeout
        self._max_attempts = max(1, max_attempts)
        self._sleep = sleep

    def fetch_json(
        self,
        url: str,
        params: Optional[Mapping[str, object]] = None,
        headers: Optional[Mapping[str, str]] = None,
        max_attempts: Optional[int] = None,
    ) -> Any:
        attempts = max(1, max_attempts or self._max_attempts)
        last_error: Optional[Exception] = None
        for attempt in range(1, attempts + 1):
            try:
                response = self._session.get(url, params=params, headers=dict(headers or {}), timeout=self._timeout)
                response.raise_for_status()
                return response.json()
            except (requests.RequestException, ValueError) as exc:
                last_error = exc
                logger.debug("Attempt %d/%d for %s failed: %s", attempt, attempts, url, exc)
                if attempt < attempts:
                    self._sleep(attempt * BACKOFF_STEP_SECONDS)
        logger.warning("Giving up on %s after %d attempts: %s", url, attempts, last_error)
        raise FetchFailed(f"{url}: {last_error}") from last_error

    def fetch_bytes(self, url: str, headers: Optional[Mapping[str, str]] = None) -> bytes:
        """Single attempt raw fetch, used for feeds that are not JSON."""
        try:
            response = self._session.get(url, headers=dict(headers or {}), timeout=self._timeout)
            response.raise_for_status()
        except requests.RequestException as exc:
            raise FetchFailed(f"{url}: {exc}") from exc
        return response.content
