"""Blocking HTTP fetches used by the enrichment stages.

Every failure mode (network, status code, charset, JSON) surfaces as
``FetchError`` so callers decide per stage whether to degrade or abort.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests

from tmbu.config import DEFAULT_USER_AGENT
from tmbu.errors import FetchError

logger = logging.getLogger(__name__)

ACTIVITY_JSON = "application/activity+json"


@dataclass(frozen=True)
class FetchResponse:
    status: int
    body: bytes
    url: str


class Fetcher:
    """GET-only client with an explicit timeout on every request."""

    def __init__(
        self,
        timeout: float = 10.0,
        user_agent: str = DEFAULT_USER_AGENT,
        session: Optional[requests.Session] = None,
    ):
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers["User-Agent"] = user_agent

    def get(self, url: str, headers: Optional[Dict[str, str]] = None) -> FetchResponse:
        logger.debug("GET %s", url)
        try:
            resp = self.session.get(url, headers=headers or {}, timeout=self.timeout)
        except requests.RequestException as exc:
            raise FetchError(url, f"request failed: {exc}") from exc

        if not 200 <= resp.status_code < 300:
            raise FetchError(url, f"HTTP {resp.status_code}")

        return FetchResponse(status=resp.status_code, body=resp.content, url=resp.url or url)

    def get_text(self, url: str, headers: Optional[Dict[str, str]] = None) -> str:
        resp = self.get(url, headers=headers)
        try:
            return resp.body.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise FetchError(url, "body is not valid UTF-8") from exc

    def get_json(self, url: str, accept: str = ACTIVITY_JSON) -> Dict[str, Any]:
        text = self.get_text(url, headers={"Accept": accept})
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise FetchError(url, f"malformed JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise FetchError(url, "JSON payload is not an object")
        return data
