"""
Shared HTTP plumbing for quote adapters.

Every request is a single attempt with an explicit timeout. Failures are
logged and reported as None; callers decide what to fall back to.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Dict, Optional

import httpx

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
)


def to_number(value: Any) -> Optional[float]:
    """Finite float or None. Accepts numbers and numeric strings."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def percent_change(current: float, previous: float) -> float:
    if previous <= 0:
        return 0.0
    return (current - previous) / previous * 100.0


class HttpQuoteAdapter:
    """Base for adapters that talk to a provider over HTTP."""

    name = "http"

    def __init__(self, timeout_seconds: float = 10.0, user_agent: Optional[str] = None):
        self.timeout_seconds = timeout_seconds
        self.headers: Dict[str, str] = {"User-Agent": user_agent or DEFAULT_USER_AGENT}

    async def _get(self, url: str, params: Optional[dict] = None) -> Optional[httpx.Response]:
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout_seconds,
                headers=self.headers,
                follow_redirects=True,
            ) as client:
                response = await client.get(url, params=params)
        except httpx.HTTPError as exc:
            logger.debug("%s request failed for %s: %s", self.name, url, exc)
            return None
        if response.status_code != 200:
            logger.debug("%s status %s for %s", self.name, response.status_code, url)
            return None
        return response

    async def _request_json(self, url: str, params: Optional[dict] = None) -> Optional[dict]:
        response = await self._get(url, params=params)
        if response is None:
            return None
        try:
            payload = response.json()
        except ValueError:
            logger.debug("%s returned non-JSON payload for %s", self.name, url)
            return None
        return payload if isinstance(payload, dict) else None

    async def _request_text(self, url: str, params: Optional[dict] = None) -> Optional[str]:
        response = await self._get(url, params=params)
        if response is None:
            return None
        return response.text
