"""Client that calls the proxy gateway and turns every failure into ``None``."""

from __future__ import annotations

import json
import logging
from typing import Any, Mapping

import httpx

logger = logging.getLogger(__name__)

GATEWAY_ROUTE = "/api/tmdb"


class FetchClient:
    """Wrapper around the gateway route that never raises to its callers."""

    def __init__(self, http_client: httpx.AsyncClient, route: str = GATEWAY_ROUTE):
        self._client = http_client
        self._route = route

    async def fetch(
        self, path: str, params: Mapping[str, Any] | None = None
    ) -> dict[str, Any] | None:
        """Return the decoded JSON object for ``path`` or ``None`` on any failure."""

        query: dict[str, str] = {"path": path}
        for key, value in (params or {}).items():
            if value is None:
                continue
            query[key] = str(value)

        try:
            response = await self._client.get(self._route, params=query)
        except httpx.HTTPError as exc:
            logger.warning("Fetch for %s failed: %s", path, exc.__class__.__name__)
            return None
        except Exception:  # pragma: no cover - transport safety net
            logger.exception("Unexpected error fetching %s", path)
            return None

        if response.status_code >= 400:
            logger.warning(
                "Fetch for %s returned status %s", path, response.status_code
            )
            return None
        try:
            payload = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            logger.warning("Fetch for %s returned malformed JSON", path)
            return None
        if not isinstance(payload, dict):
            logger.warning("Fetch for %s returned a non-object payload", path)
            return None
        return payload
