"""Server-side pass-through to TMDB that keeps the API key private."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Mapping

import httpx

from ..config import Settings
from ..utils import normalize_upstream_path

logger = logging.getLogger(__name__)

# Parameters the caller may never supply; the gateway owns them.
_RESERVED_PARAMS = frozenset({"api_key", "path"})


class GatewayConfigurationError(RuntimeError):
    """Raised when the gateway has no upstream credential configured."""


@dataclass(slots=True)
class GatewayResponse:
    """Status code and body relayed back to the caller."""

    status_code: int
    body: Any = None
    raw: bytes | None = None
    media_type: str = "application/json"


class TMDBGateway:
    """Forward logical TMDB paths upstream with the server-held key injected."""

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient):
        self._settings = settings
        self._client = http_client

    @property
    def is_configured(self) -> bool:
        return bool(self._settings.tmdb_api_key)

    def _build_params(self, params: Mapping[str, str]) -> dict[str, str]:
        forwarded = {"language": self._settings.tmdb_language}
        for key, value in params.items():
            if key in _RESERVED_PARAMS:
                continue
            forwarded[key] = value
        forwarded["api_key"] = self._settings.tmdb_api_key or ""
        return forwarded

    async def forward(
        self, path: str | None, params: Mapping[str, str] | None = None
    ) -> GatewayResponse:
        """Relay ``path`` upstream.

        Raises ``InvalidUpstreamPath`` for a missing or unsafe path and
        ``GatewayConfigurationError`` when no API key is configured. Transport
        failures and undecodable success bodies become a 500 response; upstream
        errors are passed through with their original status and body.
        """

        logical_path = normalize_upstream_path(path)
        if not self.is_configured:
            raise GatewayConfigurationError("API key is not configured")

        try:
            response = await self._client.get(
                logical_path, params=self._build_params(params or {})
            )
        except httpx.HTTPError as exc:
            logger.error(
                "Proxy request for %s failed: %s", logical_path, exc.__class__.__name__
            )
            return self.internal_error()

        if response.is_success:
            try:
                payload = response.json()
            except (json.JSONDecodeError, UnicodeDecodeError):
                logger.error(
                    "Upstream returned undecodable JSON for %s", logical_path
                )
                return self.internal_error()
            return GatewayResponse(status_code=response.status_code, body=payload)

        logger.warning(
            "Upstream responded %s for %s", response.status_code, logical_path
        )
        return GatewayResponse(
            status_code=response.status_code,
            raw=response.content,
            media_type=response.headers.get("content-type", "application/json"),
        )

    @staticmethod
    def internal_error() -> GatewayResponse:
        return GatewayResponse(
            status_code=500, body={"message": "Internal Server Error"}
        )
