"""Utility helpers for the Cinerow service."""

from __future__ import annotations

import re
import unicodedata


class InvalidUpstreamPath(ValueError):
    """Raised when a logical upstream path cannot be forwarded safely."""


_PATH_SEGMENT_RE = re.compile(r"^[A-Za-z0-9_.,\-]+$")


def slugify(value: str) -> str:
    """Return a URL-friendly slug."""

    value = unicodedata.normalize("NFKD", value)
    value = value.encode("ascii", "ignore").decode("ascii")
    value = re.sub(r"[^a-zA-Z0-9]+", "-", value)
    value = value.strip("-")
    value = re.sub(r"-+", "-", value)
    return value.lower()


def normalize_profile_id(value: str | None) -> str:
    """Return the slug used to scope persisted preferences."""

    return slugify(value or "")[:64] or "default"


def normalize_upstream_path(path: str | None) -> str:
    """Validate and clean a logical TMDB path such as ``movie/550``."""

    if path is None:
        raise InvalidUpstreamPath("API path is required")
    cleaned = path.strip().strip("/")
    if not cleaned:
        raise InvalidUpstreamPath("API path is required")
    if "://" in cleaned or "?" in cleaned or "#" in cleaned:
        raise InvalidUpstreamPath("API path must be a relative resource path")
    segments = cleaned.split("/")
    for segment in segments:
        if segment in {"", ".", ".."} or not _PATH_SEGMENT_RE.match(segment):
            raise InvalidUpstreamPath(f"Invalid API path segment: {segment!r}")
    return "/".join(segments)
