"""Embed URLs for the third-party video player."""

from __future__ import annotations

from urllib.parse import urlencode

from .models import MediaKind


def embed_url(
    base_url: str,
    kind: MediaKind,
    title_id: int,
    season: int | None = None,
    episode: int | None = None,
) -> str:
    """Return the player URL for a movie or a tv episode."""

    if title_id <= 0:
        raise ValueError("Title id must be positive")
    base = base_url.rstrip("/")
    if kind == "movie":
        return f"{base}/embed/{title_id}?{urlencode({'sv': 'player4u'})}"
    if kind != "tv":
        raise ValueError(f"Unsupported media kind {kind!r}")

    season = 1 if season is None else season
    episode = 1 if episode is None else episode
    if season <= 0 or episode <= 0:
        raise ValueError("Season and episode must be positive")
    query = urlencode({"s": season, "e": episode, "sv": "player4u"})
    return f"{base}/embedtv/{title_id}?{query}"
