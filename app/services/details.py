"""Detail, season and trailer lookups for the movie and tv pages."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Iterable, Mapping

from ..models import Episode, MediaItem, MediaKind, Season, TitleDetails, items_from_results
from .fetch_client import FetchClient

logger = logging.getLogger(__name__)

MAX_RECOMMENDATIONS = 12
MAX_CAST = 10
TRAILER_UNAVAILABLE = "Trailer not available"


def pick_trailer(videos: Iterable[Mapping[str, Any]] | None) -> str | None:
    """Return the YouTube key of the best trailer, falling back to a teaser."""

    youtube = [
        video
        for video in videos or ()
        if isinstance(video, Mapping)
        and video.get("site") == "YouTube"
        and video.get("key")
    ]
    for wanted in ("Trailer", "Teaser"):
        for video in youtube:
            if video.get("type") == wanted:
                return str(video["key"])
    return None


def _mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def _text_or_none(value: Any) -> str | None:
    return value if isinstance(value, str) and value else None


def _parse_seasons(raw: Any) -> list[Season]:
    seasons: list[Season] = []
    for entry in _list(raw):
        if not isinstance(entry, Mapping):
            continue
        number = entry.get("season_number")
        count = entry.get("episode_count") or 0
        if not isinstance(number, int) or not isinstance(count, int):
            continue
        if number <= 0 or count <= 0:
            continue
        seasons.append(
            Season(season_number=number, name=str(entry.get("name") or ""), episode_count=count)
        )
    return seasons


class TitleService:
    """Loads per-title records through the fetch client."""

    def __init__(self, fetch_client: FetchClient):
        self._fetch = fetch_client

    async def load_details(self, kind: MediaKind, title_id: int) -> TitleDetails | None:
        details, recommendations = await asyncio.gather(
            self._fetch.fetch(
                f"{kind}/{title_id}", {"append_to_response": "videos,credits"}
            ),
            self._fetch.fetch(f"{kind}/{title_id}/recommendations"),
        )
        if details is None:
            return None
        item = MediaItem.from_tmdb({**details, "media_type": kind})
        if item is None:
            logger.warning("Detail record for %s/%s could not be normalized", kind, title_id)
            return None

        videos = _mapping(details.get("videos")).get("results")
        cast = [
            str(member.get("name"))
            for member in _list(_mapping(details.get("credits")).get("cast"))[:MAX_CAST]
            if isinstance(member, Mapping) and member.get("name")
        ]
        genres = [
            str(genre.get("name"))
            for genre in _list(details.get("genres"))
            if isinstance(genre, Mapping) and genre.get("name")
        ]
        runtime = details.get("runtime")
        seasons_count = details.get("number_of_seasons")
        episode_run_time = details.get("episode_run_time")
        if runtime is None and isinstance(episode_run_time, list) and episode_run_time:
            runtime = episode_run_time[0]

        return TitleDetails(
            item=item,
            runtime=runtime if isinstance(runtime, int) else None,
            genres=genres,
            cast=cast,
            trailer_key=pick_trailer(_list(videos)),
            number_of_seasons=(
                seasons_count if kind == "tv" and isinstance(seasons_count, int) else None
            ),
            seasons=_parse_seasons(details.get("seasons")) if kind == "tv" else [],
            recommendations=items_from_results(recommendations, default_kind=kind)[
                :MAX_RECOMMENDATIONS
            ],
        )

    async def load_season(self, tv_id: int, season_number: int) -> Season | None:
        payload = await self._fetch.fetch(f"tv/{tv_id}/season/{season_number}")
        if payload is None:
            return None
        episodes = [
            Episode(
                episode_number=entry["episode_number"],
                name=str(entry.get("name") or ""),
                overview=str(entry.get("overview") or ""),
                runtime=entry.get("runtime") if isinstance(entry.get("runtime"), int) else None,
                still_path=_text_or_none(entry.get("still_path")),
            )
            for entry in _list(payload.get("episodes"))
            if isinstance(entry, Mapping) and isinstance(entry.get("episode_number"), int)
        ]
        return Season(
            season_number=season_number,
            name=str(payload.get("name") or f"Season {season_number}"),
            episode_count=len(episodes),
            episodes=episodes,
        )

    async def find_trailer(self, kind: MediaKind, title_id: int) -> str | None:
        payload = await self._fetch.fetch(f"{kind}/{title_id}/videos")
        if payload is None:
            return None
        return pick_trailer(_list(payload.get("results")))
