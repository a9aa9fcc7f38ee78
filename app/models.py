"""Pydantic models describing catalog items, rows and view state."""

from __future__ import annotations

import logging
from typing import Any, Literal, Mapping

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)

MediaKind = Literal["movie", "tv"]
MEDIA_KINDS: tuple[MediaKind, ...] = ("movie", "tv")

_KIND_ALIASES: dict[str, MediaKind] = {
    "movie": "movie",
    "movies": "movie",
    "tv": "tv",
    "series": "tv",
    "show": "tv",
    "shows": "tv",
}


def resolve_media_kind(
    payload: Mapping[str, Any], default_kind: MediaKind | None = None
) -> MediaKind | None:
    """Return the kind of a raw upstream record, or ``None`` if it is not media.

    Resolution order: the upstream ``media_type`` field, an explicit ``type``
    field, the kind implied by the endpoint (``default_kind``), and finally the
    record shape.
    """

    media_type = payload.get("media_type")
    if isinstance(media_type, str) and media_type.strip():
        return _KIND_ALIASES.get(media_type.strip().lower())

    explicit = payload.get("type")
    if isinstance(explicit, str):
        kind = _KIND_ALIASES.get(explicit.strip().lower())
        if kind is not None:
            return kind

    if default_kind is not None:
        return default_kind

    if payload.get("first_air_date") is not None:
        return "tv"
    if payload.get("name") and not payload.get("title"):
        return "tv"
    return "movie"


class MediaItem(BaseModel):
    """One catalog entry normalized at the ingestion boundary."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: int
    kind: MediaKind
    title: str
    poster_path: str | None = None
    backdrop_path: str | None = None
    overview: str = ""
    release_date: str | None = None
    vote_average: float | None = None

    @property
    def key(self) -> tuple[MediaKind, int]:
        return (self.kind, self.id)

    @classmethod
    def from_tmdb(
        cls, payload: Mapping[str, Any], *, default_kind: MediaKind | None = None
    ) -> "MediaItem | None":
        """Normalize a raw TMDB result; return ``None`` for unusable records."""

        if not isinstance(payload, Mapping):
            return None
        kind = resolve_media_kind(payload, default_kind)
        if kind is None:
            return None
        raw_id = payload.get("id")
        if isinstance(raw_id, bool):
            return None
        try:
            item_id = int(raw_id)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return None

        if kind == "movie":
            title = payload.get("title") or payload.get("name")
            release = payload.get("release_date")
        else:
            title = payload.get("name") or payload.get("title")
            release = payload.get("first_air_date")
        title = str(title or payload.get("original_title") or "").strip()
        if not title:
            title = f"Untitled {item_id}"

        vote = payload.get("vote_average")
        try:
            return cls(
                id=item_id,
                kind=kind,
                title=title,
                poster_path=payload.get("poster_path") or None,
                backdrop_path=payload.get("backdrop_path") or None,
                overview=str(payload.get("overview") or ""),
                release_date=release or None,
                vote_average=float(vote) if isinstance(vote, (int, float)) else None,
            )
        except ValidationError:
            logger.debug("Discarding malformed %s record %s", kind, item_id)
            return None


def items_from_results(
    payload: Mapping[str, Any] | None, *, default_kind: MediaKind | None = None
) -> list[MediaItem]:
    """Normalize the ``results`` array of a paginated TMDB response."""

    if not payload:
        return []
    results = payload.get("results")
    if not isinstance(results, list):
        return []
    items: list[MediaItem] = []
    for entry in results:
        item = MediaItem.from_tmdb(entry, default_kind=default_kind)
        if item is None:
            logger.debug("Skipping non-media result %r", entry)
            continue
        items.append(item)
    return items


class UserListEntry(BaseModel):
    """Minimal persisted projection of a media item."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: int
    kind: MediaKind = Field(validation_alias=AliasChoices("kind", "type", "media_type"))
    title: str = Field(default="", validation_alias=AliasChoices("title", "name"))
    poster_path: str | None = Field(
        default=None, validation_alias=AliasChoices("poster_path", "posterPath")
    )

    @classmethod
    def from_item(cls, item: MediaItem) -> "UserListEntry":
        return cls(
            id=item.id, kind=item.kind, title=item.title, poster_path=item.poster_path
        )

    def to_item(self) -> MediaItem:
        return MediaItem(
            id=self.id, kind=self.kind, title=self.title, poster_path=self.poster_path
        )


class Row(BaseModel):
    """A labelled, ordered collection of items sharing a category."""

    model_config = ConfigDict(frozen=True)

    title: str
    items: tuple[MediaItem, ...] = ()


class ViewModel(BaseModel):
    """Immutable snapshot of a view consumed read-only by the renderer."""

    model_config = ConfigDict(frozen=True)

    view: str = ""
    hero: MediaItem | None = None
    rows: tuple[Row, ...] = ()
    search_query: str = ""
    search_results: tuple[MediaItem, ...] = ()
    is_loading: bool = False

    def to_payload(self) -> dict[str, Any]:
        return {
            "view": self.view,
            "hero": self.hero.model_dump(mode="json") if self.hero else None,
            "rows": [row.model_dump(mode="json") for row in self.rows],
            "searchQuery": self.search_query,
            "searchResults": [
                item.model_dump(mode="json") for item in self.search_results
            ],
            "isLoading": self.is_loading,
        }


class Episode(BaseModel):
    """Single episode entry of a tv season."""

    episode_number: int
    name: str = ""
    overview: str = ""
    runtime: int | None = None
    still_path: str | None = None


class Season(BaseModel):
    """A tv season with its episode list."""

    season_number: int
    name: str = ""
    episode_count: int = 0
    episodes: list[Episode] = Field(default_factory=list)


class TitleDetails(BaseModel):
    """Detail record assembled for a movie or tv detail page."""

    item: MediaItem
    runtime: int | None = None
    genres: list[str] = Field(default_factory=list)
    cast: list[str] = Field(default_factory=list)
    trailer_key: str | None = None
    number_of_seasons: int | None = None
    seasons: list[Season] = Field(default_factory=list)
    recommendations: list[MediaItem] = Field(default_factory=list)
