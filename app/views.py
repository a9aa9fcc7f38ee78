"""Static view recipes describing what each screen needs to load."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from .models import MediaKind

CONTINUE_WATCHING = "continueWatching"
MY_LIST = "myList"
REMINDERS = "reminders"
LIST_NAMES: tuple[str, ...] = (CONTINUE_WATCHING, MY_LIST, REMINDERS)
TOGGLE_LISTS: tuple[str, ...] = (MY_LIST, REMINDERS)

CONTINUE_WATCHING_TITLE = "Continue Watching"


@dataclass(frozen=True)
class CategoryDefinition:
    """One content row: a label, an upstream endpoint and its query."""

    label: str
    endpoint: str
    params: Mapping[str, str] = field(default_factory=dict)
    kind: MediaKind | None = None


@dataclass(frozen=True)
class ViewConfig:
    """Describes the hero query, rows and local lists of a named view."""

    name: str
    hero_endpoint: str | None
    categories: tuple[CategoryDefinition, ...] = ()
    include_continue_watching: bool = False
    list_rows: tuple[tuple[str, str], ...] = ()
    hero_kind: MediaKind | None = None


_INDIAN_LANGUAGES = "hi|te|ta"

VIEW_CONFIGS: Mapping[str, ViewConfig] = MappingProxyType(
    {
        config.name: config
        for config in (
            ViewConfig(
                name="home",
                hero_endpoint="trending/all/week",
                include_continue_watching=True,
                categories=(
                    CategoryDefinition("Trending This Week", "trending/all/week"),
                    CategoryDefinition(
                        "Popular in India",
                        "discover/movie",
                        {
                            "region": "IN",
                            "sort_by": "popularity.desc",
                            "with_original_language": _INDIAN_LANGUAGES,
                        },
                        kind="movie",
                    ),
                    CategoryDefinition(
                        "Top Rated Movies", "movie/top_rated", kind="movie"
                    ),
                    CategoryDefinition(
                        "Popular TV Shows", "tv/popular", kind="tv"
                    ),
                    CategoryDefinition(
                        "Upcoming Movies", "movie/upcoming", kind="movie"
                    ),
                ),
            ),
            ViewConfig(
                name="movies",
                hero_endpoint="movie/popular",
                hero_kind="movie",
                categories=(
                    CategoryDefinition(
                        "Popular Movies", "movie/popular", kind="movie"
                    ),
                    CategoryDefinition(
                        "Now Playing", "movie/now_playing", kind="movie"
                    ),
                    CategoryDefinition(
                        "Top Rated Movies", "movie/top_rated", kind="movie"
                    ),
                    CategoryDefinition(
                        "Action",
                        "discover/movie",
                        {"with_genres": "28", "sort_by": "popularity.desc"},
                        kind="movie",
                    ),
                    CategoryDefinition(
                        "Comedy",
                        "discover/movie",
                        {"with_genres": "35", "sort_by": "popularity.desc"},
                        kind="movie",
                    ),
                ),
            ),
            ViewConfig(
                name="tv",
                hero_endpoint="tv/popular",
                hero_kind="tv",
                categories=(
                    CategoryDefinition("Popular TV Shows", "tv/popular", kind="tv"),
                    CategoryDefinition("Airing Today", "tv/airing_today", kind="tv"),
                    CategoryDefinition("Top Rated TV", "tv/top_rated", kind="tv"),
                    CategoryDefinition(
                        "Indian Web Series",
                        "discover/tv",
                        {
                            "watch_region": "IN",
                            "sort_by": "popularity.desc",
                            "with_original_language": _INDIAN_LANGUAGES,
                        },
                        kind="tv",
                    ),
                ),
            ),
            ViewConfig(name="search", hero_endpoint=None),
            ViewConfig(
                name="my-list",
                hero_endpoint=None,
                include_continue_watching=True,
                list_rows=(("My List", MY_LIST), ("Reminders", REMINDERS)),
            ),
            ViewConfig(
                name="profile",
                hero_endpoint=None,
                list_rows=(("My List", MY_LIST),),
            ),
        )
    }
)


def get_view_config(name: str) -> ViewConfig | None:
    """Return the recipe for ``name`` or ``None`` for unknown views."""

    return VIEW_CONFIGS.get((name or "").strip().lower())
