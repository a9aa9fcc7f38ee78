"""Assemble hero banners and content rows for a named view."""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Any, Sequence

from ..models import MediaItem, MediaKind, Row, ViewModel, items_from_results
from ..views import (
    CONTINUE_WATCHING,
    CONTINUE_WATCHING_TITLE,
    CategoryDefinition,
    ViewConfig,
    get_view_config,
)
from .debounce import LatestCallGuard, Superseded
from .fetch_client import FetchClient
from .preferences import PreferenceStore

logger = logging.getLogger(__name__)

SEARCH_ENDPOINT = "search/multi"


def select_hero(
    items: Sequence[MediaItem], rng: random.Random, pool_size: int = 10
) -> MediaItem | None:
    """Pick a hero uniformly from the first ``pool_size`` items."""

    if not items:
        return None
    pool = items[: max(1, min(pool_size, len(items)))]
    return pool[rng.randrange(len(pool))]


class CatalogAggregator:
    """Builds :class:`ViewModel` snapshots from concurrent gateway queries.

    The current snapshot is replaced wholesale on every publish, so readers of
    :attr:`view_model` never see a mix of two loads. Overlapping loads are
    resolved by sequence number: only the most recently started load may
    publish its result.
    """

    def __init__(
        self,
        fetch_client: FetchClient,
        store: PreferenceStore,
        *,
        hero_pool_size: int = 10,
        search_debounce_seconds: float = 0.0,
        rng: random.Random | None = None,
    ) -> None:
        self._fetch = fetch_client
        self._store = store
        self._hero_pool_size = hero_pool_size
        self._rng = rng or random.Random()
        self._view_guard = LatestCallGuard()
        self._search_guard = LatestCallGuard(search_debounce_seconds)
        self._view_model = ViewModel()

    @property
    def view_model(self) -> ViewModel:
        return self._view_model

    async def load_view(self, view_name: str) -> ViewModel:
        """Load ``view_name`` and publish it unless a newer load has started."""

        token = self._view_guard.begin()
        config = get_view_config(view_name)
        if config is None:
            logger.info("Unknown view requested: %s", view_name)
            empty = self._carry_search(ViewModel(view=view_name))
            self._view_model = empty
            return empty

        self._view_model = self._carry_search(
            ViewModel(view=config.name, is_loading=True)
        )
        hero, rows = await self._assemble(config)

        if not self._view_guard.is_current(token):
            logger.debug("Discarding superseded load of view %s", config.name)
            return self._view_model

        leading: list[Row] = []
        if config.include_continue_watching:
            history = self._list_row(CONTINUE_WATCHING_TITLE, CONTINUE_WATCHING)
            if history is not None:
                leading.append(history)
        trailing = [
            row
            for row in (
                self._list_row(label, list_name) for label, list_name in config.list_rows
            )
            if row is not None
        ]

        view_model = self._carry_search(
            ViewModel(
                view=config.name,
                hero=hero,
                rows=tuple(leading + rows + trailing),
                is_loading=False,
            )
        )
        self._view_model = view_model
        return view_model

    async def search(self, query: str) -> ViewModel:
        """Run a debounced multi search; newer searches supersede older ones."""

        cleaned = (query or "").strip()
        try:
            if cleaned:
                results = await self._search_guard.run(self._search_items, cleaned)
            else:
                self._search_guard.begin()
                results = []
        except Superseded:
            return self._view_model

        view_model = self._view_model.model_copy(
            update={"search_query": cleaned, "search_results": tuple(results)}
        )
        self._view_model = view_model
        return view_model

    def _carry_search(self, view_model: ViewModel) -> ViewModel:
        # Read at publish time so a search finished mid-load is kept.
        current = self._view_model
        return view_model.model_copy(
            update={
                "search_query": current.search_query,
                "search_results": current.search_results,
            }
        )

    async def _search_items(self, query: str) -> list[MediaItem]:
        payload = await self._fetch.fetch(
            SEARCH_ENDPOINT, {"query": query, "include_adult": "false"}
        )
        return items_from_results(payload)

    async def _assemble(self, config: ViewConfig) -> tuple[MediaItem | None, list[Row]]:
        hero_task = self._load_hero(config)
        category_tasks = [self._load_category(category) for category in config.categories]
        hero, *rows = await asyncio.gather(hero_task, *category_tasks)
        return hero, [row for row in rows if row is not None]

    async def _load_hero(self, config: ViewConfig) -> MediaItem | None:
        if not config.hero_endpoint:
            return None
        payload = await self._fetch.fetch(config.hero_endpoint)
        items = items_from_results(
            payload, default_kind=config.hero_kind or _kind_for(config.hero_endpoint)
        )
        return select_hero(items, self._rng, self._hero_pool_size)

    async def _load_category(self, category: CategoryDefinition) -> Row | None:
        params: dict[str, Any] = dict(category.params)
        payload = await self._fetch.fetch(category.endpoint, params)
        items = items_from_results(
            payload, default_kind=category.kind or _kind_for(category.endpoint)
        )
        if not items:
            logger.debug("Dropping empty row %s", category.label)
            return None
        return Row(title=category.label, items=tuple(items))

    def _list_row(self, title: str, list_name: str) -> Row | None:
        entries = self._store.load(list_name)
        if not entries:
            return None
        return Row(title=title, items=tuple(entry.to_item() for entry in entries))


def _kind_for(endpoint: str) -> MediaKind | None:
    head = endpoint.split("/", 1)[0]
    if head == "movie":
        return "movie"
    if head == "tv":
        return "tv"
    if endpoint.startswith(("discover/movie", "trending/movie", "search/movie")):
        return "movie"
    if endpoint.startswith(("discover/tv", "trending/tv", "search/tv")):
        return "tv"
    return None
