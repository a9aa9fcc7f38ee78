"""Per-profile browser sessions pairing an aggregator with its store."""

from __future__ import annotations

import asyncio
import logging
import random
from collections import OrderedDict
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..config import Settings
from ..utils import normalize_profile_id
from .aggregator import CatalogAggregator
from .fetch_client import FetchClient
from .preferences import PreferenceStore

logger = logging.getLogger(__name__)


@dataclass
class BrowserSession:
    """State owned by one profile: its preferences and its current view."""

    profile_id: str
    store: PreferenceStore
    aggregator: CatalogAggregator


class SessionRegistry:
    """Creates, opens and tears down browser sessions keyed by profile.

    At most ``MAX_SESSIONS`` sessions stay cached; the least recently used one
    is dropped when a new profile arrives. Stores commit every write, so a
    dropped profile is simply re-read from the database on its next request.
    """

    def __init__(
        self,
        settings: Settings,
        fetch_client: FetchClient,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        rng: random.Random | None = None,
    ):
        self._settings = settings
        self._fetch = fetch_client
        self._session_factory = session_factory
        self._rng = rng
        self._max_sessions = settings.max_sessions
        self._sessions: OrderedDict[str, BrowserSession] = OrderedDict()
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, profile_id: object) -> bool:
        return isinstance(profile_id, str) and (
            normalize_profile_id(profile_id) in self._sessions
        )

    async def get(self, profile_id: str | None = None) -> BrowserSession:
        """Return the session for ``profile_id``, opening its store on first use."""

        key = normalize_profile_id(profile_id)
        existing = self._sessions.get(key)
        if existing is not None:
            self._sessions.move_to_end(key)
            return existing
        async with self._lock:
            existing = self._sessions.get(key)
            if existing is not None:
                self._sessions.move_to_end(key)
                return existing
            store = PreferenceStore(
                self._session_factory,
                key,
                continue_watching_limit=self._settings.continue_watching_limit,
            )
            await store.open()
            aggregator = CatalogAggregator(
                self._fetch,
                store,
                hero_pool_size=self._settings.hero_pool_size,
                search_debounce_seconds=self._settings.search_debounce_seconds,
                rng=self._rng,
            )
            session = BrowserSession(profile_id=key, store=store, aggregator=aggregator)
            self._sessions[key] = session
            logger.info("Opened browser session for profile %s", key)
            while len(self._sessions) > self._max_sessions:
                evicted, _ = self._sessions.popitem(last=False)
                logger.info("Evicted idle browser session for profile %s", evicted)
            return session

    async def stop(self) -> None:
        """Close every open store."""

        async with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
        for session in sessions:
            await session.store.close()
