"""Per-profile persistence of watch history, My List, reminders and theme."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Literal, Union

from pydantic import TypeAdapter, ValidationError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..db_models import PreferenceRecord
from ..models import MediaItem, UserListEntry
from ..views import CONTINUE_WATCHING, LIST_NAMES, TOGGLE_LISTS

logger = logging.getLogger(__name__)

Theme = Literal["light", "dark"]
THEME_KEY = "theme"
DEFAULT_THEME: Theme = "dark"
THEMES: tuple[Theme, ...] = ("light", "dark")

_ENTRY_LIST = TypeAdapter(list[UserListEntry])

ListItem = Union[MediaItem, UserListEntry]


def _to_entry(item: ListItem) -> UserListEntry:
    if isinstance(item, UserListEntry):
        return item
    return UserListEntry.from_item(item)


class PreferenceStore:
    """Key/value preference store scoped to a single profile.

    The persisted rows are read once by :meth:`open`; reads are then served
    from memory. Every mutating call commits its own transaction before it
    returns and only updates the in-memory snapshot after the commit.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        profile_id: str = "default",
        *,
        continue_watching_limit: int = 20,
    ) -> None:
        self._session_factory = session_factory
        self._profile_id = profile_id
        self._continue_watching_limit = continue_watching_limit
        self._lists: dict[str, tuple[UserListEntry, ...]] = {}
        self._theme: Theme = DEFAULT_THEME
        self._lock = asyncio.Lock()
        self._opened = False

    @property
    def profile_id(self) -> str:
        return self._profile_id

    async def open(self) -> None:
        """Read every persisted key for the profile into memory."""

        async with self._session_factory() as session:
            stmt = select(PreferenceRecord.key, PreferenceRecord.value).where(
                PreferenceRecord.profile_id == self._profile_id
            )
            result = await session.execute(stmt)
            rows = {key: value for key, value in result.all()}

        self._lists = {name: self._parse_list(name, rows.get(name)) for name in LIST_NAMES}
        self._theme = self._parse_theme(rows.get(THEME_KEY))
        self._opened = True
        logger.debug(
            "Opened preferences for profile %s (%s)",
            self._profile_id,
            ", ".join(f"{name}={len(entries)}" for name, entries in self._lists.items()),
        )

    async def close(self) -> None:
        """Drop the in-memory snapshot; persisted state is already durable."""

        async with self._lock:
            self._lists = {}
            self._opened = False

    def load(self, list_name: str) -> tuple[UserListEntry, ...]:
        """Return the named list, most relevant entry first."""

        self._check_list_name(list_name)
        return self._lists.get(list_name, ())

    def contains(self, list_name: str, item: ListItem) -> bool:
        entry = _to_entry(item)
        return any(_same_item(existing, entry) for existing in self.load(list_name))

    async def record_watch(self, item: ListItem) -> tuple[UserListEntry, ...]:
        """Move ``item`` to the front of Continue Watching and cap its length."""

        entry = _to_entry(item)
        async with self._lock:
            current = self.load(CONTINUE_WATCHING)
            updated = (entry,) + tuple(
                existing for existing in current if not _same_item(existing, entry)
            )
            updated = updated[: self._continue_watching_limit]
            await self._write_list(CONTINUE_WATCHING, updated)
        return updated

    async def toggle_list_membership(self, list_name: str, item: ListItem) -> bool:
        """Remove ``item`` when present, else insert it first. Return membership."""

        if list_name not in TOGGLE_LISTS:
            raise ValueError(f"List {list_name!r} does not support toggling")
        entry = _to_entry(item)
        async with self._lock:
            current = self.load(list_name)
            remaining = tuple(
                existing for existing in current if not _same_item(existing, entry)
            )
            if len(remaining) != len(current):
                updated, member = remaining, False
            else:
                updated, member = (entry,) + current, True
            await self._write_list(list_name, updated)
        return member

    async def clear(self, list_name: str) -> None:
        self._check_list_name(list_name)
        async with self._lock:
            await self._write_list(list_name, ())

    @property
    def theme(self) -> Theme:
        return self._theme

    async def set_theme(self, theme: str) -> Theme:
        normalized = (theme or "").strip().lower()
        if normalized not in THEMES:
            raise ValueError("Theme must be 'light' or 'dark'")
        async with self._lock:
            await self._persist(THEME_KEY, normalized)
            self._theme = normalized  # type: ignore[assignment]
        return self._theme

    async def _write_list(self, list_name: str, entries: tuple[UserListEntry, ...]) -> None:
        payload = json.dumps([entry.model_dump(mode="json") for entry in entries])
        await self._persist(list_name, payload)
        self._lists[list_name] = entries

    async def _persist(self, key: str, value: str) -> None:
        self._ensure_open()
        async with self._session_factory() as session:
            async with session.begin():
                stmt = select(PreferenceRecord).where(
                    PreferenceRecord.profile_id == self._profile_id,
                    PreferenceRecord.key == key,
                )
                record = (await session.execute(stmt)).scalar_one_or_none()
                if record is None:
                    session.add(
                        PreferenceRecord(
                            profile_id=self._profile_id, key=key, value=value
                        )
                    )
                else:
                    record.value = value

    def _ensure_open(self) -> None:
        if not self._opened:
            raise RuntimeError("Preference store is not open")

    @staticmethod
    def _check_list_name(list_name: str) -> None:
        if list_name not in LIST_NAMES:
            raise ValueError(f"Unknown list {list_name!r}")

    def _parse_list(self, list_name: str, raw: str | None) -> tuple[UserListEntry, ...]:
        if raw is None:
            return ()
        try:
            decoded = json.loads(raw)
            entries = _ENTRY_LIST.validate_python(decoded)
        except (ValueError, ValidationError) as exc:
            logger.warning(
                "Ignoring malformed %s for profile %s: %s",
                list_name,
                self._profile_id,
                exc,
            )
            return ()

        unique: list[UserListEntry] = []
        for entry in entries:
            if not any(_same_item(existing, entry) for existing in unique):
                unique.append(entry)
        if list_name == CONTINUE_WATCHING:
            return tuple(unique[: self._continue_watching_limit])
        return tuple(unique)

    def _parse_theme(self, raw: str | None) -> Theme:
        if raw in THEMES:
            return raw  # type: ignore[return-value]
        if raw is not None:
            logger.warning(
                "Ignoring unknown theme %r for profile %s", raw, self._profile_id
            )
        return DEFAULT_THEME


def _same_item(left: UserListEntry, right: UserListEntry) -> bool:
    return left.id == right.id and left.kind == right.kind
