"""Tests for the per-profile preference store."""

from __future__ import annotations

from pathlib import Path

import pytest

from app.database import Database
from app.db_models import PreferenceRecord
from app.models import MediaItem, UserListEntry
from app.services.preferences import PreferenceStore
from app.views import CONTINUE_WATCHING, MY_LIST, REMINDERS


@pytest.fixture
def anyio_backend() -> str:
    """Force AnyIO tests to run on asyncio without requiring trio."""

    return "asyncio"


def movie(item_id: int) -> MediaItem:
    return MediaItem(id=item_id, kind="movie", title=f"Movie {item_id}", poster_path=f"/{item_id}.jpg")


async def open_database(tmp_path: Path) -> Database:
    database = Database(f"sqlite+aiosqlite:///{tmp_path / 'prefs.db'}")
    await database.create_all()
    return database


async def open_store(database: Database, profile_id: str = "default") -> PreferenceStore:
    store = PreferenceStore(database.session_factory, profile_id)
    await store.open()
    return store


@pytest.mark.anyio("asyncio")
async def test_empty_store_loads_empty_lists(tmp_path: Path) -> None:
    database = await open_database(tmp_path)
    try:
        store = await open_store(database)
        for name in (CONTINUE_WATCHING, MY_LIST, REMINDERS):
            assert store.load(name) == ()
        assert store.theme == "dark"
    finally:
        await database.dispose()


@pytest.mark.anyio("asyncio")
async def test_record_watch_moves_repeat_to_front(tmp_path: Path) -> None:
    database = await open_database(tmp_path)
    try:
        store = await open_store(database)
        await store.record_watch(movie(1))
        await store.record_watch(movie(2))
        await store.record_watch(movie(1))

        history = store.load(CONTINUE_WATCHING)
        assert [entry.id for entry in history] == [1, 2]
        assert sum(1 for entry in history if entry.id == 1) == 1
    finally:
        await database.dispose()


@pytest.mark.anyio("asyncio")
async def test_record_watch_keeps_twenty_most_recent(tmp_path: Path) -> None:
    database = await open_database(tmp_path)
    try:
        store = await open_store(database)
        for item_id in range(1, 22):
            await store.record_watch(movie(item_id))

        history = store.load(CONTINUE_WATCHING)
        assert len(history) == 20
        assert history[0].id == 21
        assert 1 not in {entry.id for entry in history}
    finally:
        await database.dispose()


@pytest.mark.anyio("asyncio")
async def test_toggle_is_its_own_inverse(tmp_path: Path) -> None:
    database = await open_database(tmp_path)
    try:
        store = await open_store(database)
        await store.toggle_list_membership(MY_LIST, movie(7))
        before = store.load(MY_LIST)

        added = await store.toggle_list_membership(MY_LIST, movie(8))
        assert added is True
        assert store.load(MY_LIST)[0].id == 8
        assert store.contains(MY_LIST, movie(8))

        removed = await store.toggle_list_membership(MY_LIST, movie(8))
        assert removed is False
        assert store.load(MY_LIST) == before
        assert not store.contains(MY_LIST, movie(8))
    finally:
        await database.dispose()


@pytest.mark.anyio("asyncio")
async def test_same_id_different_kind_are_distinct(tmp_path: Path) -> None:
    database = await open_database(tmp_path)
    try:
        store = await open_store(database)
        await store.toggle_list_membership(REMINDERS, movie(5))
        await store.toggle_list_membership(
            REMINDERS, UserListEntry(id=5, kind="tv", title="Show 5")
        )

        assert [(entry.kind, entry.id) for entry in store.load(REMINDERS)] == [
            ("tv", 5),
            ("movie", 5),
        ]
    finally:
        await database.dispose()


@pytest.mark.anyio("asyncio")
async def test_continue_watching_cannot_be_toggled(tmp_path: Path) -> None:
    database = await open_database(tmp_path)
    try:
        store = await open_store(database)
        with pytest.raises(ValueError):
            await store.toggle_list_membership(CONTINUE_WATCHING, movie(1))
        with pytest.raises(ValueError):
            store.load("favourites")
    finally:
        await database.dispose()


@pytest.mark.anyio("asyncio")
async def test_clear_then_load_is_empty_and_durable(tmp_path: Path) -> None:
    database = await open_database(tmp_path)
    try:
        store = await open_store(database)
        await store.toggle_list_membership(MY_LIST, movie(1))
        await store.clear(MY_LIST)
        assert store.load(MY_LIST) == ()

        reopened = await open_store(database)
        assert reopened.load(MY_LIST) == ()
    finally:
        await database.dispose()


@pytest.mark.anyio("asyncio")
async def test_writes_survive_reopen(tmp_path: Path) -> None:
    database = await open_database(tmp_path)
    try:
        store = await open_store(database)
        await store.record_watch(movie(3))
        await store.toggle_list_membership(MY_LIST, movie(4))
        await store.set_theme("light")
        await store.close()

        reopened = await open_store(database)
        assert [entry.id for entry in reopened.load(CONTINUE_WATCHING)] == [3]
        assert [entry.id for entry in reopened.load(MY_LIST)] == [4]
        assert reopened.theme == "light"

        other_profile = await open_store(database, "kids")
        assert other_profile.load(MY_LIST) == ()
    finally:
        await database.dispose()


@pytest.mark.anyio("asyncio")
async def test_malformed_persisted_state_reads_as_empty(tmp_path: Path) -> None:
    database = await open_database(tmp_path)
    try:
        async with database.session() as session:
            session.add_all(
                [
                    PreferenceRecord(profile_id="default", key=MY_LIST, value="{not json"),
                    PreferenceRecord(
                        profile_id="default", key=REMINDERS, value='[{"title": "no id"}]'
                    ),
                    PreferenceRecord(profile_id="default", key="theme", value="neon"),
                ]
            )

        store = await open_store(database)
        assert store.load(MY_LIST) == ()
        assert store.load(REMINDERS) == ()
        assert store.theme == "dark"

        # Mutations overwrite the malformed value.
        await store.toggle_list_membership(MY_LIST, movie(9))
        reopened = await open_store(database)
        assert [entry.id for entry in reopened.load(MY_LIST)] == [9]
    finally:
        await database.dispose()


@pytest.mark.anyio("asyncio")
async def test_set_theme_rejects_unknown_values(tmp_path: Path) -> None:
    database = await open_database(tmp_path)
    try:
        store = await open_store(database)
        with pytest.raises(ValueError):
            await store.set_theme("sepia")
        assert store.theme == "dark"
    finally:
        await database.dispose()
