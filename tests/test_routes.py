"""HTTP-level tests for the browser routes backed by a temporary database."""

from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Mapping

from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.config import Settings
from app.database import Database
from app.main import register_routes
from app.services.details import TitleService
from app.services.fetch_client import FetchClient
from app.services.sessions import SessionRegistry


class CannedFetchClient(FetchClient):
    """Fetch client stub answering from a path keyed table."""

    def __init__(self, responses: Mapping[str, dict[str, Any] | None]) -> None:
        # Deliberately skip super().__init__ to avoid creating an HTTP client.
        self.responses = dict(responses)

    async def fetch(  # type: ignore[override]
        self, path: str, params: Mapping[str, Any] | None = None
    ) -> dict[str, Any] | None:
        return self.responses.get(path)


CATALOG = {
    "movie/popular": {"results": [{"id": 1, "title": "Popular One"}]},
    "movie/now_playing": {"results": [{"id": 2, "title": "Now Playing"}]},
    "search/multi": {
        "results": [
            {"id": 3, "media_type": "movie", "title": "Found"},
            {"id": 4, "media_type": "person", "name": "Somebody"},
            {"id": 5, "media_type": "tv", "name": "Found Show"},
        ]
    },
    "movie/550/videos": {
        "results": [{"site": "YouTube", "type": "Trailer", "key": "abc123"}]
    },
    "tv/1399/season/1": {
        "episodes": [{"episode_number": 1, "name": "Winter Is Coming"}]
    },
}


def build_app(tmp_path: Path) -> FastAPI:
    settings = Settings(
        _env_file=None,  # type: ignore[call-arg]
        TMDB_API_KEY="key",
        SEARCH_DEBOUNCE_SECONDS=0,
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'routes.db'}",
    )
    fetch_client = CannedFetchClient(CATALOG)

    @asynccontextmanager
    async def lifespan(fastapi_app: FastAPI):
        database = Database(settings.database_url)
        await database.create_all()
        sessions = SessionRegistry(settings, fetch_client, database.session_factory)
        fastapi_app.state.settings = settings
        fastapi_app.state.sessions = sessions
        fastapi_app.state.titles = TitleService(fetch_client)
        try:
            yield
        finally:
            await sessions.stop()
            await database.dispose()

    app = FastAPI(lifespan=lifespan)
    register_routes(app)
    return app


def test_toggle_record_and_clear_lists(tmp_path: Path) -> None:
    entry = {"id": 550, "type": "movie", "title": "Fight Club", "posterPath": "/fc.jpg"}

    with TestClient(build_app(tmp_path)) as client:
        added = client.post("/api/lists/myList/toggle", json=entry)
        assert added.status_code == 200
        assert added.json()["member"] is True
        assert added.json()["items"] == [
            {"id": 550, "kind": "movie", "title": "Fight Club", "poster_path": "/fc.jpg"}
        ]

        removed = client.post("/api/lists/myList/toggle", json=entry)
        assert removed.json()["member"] is False
        assert removed.json()["items"] == []

        client.post("/api/lists/continueWatching", json=entry)
        watched = client.get("/api/lists/continueWatching")
        assert [item["id"] for item in watched.json()["items"]] == [550]

        cleared = client.delete("/api/lists/continueWatching")
        assert cleared.json()["items"] == []


def test_list_routes_reject_unknown_lists_and_bad_bodies(tmp_path: Path) -> None:
    with TestClient(build_app(tmp_path)) as client:
        assert client.get("/api/lists/favourites").status_code == 404
        toggle_history = client.post(
            "/api/lists/continueWatching/toggle", json={"id": 1, "kind": "movie"}
        )
        assert toggle_history.status_code == 400
        missing_id = client.post("/api/lists/myList/toggle", json={"title": "x"})
        assert missing_id.status_code == 400


def test_profiles_keep_separate_lists(tmp_path: Path) -> None:
    entry = {"id": 7, "kind": "tv", "title": "Show"}

    with TestClient(build_app(tmp_path)) as client:
        client.post("/api/lists/reminders/toggle", params={"profile": "Kids"}, json=entry)
        kids = client.get("/api/lists/reminders", params={"profile": "kids"})
        default = client.get("/api/lists/reminders")

    assert [item["id"] for item in kids.json()["items"]] == [7]
    assert default.json()["items"] == []


def test_theme_round_trip(tmp_path: Path) -> None:
    with TestClient(build_app(tmp_path)) as client:
        assert client.get("/api/theme").json() == {"theme": "dark"}
        assert client.put("/api/theme", json={"theme": "light"}).json() == {"theme": "light"}
        assert client.get("/api/theme").json() == {"theme": "light"}
        assert client.put("/api/theme", json={"theme": "sepia"}).status_code == 400


def test_view_route_returns_published_view_model(tmp_path: Path) -> None:
    with TestClient(build_app(tmp_path)) as client:
        response = client.get("/api/views/movies")
        unknown = client.get("/api/views/anime")

    assert response.status_code == 200
    payload = response.json()
    assert payload["view"] == "movies"
    assert payload["isLoading"] is False
    assert payload["hero"]["id"] == 1
    assert [row["title"] for row in payload["rows"]] == ["Popular Movies", "Now Playing"]
    assert unknown.json()["rows"] == []


def test_search_route_drops_people(tmp_path: Path) -> None:
    with TestClient(build_app(tmp_path)) as client:
        response = client.get("/api/search", params={"q": "  found "})

    payload = response.json()
    assert payload["query"] == "found"
    assert [(item["kind"], item["id"]) for item in payload["results"]] == [
        ("movie", 3),
        ("tv", 5),
    ]


def test_trailer_route_reports_missing_trailer(tmp_path: Path) -> None:
    with TestClient(build_app(tmp_path)) as client:
        found = client.get("/api/titles/movie/550/trailer")
        missing = client.get("/api/titles/tv/1/trailer")
        bad_kind = client.get("/api/titles/person/1/trailer")

    assert found.json() == {"key": "abc123", "notice": None}
    assert missing.json() == {"key": None, "notice": "Trailer not available"}
    assert bad_kind.status_code == 400


def test_title_and_season_routes(tmp_path: Path) -> None:
    with TestClient(build_app(tmp_path)) as client:
        missing = client.get("/api/titles/movie/42")
        season = client.get("/api/tv/1399/season/1")

    assert missing.status_code == 404
    assert season.status_code == 200
    assert season.json()["episodes"][0]["name"] == "Winter Is Coming"


def test_player_route_builds_embed_urls(tmp_path: Path) -> None:
    with TestClient(build_app(tmp_path)) as client:
        movie = client.get("/api/player/movie/550")
        episode = client.get("/api/player/tv/1399", params={"season": 2, "episode": 3})
        invalid = client.get("/api/player/tv/1399", params={"season": 0})
        bad_kind = client.get("/api/player/game/1")

    assert movie.json() == {"url": "https://www.2embed.cc/embed/550?sv=player4u"}
    assert episode.json() == {
        "url": "https://www.2embed.cc/embedtv/1399?s=2&e=3&sv=player4u"
    }
    assert invalid.status_code == 400
    assert bad_kind.status_code == 400
