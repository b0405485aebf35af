"""
Tests for sessions: the Session mapping, the memory and Redis stores and
the middleware that loads and persists sessions around a request.
"""

from __future__ import annotations

import json
from typing import Any
from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from sura.config import Settings
from sura.http.request import Request
from sura.http.response import Response
from sura.session.middleware import SessionMiddleware
from sura.session.session import Session
from sura.session.stores import MemorySessionStore, RedisSessionStore
from tests.helpers import make_request


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestSession:
    """Test suite for the Session mapping."""

    def test_new_session(self) -> None:
        session = Session()

        assert session.is_new
        assert len(session.id) >= 32
        assert not session.modified
        assert len(session) == 0

    def test_mutations_mark_modified(self) -> None:
        session = Session("abc", {"a": 1})
        assert not session.modified

        session["b"] = 2
        del session["a"]

        assert session.modified
        assert session.to_dict() == {"b": 2}

    def test_regenerate_keeps_data_and_remembers_old_id(self) -> None:
        session = Session("old", {"user_id": 1})

        session.regenerate()
        session.regenerate()

        assert session.id != "old"
        assert session.previous_id == "old"
        assert session["user_id"] == 1

    def test_regenerate_new_session_has_no_previous_id(self) -> None:
        session = Session()

        session.regenerate()

        assert session.previous_id is None

    def test_invalidate(self) -> None:
        session = Session("old", {"user_id": 1})

        session.invalidate()

        assert session.id != "old"
        assert session.to_dict() == {}
        assert session.previous_id == "old"


class TestMemorySessionStore:
    """Test suite for the in-process store."""

    async def test_save_load_delete(self) -> None:
        store = MemorySessionStore()

        await store.save("s1", {"a": 1}, ttl=60)

        assert await store.load("s1") == {"a": 1}
        await store.delete("s1")
        assert await store.load("s1") is None
        assert len(store) == 0

    async def test_expired_sessions_are_dropped(self) -> None:
        clock = FakeClock()
        store = MemorySessionStore(clock=clock)
        await store.save("s1", {"a": 1}, ttl=60)

        clock.now += 61

        assert await store.load("s1") is None
        assert len(store) == 0

    async def test_abandoned_sessions_are_swept_on_save(self) -> None:
        # Arrange
        clock = FakeClock(now=0.0)
        store = MemorySessionStore(clock=clock)
        for index in range(100):
            await store.save(f"abandoned-{index}", {"n": index}, ttl=10)

        # Act
        clock.now = 1000.0
        await store.save("fresh", {"a": 1}, ttl=10)

        # Assert
        assert len(store) == 1
        assert await store.load("fresh") == {"a": 1}

    async def test_sweep_waits_for_interval(self) -> None:
        clock = FakeClock(now=0.0)
        store = MemorySessionStore(clock=clock, sweep_interval=60.0)
        await store.save("old", {}, ttl=5)

        clock.now = 30.0
        await store.save("new", {}, ttl=60)

        assert len(store) == 2

    async def test_loaded_data_is_a_copy(self) -> None:
        store = MemorySessionStore()
        await store.save("s1", {"a": 1}, ttl=60)

        loaded = await store.load("s1")
        loaded["a"] = 2

        assert await store.load("s1") == {"a": 1}


class TestRedisSessionStore:
    """Test suite for the Redis store with a mocked client."""

    @pytest.fixture
    def client(self) -> AsyncMock:
        return AsyncMock()

    @pytest.fixture
    def store(self, client: AsyncMock) -> RedisSessionStore:
        return RedisSessionStore(client=client, prefix="test:")

    async def test_save(self, store: RedisSessionStore, client: AsyncMock) -> None:
        await store.save("abc", {"user_id": 1}, ttl=120)

        client.set.assert_awaited_once_with("test:abc", json.dumps({"user_id": 1}), ex=120)

    async def test_load(self, store: RedisSessionStore, client: AsyncMock) -> None:
        client.get.return_value = '{"user_id": 1}'

        assert await store.load("abc") == {"user_id": 1}
        client.get.assert_awaited_once_with("test:abc")

    @pytest.mark.parametrize("raw", [None, "not json", "[1, 2]"])
    async def test_load_missing_or_unreadable(
        self, store: RedisSessionStore, client: AsyncMock, raw: Any
    ) -> None:
        client.get.return_value = raw

        assert await store.load("abc") is None

    async def test_delete(self, store: RedisSessionStore, client: AsyncMock) -> None:
        await store.delete("abc")

        client.delete.assert_awaited_once_with("test:abc")

    async def test_start_pings(self, store: RedisSessionStore, client: AsyncMock) -> None:
        await store.start()

        client.ping.assert_awaited_once()

    async def test_start_propagates_connection_errors(
        self, store: RedisSessionStore, client: AsyncMock
    ) -> None:
        client.ping.side_effect = RedisConnectionError("refused")

        with pytest.raises(RedisConnectionError):
            await store.start()

    async def test_stop_closes_client(self, store: RedisSessionStore, client: AsyncMock) -> None:
        await store.stop()

        client.aclose.assert_awaited_once()

    def test_url_or_client_required(self) -> None:
        with pytest.raises(ValueError):
            RedisSessionStore()


class TestSessionMiddleware:
    """Test suite for loading and persisting sessions around a request."""

    @pytest.fixture
    def store(self) -> MemorySessionStore:
        return MemorySessionStore()

    @pytest.fixture
    def middleware(self, store: MemorySessionStore, settings: Settings) -> SessionMiddleware:
        return SessionMiddleware(store, settings)

    @staticmethod
    def handler(action: Any = None):
        async def next_handler(request: Request) -> Response:
            if action is not None:
                action(request.session)
            return Response("ok")

        return next_handler

    async def test_untouched_session_is_not_stored(
        self, middleware: SessionMiddleware, store: MemorySessionStore
    ) -> None:
        response = await middleware.handle(make_request(), self.handler())

        assert len(store) == 0
        assert response.cookies == []

    async def test_new_session_is_saved_with_cookie(
        self, middleware: SessionMiddleware, store: MemorySessionStore, settings: Settings
    ) -> None:
        # Act
        response = await middleware.handle(
            make_request(), self.handler(lambda s: s.__setitem__("n", 1))
        )

        # Assert
        cookie = response.cookies[0]
        assert cookie["key"] == settings.SESSION_COOKIE
        assert cookie["max_age"] == settings.SESSION_LIFETIME_SECONDS
        assert cookie["secure"] is False
        assert await store.load(cookie["value"]) == {"n": 1}

    async def test_existing_session_is_loaded(
        self, middleware: SessionMiddleware, store: MemorySessionStore, settings: Settings
    ) -> None:
        await store.save("known", {"n": 1}, ttl=60)
        seen: dict[str, Any] = {}

        def bump(session: Session) -> None:
            seen["before"] = session["n"]
            session["n"] += 1

        response = await middleware.handle(
            make_request(cookies={settings.SESSION_COOKIE: "known"}), self.handler(bump)
        )

        assert seen["before"] == 1
        assert await store.load("known") == {"n": 2}
        assert response.cookies == []

    async def test_unknown_cookie_starts_fresh_session(
        self, middleware: SessionMiddleware, settings: Settings
    ) -> None:
        seen: dict[str, Session] = {}

        await middleware.handle(
            make_request(cookies={settings.SESSION_COOKIE: "stale"}),
            self.handler(lambda s: seen.setdefault("session", s)),
        )

        assert seen["session"].is_new
        assert seen["session"].id != "stale"

    async def test_regenerated_session_replaces_old_entry(
        self, middleware: SessionMiddleware, store: MemorySessionStore, settings: Settings
    ) -> None:
        await store.save("old", {"n": 1}, ttl=60)

        response = await middleware.handle(
            make_request(cookies={settings.SESSION_COOKIE: "old"}),
            self.handler(lambda s: s.regenerate()),
        )

        new_id = response.cookies[0]["value"]
        assert new_id != "old"
        assert await store.load("old") is None
        assert await store.load(new_id) == {"n": 1}

    async def test_invalidated_session_is_forgotten(
        self, middleware: SessionMiddleware, store: MemorySessionStore, settings: Settings
    ) -> None:
        await store.save("old", {"user_id": 1}, ttl=60)

        response = await middleware.handle(
            make_request(cookies={settings.SESSION_COOKIE: "old"}),
            self.handler(lambda s: s.invalidate()),
        )

        assert len(store) == 0
        assert response.cookies[0]["key"] == settings.SESSION_COOKIE
        assert response.cookies[0]["max_age"] == 0
