from __future__ import annotations

from sura.config import Settings
from sura.container import Container
from sura.protocols import SessionStore
from sura.providers.base import ServiceProvider
from sura.session.stores import MemorySessionStore, RedisSessionStore


class SessionServiceProvider(ServiceProvider):
    """Session store chosen by ``SESSION_BACKEND`` (``memory`` or ``redis``)."""

    def register(self, container: Container) -> None:
        def provide_store(settings: Settings) -> SessionStore:
            backend = settings.SESSION_BACKEND.lower()
            if backend == "memory":
                return MemorySessionStore()
            if backend == "redis":
                return RedisSessionStore(settings.REDIS_URL)
            raise ValueError(f"Unknown session backend '{settings.SESSION_BACKEND}'")

        container.singleton(SessionStore, provide_store)
        container.alias("session.store", SessionStore)

    async def boot(self, container: Container) -> None:
        store = container.get(SessionStore)
        if isinstance(store, RedisSessionStore):
            await store.start()

    async def shutdown(self, container: Container) -> None:
        store = container.instances.get(SessionStore)
        if isinstance(store, RedisSessionStore):
            await store.stop()
