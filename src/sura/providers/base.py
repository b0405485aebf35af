from __future__ import annotations

from sura.container import Container


class ServiceProvider:
    """Registers services into the container.

    ``register`` runs when the application is built and must only bind
    services; ``boot`` runs once before the first request, when every
    provider has registered; ``shutdown`` runs when the server stops.
    """

    def register(self, container: Container) -> None:
        raise NotImplementedError

    async def boot(self, container: Container) -> None:
        return None

    async def shutdown(self, container: Container) -> None:
        return None
