"""Application: container, providers and kernel wired together.

    application = Application(settings, routes=register_routes)
    response = await application.handle(request)

Providers are registered in order when the Application is built and booted
once, lazily, before the first request (or from the server's startup hook).
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Iterable

from sura.config import Settings
from sura.container import Container
from sura.http.kernel import Kernel
from sura.http.request import Request
from sura.http.response import Response
from sura.logging_utils import create_service_logger
from sura.middleware.correlation import CorrelationIdMiddleware
from sura.providers import DEFAULT_PROVIDERS, ServiceProvider
from sura.routing.router import Router
from sura.session.middleware import SessionMiddleware

logger = create_service_logger("sura.application")

DEFAULT_MIDDLEWARE = (CorrelationIdMiddleware, SessionMiddleware)


class Application:
    def __init__(
        self,
        settings: Settings | None = None,
        providers: Iterable[ServiceProvider | type[ServiceProvider]] | None = None,
        middleware: Iterable[Any] | None = None,
        routes: Callable[[Router], None] | None = None,
        container: Container | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self.container = container or Container()
        Container.set_instance(self.container)

        self.container.instance(Settings, self.settings)
        self.container.alias("settings", Settings)
        self.container.instance(Application, self)
        self.container.alias("app", Application)

        self.providers: list[ServiceProvider] = [
            p() if isinstance(p, type) else p
            for p in (DEFAULT_PROVIDERS if providers is None else providers)
        ]
        for provider in self.providers:
            provider.register(self.container)

        if Router not in self.container.definitions and Router not in self.container.instances:
            self.container.singleton(Router, Router)

        self.kernel = Kernel(
            self.container,
            DEFAULT_MIDDLEWARE if middleware is None else middleware,
            controller_namespace=self.settings.CONTROLLER_NAMESPACE,
        )
        self.container.instance(Kernel, self.kernel)

        self.booted = False
        self._boot_lock = asyncio.Lock()

        if routes is not None:
            routes(self.router)

    @property
    def router(self) -> Router:
        return self.container.get(Router)

    def is_production(self) -> bool:
        return self.settings.is_production()

    async def boot(self) -> None:
        """Boot every provider once; concurrent callers wait for the first."""
        if self.booted:
            return
        async with self._boot_lock:
            if self.booted:
                return
            for provider in self.providers:
                await provider.boot(self.container)
            self.booted = True
            logger.info(
                "Application booted",
                providers=[type(p).__name__ for p in self.providers],
                routes=len(self.router.routes),
            )

    async def shutdown(self) -> None:
        """Shut providers down in reverse order; one failure does not stop the rest."""
        for provider in reversed(self.providers):
            try:
                await provider.shutdown(self.container)
            except Exception as e:
                logger.error(
                    f"Error shutting down {type(provider).__name__}: {e}",
                    exc_info=True,
                )
        self.booted = False

    async def handle(self, request: Request) -> Response:
        await self.boot()
        return await self.kernel.handle(request)
