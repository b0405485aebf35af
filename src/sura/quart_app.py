"""
Quart integration for Sura applications.

SuraApp is a Quart subclass whose only view forwards every path and method to
the Sura kernel. Quart provides the ASGI surface (hypercorn, test client,
lifecycle hooks); routing, middleware and error mapping stay in Sura.
"""

from __future__ import annotations

from typing import Any, Callable, Iterable

from quart import Quart
from quart import Response as QuartResponse
from quart import request as quart_request

from sura.application import Application
from sura.config import Settings
from sura.http.request import Request
from sura.logging_utils import (
    clear_request_context,
    configure_service_logging,
    create_service_logger,
)
from sura.providers.base import ServiceProvider
from sura.routing.route import HTTP_METHODS
from sura.routing.router import Router

logger = create_service_logger("sura.quart_app")


class SuraApp(Quart):
    """Quart application driven by a Sura Application.

    GUARANTEED INFRASTRUCTURE:
        application: the Sura Application (container, providers, kernel)

    Providers boot in ``before_serving`` and shut down in ``after_serving``.
    Under the test client, where serving hooks only run inside
    ``test_app()``, the first request boots the application instead.
    """

    application: Application

    def __init__(self, import_name: str, application: Application, *args: Any, **kwargs: Any) -> None:
        super().__init__(import_name, *args, **kwargs)
        self.application = application

        methods = list(HTTP_METHODS)
        self.add_url_rule(
            "/", "sura", self._dispatch, methods=methods, defaults={"path": ""}
        )
        self.add_url_rule("/<path:path>", "sura", self._dispatch, methods=methods)

        self.before_serving(self._startup)
        self.after_serving(self._shutdown)

    @property
    def container(self) -> Any:
        return self.application.container

    async def _startup(self) -> None:
        await self.application.boot()
        logger.info(f"{self.application.settings.SERVICE_NAME} startup completed successfully")

    async def _shutdown(self) -> None:
        await self.application.shutdown()

    async def _dispatch(self, path: str) -> QuartResponse:
        request = await Request.from_quart(quart_request)
        try:
            response = await self.application.handle(request)
        finally:
            clear_request_context()
        return response.to_quart()


def create_app(
    settings: Settings | None = None,
    *,
    providers: Iterable[ServiceProvider | type[ServiceProvider]] | None = None,
    middleware: Iterable[Any] | None = None,
    routes: Callable[[Router], None] | None = None,
    import_name: str = "sura",
) -> SuraApp:
    """Configure logging and build a SuraApp around a new Application."""
    settings = settings or Settings()
    configure_service_logging(
        settings.SERVICE_NAME,
        environment=settings.ENVIRONMENT.value,
        log_level=settings.LOG_LEVEL,
    )
    application = Application(settings, providers=providers, middleware=middleware, routes=routes)
    return SuraApp(import_name, application)
