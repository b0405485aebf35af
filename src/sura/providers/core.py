from __future__ import annotations

from typing import Any

from sura.config import Settings
from sura.container import Container
from sura.http.request import Request, current_request
from sura.logging_utils import create_service_logger
from sura.providers.base import ServiceProvider
from sura.routing.router import Router


class CoreServiceProvider(ServiceProvider):
    """Router, per-request Request binding, application logger and settings."""

    def register(self, container: Container) -> None:
        if not container.has("settings"):
            container.instance(Settings, Settings())
            container.alias("settings", Settings)

        container.singleton(Router, Router)
        container.alias("router", Router)

        # Not shared: always the request of the calling task
        container.bind(Request, current_request)

        def provide_logger(settings: Settings) -> Any:
            return create_service_logger(settings.SERVICE_NAME)

        container.singleton("logger", provide_logger)
