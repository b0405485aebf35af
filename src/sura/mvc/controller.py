from __future__ import annotations

from typing import Any

from sura.container import Container
from sura.http.request import Request
from sura.http.response import Response


class BaseController:
    """Base class for ``"Controller@method"`` route handlers.

    The kernel builds controllers through the container with the current
    request, so subclasses may add further typed constructor dependencies.
    """

    def __init__(self, request: Request) -> None:
        self.request = request
        self.response = Response()
        self.view_data: dict[str, Any] = {}

    def set(self, key: str, value: Any) -> BaseController:
        self.view_data[key] = value
        return self

    def with_data(self, data: dict[str, Any]) -> BaseController:
        self.view_data.update(data)
        return self

    def html(self, html: str) -> Response:
        return self.response.html(html)

    def json(self, data: Any = None, status: int = 200) -> Response:
        """JSON response of ``data``, or of the collected view data when omitted."""
        return self.response.json(self.view_data if data is None else data, status)

    def redirect(self, url: str, status: int = 302) -> Response:
        return self.response.redirect(url, status)

    def get(self, service: Any) -> Any:
        return Container.get_instance().get(service)
