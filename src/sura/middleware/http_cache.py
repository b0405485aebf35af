"""Middleware applying public cache headers to successful GET responses."""

from __future__ import annotations

from sura.http.cache import HttpCache
from sura.http.request import Request
from sura.http.response import Response
from sura.protocols import NextHandler

_CACHEABLE_METHODS = ("GET", "HEAD")


class HttpCacheMiddleware:
    def __init__(self, cache: HttpCache) -> None:
        self.cache = cache

    async def handle(self, request: Request, next: NextHandler) -> Response:
        response = await next(request)
        if (
            request.method in _CACHEABLE_METHODS
            and response.status == 200
            and response.header("Cache-Control") is None
            and not response.cookies
            and not request.state.get("queued_cookies")
            and not (request.session is not None and request.session.modified)
        ):
            self.cache.apply(request, response)
        return response
