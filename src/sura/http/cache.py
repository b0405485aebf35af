"""Public HTTP caching headers and conditional ``304 Not Modified`` answers."""

from __future__ import annotations

import time
from email.utils import formatdate, parsedate_to_datetime
from typing import Callable

from sura.http.request import Request
from sura.http.response import Response


class HttpCache:
    def __init__(self, ttl: int = 3600, clock: Callable[[], float] = time.time) -> None:
        self.ttl = ttl
        self._clock = clock

    def with_default_ttl(self, ttl: int) -> HttpCache:
        self.ttl = ttl
        return self

    def apply(self, request: Request, response: Response, ttl: int | None = None) -> Response:
        """Add ``Cache-Control``/``Expires``/``Last-Modified`` to ``response``.

        When the client's ``If-Modified-Since`` falls inside the TTL window the
        response is turned into a bodiless 304.
        """
        ttl = self.ttl if ttl is None else ttl
        now = self._clock()

        response.set_header("Cache-Control", f"public, max-age={ttl}")
        response.set_header("Expires", formatdate(now + ttl, usegmt=True))
        response.set_header("Last-Modified", formatdate(now, usegmt=True))

        since = self._parse_http_date(request.header("if-modified-since"))
        if since is not None and since >= now - ttl:
            response.set_not_modified()
        return response

    @staticmethod
    def _parse_http_date(value: str | None) -> float | None:
        if not value:
            return None
        try:
            return parsedate_to_datetime(value).timestamp()
        except (TypeError, ValueError, IndexError):
            return None
