"""Shared helpers for building framework objects in tests."""

from __future__ import annotations

from typing import Any

from sura.http.request import Request


def make_request(method: str = "GET", path: str = "/", **kwargs: Any) -> Request:
    """Build a Request with sensible defaults for unit tests."""
    kwargs.setdefault("headers", {"Host": "example.test"})
    return Request(method=method, path=path, **kwargs)
