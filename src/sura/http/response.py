"""Mutable HTTP response built by handlers and middleware."""

from __future__ import annotations

import json
from typing import Any, Mapping

from quart import Response as QuartResponse

JSON_CONTENT_TYPE = "application/json; charset=utf-8"
HTML_CONTENT_TYPE = "text/html; charset=utf-8"

# Entity headers dropped from a 304 answer
_NOT_MODIFIED_DROP = (
    "Allow",
    "Content-Encoding",
    "Content-Language",
    "Content-Length",
    "Content-Md5",
    "Content-Type",
    "Last-Modified",
)


def normalize_header(name: str) -> str:
    """``content-type`` -> ``Content-Type``."""
    return "-".join(part.capitalize() for part in name.strip().split("-"))


class Response:
    def __init__(
        self,
        body: str | bytes = "",
        status: int = 200,
        headers: Mapping[str, str] | None = None,
        content_type: str = HTML_CONTENT_TYPE,
    ) -> None:
        self.body: str | bytes = body
        self.status = status
        self.headers: dict[str, str] = {}
        self.cookies: list[dict[str, Any]] = []
        for name, value in (headers or {}).items():
            self.set_header(name, value)
        self.headers.setdefault("Content-Type", content_type)

    def __repr__(self) -> str:
        return f"<Response {self.status} {self.headers.get('Content-Type', '')}>"

    def set_status(self, status: int) -> Response:
        self.status = status
        return self

    def write(self, content: str | bytes) -> Response:
        """Append to the body."""
        if isinstance(self.body, bytes) and isinstance(content, str):
            content = content.encode("utf-8")
        elif isinstance(self.body, str) and isinstance(content, bytes):
            self.body = self.body.encode("utf-8")
        self.body = self.body + content  # type: ignore[operator]
        return self

    def set_header(self, name: str, value: str) -> Response:
        self.headers[normalize_header(name)] = value
        return self

    def header(self, name: str, default: str | None = None) -> str | None:
        return self.headers.get(normalize_header(name), default)

    def remove_header(self, name: str) -> Response:
        self.headers.pop(normalize_header(name), None)
        return self

    def json(self, data: Any, status: int | None = None) -> Response:
        """Replace the body with ``data`` encoded as UTF-8 JSON.

        Raises:
            TypeError: ``data`` holds values JSON cannot encode
        """
        self.body = json.dumps(data, ensure_ascii=False)
        self.set_header("Content-Type", JSON_CONTENT_TYPE)
        if status is not None:
            self.status = status
        return self

    def html(self, text: str, status: int | None = None) -> Response:
        self.body = text
        self.set_header("Content-Type", HTML_CONTENT_TYPE)
        if status is not None:
            self.status = status
        return self

    def redirect(self, url: str, status: int = 302) -> Response:
        self.body = ""
        self.status = status
        self.set_header("Location", url)
        return self

    def set_cookie(
        self,
        name: str,
        value: str = "",
        *,
        max_age: int | None = None,
        expires: int | float | None = None,
        path: str = "/",
        domain: str | None = None,
        secure: bool = False,
        httponly: bool = True,
        samesite: str | None = "Lax",
    ) -> Response:
        self.cookies.append(
            {
                "key": name,
                "value": value,
                "max_age": max_age,
                "expires": expires,
                "path": path,
                "domain": domain,
                "secure": secure,
                "httponly": httponly,
                "samesite": samesite,
            }
        )
        return self

    def delete_cookie(
        self, name: str, path: str = "/", domain: str | None = None, secure: bool = False
    ) -> Response:
        return self.set_cookie(
            name, "", max_age=0, expires=0, path=path, domain=domain, secure=secure
        )

    def set_not_modified(self) -> Response:
        self.status = 304
        self.body = b""
        for name in _NOT_MODIFIED_DROP:
            self.headers.pop(name, None)
        return self

    def get_body(self) -> bytes:
        if isinstance(self.body, bytes):
            return self.body
        return self.body.encode("utf-8")

    def to_quart(self) -> QuartResponse:
        response = QuartResponse(self.get_body(), status=self.status, headers=self.headers)
        for cookie in self.cookies:
            response.set_cookie(**cookie)
        return response
