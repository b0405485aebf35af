"""Cookie helpers working on the request being handled.

Cookies set here are queued on the request and copied onto the final
response by the kernel, whatever response the handler ends up returning.
"""

from __future__ import annotations

import ipaddress
from datetime import datetime, timedelta, timezone
from typing import Any

from sura.http.request import Request, current_request

QUEUE_KEY = "queued_cookies"


def _domain(request: Request) -> str | None:
    """Cookie domain for the request host; None (host-only) for IPs and dotless hosts."""
    if request.host.startswith("["):
        return None
    host = request.host.split(":", 1)[0]
    if "." not in host:
        return None
    try:
        ipaddress.ip_address(host)
    except ValueError:
        return host
    return None


def queue_cookie(request: Request, cookie: dict[str, Any]) -> None:
    request.state.setdefault(QUEUE_KEY, []).append(cookie)


class Cookie:
    @staticmethod
    def append(
        name: str,
        value: str,
        expires: int | bool = 0,
        *,
        secure: bool = True,
        request: Request | None = None,
    ) -> None:
        """Queue ``name=value`` for ``expires`` days; 0 or False makes a session cookie."""
        request = request or current_request()
        days = int(expires) if expires and int(expires) > 0 else 0
        expires_at = datetime.now(timezone.utc) + timedelta(days=days) if days else None
        queue_cookie(
            request,
            {
                "key": name,
                "value": value,
                "max_age": None,
                "expires": expires_at,
                "path": "/",
                "domain": _domain(request),
                "secure": secure,
                "httponly": True,
                "samesite": "Lax",
            },
        )

    @staticmethod
    def remove(name: str, *, secure: bool = True, request: Request | None = None) -> None:
        request = request or current_request()
        queue_cookie(
            request,
            {
                "key": name,
                "value": "",
                "max_age": 0,
                "expires": 0,
                "path": "/",
                "domain": _domain(request),
                "secure": secure,
                "httponly": True,
                "samesite": "Lax",
            },
        )

    @staticmethod
    def get(name: str, *, request: Request | None = None) -> str:
        """Cookie sent by the client, ``""`` when absent."""
        request = request or current_request()
        return request.cookies.get(name, "")
