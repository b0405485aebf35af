"""
Protocol definitions for the Sura framework.

These describe the seams applications plug into: middleware, session storage
and password hashing.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Awaitable, Callable, Protocol, runtime_checkable

if TYPE_CHECKING:
    from sura.http.request import Request
    from sura.http.response import Response

NextHandler = Callable[["Request"], Awaitable["Response"]]


@runtime_checkable
class Middleware(Protocol):
    """A pipeline stage wrapping the next handler."""

    async def handle(self, request: Request, next: NextHandler) -> Response:
        """Process ``request``; call ``await next(request)`` to continue the chain."""
        ...


class SessionStore(Protocol):
    """Persistence for session payloads keyed by session id."""

    async def load(self, session_id: str) -> dict[str, Any] | None:
        """Return the stored payload, or None when unknown or expired."""
        ...

    async def save(self, session_id: str, data: dict[str, Any], ttl: int) -> None:
        """Store ``data`` for ``ttl`` seconds."""
        ...

    async def delete(self, session_id: str) -> None:
        ...


class PasswordHasher(Protocol):
    """Protocol for password hashing and verification."""

    def hash(self, password: str) -> str:
        ...

    def verify(self, hashed: str, password: str) -> bool:
        ...

