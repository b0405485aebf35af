"""Exception hierarchy for the Sura framework.

Container failures, HTTP-level aborts, validation failures and database
errors all derive from SuraError so applications can catch framework
errors in one place. The HTTP kernel maps HttpError subclasses onto
responses; everything else becomes a 500.
"""

from __future__ import annotations

from typing import Any, Mapping


class SuraError(Exception):
    """Base exception for the Sura framework."""


class ContainerError(SuraError):
    """A service could not be built or resolved."""


class NotFoundError(ContainerError):
    """The requested service id is unknown to the container."""


class HttpError(SuraError):
    """Abort the current request with the given HTTP status.

    Raised from handlers or middleware; the kernel turns it into a response
    with ``status_code`` and ``message`` as the body.
    """

    def __init__(
        self,
        status_code: int,
        message: str = "",
        headers: Mapping[str, str] | None = None,
    ) -> None:
        self.status_code = status_code
        self.message = message
        self.headers = dict(headers or {})
        super().__init__(message or f"HTTP {status_code}")


class ValidationError(HttpError):
    """Input failed validation rules; rendered as 422 with the errors map."""

    def __init__(self, errors: Mapping[str, list[str]], message: str = "Validation failed") -> None:
        self.errors: dict[str, list[str]] = {field: list(msgs) for field, msgs in errors.items()}
        super().__init__(422, message)

    def to_dict(self) -> dict[str, Any]:
        return {"message": self.message, "errors": self.errors}


class QueryError(SuraError):
    """A SQL statement failed in the database driver."""

    def __init__(self, message: str, sql: str) -> None:
        self.sql = sql
        super().__init__(message)


def abort(status_code: int, message: str = "", headers: Mapping[str, str] | None = None) -> None:
    """Raise an HttpError; convenience for handlers."""
    raise HttpError(status_code, message, headers)
