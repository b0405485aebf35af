"""Server-side session bound to one request."""

from __future__ import annotations

import secrets
from typing import Any, Iterator, MutableMapping


def new_session_id() -> str:
    return secrets.token_urlsafe(32)


class Session(MutableMapping[str, Any]):
    """Dict-like session payload that tracks whether it needs saving.

    ``regenerate()`` moves the payload to a fresh id (call it after login);
    ``invalidate()`` drops the payload and the id.
    """

    def __init__(self, session_id: str | None = None, data: dict[str, Any] | None = None) -> None:
        self.is_new = session_id is None
        self.id = session_id or new_session_id()
        self.previous_id: str | None = None
        self.modified = False
        self._data: dict[str, Any] = dict(data or {})

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self._data[key] = value
        self.modified = True

    def __delitem__(self, key: str) -> None:
        del self._data[key]
        self.modified = True

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"<Session {self.id[:8]}... keys={sorted(self._data)}>"

    def regenerate(self) -> None:
        if self.previous_id is None and not self.is_new:
            self.previous_id = self.id
        self.id = new_session_id()
        self.modified = True

    def invalidate(self) -> None:
        self._data.clear()
        self.regenerate()

    def to_dict(self) -> dict[str, Any]:
        return dict(self._data)
