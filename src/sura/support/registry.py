from __future__ import annotations

from typing import Any, ClassVar


class Registry:
    """Process-wide key/value store shared by the whole application."""

    _store: ClassVar[dict[str, Any]] = {}

    def __init__(self) -> None:
        raise TypeError("Registry is a static store and cannot be instantiated")

    @classmethod
    def exists(cls, name: str) -> bool:
        return cls._store.get(name) is not None

    @classmethod
    def get(cls, name: str) -> Any:
        return cls._store.get(name)

    @classmethod
    def set(cls, name: str, obj: Any) -> Any:
        cls._store[name] = obj
        return obj

    @classmethod
    def clear(cls) -> None:
        cls._store.clear()
