"""Server-side sessions: the Session mapping, storage backends and middleware."""

from sura.session.middleware import SessionMiddleware
from sura.session.session import Session
from sura.session.stores import MemorySessionStore, RedisSessionStore

__all__ = ["MemorySessionStore", "RedisSessionStore", "Session", "SessionMiddleware"]
