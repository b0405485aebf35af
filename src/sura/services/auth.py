"""Session and remember-me cookie authentication against the ``users`` table.

The service holds no per-user state: the resolved user is cached on the
request, so one shared instance serves concurrent requests.

The ``password`` cookie never carries the password hash itself. It holds an
HMAC-SHA256 of the stored hash keyed with ``SECRET_KEY``; changing the
password or the key invalidates every remember-me cookie.
"""

from __future__ import annotations

import hashlib
import hmac
from typing import Any, Mapping

from sura.config import Settings
from sura.database.query_builder import QueryBuilder
from sura.http.request import Request, to_int
from sura.logging_utils import create_service_logger
from sura.protocols import PasswordHasher
from sura.services.validator import is_valid_email
from sura.session.session import Session
from sura.support.cookie import Cookie

logger = create_service_logger("sura.auth")

USER_CACHE_KEY = "auth_user"
DEFAULT_USER_AGE = 0
DEFAULT_USER_GROUP = 5


class AuthService:
    def __init__(self, db: QueryBuilder, hasher: PasswordHasher, settings: Settings) -> None:
        self.db = db
        self.hasher = hasher
        self.settings = settings

    def check(self, request: Request) -> bool:
        """True when the session or the remember-me cookies name a user."""
        if request.session is not None and to_int(request.session.get("user_id")) > 0:
            return True
        return (
            to_int(request.cookie("user_id")) > 0 and request.cookie("password") is not None
        )

    async def get_user(self, request: Request) -> dict[str, Any] | None:
        if USER_CACHE_KEY in request.state:
            return request.state[USER_CACHE_KEY]
        if not self.check(request):
            return None

        use_cookie = False
        user_id = to_int(request.session.get("user_id")) if request.session is not None else 0
        if user_id <= 0:
            user_id = to_int(request.cookie("user_id"))
            use_cookie = True
        if user_id <= 0:
            return None

        user = await self.db.fetch_one("SELECT * FROM users WHERE user_id = ?", [user_id])
        if not user or "user_id" not in user:
            return None

        if use_cookie:
            if not hmac.compare_digest(
                request.cookie("password") or "", self.remember_token(user["user_password"])
            ):
                logger.warning("Remember-me cookie rejected", user_id=user_id)
                await self.logout(request)
                return None
            if request.session is not None:
                request.session["user_id"] = user_id

        request.state[USER_CACHE_KEY] = user
        return user

    async def login(self, request: Request, credentials: Mapping[str, Any]) -> int | None:
        """Sign in by email and password; returns the user id or None."""
        email = str(credentials.get("email") or "").strip()
        password = str(credentials.get("password") or "")
        if not email or not password:
            return None

        user = await self.db.fetch_one("SELECT * FROM users WHERE user_email = ?", [email])
        if not user or not self.hasher.verify(user["user_password"], password):
            logger.info("Login failed", email=email)
            return None

        user_id = int(user["user_id"])
        session = self._session(request)
        session.clear()
        session.regenerate()
        session["user_id"] = user_id

        days = self.settings.AUTH_COOKIE_DAYS
        secure = self.settings.COOKIE_SECURE
        Cookie.append("user_id", str(user_id), days, secure=secure, request=request)
        Cookie.append(
            "password", self.remember_token(user["user_password"]), days, secure=secure,
            request=request,
        )

        request.state[USER_CACHE_KEY] = user
        logger.info("User logged in", user_id=user_id)
        return user_id

    async def logout(self, request: Request) -> bool:
        if request.session is not None:
            request.session.invalidate()
        secure = self.settings.COOKIE_SECURE
        for name in ("user_id", "password"):
            if request.cookie(name) is not None:
                Cookie.remove(name, secure=secure, request=request)
        request.state.pop(USER_CACHE_KEY, None)
        return True

    async def register(self, request: Request, credentials: Mapping[str, Any]) -> int | None:
        """Create a user and sign them in; None when input is invalid or the email is taken."""
        email = str(credentials.get("email") or "").strip()
        password = str(credentials.get("password") or "")
        name = str(credentials.get("name") or "").strip()
        last_name = str(credentials.get("last_name") or "").strip()

        if not email or not password or not name:
            return None
        if not is_valid_email(email):
            return None

        existing = await self.db.fetch_one(
            "SELECT user_id FROM users WHERE user_email = ?", [email]
        )
        if existing:
            return None

        await self.db.execute(
            "INSERT INTO users (user_email, user_password, user_name, user_last_name, "
            "user_age, user_group) VALUES (?, ?, ?, ?, ?, ?)",
            [
                email,
                self.hasher.hash(password),
                name,
                last_name,
                DEFAULT_USER_AGE,
                DEFAULT_USER_GROUP,
            ],
        )
        user_id = self.db.last_insert_id()

        session = self._session(request)
        session.regenerate()
        session["user_id"] = user_id
        request.state[USER_CACHE_KEY] = {
            "user_id": user_id,
            "user_email": email,
            "user_name": name,
            "user_last_name": last_name,
            "user_age": DEFAULT_USER_AGE,
            "user_group": DEFAULT_USER_GROUP,
        }
        logger.info("User registered", user_id=user_id)
        return user_id

    async def find_by_email(self, email: str) -> dict[str, Any] | None:
        user = await self.db.fetch_one("SELECT * FROM users WHERE user_email = ?", [email])
        if not user:
            return None
        user.pop("user_password", None)
        return user

    def remember_token(self, password_hash: str) -> str:
        key = self.settings.SECRET_KEY.get_secret_value().encode("utf-8")
        return hmac.new(key, password_hash.encode("utf-8"), hashlib.sha256).hexdigest()

    @staticmethod
    def _session(request: Request) -> Session:
        if request.session is None:
            raise RuntimeError("No session on the request; is SessionMiddleware installed?")
        return request.session
