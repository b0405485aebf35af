"""Middleware attaching a Session to each request and persisting it afterwards."""

from __future__ import annotations

from sura.config import Settings
from sura.http.request import Request
from sura.http.response import Response
from sura.protocols import NextHandler, SessionStore
from sura.session.session import Session


class SessionMiddleware:
    def __init__(self, store: SessionStore, settings: Settings) -> None:
        self.store = store
        self.settings = settings

    async def handle(self, request: Request, next: NextHandler) -> Response:
        cookie_name = self.settings.SESSION_COOKIE
        cookie_id = request.cookie(cookie_name)

        data = await self.store.load(cookie_id) if cookie_id else None
        session = Session(cookie_id, data) if data is not None else Session()
        request.session = session

        response = await next(request)

        if session.previous_id:
            await self.store.delete(session.previous_id)

        if not session:
            # Nothing worth keeping: forget the session and the cookie
            if cookie_id:
                await self.store.delete(cookie_id)
                response.delete_cookie(cookie_name, secure=self.settings.COOKIE_SECURE)
            return response

        if session.modified or session.id != cookie_id:
            await self.store.save(
                session.id, session.to_dict(), self.settings.SESSION_LIFETIME_SECONDS
            )
        if session.id != cookie_id:
            response.set_cookie(
                cookie_name,
                session.id,
                max_age=self.settings.SESSION_LIFETIME_SECONDS,
                secure=self.settings.COOKIE_SECURE,
                httponly=True,
                samesite="Lax",
            )
        return response
