"""Middleware shipped with the framework.

A middleware is anything with ``async handle(request, next) -> Response``
(see ``sura.protocols.Middleware``) or a bare async callable with the same
signature.
"""

from sura.middleware.correlation import CorrelationIdMiddleware
from sura.middleware.http_cache import HttpCacheMiddleware
from sura.protocols import Middleware
from sura.session.middleware import SessionMiddleware

__all__ = ["CorrelationIdMiddleware", "HttpCacheMiddleware", "Middleware", "SessionMiddleware"]
