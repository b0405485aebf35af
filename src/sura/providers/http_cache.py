from __future__ import annotations

from sura.config import Settings
from sura.container import Container
from sura.http.cache import HttpCache
from sura.http.kernel import Kernel
from sura.middleware.http_cache import HttpCacheMiddleware
from sura.providers.base import ServiceProvider


class HttpCacheServiceProvider(ServiceProvider):
    """HttpCache with ``HTTP_CACHE_TTL``; cache headers are only sent in production.

    The middleware is installed outermost so it sees cookies set by the
    session middleware.
    """

    def register(self, container: Container) -> None:
        def provide_cache(settings: Settings) -> HttpCache:
            return HttpCache(settings.HTTP_CACHE_TTL)

        container.singleton(HttpCache, provide_cache)

    async def boot(self, container: Container) -> None:
        settings: Settings = container.get(Settings)
        kernel = container.instances.get(Kernel)
        if settings.is_production() and kernel is not None:
            kernel.prepend_middleware(HttpCacheMiddleware)
