"""Service providers bundled with the framework."""

from sura.providers.auth import AuthServiceProvider, ValidationServiceProvider
from sura.providers.base import ServiceProvider
from sura.providers.core import CoreServiceProvider
from sura.providers.database import DatabaseServiceProvider
from sura.providers.http_cache import HttpCacheServiceProvider
from sura.providers.session import SessionServiceProvider

DEFAULT_PROVIDERS = (
    CoreServiceProvider,
    DatabaseServiceProvider,
    SessionServiceProvider,
    AuthServiceProvider,
    ValidationServiceProvider,
    HttpCacheServiceProvider,
)

__all__ = [
    "AuthServiceProvider",
    "CoreServiceProvider",
    "DatabaseServiceProvider",
    "DEFAULT_PROVIDERS",
    "HttpCacheServiceProvider",
    "ServiceProvider",
    "SessionServiceProvider",
    "ValidationServiceProvider",
]
