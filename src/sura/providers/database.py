from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from sura.config import Settings
from sura.container import Container
from sura.database.query_builder import QueryBuilder
from sura.logging_utils import create_service_logger
from sura.providers.base import ServiceProvider

logger = create_service_logger("sura.database")


class DatabaseServiceProvider(ServiceProvider):
    """``db`` (AsyncEngine) and ``db.query`` (QueryBuilder), both created on first use."""

    def register(self, container: Container) -> None:
        def provide_engine(settings: Settings) -> AsyncEngine:
            logger.info("Creating database engine", url=settings.database_url_masked())
            return create_async_engine(
                settings.database_url, echo=settings.DB_ECHO, pool_pre_ping=True
            )

        def provide_query_builder(engine: AsyncEngine, settings: Settings) -> QueryBuilder:
            return QueryBuilder(engine, log_path=settings.SQL_LOG_PATH)

        container.singleton(AsyncEngine, provide_engine)
        container.alias("db", AsyncEngine)
        container.singleton(QueryBuilder, provide_query_builder)
        container.alias("db.query", QueryBuilder)

    async def shutdown(self, container: Container) -> None:
        # Only dispose an engine that was actually created
        engine = container.instances.get(AsyncEngine)
        if engine is not None:
            await engine.dispose()
            logger.info("Database engine disposed")
