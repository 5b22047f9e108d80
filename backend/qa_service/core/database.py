import logging
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool
from sqlalchemy.engine.url import make_url

import structlog

from qa_service.core.config import settings

logger = structlog.get_logger()


class DatabaseFactory:
    def __init__(self, database_url: str = None):
        self.database_url = database_url or settings.DATABASE_URL
        self.engine = self.get_engine()
        self.session_factory = self.get_session_factory()

    def get_engine(self):
        """Create and return a database engine based on configuration."""
        try:
            url = make_url(self.database_url)
            is_sqlite = url.drivername.startswith("sqlite")
            if url.drivername == "sqlite":
                url = url.set(drivername="sqlite+aiosqlite")

            logger.info("Creating async database engine", driver=url.drivername, database=url.database)
            connect_args = {}
            if is_sqlite:
                connect_args = {"check_same_thread": False, "timeout": 30}
            engine = create_async_engine(
                url,
                echo=settings.DEBUG and getattr(logging, settings.SQL_LOG_LEVEL.upper(), logging.WARNING) <= logging.DEBUG,
                poolclass=NullPool,
                connect_args=connect_args,
            )

            # The aiosqlite adapter connection exposes a sync cursor() for event hooks.
            if is_sqlite:
                @event.listens_for(engine.sync_engine, "connect")
                def set_sqlite_pragma(dbapi_connection, connection_record):
                    cursor = dbapi_connection.cursor()
                    cursor.execute("PRAGMA journal_mode=WAL")
                    cursor.execute("PRAGMA synchronous=NORMAL")
                    cursor.execute("PRAGMA busy_timeout=5000")
                    cursor.execute("PRAGMA foreign_keys=ON")
                    cursor.close()

            return engine
        except Exception as e:
            logger.error("Error creating database engine", error=str(e))
            raise

    def get_session_factory(self):
        """Create and return a session factory."""
        return sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autocommit=False,
            autoflush=False
        )

    async def create_all(self) -> None:
        """Create the run tables if they do not exist yet."""
        from qa_service.models import Base

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        await self.engine.dispose()


db_factory = DatabaseFactory()


async def init_db() -> None:
    await db_factory.create_all()
    logger.info("Database initialized", database=make_url(db_factory.database_url).database)
