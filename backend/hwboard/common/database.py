"""
Database connection management.

A single relational store (SQLite by default, PostgreSQL optional) holds
every entity of the homework board: subjects, assignments, students,
submissions, day allocation rows and the operation log.
"""

from typing import Optional
import logging
from contextlib import asynccontextmanager
from pathlib import Path

from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class DatabaseManager:
    """
    Owns the async engine and session factory.

    Usage:
        manager = DatabaseManager("sqlite+aiosqlite:///:memory:")
        await manager.initialize()
        await manager.create_tables()
        async with manager.get_session() as session:
            ...
    """

    def __init__(self, database_url: Optional[str] = None, echo: Optional[bool] = None):
        self._database_url = database_url
        self._echo = echo

        self.available = False
        self.engine = None
        self.session_factory = None

    @property
    def database_url(self) -> str:
        if self._database_url:
            return self._database_url
        from hwboard.common.config import settings
        return settings.database_url

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    async def initialize(self):
        """Create the engine and verify the connection. Raises if the store is unreachable."""
        if self.available:
            return

        self.available = await self._init_engine()
        if not self.available:
            db_type = "SQLite" if self.is_sqlite else "PostgreSQL"
            raise RuntimeError(
                f"{db_type} is not available. This is a critical dependency. "
                f"Check your configuration and database setup."
            )

    async def _init_engine(self) -> bool:
        from hwboard.common.config import settings

        database_url = self.database_url
        db_type = "SQLite" if self.is_sqlite else "PostgreSQL"

        engine_kwargs = {
            "echo": settings.debug if self._echo is None else self._echo,
        }

        if self.is_sqlite:
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if ":memory:" in database_url:
                # 内存数据库: 所有会话共享同一连接
                engine_kwargs["poolclass"] = StaticPool
            else:
                db_path = database_url.split(":///", 1)[-1]
                Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        else:
            engine_kwargs.update({
                "pool_size": 10,
                "max_overflow": 20,
                "pool_pre_ping": True,
            })

        try:
            self.engine = create_async_engine(database_url, **engine_kwargs)

            if self.is_sqlite:
                event.listen(self.engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

            self.session_factory = sessionmaker(
                self.engine,
                class_=AsyncSession,
                expire_on_commit=False
            )

            async with self.engine.begin() as conn:
                await conn.execute(text("SELECT 1"))

            logger.info(f"✓ {db_type} connection established")
            return True
        except Exception as e:
            logger.error(f"✗ {db_type} connection failed: {e}")
            return False

    async def create_tables(self):
        """Create every table registered on Base.metadata."""
        from hwboard.common.base import Base
        # 导入所有模型确保它们被注册
        from hwboard.domains.homework import models as homework_models  # noqa: F401
        from hwboard.domains.operation import models as operation_models  # noqa: F401

        async with self.engine.begin() as conn:
            if not self.is_sqlite:
                schemas = {t.schema for t in Base.metadata.tables.values() if t.schema}
                for schema in sorted(schemas):
                    await conn.execute(text(f'CREATE SCHEMA IF NOT EXISTS "{schema}"'))
            await conn.run_sync(Base.metadata.create_all)

        logger.info(f"Tables ready: {', '.join(sorted(Base.metadata.tables.keys()))}")

    async def dispose(self):
        if self.engine is not None:
            await self.engine.dispose()
        self.available = False
        self.engine = None
        self.session_factory = None

    @asynccontextmanager
    async def get_session(self):
        """
        Get a database session; commits on success, rolls back on error.

        Usage:
            async with db_manager.get_session() as session:
                result = await session.execute(stmt)
        """
        if not self.available:
            raise RuntimeError("Database is not available")

        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise


# Global database manager instance
db_manager = DatabaseManager()
