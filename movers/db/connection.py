from typing import Optional
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine,async_sessionmaker,AsyncSession
from sqlmodel import SQLModel
from movers.config.settings import get_settings
from movers.db.utils import _normalize_db_url


class Database:
    """Engine and session factory for the process, created on first use.

    ``dispose()`` drops both so the next access rebuilds them from current settings.
    """

    def __init__(self):
        self._engine: Optional[AsyncEngine] = None
        self._sessionmaker: Optional[async_sessionmaker] = None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            url = _normalize_db_url(get_settings().DATABASE_URL)
            self._engine = create_async_engine(url, echo=False)
        return self._engine

    @property
    def sessionmaker(self) -> async_sessionmaker:
        if self._sessionmaker is None:
            self._sessionmaker = async_sessionmaker(bind=self.engine, class_=AsyncSession, expire_on_commit=False)
        return self._sessionmaker

    async def dispose(self):
        if self._engine is not None:
            await self._engine.dispose()
        self._engine = None
        self._sessionmaker = None


database = Database()


async def init_db():
    # table classes must be imported so they are registered on the metadata
    import movers.schema.full_schema  # noqa: F401

    async with database.engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
