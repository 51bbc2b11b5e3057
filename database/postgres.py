from loguru import logger
from typing import AsyncGenerator, Optional
from fastapi import Request
from sqlalchemy.ext.asyncio import (
    create_async_engine,
    async_sessionmaker,
    AsyncSession,
    AsyncEngine
)
from core.config import DATABASE_URL
try:
    from schemas.schemas import Base
except ImportError as e:
    logger.error("Could not import 'Base' from 'schemas.schemas'. Check your file structure.")
    raise e


def normalize_database_url(db_url: str) -> str:
    # Fix protocol for AsyncPG
    if db_url.startswith("postgresql://"):
        return db_url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return db_url


class Database:
    """
    The single store client of the process.

    Built once at start-up and handed to every data-access function through
    ``get_db``; nothing else reaches for an engine on its own.
    """

    def __init__(self, db_url: Optional[str] = None, **engine_kwargs):
        db_url = db_url or DATABASE_URL
        if not db_url:
            logger.error("DATABASE_URL not found in .env")
            raise ValueError("DATABASE_URL not set")

        self.url = normalize_database_url(db_url)
        if self.url.startswith("postgresql+asyncpg://"):
            engine_kwargs.setdefault("pool_size", 10)
            engine_kwargs.setdefault("max_overflow", 20)
            engine_kwargs.setdefault("pool_pre_ping", True)

        self.engine: AsyncEngine = create_async_engine(self.url, echo=False, **engine_kwargs)
        self.session_factory: async_sessionmaker[AsyncSession] = async_sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False
        )

    async def create_all(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables verified/created successfully.")

    def session(self) -> AsyncSession:
        return self.session_factory()

    async def dispose(self) -> None:
        logger.info("Closing Database connection...")
        await self.engine.dispose()
        logger.info("Database connection closed successfully.")


async def init_postgres(db_url: Optional[str] = None) -> Database:
    """
    Initialize the store client and create tables if they don't exist.
    """
    try:
        logger.info("Initializing PostgreSQL (SQLAlchemy) connection...")
        database = Database(db_url)
        logger.info("PostgreSQL connection engine created successfully.")
        await database.create_all()
        return database
    except Exception as e:
        logger.error(f"Error initializing Database: {e}")
        raise


async def close_postgres(database: Optional[Database]) -> None:
    if database is None:
        logger.warning("Database was not initialized.")
        return
    try:
        await database.dispose()
    except Exception as e:
        logger.error(f"Error closing Database connection: {e}")
        raise


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency for FastAPI Routes.
    """
    database: Optional[Database] = getattr(request.app.state, "database", None)
    if database is None:
        raise ConnectionError("Database is not initialized. Call init_postgres() first.")

    async with database.session() as session:
        try:
            yield session
        finally:
            await session.close()
