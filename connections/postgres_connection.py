import logging
from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine, AsyncSession, async_sessionmaker
from core.settings import settings

logger = logging.getLogger(__name__)


class DatabaseConnection:
    """Process-wide async engine and session factory for the planning database."""

    _async_engine: AsyncEngine = None
    _async_session_factory = None

    @classmethod
    def get_database_url(cls) -> str:
        return (
            f"postgresql+asyncpg://{settings.DB_USER}:{settings.DB_PASSWORD}"
            f"@{settings.DB_HOST}:{settings.DB_PORT}/{settings.DB_NAME}"
        )

    @classmethod
    def get_async_engine(cls) -> AsyncEngine:
        if cls._async_engine is None:
            cls._async_engine = create_async_engine(
                cls.get_database_url(),
                pool_size=settings.DB_POOL_SIZE,
                max_overflow=settings.DB_MAX_OVERFLOW,
                pool_pre_ping=True,
                pool_recycle=3600,
            )
            logger.info(f"Async engine created for {settings.DB_HOST}:{settings.DB_PORT}/{settings.DB_NAME}")
        return cls._async_engine

    @classmethod
    def use_async_engine(cls, engine: AsyncEngine) -> None:
        """Bind to an existing engine, e.g. an in-memory SQLite one in tests."""
        cls._async_engine = engine
        cls._async_session_factory = None
        logger.info(f"Async engine set to {engine.url.drivername}")

    @classmethod
    def get_async_session_factory(cls) -> async_sessionmaker:
        """Session factory used by every repository; objects stay usable after commit."""
        if cls._async_session_factory is None:
            cls._async_session_factory = async_sessionmaker(
                bind=cls.get_async_engine(),
                class_=AsyncSession,
                autoflush=False,
                expire_on_commit=False,
            )
        return cls._async_session_factory

    @classmethod
    async def close_async_engine(cls):
        if cls._async_engine:
            await cls._async_engine.dispose()
            cls._async_engine = None
            cls._async_session_factory = None
            logger.info("Async engine disposed")
