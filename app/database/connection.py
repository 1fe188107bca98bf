from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import AsyncAdaptedQueuePool, StaticPool
from app.core.config import settings
from app.core.logger import get_logger

logger = get_logger("database")


def _engine_options(database_url: str) -> dict:
    """Pool and driver options for the configured database."""
    if database_url.startswith("sqlite"):
        # Single shared connection so an in-memory database survives across sessions
        return {
            "connect_args": {"check_same_thread": False},
            "poolclass": StaticPool,
        }

    ssl_config = {} if settings.IS_DEVELOPMENT else {"ssl": "require"}
    return {
        "connect_args": {
            **ssl_config,
            "server_settings": {
                "application_name": "breathpace_backend",
                "jit": "off",
            },
            "command_timeout": 30,
        },
        "poolclass": AsyncAdaptedQueuePool,
        "pool_size": 5,
        "max_overflow": 10,
        "pool_timeout": 30,
        "pool_recycle": 1800,
        "pool_pre_ping": True,
    }


def build_engine(database_url: str):
    return create_async_engine(database_url, echo=False, future=True, **_engine_options(database_url))


def build_sessionmaker(bind) -> async_sessionmaker:
    return async_sessionmaker(
        bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
        autocommit=False
    )


engine = build_engine(settings.DATABASE_URL)
AsyncSessionLocal = build_sessionmaker(engine)


async def get_db():
    """Dependency for getting database session."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

