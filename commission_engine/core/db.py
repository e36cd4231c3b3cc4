import logging
import re

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    async_sessionmaker,
    create_async_engine,
)

from commission_engine.core.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()


def get_async_database_url(url: str) -> str:
    """Convert database URL to async-compatible format using psycopg driver."""
    if url.startswith("postgresql://"):
        url = url.replace("postgresql://", "postgresql+psycopg://", 1)
    elif url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql+psycopg://", 1)

    if "channel_binding=" in url:
        url = re.sub(r'[&?]channel_binding=[^&]*', '', url)
        url = url.replace('?&', '?').rstrip('?')

    return url


def create_engine_for_url(url: str, echo: bool = False) -> AsyncEngine:
    """Build an async engine; pool tuning only applies to server databases."""
    database_url = get_async_database_url(url)
    if database_url.startswith("postgresql"):
        return create_async_engine(
            database_url,
            future=True,
            echo=echo,
            pool_pre_ping=True,  # Verify connections before using
            pool_recycle=3600,   # Recycle connections after 1 hour
            pool_timeout=10,     # Wait up to 10 seconds for a connection from pool
            max_overflow=10,
            connect_args={"connect_timeout": 10},
        )
    return create_async_engine(database_url, future=True, echo=echo)


engine: AsyncEngine = create_engine_for_url(settings.database_url, echo=settings.debug)
logger.info("Database engine created for %s", engine.url.render_as_string(hide_password=True))

AsyncSessionFactory = async_sessionmaker(
    bind=engine,
    expire_on_commit=False,
)
