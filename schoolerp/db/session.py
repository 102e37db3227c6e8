from sqlalchemy import Enum as SAEnum
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from schoolerp.core.config import settings

# Idle connections may be dropped by the server; ping on checkout and recycle after 5 minutes
engine = create_async_engine(
    settings.database_url,
    echo=False,
    future=True,
    pool_pre_ping=True,
    pool_recycle=300,
)

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

Base = declarative_base()


def pg_enum(enum_cls, name: str) -> SAEnum:
    """Column type for a str Enum stored by value under a named database type."""
    return SAEnum(
        enum_cls,
        name=name,
        values_callable=lambda members: [m.value for m in members],
        validate_strings=True,
    )


async def get_db() -> AsyncSession:
    async with AsyncSessionLocal() as session:
        yield session
