from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from .config import get_settings
from .models import Base

settings = get_settings()

engine = create_async_engine(
    settings.database_url,
    echo=settings.echo_sql,
    pool_pre_ping=True,
    pool_recycle=3600,
)

async_session = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


async def init_models(bind: AsyncEngine = engine) -> None:
    """Create missing tables. Existing tables are left untouched."""
    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
