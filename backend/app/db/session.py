"""
Async SQLAlchemy engines and session factories.

The API shares one module-level engine.  Celery tasks and scripts run
their own event loop per invocation and build a throwaway engine with
``make_session_factory()`` instead.
"""

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from app.core.config import settings


def _build_engine(**kwargs) -> AsyncEngine:
    return create_async_engine(settings.DATABASE_URL, pool_pre_ping=True, **kwargs)


def _build_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind, class_=AsyncSession, expire_on_commit=False)


engine = _build_engine(
    echo=(settings.APP_ENV == "development"),
    pool_size=20,
    max_overflow=10,
)
async_session = _build_factory(engine)


def make_session_factory() -> tuple[async_sessionmaker[AsyncSession], AsyncEngine]:
    """Fresh engine + factory bound to the current event loop.  Caller disposes."""
    fresh_engine = _build_engine()
    return _build_factory(fresh_engine), fresh_engine


async def get_db() -> AsyncSession:
    """Request-scoped session: commit on success, roll back on error."""
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
