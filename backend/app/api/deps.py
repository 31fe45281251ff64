"""Shared dependencies for API routes."""

from __future__ import annotations

from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import async_session
from app.db.session import get_db as _get_db
from app.pipeline.engine import ReconciliationEngine
from app.pipeline.services import build_services


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield an async DB session."""
    async for session in _get_db():
        yield session


def get_reconciliation_engine() -> ReconciliationEngine:
    """Engine wired to the app's session factory and the Redis run lock."""
    return ReconciliationEngine(build_services(async_session))
