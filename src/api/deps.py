"""Shared FastAPI dependencies."""
from __future__ import annotations

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.db.session import get_db


async def get_db_session(session: AsyncSession = Depends(get_db)) -> AsyncSession:
    """Expose the request-scoped session to endpoints."""
    return session


def client_key(request: Request) -> str:
    """Identify the caller for rate limiting; registration is anonymous."""

    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client is not None:
        return request.client.host
    return "anonymous"
