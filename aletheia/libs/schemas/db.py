"""Shared asyncpg connection pool."""

from __future__ import annotations

import asyncio

import asyncpg

from .settings import get_settings

_POOL: asyncpg.Pool | None = None
_POOL_LOCK = asyncio.Lock()


async def get_async_pool() -> asyncpg.Pool:
    """Return a shared asyncpg connection pool, creating it on demand."""

    global _POOL
    if _POOL is None:
        async with _POOL_LOCK:
            if _POOL is None:
                settings = get_settings()
                _POOL = await asyncpg.create_pool(
                    dsn=settings.database_url,
                    min_size=1,
                    max_size=10,
                    command_timeout=60,
                    statement_cache_size=0,
                    max_inactive_connection_lifetime=300,
                )
    return _POOL


async def close_async_pool() -> None:
    global _POOL
    if _POOL is not None:
        await _POOL.close()
        _POOL = None


__all__ = ["close_async_pool", "get_async_pool"]
