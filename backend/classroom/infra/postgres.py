"""Process-wide asyncpg pool."""

from __future__ import annotations

import logging
from typing import Optional

import asyncpg

from classroom.settings import settings

_LOG = logging.getLogger(__name__)

_pool: Optional[asyncpg.Pool] = None


async def init_pool() -> asyncpg.Pool:
	"""Create the shared pool on first use; later calls return the same pool."""
	global _pool
	if _pool is not None:
		return _pool
	_pool = await asyncpg.create_pool(
		dsn=settings.postgres_url,
		min_size=settings.postgres_min_pool_size,
		max_size=settings.postgres_max_pool_size,
		# Bounds every statement; a timeout surfaces as asyncio.TimeoutError.
		command_timeout=settings.postgres_command_timeout,
		ssl="require" if settings.postgres_ssl else "disable",
		server_settings={"application_name": settings.service_name},
	)
	_LOG.info(
		"postgres.pool_ready",
		extra={"min_size": settings.postgres_min_pool_size, "max_size": settings.postgres_max_pool_size},
	)
	return _pool


def set_pool(pool: Optional[asyncpg.Pool]) -> None:
	"""Install an externally created pool (tests, scripts)."""
	global _pool
	_pool = pool


async def get_pool() -> asyncpg.Pool:
	return _pool if _pool is not None else await init_pool()


async def close_pool() -> None:
	global _pool
	pool, _pool = _pool, None
	if pool is not None:
		await pool.close()


__all__ = ["close_pool", "get_pool", "init_pool", "set_pool"]
