"""Display-name lookups for actors and members."""

from __future__ import annotations

from typing import Protocol
from uuid import UUID

from classroom.courses.domain import models
from classroom.courses.domain.repo import storage_connection


class UserDirectory(Protocol):
	async def lookup(self, user_id: UUID) -> models.UserSummary | None:
		...


class PostgresUserDirectory:
	"""Reads the ``users`` table owned by the account service."""

	async def lookup(self, user_id: UUID) -> models.UserSummary | None:
		async with storage_connection() as conn:
			record = await conn.fetchrow("SELECT id, display_name FROM users WHERE id=$1", user_id)
		return models.UserSummary.model_validate(dict(record)) if record else None


__all__ = ["PostgresUserDirectory", "UserDirectory"]
