"""Append-only course event log."""

from __future__ import annotations

from uuid import UUID, uuid4

import asyncpg

from classroom.courses.domain import models
from classroom.courses.domain.repo import storage_connection


class AuditLog:
	"""Writes course events inside the caller's transaction and reads them back.

	Messages are stored as given; ``course_event.message`` is unbounded TEXT,
	so an append only fails when the store itself does.
	"""

	async def append(
		self,
		conn: asyncpg.Connection,
		*,
		course_id: UUID,
		actor_id: UUID,
		actor_name: str,
		message: str,
	) -> models.CourseEvent:
		record = await conn.fetchrow(
			"""
			INSERT INTO course_event (id, course_id, actor_id, actor_name, message)
			VALUES ($1, $2, $3, $4, $5)
			RETURNING *
			""",
			uuid4(),
			course_id,
			actor_id,
			actor_name,
			message,
		)
		return models.CourseEvent.model_validate(dict(record))

	async def list_events(self, course_id: UUID, *, limit: int = 50) -> list[models.CourseEvent]:
		async with storage_connection() as conn:
			rows = await conn.fetch(
				"""
				SELECT *
				FROM course_event
				WHERE course_id=$1
				ORDER BY created_at DESC, id DESC
				LIMIT $2
				""",
				course_id,
				limit,
			)
		return [models.CourseEvent.model_validate(dict(row)) for row in rows]


__all__ = ["AuditLog"]
