"""Transactional data access for courses and memberships."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional
from uuid import UUID, uuid4

import asyncpg

from classroom.courses.domain import models, policies
from classroom.courses.domain.exceptions import ConflictError, NotFoundError, StorageError
from classroom.infra.postgres import get_pool
from classroom.settings import settings

_STORAGE_FAILURES = (
	asyncpg.PostgresError,
	asyncpg.InterfaceError,
	OSError,
	asyncio.TimeoutError,
)

_USER_FK = "course_member_user_fk"


@asynccontextmanager
async def storage_connection() -> AsyncIterator[asyncpg.Connection]:
	"""Acquire a pooled connection, translating driver failures to StorageError."""
	try:
		pool = await get_pool()
		async with pool.acquire() as conn:
			yield conn
	except _STORAGE_FAILURES as exc:
		raise StorageError() from exc


class CoursesRepository:
	"""Roster store over asyncpg.

	Mutations take the connection of an open :meth:`transaction` so roster
	writes and audit appends commit or roll back together.
	"""

	@asynccontextmanager
	async def transaction(self) -> AsyncIterator[asyncpg.Connection]:
		"""Open a transaction: commit on clean exit, roll back on any exception."""
		async with storage_connection() as conn:
			try:
				async with conn.transaction(isolation=settings.postgres_isolation):
					yield conn
			except _STORAGE_FAILURES as exc:
				raise StorageError() from exc

	# --- Course operations ------------------------------------------------

	async def create_course(
		self,
		conn: asyncpg.Connection,
		*,
		name: str,
		description: str,
		owner_id: UUID,
	) -> models.Course:
		name = policies.normalize_name(name)
		try:
			record = await conn.fetchrow(
				"""
				INSERT INTO course (id, name, description, owner_id)
				VALUES ($1, $2, $3, $4)
				RETURNING *
				""",
				uuid4(),
				name,
				description,
				owner_id,
			)
		except asyncpg.ForeignKeyViolationError as exc:
			raise NotFoundError("user_not_found") from exc
		await conn.execute(
			"""
			INSERT INTO course_member (id, course_id, user_id, role)
			VALUES ($1, $2, $3, 'owner')
			""",
			uuid4(),
			record["id"],
			owner_id,
		)
		return models.Course.model_validate(dict(record))

	async def get_course(
		self,
		course_id: UUID,
		*,
		conn: asyncpg.Connection | None = None,
	) -> models.Course | None:
		record = await self._fetchrow("SELECT * FROM course WHERE id=$1", course_id, conn=conn)
		return models.Course.model_validate(dict(record)) if record else None

	async def update_course(
		self,
		conn: asyncpg.Connection,
		course_id: UUID,
		*,
		name: str,
		description: str,
	) -> models.Course:
		name = policies.normalize_name(name)
		record = await conn.fetchrow(
			"""
			UPDATE course
			SET name=$2, description=$3, updated_at=NOW()
			WHERE id=$1
			RETURNING *
			""",
			course_id,
			name,
			description,
		)
		if record is None:
			raise NotFoundError("course_not_found")
		return models.Course.model_validate(dict(record))

	async def delete_course(self, conn: asyncpg.Connection, course_id: UUID) -> list[UUID]:
		"""Delete the course and its roster; returns the former members' ids."""
		rows = await conn.fetch(
			"DELETE FROM course_member WHERE course_id=$1 RETURNING user_id",
			course_id,
		)
		result = await conn.execute("DELETE FROM course WHERE id=$1", course_id)
		if result.split()[-1] == "0":
			raise NotFoundError("course_not_found")
		return [row["user_id"] for row in rows]

	async def list_courses_for_user(self, user_id: UUID) -> list[models.CourseSummary]:
		rows = await self._fetch(
			"""
			SELECT c.id, c.name, c.description, c.owner_id, c.created_at,
				COALESCE(o.display_name, '') AS owner_name, m.role
			FROM course_member m
			JOIN course c ON c.id = m.course_id
			LEFT JOIN users o ON o.id = c.owner_id
			WHERE m.user_id=$1
			ORDER BY m.seq ASC
			""",
			user_id,
		)
		return [models.CourseSummary.model_validate(dict(row)) for row in rows]

	async def list_course_ids_for_user(self, user_id: UUID) -> list[UUID]:
		rows = await self._fetch(
			"SELECT course_id FROM course_member WHERE user_id=$1",
			user_id,
		)
		return [row["course_id"] for row in rows]

	# --- Member operations ------------------------------------------------

	async def add_member(
		self,
		conn: asyncpg.Connection,
		*,
		course_id: UUID,
		user_id: UUID,
	) -> models.CourseMember:
		try:
			record = await conn.fetchrow(
				"""
				INSERT INTO course_member (id, course_id, user_id, role)
				VALUES ($1, $2, $3, 'member')
				RETURNING *
				""",
				uuid4(),
				course_id,
				user_id,
			)
		except asyncpg.UniqueViolationError as exc:
			raise ConflictError("already_member") from exc
		except asyncpg.ForeignKeyViolationError as exc:
			if exc.constraint_name == _USER_FK:
				raise NotFoundError("user_not_found") from exc
			raise NotFoundError("course_not_found") from exc
		return models.CourseMember.model_validate(dict(record))

	async def remove_member(self, conn: asyncpg.Connection, membership_id: UUID) -> models.CourseMember:
		# Owner rows are never deleted here; only course deletion drops them.
		record = await conn.fetchrow(
			"DELETE FROM course_member WHERE id=$1 AND role <> 'owner' RETURNING *",
			membership_id,
		)
		if record is None:
			raise NotFoundError("member_not_found")
		return models.CourseMember.model_validate(dict(record))

	async def leave_course(
		self,
		conn: asyncpg.Connection,
		*,
		course_id: UUID,
		user_id: UUID,
	) -> models.CourseMember:
		record = await conn.fetchrow(
			"""
			DELETE FROM course_member
			WHERE course_id=$1 AND user_id=$2 AND role <> 'owner'
			RETURNING *
			""",
			course_id,
			user_id,
		)
		if record is None:
			raise NotFoundError("member_not_found")
		return models.CourseMember.model_validate(dict(record))

	async def get_member(
		self,
		course_id: UUID,
		user_id: UUID,
		*,
		conn: asyncpg.Connection | None = None,
	) -> models.CourseMember | None:
		record = await self._fetchrow(
			"SELECT * FROM course_member WHERE course_id=$1 AND user_id=$2",
			course_id,
			user_id,
			conn=conn,
		)
		return models.CourseMember.model_validate(dict(record)) if record else None

	async def get_member_by_id(
		self,
		membership_id: UUID,
		*,
		conn: asyncpg.Connection | None = None,
	) -> models.CourseMember | None:
		record = await self._fetchrow("SELECT * FROM course_member WHERE id=$1", membership_id, conn=conn)
		return models.CourseMember.model_validate(dict(record)) if record else None

	async def list_members(self, course_id: UUID) -> list[models.MemberEntry]:
		rows = await self._fetch(
			"""
			SELECT m.id AS membership_id, m.user_id, m.role, m.joined_at,
				COALESCE(u.display_name, '') AS display_name
			FROM course_member m
			LEFT JOIN users u ON u.id = m.user_id
			WHERE m.course_id=$1
			ORDER BY m.seq ASC
			""",
			course_id,
		)
		return [models.MemberEntry.model_validate(dict(row)) for row in rows]

	# --- Helpers ----------------------------------------------------------

	async def _fetchrow(
		self,
		query: str,
		*args: object,
		conn: Optional[asyncpg.Connection] = None,
	) -> Optional[asyncpg.Record]:
		if conn is not None:
			return await conn.fetchrow(query, *args)
		async with storage_connection() as pooled:
			return await pooled.fetchrow(query, *args)

	async def _fetch(self, query: str, *args: object) -> list[asyncpg.Record]:
		async with storage_connection() as conn:
			return await conn.fetch(query, *args)


__all__ = ["CoursesRepository", "storage_connection"]
