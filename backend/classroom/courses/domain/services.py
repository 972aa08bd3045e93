"""Service layer orchestrating course membership operations.

Every mutating call follows the same shape: authorize the actor, run the
roster change and its audit entry in one transaction, then (only after the
commit) hand a channel command to the broadcast fabric. Fabric failures are
logged and swallowed; the committed change stands.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import contextmanager
from typing import Iterator
from uuid import UUID

from classroom.courses.domain import models, policies, repo as repo_module
from classroom.courses.domain.audit import AuditLog
from classroom.courses.domain.exceptions import (
	AuthenticationError,
	ChannelDeliveryError,
	CourseError,
	NotFoundError,
)
from classroom.courses.domain.policies import Action
from classroom.courses.domain.users import PostgresUserDirectory, UserDirectory
from classroom.courses.infra.channels import ChannelRegistry, build_registry
from classroom.courses.schemas import dto
from classroom.infra.auth import AuthenticatedUser
from classroom.obs import metrics as obs_metrics
from classroom.settings import settings

_LOG = logging.getLogger(__name__)


@contextmanager
def _observe(operation: str) -> Iterator[None]:
	try:
		yield
	except CourseError as exc:
		obs_metrics.membership_operation(operation, exc.detail)
		raise
	except Exception:
		obs_metrics.membership_operation(operation, "error")
		raise
	obs_metrics.membership_operation(operation, "ok")


class MembershipService:
	"""Implements course lifecycle and roster management."""

	def __init__(
		self,
		repository: repo_module.CoursesRepository | None = None,
		*,
		audit_log: AuditLog | None = None,
		users: UserDirectory | None = None,
		channels: ChannelRegistry | None = None,
	) -> None:
		self.repo = repository or repo_module.CoursesRepository()
		self.audit = audit_log or AuditLog()
		self.users = users or PostgresUserDirectory()
		self.channels = channels or build_registry()

	# ------------------------------------------------------------------
	# Helpers

	@staticmethod
	def _actor_id(user: AuthenticatedUser | None) -> UUID:
		raw = (user.id if user is not None else "") or ""
		try:
			return UUID(raw.strip())
		except ValueError:
			raise AuthenticationError() from None

	async def _load_course(self, course_id: UUID) -> models.Course:
		course = await self.repo.get_course(course_id)
		if course is None:
			raise NotFoundError("course_not_found")
		return course

	async def _require_user(self, user_id: UUID) -> models.UserSummary:
		found = await self.users.lookup(user_id)
		if found is None:
			raise NotFoundError("user_not_found")
		return found

	async def _require_membership(self, actor_id: UUID, course: models.Course, action: Action) -> None:
		membership = await self.repo.get_member(course.id, actor_id)
		policies.require(actor_id, course, action, membership=membership)

	async def _dispatch(self, command: models.ChannelCommand) -> None:
		"""Deliver a channel command without ever failing the caller."""
		log_extra = {"user_id": command.user_id, "channel": command.channel, "action": command.action}
		try:
			outcome = await asyncio.wait_for(
				self.channels.dispatch(command),
				timeout=settings.channel_dispatch_timeout_seconds,
			)
		except asyncio.TimeoutError:
			obs_metrics.channel_dispatch(command.action, "timeout")
			_LOG.warning("courses.channel_dispatch_timeout", extra=log_extra)
			return
		except ChannelDeliveryError as exc:
			obs_metrics.channel_dispatch(command.action, "unavailable")
			_LOG.warning("courses.channel_dispatch_failed", extra={**log_extra, "reason": exc.detail})
			return
		except Exception:
			obs_metrics.channel_dispatch(command.action, "error")
			_LOG.exception("courses.channel_dispatch_error", extra=log_extra)
			return
		obs_metrics.channel_dispatch(command.action, "delivered" if outcome.delivered else (outcome.reason or "skipped"))

	@staticmethod
	def _course_to_response(course: models.Course) -> dto.CourseResponse:
		return dto.CourseResponse(**course.model_dump())

	# ------------------------------------------------------------------
	# Course operations

	async def create_course(self, user: AuthenticatedUser, payload: dto.CourseCreateRequest) -> dto.CourseResponse:
		with _observe("create_course"):
			actor_id = self._actor_id(user)
			policies.require(actor_id, None, Action.CREATE_COURSE)
			description = policies.normalize_description(payload.description)
			actor = await self._require_user(actor_id)
			async with self.repo.transaction() as conn:
				course = await self.repo.create_course(
					conn,
					name=payload.name,
					description=description,
					owner_id=actor_id,
				)
				await self.audit.append(
					conn,
					course_id=course.id,
					actor_id=actor_id,
					actor_name=actor.display_name,
					message=f"Course {course.name} created!",
				)
			_LOG.info("courses.course_created", extra={"course_id": str(course.id), "user_id": str(actor_id)})
			await self._dispatch(models.ChannelCommand(user_id=str(actor_id), channel=str(course.id), action="join"))
			return self._course_to_response(course)

	async def update_course(
		self,
		user: AuthenticatedUser,
		course_id: UUID,
		payload: dto.CourseUpdateRequest,
	) -> dto.CourseResponse:
		with _observe("update_course"):
			actor_id = self._actor_id(user)
			course = await self._load_course(course_id)
			policies.require(actor_id, course, Action.UPDATE_COURSE)
			description = policies.normalize_description(payload.description)
			actor = await self._require_user(actor_id)
			async with self.repo.transaction() as conn:
				updated = await self.repo.update_course(
					conn,
					course.id,
					name=payload.name,
					description=description,
				)
				await self.audit.append(
					conn,
					course_id=course.id,
					actor_id=actor_id,
					actor_name=actor.display_name,
					message="Course details were changed!",
				)
			_LOG.info("courses.course_updated", extra={"course_id": str(course.id), "user_id": str(actor_id)})
			return self._course_to_response(updated)

	async def delete_course(self, user: AuthenticatedUser, course_id: UUID) -> None:
		with _observe("delete_course"):
			actor_id = self._actor_id(user)
			course = await self._load_course(course_id)
			policies.require(actor_id, course, Action.DELETE_COURSE)
			async with self.repo.transaction() as conn:
				former_members = await self.repo.delete_course(conn, course.id)
			_LOG.info(
				"courses.course_deleted",
				extra={"course_id": str(course.id), "user_id": str(actor_id), "members": len(former_members)},
			)
			for member_id in former_members:
				await self._dispatch(
					models.ChannelCommand(user_id=str(member_id), channel=str(course.id), action="leave")
				)

	async def get_course(self, user: AuthenticatedUser, course_id: UUID) -> dto.CourseDetailResponse:
		with _observe("get_course"):
			actor_id = self._actor_id(user)
			course = await self._load_course(course_id)
			await self._require_membership(actor_id, course, Action.VIEW_COURSE)
			members = await self.repo.list_members(course.id)
			owner_name = next((entry.display_name for entry in members if entry.user_id == course.owner_id), "")
			return dto.CourseDetailResponse(
				**course.model_dump(),
				owner_name=owner_name,
				members=[dto.MemberEntryResponse(**entry.model_dump()) for entry in members],
			)

	async def list_my_courses(self, user: AuthenticatedUser) -> list[dto.CourseSummaryResponse]:
		with _observe("list_my_courses"):
			actor_id = self._actor_id(user)
			courses = await self.repo.list_courses_for_user(actor_id)
			return [dto.CourseSummaryResponse(**summary.model_dump()) for summary in courses]

	# ------------------------------------------------------------------
	# Member operations

	async def add_member(
		self,
		user: AuthenticatedUser,
		course_id: UUID,
		payload: dto.AddMemberRequest,
	) -> dto.MemberResponse:
		with _observe("add_member"):
			actor_id = self._actor_id(user)
			course = await self._load_course(course_id)
			policies.require(actor_id, course, Action.ADD_MEMBER)
			actor = await self._require_user(actor_id)
			target = await self._require_user(payload.user_id)
			async with self.repo.transaction() as conn:
				member = await self.repo.add_member(conn, course_id=course.id, user_id=target.id)
				await self.audit.append(
					conn,
					course_id=course.id,
					actor_id=actor_id,
					actor_name=actor.display_name,
					message=f"{target.display_name} has been added!",
				)
			_LOG.info(
				"courses.member_added",
				extra={"course_id": str(course.id), "user_id": str(actor_id), "target_id": str(target.id)},
			)
			await self._dispatch(models.ChannelCommand(user_id=str(target.id), channel=str(course.id), action="join"))
			return dto.MemberResponse(**member.model_dump())

	async def remove_member(self, user: AuthenticatedUser, membership_id: UUID) -> None:
		with _observe("remove_member"):
			actor_id = self._actor_id(user)
			member = await self.repo.get_member_by_id(membership_id)
			if member is None:
				raise NotFoundError("member_not_found")
			course = await self._load_course(member.course_id)
			policies.require(actor_id, course, Action.REMOVE_MEMBER)
			policies.ensure_not_owner_membership(course, member)
			actor = await self._require_user(actor_id)
			target = await self.users.lookup(member.user_id)
			target_name = target.display_name if target is not None else str(member.user_id)
			async with self.repo.transaction() as conn:
				removed = await self.repo.remove_member(conn, membership_id)
				# Attributed to the acting owner, not the removed user.
				await self.audit.append(
					conn,
					course_id=course.id,
					actor_id=actor_id,
					actor_name=actor.display_name,
					message=f"{target_name} has been removed from the course!",
				)
			_LOG.info(
				"courses.member_removed",
				extra={"course_id": str(course.id), "user_id": str(actor_id), "target_id": str(removed.user_id)},
			)
			await self._dispatch(
				models.ChannelCommand(user_id=str(removed.user_id), channel=str(course.id), action="leave")
			)

	async def leave_course(self, user: AuthenticatedUser, course_id: UUID) -> None:
		with _observe("leave_course"):
			actor_id = self._actor_id(user)
			course = await self._load_course(course_id)
			policies.require(actor_id, course, Action.LEAVE_COURSE)
			actor = await self._require_user(actor_id)
			async with self.repo.transaction() as conn:
				await self.repo.leave_course(conn, course_id=course.id, user_id=actor_id)
				await self.audit.append(
					conn,
					course_id=course.id,
					actor_id=actor_id,
					actor_name=actor.display_name,
					message=f"{actor.display_name} has left the course!",
				)
			_LOG.info("courses.member_left", extra={"course_id": str(course.id), "user_id": str(actor_id)})
			await self._dispatch(models.ChannelCommand(user_id=str(actor_id), channel=str(course.id), action="leave"))

	async def list_members(self, user: AuthenticatedUser, course_id: UUID) -> list[dto.MemberEntryResponse]:
		with _observe("list_members"):
			actor_id = self._actor_id(user)
			course = await self._load_course(course_id)
			await self._require_membership(actor_id, course, Action.LIST_MEMBERS)
			members = await self.repo.list_members(course.id)
			return [dto.MemberEntryResponse(**entry.model_dump()) for entry in members]

	async def list_events(
		self,
		user: AuthenticatedUser,
		course_id: UUID,
		*,
		limit: int = 50,
	) -> list[dto.CourseEventResponse]:
		with _observe("list_events"):
			actor_id = self._actor_id(user)
			course = await self._load_course(course_id)
			await self._require_membership(actor_id, course, Action.LIST_EVENTS)
			events = await self.audit.list_events(course.id, limit=limit)
			return [dto.CourseEventResponse(**event.model_dump()) for event in events]


__all__ = ["MembershipService"]
