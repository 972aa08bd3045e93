"""Authorization and input policies for course operations."""

from __future__ import annotations

from enum import Enum
from typing import Optional
from uuid import UUID

from classroom.courses.domain import models
from classroom.courses.domain.exceptions import AuthorizationError, ValidationError

NAME_MAX_LENGTH = 120
DESCRIPTION_MAX_LENGTH = 4000


class Action(str, Enum):
	CREATE_COURSE = "create_course"
	UPDATE_COURSE = "update_course"
	DELETE_COURSE = "delete_course"
	ADD_MEMBER = "add_member"
	REMOVE_MEMBER = "remove_member"
	LEAVE_COURSE = "leave_course"
	VIEW_COURSE = "view_course"
	LIST_MEMBERS = "list_members"
	LIST_EVENTS = "list_events"


OWNER_ACTIONS = frozenset(
	{Action.UPDATE_COURSE, Action.DELETE_COURSE, Action.ADD_MEMBER, Action.REMOVE_MEMBER}
)
MEMBER_ACTIONS = frozenset({Action.VIEW_COURSE, Action.LIST_MEMBERS, Action.LIST_EVENTS})

_DENIAL_DETAIL = {
	Action.LEAVE_COURSE: "owner_cannot_leave",
	Action.VIEW_COURSE: "membership_required",
	Action.LIST_MEMBERS: "membership_required",
	Action.LIST_EVENTS: "membership_required",
}


def authorize(
	actor_id: UUID,
	course: models.Course | None,
	action: Action,
	*,
	membership: Optional[models.CourseMember] = None,
) -> bool:
	"""Decide whether ``actor_id`` may perform ``action`` on ``course``.

	Pure: reads only the fields already loaded by the caller. Member-only
	actions need the actor's membership row (or ``None`` when absent).
	"""
	if action is Action.CREATE_COURSE:
		return True
	if course is None:
		return False
	is_owner = course.owner_id == actor_id
	if action in OWNER_ACTIONS:
		return is_owner
	if action is Action.LEAVE_COURSE:
		return not is_owner
	if action in MEMBER_ACTIONS:
		return (
			membership is not None
			and membership.course_id == course.id
			and membership.user_id == actor_id
		)
	return False


def require(
	actor_id: UUID,
	course: models.Course | None,
	action: Action,
	*,
	membership: Optional[models.CourseMember] = None,
) -> None:
	if not authorize(actor_id, course, action, membership=membership):
		raise AuthorizationError(_DENIAL_DETAIL.get(action, "owner_role_required"))


def normalize_name(name: str | None) -> str:
	text = (name or "").strip()
	if not text:
		raise ValidationError("course_name_required")
	if len(text) > NAME_MAX_LENGTH:
		raise ValidationError("course_name_too_long")
	return text


def normalize_description(description: str | None) -> str:
	text = (description or "").strip()
	if len(text) > DESCRIPTION_MAX_LENGTH:
		raise ValidationError("course_description_too_long")
	return text


def ensure_not_owner_membership(course: models.Course, member: models.CourseMember) -> None:
	if member.user_id == course.owner_id or member.is_owner():
		raise ValidationError("owner_cannot_be_removed")
