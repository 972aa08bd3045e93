"""Domain models for courses, memberships and course events."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict

ROLE_OWNER = "owner"
ROLE_MEMBER = "member"

ChannelAction = Literal["join", "leave"]


class Course(BaseModel):
	"""Represents a course workspace."""

	id: UUID
	name: str
	description: str = ""
	owner_id: UUID
	created_at: datetime
	updated_at: datetime

	model_config = ConfigDict(from_attributes=True)


class CourseMember(BaseModel):
	"""Represents a membership row."""

	id: UUID
	course_id: UUID
	user_id: UUID
	role: str
	joined_at: datetime

	model_config = ConfigDict(from_attributes=True)

	def is_owner(self) -> bool:
		return self.role == ROLE_OWNER


class MemberEntry(BaseModel):
	"""Membership joined with the member's display name."""

	membership_id: UUID
	user_id: UUID
	display_name: str
	role: str
	joined_at: datetime

	model_config = ConfigDict(from_attributes=True)


class CourseSummary(BaseModel):
	"""A course as listed for one of its members."""

	id: UUID
	name: str
	description: str
	owner_id: UUID
	owner_name: str
	role: str
	created_at: datetime

	model_config = ConfigDict(from_attributes=True)


class CourseEvent(BaseModel):
	"""Append-only audit entry describing a roster or content change."""

	id: UUID
	course_id: UUID
	actor_id: UUID
	actor_name: str
	message: str
	created_at: datetime

	model_config = ConfigDict(from_attributes=True)


class UserSummary(BaseModel):
	id: UUID
	display_name: str


@dataclass(frozen=True, slots=True)
class ChannelCommand:
	"""Instruction for the broadcast fabric; never persisted."""

	user_id: str
	channel: str
	action: ChannelAction


@dataclass(frozen=True, slots=True)
class DispatchOutcome:
	delivered: bool
	connections: int = 0
	reason: Optional[str] = None
