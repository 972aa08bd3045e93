"""Pydantic schemas for the courses API."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class CourseCreateRequest(BaseModel):
	name: str = Field(..., max_length=120)
	description: Optional[str] = Field(default=None, max_length=4000)


class CourseUpdateRequest(BaseModel):
	name: str = Field(..., max_length=120)
	description: Optional[str] = Field(default=None, max_length=4000)


class AddMemberRequest(BaseModel):
	user_id: UUID


class CourseResponse(BaseModel):
	id: UUID
	name: str
	description: str
	owner_id: UUID
	created_at: datetime
	updated_at: datetime


class MemberResponse(BaseModel):
	id: UUID
	course_id: UUID
	user_id: UUID
	role: str
	joined_at: datetime


class MemberEntryResponse(BaseModel):
	membership_id: UUID
	user_id: UUID
	display_name: str
	role: str
	joined_at: datetime


class CourseDetailResponse(CourseResponse):
	owner_name: str
	members: List[MemberEntryResponse] = Field(default_factory=list)


class CourseSummaryResponse(BaseModel):
	id: UUID
	name: str
	description: str
	owner_id: UUID
	owner_name: str
	role: str
	created_at: datetime


class CourseEventResponse(BaseModel):
	id: UUID
	course_id: UUID
	actor_id: UUID
	actor_name: str
	message: str
	created_at: datetime


__all__ = [
	"AddMemberRequest",
	"CourseCreateRequest",
	"CourseDetailResponse",
	"CourseEventResponse",
	"CourseResponse",
	"CourseSummaryResponse",
	"CourseUpdateRequest",
	"MemberEntryResponse",
	"MemberResponse",
]
