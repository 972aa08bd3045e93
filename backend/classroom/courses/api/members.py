"""Roster management routes."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Response, status

from classroom.courses.api._errors import to_http_error
from classroom.courses.domain.exceptions import CourseError
from classroom.courses.domain.services import MembershipService
from classroom.courses.schemas import dto
from classroom.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter(tags=["courses:members"])
_service = MembershipService()


@router.get("/courses/{course_id}/members", response_model=list[dto.MemberEntryResponse])
async def list_members_endpoint(
	course_id: UUID,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> list[dto.MemberEntryResponse]:
	try:
		return await _service.list_members(auth_user, course_id)
	except CourseError as exc:
		raise to_http_error(exc) from exc


@router.post(
	"/courses/{course_id}/members",
	response_model=dto.MemberResponse,
	status_code=status.HTTP_201_CREATED,
)
async def add_member_endpoint(
	course_id: UUID,
	payload: dto.AddMemberRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.MemberResponse:
	try:
		return await _service.add_member(auth_user, course_id, payload)
	except CourseError as exc:
		raise to_http_error(exc) from exc


@router.delete(
	"/courses/members/{membership_id}",
	status_code=204,
	response_class=Response,
	response_model=None,
)
async def remove_member_endpoint(
	membership_id: UUID,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> None:
	try:
		await _service.remove_member(auth_user, membership_id)
		return None
	except CourseError as exc:
		raise to_http_error(exc) from exc


@router.post(
	"/courses/{course_id}/leave",
	status_code=204,
	response_class=Response,
	response_model=None,
)
async def leave_course_endpoint(
	course_id: UUID,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> None:
	try:
		await _service.leave_course(auth_user, course_id)
		return None
	except CourseError as exc:
		raise to_http_error(exc) from exc
