"""Course history routes."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query

from classroom.courses.api._errors import to_http_error
from classroom.courses.domain.exceptions import CourseError
from classroom.courses.domain.services import MembershipService
from classroom.courses.schemas import dto
from classroom.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter(tags=["courses:events"])
_service = MembershipService()


@router.get("/courses/{course_id}/events", response_model=list[dto.CourseEventResponse])
async def list_events_endpoint(
	course_id: UUID,
	limit: int = Query(default=50, ge=1, le=200),
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> list[dto.CourseEventResponse]:
	try:
		return await _service.list_events(auth_user, course_id, limit=limit)
	except CourseError as exc:
		raise to_http_error(exc) from exc
