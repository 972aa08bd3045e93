"""Course lifecycle routes."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Response, status

from classroom.courses.api._errors import to_http_error
from classroom.courses.domain.exceptions import CourseError
from classroom.courses.domain.services import MembershipService
from classroom.courses.schemas import dto
from classroom.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter(tags=["courses"])
_service = MembershipService()


@router.post("/courses", response_model=dto.CourseResponse, status_code=status.HTTP_201_CREATED)
async def create_course_endpoint(
	payload: dto.CourseCreateRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.CourseResponse:
	try:
		return await _service.create_course(auth_user, payload)
	except CourseError as exc:
		raise to_http_error(exc) from exc


@router.get("/courses", response_model=list[dto.CourseSummaryResponse])
async def list_my_courses_endpoint(
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> list[dto.CourseSummaryResponse]:
	try:
		return await _service.list_my_courses(auth_user)
	except CourseError as exc:
		raise to_http_error(exc) from exc


@router.get("/courses/{course_id}", response_model=dto.CourseDetailResponse)
async def get_course_endpoint(
	course_id: UUID,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.CourseDetailResponse:
	try:
		return await _service.get_course(auth_user, course_id)
	except CourseError as exc:
		raise to_http_error(exc) from exc


@router.patch("/courses/{course_id}", response_model=dto.CourseResponse)
async def update_course_endpoint(
	course_id: UUID,
	payload: dto.CourseUpdateRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.CourseResponse:
	try:
		return await _service.update_course(auth_user, course_id, payload)
	except CourseError as exc:
		raise to_http_error(exc) from exc


@router.delete(
	"/courses/{course_id}",
	status_code=204,
	response_class=Response,
	response_model=None,
)
async def delete_course_endpoint(
	course_id: UUID,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> None:
	try:
		await _service.delete_course(auth_user, course_id)
		return None
	except CourseError as exc:
		raise to_http_error(exc) from exc
