"""API surface tests for the courses endpoints."""

from __future__ import annotations

from datetime import datetime, timezone
from uuid import UUID, uuid4

import pytest

from classroom.courses.api import courses as courses_api, events as events_api, members as members_api
from classroom.courses.domain.exceptions import (
	AuthenticationError,
	AuthorizationError,
	ConflictError,
	NotFoundError,
	StorageError,
	ValidationError,
)
from classroom.courses.schemas import dto

BASE = "/api/courses/v1"


@pytest.fixture()
def user_headers() -> dict[str, str]:
	return {"X-User-Id": str(uuid4())}


def _course(owner_id: UUID, name: str = "Algorithms") -> dto.CourseResponse:
	now = datetime.now(timezone.utc)
	return dto.CourseResponse(
		id=uuid4(),
		name=name,
		description="Intro to algos",
		owner_id=owner_id,
		created_at=now,
		updated_at=now,
	)


@pytest.mark.asyncio
async def test_create_course_endpoint(api_client, monkeypatch, user_headers):
	owner_id = UUID(user_headers["X-User-Id"])
	created = _course(owner_id)

	class StubService:
		async def create_course(self, auth_user, payload):
			assert auth_user.id == user_headers["X-User-Id"]
			assert payload.name == "Algorithms"
			assert payload.description == "Intro to algos"
			return created

	monkeypatch.setattr(courses_api, "_service", StubService())

	resp = await api_client.post(
		f"{BASE}/courses",
		headers=user_headers,
		json={"name": "Algorithms", "description": "Intro to algos"},
	)

	assert resp.status_code == 201
	body = resp.json()
	assert body["id"] == str(created.id)
	assert body["owner_id"] == str(owner_id)


@pytest.mark.asyncio
async def test_requests_without_identity_are_rejected(api_client):
	resp = await api_client.get(f"{BASE}/courses")

	assert resp.status_code == 401
	body = resp.json()
	assert body["detail"] == "invalid_token"
	assert "request_id" in body


@pytest.mark.asyncio
async def test_create_course_requires_name(api_client, user_headers):
	resp = await api_client.post(f"{BASE}/courses", headers=user_headers, json={"description": "x"})

	assert resp.status_code == 422
	assert resp.json()["detail"] == "validation_error"


@pytest.mark.asyncio
async def test_list_my_courses_endpoint(api_client, monkeypatch, user_headers):
	class StubService:
		async def list_my_courses(self, auth_user):
			return []

	monkeypatch.setattr(courses_api, "_service", StubService())

	resp = await api_client.get(f"{BASE}/courses", headers=user_headers)

	assert resp.status_code == 200
	assert resp.json() == []


@pytest.mark.asyncio
async def test_get_course_endpoint_returns_members(api_client, monkeypatch, user_headers):
	owner_id = UUID(user_headers["X-User-Id"])
	course = _course(owner_id)
	detail = dto.CourseDetailResponse(
		**course.model_dump(),
		owner_name="Ada",
		members=[
			dto.MemberEntryResponse(
				membership_id=uuid4(),
				user_id=owner_id,
				display_name="Ada",
				role="owner",
				joined_at=course.created_at,
			)
		],
	)

	class StubService:
		async def get_course(self, auth_user, course_id):
			assert course_id == course.id
			return detail

	monkeypatch.setattr(courses_api, "_service", StubService())

	resp = await api_client.get(f"{BASE}/courses/{course.id}", headers=user_headers)

	assert resp.status_code == 200
	body = resp.json()
	assert body["owner_name"] == "Ada"
	assert [m["role"] for m in body["members"]] == ["owner"]


@pytest.mark.asyncio
async def test_update_and_delete_course_endpoints(api_client, monkeypatch, user_headers):
	owner_id = UUID(user_headers["X-User-Id"])
	course = _course(owner_id, name="Advanced Algorithms")
	calls: list[str] = []

	class StubService:
		async def update_course(self, auth_user, course_id, payload):
			calls.append("update")
			assert payload.name == "Advanced Algorithms"
			assert payload.description is None
			return course

		async def delete_course(self, auth_user, course_id):
			calls.append("delete")

	monkeypatch.setattr(courses_api, "_service", StubService())

	patched = await api_client.patch(
		f"{BASE}/courses/{course.id}",
		headers=user_headers,
		json={"name": "Advanced Algorithms"},
	)
	deleted = await api_client.delete(f"{BASE}/courses/{course.id}", headers=user_headers)

	assert patched.status_code == 200
	assert patched.json()["name"] == "Advanced Algorithms"
	assert deleted.status_code == 204
	assert calls == ["update", "delete"]


@pytest.mark.asyncio
async def test_member_endpoints(api_client, monkeypatch, user_headers):
	course_id = uuid4()
	target_id = uuid4()
	membership_id = uuid4()
	now = datetime.now(timezone.utc)
	calls: list[tuple] = []

	class StubService:
		async def list_members(self, auth_user, course_id_arg):
			return [
				dto.MemberEntryResponse(
					membership_id=membership_id,
					user_id=target_id,
					display_name="Grace",
					role="member",
					joined_at=now,
				)
			]

		async def add_member(self, auth_user, course_id_arg, payload):
			calls.append(("add", course_id_arg, payload.user_id))
			return dto.MemberResponse(
				id=membership_id,
				course_id=course_id_arg,
				user_id=payload.user_id,
				role="member",
				joined_at=now,
			)

		async def remove_member(self, auth_user, membership_id_arg):
			calls.append(("remove", membership_id_arg))

		async def leave_course(self, auth_user, course_id_arg):
			calls.append(("leave", course_id_arg))

	monkeypatch.setattr(members_api, "_service", StubService())

	listed = await api_client.get(f"{BASE}/courses/{course_id}/members", headers=user_headers)
	added = await api_client.post(
		f"{BASE}/courses/{course_id}/members",
		headers=user_headers,
		json={"user_id": str(target_id)},
	)
	removed = await api_client.delete(f"{BASE}/courses/members/{membership_id}", headers=user_headers)
	left = await api_client.post(f"{BASE}/courses/{course_id}/leave", headers=user_headers)

	assert listed.status_code == 200
	assert listed.json()[0]["display_name"] == "Grace"
	assert added.status_code == 201
	assert added.json()["user_id"] == str(target_id)
	assert removed.status_code == 204
	assert left.status_code == 204
	assert calls == [
		("add", course_id, target_id),
		("remove", membership_id),
		("leave", course_id),
	]


@pytest.mark.asyncio
async def test_events_endpoint_passes_limit(api_client, monkeypatch, user_headers):
	course_id = uuid4()
	actor_id = UUID(user_headers["X-User-Id"])

	class StubService:
		async def list_events(self, auth_user, course_id_arg, *, limit):
			assert limit == 5
			return [
				dto.CourseEventResponse(
					id=uuid4(),
					course_id=course_id_arg,
					actor_id=actor_id,
					actor_name="Ada",
					message="Course details were changed!",
					created_at=datetime.now(timezone.utc),
				)
			]

	monkeypatch.setattr(events_api, "_service", StubService())

	resp = await api_client.get(
		f"{BASE}/courses/{course_id}/events",
		headers=user_headers,
		params={"limit": 5},
	)

	assert resp.status_code == 200
	assert resp.json()[0]["message"] == "Course details were changed!"


@pytest.mark.asyncio
@pytest.mark.parametrize(
	("error", "status_code", "detail"),
	[
		(AuthenticationError(), 401, "authentication_required"),
		(AuthorizationError("owner_role_required"), 403, "owner_role_required"),
		(NotFoundError("course_not_found"), 404, "course_not_found"),
		(ValidationError("course_name_required"), 422, "course_name_required"),
		(ConflictError("already_member"), 409, "already_member"),
		(StorageError(), 503, "storage_unavailable"),
	],
)
async def test_domain_errors_map_to_http(api_client, monkeypatch, user_headers, error, status_code, detail):
	class StubService:
		async def add_member(self, auth_user, course_id, payload):
			raise error

	monkeypatch.setattr(members_api, "_service", StubService())

	resp = await api_client.post(
		f"{BASE}/courses/{uuid4()}/members",
		headers=user_headers,
		json={"user_id": str(uuid4())},
	)

	assert resp.status_code == status_code
	assert resp.json()["detail"] == detail


@pytest.mark.asyncio
async def test_health(api_client):
	resp = await api_client.get("/health")

	assert resp.status_code == 200
	assert resp.json()["status"] == "ok"
