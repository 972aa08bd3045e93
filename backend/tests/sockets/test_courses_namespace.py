from unittest.mock import AsyncMock
from uuid import UUID, uuid4

import pytest
import socketio

from classroom.courses.domain.exceptions import StorageError
from classroom.courses.sockets import CourseNamespace
from classroom.infra import jwt as jwt_helper


class _FakeRepo:
	def __init__(self, memberships: dict[UUID, list[UUID]] | None = None, *, fail: bool = False) -> None:
		self.memberships = memberships or {}
		self.fail = fail

	async def list_course_ids_for_user(self, user_id: UUID) -> list[UUID]:
		if self.fail:
			raise StorageError()
		return list(self.memberships.get(user_id, []))

	async def get_member(self, course_id: UUID, user_id: UUID):
		return object() if course_id in self.memberships.get(user_id, []) else None


def _namespace(repo: _FakeRepo) -> CourseNamespace:
	server = socketio.AsyncServer(async_mode="asgi")
	namespace = CourseNamespace(repository=repo)
	server.register_namespace(namespace)
	namespace.emit = AsyncMock()
	namespace.enter_room = AsyncMock()
	namespace.leave_room = AsyncMock()
	return namespace


def _environ(headers: list[tuple[bytes, bytes]]) -> dict:
	return {"asgi.scope": {"headers": headers}}


def _rooms_entered(namespace: CourseNamespace, sid: str) -> list[str]:
	return [call.args[1] for call in namespace.enter_room.await_args_list if call.args[0] == sid]


@pytest.mark.asyncio
async def test_connect_requires_credentials():
	namespace = _namespace(_FakeRepo())

	with pytest.raises(ConnectionRefusedError):
		await namespace.trigger_event("connect", "sid-1", _environ([]))
	assert namespace.get_user("sid-1") is None


@pytest.mark.asyncio
async def test_connect_joins_user_and_course_rooms():
	user_id = uuid4()
	course_ids = [uuid4(), uuid4()]
	namespace = _namespace(_FakeRepo({user_id: course_ids}))

	await namespace.trigger_event("connect", "sid-1", _environ([(b"x-user-id", str(user_id).encode())]))

	assert namespace.get_user("sid-1").id == str(user_id)
	assert namespace.sids_for(str(user_id)) == ["sid-1"]
	assert _rooms_entered(namespace, "sid-1") == [
		f"user:{user_id}",
		f"course:{course_ids[0]}",
		f"course:{course_ids[1]}",
	]
	event, payload = namespace.emit.await_args.args[:2]
	assert event == "courses:ack"
	assert payload["courses"] == [str(cid) for cid in course_ids]


@pytest.mark.asyncio
async def test_connect_with_bearer_token():
	user_id = str(uuid4())
	token = jwt_helper.encode_access({"sub": user_id})
	namespace = _namespace(_FakeRepo())

	await namespace.trigger_event(
		"connect",
		"sid-1",
		_environ([(b"authorization", f"Bearer {token}".encode())]),
	)

	assert namespace.sids_for(user_id) == ["sid-1"]


@pytest.mark.asyncio
async def test_connect_survives_unavailable_roster():
	user_id = uuid4()
	namespace = _namespace(_FakeRepo(fail=True))

	await namespace.trigger_event("connect", "sid-1", _environ([(b"x-user-id", str(user_id).encode())]))

	assert _rooms_entered(namespace, "sid-1") == [f"user:{user_id}"]


@pytest.mark.asyncio
async def test_disconnect_forgets_session():
	user_id = str(uuid4())
	namespace = _namespace(_FakeRepo())
	await namespace.trigger_event("connect", "sid-1", _environ([(b"x-user-id", user_id.encode())]))
	await namespace.trigger_event("connect", "sid-2", _environ([(b"x-user-id", user_id.encode())]))

	await namespace.trigger_event("disconnect", "sid-1")

	assert namespace.get_user("sid-1") is None
	assert namespace.sids_for(user_id) == ["sid-2"]


@pytest.mark.asyncio
async def test_subscribe_requires_membership():
	user_id = uuid4()
	course_id = uuid4()
	namespace = _namespace(_FakeRepo({user_id: [course_id]}))
	await namespace.trigger_event("connect", "sid-1", _environ([(b"x-user-id", str(user_id).encode())]))
	namespace.enter_room.reset_mock()

	denied = await namespace.trigger_event("course_subscribe", "sid-1", {"course_id": str(uuid4())})
	allowed = await namespace.trigger_event("course_subscribe", "sid-1", {"course_id": str(course_id)})
	invalid = await namespace.trigger_event("course_subscribe", "sid-1", {"course_id": "nope"})

	assert denied == {"ok": False, "error": "membership_required"}
	assert allowed == {"ok": True}
	assert invalid == {"ok": False, "error": "invalid_course_id"}
	assert _rooms_entered(namespace, "sid-1") == [f"course:{course_id}"]


@pytest.mark.asyncio
async def test_unsubscribe_leaves_room():
	user_id = str(uuid4())
	course_id = uuid4()
	namespace = _namespace(_FakeRepo())
	await namespace.trigger_event("connect", "sid-1", _environ([(b"x-user-id", user_id.encode())]))

	result = await namespace.trigger_event("course_unsubscribe", "sid-1", {"course_id": str(course_id)})

	assert result == {"ok": True}
	namespace.leave_room.assert_awaited_once_with("sid-1", f"course:{course_id}")


@pytest.mark.asyncio
async def test_connect_canonicalises_user_id():
	user_id = UUID("6f9619ff-8b86-d011-b42d-00c04fc964ff")
	course_id = uuid4()
	namespace = _namespace(_FakeRepo({user_id: [course_id]}))

	await namespace.trigger_event("connect", "sid-1", {}, {"userId": "6F9619FF8B86D011B42D00C04FC964FF"})

	assert namespace.get_user("sid-1").id == str(user_id)
	assert namespace.sids_for(str(user_id)) == ["sid-1"]
	assert _rooms_entered(namespace, "sid-1") == [f"user:{user_id}", f"course:{course_id}"]

	await namespace.trigger_event("disconnect", "sid-1")
	assert namespace.sids_for(str(user_id)) == []


@pytest.mark.asyncio
async def test_connect_refuses_non_uuid_subject():
	namespace = _namespace(_FakeRepo())

	with pytest.raises(ConnectionRefusedError):
		await namespace.trigger_event("connect", "sid-1", _environ([(b"x-user-id", b"not-a-uuid")]))
	assert namespace.get_user("sid-1") is None
	namespace.enter_room.assert_not_awaited()
