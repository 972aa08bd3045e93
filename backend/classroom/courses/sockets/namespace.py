"""Socket.IO namespace carrying per-course broadcast rooms."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Dict, Optional, Set
from uuid import UUID

import socketio

from classroom.courses.domain import repo as repo_module
from classroom.courses.domain.exceptions import StorageError
from classroom.infra.auth import AuthenticatedUser, InvalidCredentials, resolve_handshake
from classroom.obs import metrics as obs_metrics

_LOG = logging.getLogger(__name__)


def _headers(scope: dict) -> dict[str, str]:
	return {key.decode().lower(): value.decode() for key, value in scope.get("headers", [])}


def _parse_course_id(payload: object) -> Optional[UUID]:
	if not isinstance(payload, dict):
		return None
	try:
		return UUID(str(payload.get("course_id")))
	except ValueError:
		return None


class CourseNamespace(socketio.AsyncNamespace):
	"""Tracks live sessions per user and the course rooms they sit in."""

	def __init__(
		self,
		*,
		repository: repo_module.CoursesRepository | None = None,
		namespace: str = "/courses",
	) -> None:
		super().__init__(namespace)
		self.repo = repository or repo_module.CoursesRepository()
		self._sessions: Dict[str, AuthenticatedUser] = {}
		self._user_sids: Dict[str, Set[str]] = {}

	async def on_connect(self, sid: str, environ: dict, auth: Optional[dict] = None) -> None:
		scope = environ.get("asgi.scope", environ)
		try:
			user = resolve_handshake(auth or environ.get("auth") or {}, _headers(scope))
		except InvalidCredentials:
			raise ConnectionRefusedError("unauthorized") from None
		# Sessions are keyed by the canonical UUID text, the same form channel commands carry.
		try:
			user_id = UUID(user.id.strip())
		except ValueError:
			raise ConnectionRefusedError("unauthorized") from None
		user = replace(user, id=str(user_id))
		obs_metrics.socket_connected(self.namespace)
		self._sessions[sid] = user
		self._user_sids.setdefault(user.id, set()).add(sid)
		await self.enter_room(sid, self.user_room(user.id))
		try:
			course_ids = await self.repo.list_course_ids_for_user(user_id)
		except StorageError:
			_LOG.warning("courses.socket.rooms_unavailable", extra={"user_id": user.id}, exc_info=True)
			course_ids = []
		for course_id in course_ids:
			await self.enter_room(sid, self.course_room(course_id))
		await self.emit("courses:ack", {"ok": True, "courses": [str(cid) for cid in course_ids]}, room=sid)

	async def on_disconnect(self, sid: str, reason: Optional[str] = None) -> None:
		user = self._sessions.pop(sid, None)
		if user is None:
			return
		obs_metrics.socket_disconnected(self.namespace)
		sids = self._user_sids.get(user.id)
		if sids is not None:
			sids.discard(sid)
			if not sids:
				self._user_sids.pop(user.id, None)

	async def on_course_subscribe(self, sid: str, payload: dict) -> dict:
		obs_metrics.socket_event(self.namespace, "course_subscribe")
		user = self._sessions.get(sid)
		if not user:
			raise ConnectionRefusedError("unauthenticated")
		course_id = _parse_course_id(payload)
		if course_id is None:
			return {"ok": False, "error": "invalid_course_id"}
		try:
			member = await self.repo.get_member(course_id, UUID(user.id))
		except StorageError:
			return {"ok": False, "error": "unavailable"}
		if member is None:
			return {"ok": False, "error": "membership_required"}
		await self.enter_room(sid, self.course_room(course_id))
		return {"ok": True}

	async def on_course_unsubscribe(self, sid: str, payload: dict) -> dict:
		obs_metrics.socket_event(self.namespace, "course_unsubscribe")
		if sid not in self._sessions:
			raise ConnectionRefusedError("unauthenticated")
		course_id = _parse_course_id(payload)
		if course_id is None:
			return {"ok": False, "error": "invalid_course_id"}
		await self.leave_room(sid, self.course_room(course_id))
		return {"ok": True}

	def get_user(self, sid: str) -> Optional[AuthenticatedUser]:
		return self._sessions.get(sid)

	def sids_for(self, user_id: str) -> list[str]:
		try:
			key = str(UUID(user_id))
		except ValueError:
			return []
		return sorted(self._user_sids.get(key, ()))

	@staticmethod
	def user_room(user_id: str) -> str:
		return f"user:{user_id}"

	@staticmethod
	def course_room(course_id: UUID | str) -> str:
		return f"course:{course_id}"


__all__ = ["CourseNamespace"]
