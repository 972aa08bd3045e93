"""Channel registries that move live sessions in and out of course rooms."""

from __future__ import annotations

import logging
from typing import Callable, Optional, Protocol

from classroom.courses.domain.exceptions import ChannelDeliveryError
from classroom.courses.domain.models import ChannelCommand, DispatchOutcome
from classroom.courses.sockets import server as socket_server
from classroom.courses.sockets.namespace import CourseNamespace
from classroom.obs import metrics as obs_metrics
from classroom.settings import settings

_LOG = logging.getLogger(__name__)

_NOTIFY_EVENTS = {"join": "course:joined", "leave": "course:left"}


class ChannelRegistry(Protocol):
	async def dispatch(self, command: ChannelCommand) -> DispatchOutcome:
		...


class NullChannelRegistry:
	"""Used when sockets are disabled; nobody is ever connected."""

	async def dispatch(self, command: ChannelCommand) -> DispatchOutcome:
		return DispatchOutcome(delivered=False, reason="no_connection")


class SocketIOChannelRegistry:
	"""Applies channel commands to every local session of the target user."""

	def __init__(
		self,
		namespace_provider: Callable[[], Optional[CourseNamespace]] = socket_server.get_namespace,
	) -> None:
		self._namespace_provider = namespace_provider

	async def dispatch(self, command: ChannelCommand) -> DispatchOutcome:
		namespace = self._namespace_provider()
		if namespace is None:
			raise ChannelDeliveryError("namespace_unavailable")
		sids = namespace.sids_for(command.user_id)
		if not sids:
			return DispatchOutcome(delivered=False, reason="no_connection")
		room = namespace.course_room(command.channel)
		event = _NOTIFY_EVENTS[command.action]
		try:
			for sid in sids:
				if command.action == "join":
					await namespace.enter_room(sid, room)
				else:
					await namespace.leave_room(sid, room)
			await namespace.emit(
				event,
				{"course_id": command.channel},
				room=namespace.user_room(command.user_id),
			)
		except Exception as exc:
			raise ChannelDeliveryError() from exc
		obs_metrics.socket_event(namespace.namespace, event)
		_LOG.debug(
			"courses.channel.applied",
			extra={"user_id": command.user_id, "channel": command.channel, "action": command.action},
		)
		return DispatchOutcome(delivered=True, connections=len(sids))


def build_registry() -> ChannelRegistry:
	if settings.sockets_enabled:
		return SocketIOChannelRegistry()
	return NullChannelRegistry()


__all__ = ["ChannelRegistry", "NullChannelRegistry", "SocketIOChannelRegistry", "build_registry"]
