"""Error kinds raised by the courses core.

Each kind carries a stable ``detail`` code and the HTTP status the transport
translates it to.
"""

from __future__ import annotations

from fastapi import status

if hasattr(status, "HTTP_422_UNPROCESSABLE_CONTENT"):
	_HTTP_422 = status.HTTP_422_UNPROCESSABLE_CONTENT
else:  # pragma: no cover - older Starlette builds
	_HTTP_422 = status.HTTP_422_UNPROCESSABLE_ENTITY


class CourseError(Exception):
	"""Base class for course related errors."""

	status_code: int = status.HTTP_400_BAD_REQUEST
	detail: str = "course_error"

	def __init__(self, detail: str | None = None) -> None:
		super().__init__(detail or self.detail)
		if detail:
			self.detail = detail


class AuthenticationError(CourseError):
	"""Raised when no actor identity accompanies the request."""

	status_code = status.HTTP_401_UNAUTHORIZED
	detail = "authentication_required"


class AuthorizationError(CourseError):
	"""Raised when the actor lacks permission for the action."""

	status_code = status.HTTP_403_FORBIDDEN
	detail = "forbidden"


class NotFoundError(CourseError):
	"""Raised when a course, membership or user is missing."""

	status_code = status.HTTP_404_NOT_FOUND
	detail = "not_found"


class ValidationError(CourseError):
	"""Raised for invalid input not covered by request schema validation."""

	status_code = _HTTP_422
	detail = "validation_error"


class ConflictError(CourseError):
	"""Raised for duplicate memberships."""

	status_code = status.HTTP_409_CONFLICT
	detail = "conflict"


class StorageError(CourseError):
	"""Raised when the store is unreachable or the transaction aborted."""

	status_code = status.HTTP_503_SERVICE_UNAVAILABLE
	detail = "storage_unavailable"


class ChannelDeliveryError(CourseError):
	"""Raised by channel registries when the fabric cannot be reached.

	Never surfaced to callers of the membership service.
	"""

	status_code = status.HTTP_503_SERVICE_UNAVAILABLE
	detail = "channel_unavailable"


__all__ = [
	"AuthenticationError",
	"AuthorizationError",
	"ChannelDeliveryError",
	"ConflictError",
	"CourseError",
	"NotFoundError",
	"StorageError",
	"ValidationError",
]
