"""Authentication helpers for FastAPI endpoints and socket handshakes.

- Bearer JWTs (HS256) are verified against ``settings.secret_key``.
- Dev headers (``X-User-Id``) are honoured only in development.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from classroom.infra import jwt as jwt_helper
from classroom.obs import logging as obs_logging
from classroom.settings import settings


@dataclass(slots=True)
class AuthenticatedUser:
	id: str
	display_name: Optional[str] = None
	session_id: Optional[str] = None


_bearer_scheme = HTTPBearer(auto_error=False)


class InvalidCredentials(ValueError):
	"""Raised when a token or handshake does not identify a user."""


def verify_access_jwt(token: str) -> AuthenticatedUser:
	"""Decode and validate an access JWT and return an AuthenticatedUser."""
	try:
		payload = jwt_helper.decode_access(token)
	except Exception as exc:
		# Normalise all decode failures to invalid_token
		raise InvalidCredentials("invalid_token") from exc
	sub = str(payload.get("sub") or "").strip()
	if not sub:
		raise InvalidCredentials("invalid_token")
	display_name = payload.get("name") or payload.get("display_name")
	session_id = payload.get("sid")
	return AuthenticatedUser(
		id=sub,
		display_name=str(display_name) if display_name is not None else None,
		session_id=str(session_id).strip() if session_id is not None else None,
	)


def resolve_handshake(auth_payload: dict, headers: dict[str, str]) -> AuthenticatedUser:
	"""Resolve the user behind a Socket.IO handshake.

	Accepts ``{"token": ...}`` in the auth payload or an Authorization header;
	dev mode additionally accepts ``{"userId": ...}`` or ``X-User-Id``.
	"""
	token = auth_payload.get("token")
	if not token:
		auth_header = headers.get("authorization")
		if auth_header and auth_header.lower().startswith("bearer "):
			token = auth_header.split(" ", 1)[1]
	if token:
		return verify_access_jwt(str(token))
	if settings.is_dev():
		user_id = auth_payload.get("userId") or auth_payload.get("user_id") or headers.get("x-user-id")
		if user_id:
			return AuthenticatedUser(id=str(user_id))
	raise InvalidCredentials("missing_token")


async def get_current_user(
	x_user_id: Optional[str] = Header(default=None, alias="X-User-Id"),
	credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
) -> AuthenticatedUser:
	"""Resolve the authenticated actor for the current request.

	In development we allow a simple header. In all other environments the
	header is ignored and a valid Bearer JWT is required.
	"""
	user: Optional[AuthenticatedUser] = None
	if credentials and credentials.scheme.lower() == "bearer":
		try:
			user = verify_access_jwt(credentials.credentials)
		except InvalidCredentials as exc:
			raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid_token") from exc
	elif settings.is_dev() and x_user_id and x_user_id.strip():
		user = AuthenticatedUser(id=x_user_id.strip())

	if user is not None:
		# Scoped to the task serving this request.
		obs_logging.bind_context(user_id=user.id)
		return user
	raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid_token")


__all__ = [
	"AuthenticatedUser",
	"InvalidCredentials",
	"get_current_user",
	"resolve_handshake",
	"verify_access_jwt",
]
