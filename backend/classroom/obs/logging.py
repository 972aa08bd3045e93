"""Structured JSON logging with per-request context.

Request-scoped fields (request id, route, actor) live in a single context
variable so they follow the request through awaits and show up on every
record emitted while it is being served. Values passed via ``extra=`` are
redacted when their key looks like a credential and clipped when long.
"""

from __future__ import annotations

import json
import logging
import random
from contextvars import ContextVar, Token
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from classroom.settings import settings

_ROOT_LOGGER = "classroom"
_CONTEXT_KEYS = ("request_id", "route", "user_id")
_CONTEXT: ContextVar[Mapping[str, str]] = ContextVar("classroom_log_context", default={})

_REDACT_MARKERS = ("token", "secret", "authorization", "password", "cookie")
_CLIP_AT = 256
_MAX_ITEMS = 10

# Attributes every LogRecord carries; anything else came in through ``extra=``.
_STANDARD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime"}


def bind_context(**fields: Optional[str]) -> Token:
	"""Merge request fields into the logging context; returns a reset token."""
	merged = dict(_CONTEXT.get())
	merged.update({key: value for key, value in fields.items() if key in _CONTEXT_KEYS and value})
	return _CONTEXT.set(merged)


def reset_context(token: Token) -> None:
	_CONTEXT.reset(token)


def current_request_id() -> Optional[str]:
	return _CONTEXT.get().get("request_id")


def _clean(key: str, value: Any) -> Any:
	if any(marker in key.lower() for marker in _REDACT_MARKERS):
		return "[redacted]"
	if value is None or isinstance(value, (bool, int, float)):
		return value
	if isinstance(value, str):
		return value if len(value) <= _CLIP_AT else value[:_CLIP_AT] + "..."
	if isinstance(value, Mapping):
		return {str(k): _clean(str(k), v) for k, v in list(value.items())[:_MAX_ITEMS]}
	if isinstance(value, (list, tuple, set, frozenset)):
		return [_clean(key, item) for item in list(value)[:_MAX_ITEMS]]
	return _clean(key, str(value))


class JSONLogFormatter(logging.Formatter):
	"""Render each record as one JSON line."""

	def format(self, record: logging.LogRecord) -> str:  # noqa: A003
		payload: dict[str, Any] = {
			"ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
			"level": record.levelname.lower(),
			"logger": record.name,
			"event": record.getMessage(),
			"service": settings.service_name,
			"env": settings.environment,
			"commit": settings.git_commit,
		}
		payload.update(_CONTEXT.get())
		for key, value in vars(record).items():
			if key not in _STANDARD_ATTRS and key not in payload:
				payload[key] = _clean(key, value)
		if record.exc_info:
			payload["exc_info"] = self.formatException(record.exc_info)
		return json.dumps(payload, separators=(",", ":"), default=str)


class InfoSamplingFilter(logging.Filter):
	"""Drop a share of INFO records; other levels always pass."""

	def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003
		if record.levelno != logging.INFO:
			return True
		rate = settings.obs_log_sampling_rate_info
		return rate >= 1.0 or random.random() < max(rate, 0.0)


def configure_logging() -> logging.Logger:
	handler = logging.StreamHandler()
	handler.setFormatter(JSONLogFormatter())
	handler.addFilter(InfoSamplingFilter())
	root = logging.getLogger()
	root.handlers[:] = [handler]
	root.setLevel(settings.obs_log_level)
	return logging.getLogger(_ROOT_LOGGER)


def get_logger(name: Optional[str] = None) -> logging.Logger:
	return logging.getLogger(name or _ROOT_LOGGER)


__all__ = [
	"InfoSamplingFilter",
	"JSONLogFormatter",
	"bind_context",
	"configure_logging",
	"current_request_id",
	"get_logger",
	"reset_context",
]
