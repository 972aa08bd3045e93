"""Observability package bootstrap."""

from __future__ import annotations

from fastapi import FastAPI
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.responses import Response

from classroom.obs import logging as obs_logging
from classroom.obs import middleware
from classroom.settings import settings

_initialised = False


def init(app: FastAPI) -> None:
	global _initialised
	if _initialised:
		return
	if not settings.obs_enabled:
		return
	obs_logging.configure_logging()
	middleware.install(app)
	if settings.obs_metrics_public:

		@app.get("/metrics", include_in_schema=False)
		async def _metrics() -> Response:
			return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

	_initialised = True


__all__ = ["init"]
