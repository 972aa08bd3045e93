"""HTTP middleware: request ids, access logs and request metrics."""

from __future__ import annotations

import logging
import time
from uuid import uuid4

from fastapi import FastAPI, Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from classroom.obs import logging as obs_logging
from classroom.obs import metrics

_LOG = logging.getLogger("classroom.http")

REQUEST_ID_HEADER = "X-Request-Id"


def _route_label(request: Request) -> str:
	# Use the route template so path parameters do not explode label cardinality.
	route = request.scope.get("route")
	return getattr(route, "path", None) or "unmatched"


class ObservabilityMiddleware(BaseHTTPMiddleware):
	async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
		request_id = request.headers.get(REQUEST_ID_HEADER) or uuid4().hex
		request.state.request_id = request_id
		token = obs_logging.bind_context(request_id=request_id, route=request.url.path)
		started = time.perf_counter()
		status_code = 500
		try:
			response = await call_next(request)
			status_code = response.status_code
			response.headers.setdefault(REQUEST_ID_HEADER, request_id)
			return response
		except Exception:
			_LOG.exception("http.request_failed", extra={"method": request.method})
			raise
		finally:
			elapsed = time.perf_counter() - started
			metrics.observe_request(_route_label(request), request.method, status_code, elapsed)
			_LOG.info(
				"http.request",
				extra={"method": request.method, "status": status_code, "latency_ms": round(elapsed * 1000, 2)},
			)
			obs_logging.reset_context(token)


def install(app: FastAPI) -> None:
	app.add_middleware(ObservabilityMiddleware)


__all__ = ["ObservabilityMiddleware", "REQUEST_ID_HEADER", "install"]
