"""FastAPI application entrypoint."""

from __future__ import annotations

from contextlib import asynccontextmanager

import socketio
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from classroom import obs
from classroom.api.errors import install_error_handlers
from classroom.courses.api import router as courses_router
from classroom.courses.sockets import CourseNamespace, set_namespace
from classroom.infra import postgres
from classroom.obs import logging as obs_logging
from classroom.settings import settings

_LOG = obs_logging.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
	await postgres.init_pool()
	_LOG.info("startup.complete", extra={"environment": settings.environment})
	try:
		yield
	finally:
		await postgres.close_pool()


app = FastAPI(title="Classroom Courses API", lifespan=lifespan)

allow_origins = list(settings.cors_allow_origins) or ["http://localhost:3000"]
app.add_middleware(
	CORSMiddleware,
	allow_origins=allow_origins,
	allow_credentials=True,
	allow_methods=["*"],
	allow_headers=["*"],
)

obs.init(app)
install_error_handlers(app)
app.include_router(courses_router)


@app.get("/health")
async def health() -> dict[str, str]:
	return {"status": "ok", "service": settings.service_name}


sio = socketio.AsyncServer(async_mode="asgi", cors_allowed_origins=allow_origins)
if settings.sockets_enabled:
	course_namespace = CourseNamespace()
	sio.register_namespace(course_namespace)
	set_namespace(course_namespace)
socket_app = socketio.ASGIApp(sio, other_asgi_app=app)
