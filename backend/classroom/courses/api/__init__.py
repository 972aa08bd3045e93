"""FastAPI routers for the courses domain."""

from __future__ import annotations

from fastapi import APIRouter

from classroom.courses.api import courses, events, members

router = APIRouter(prefix="/api/courses/v1")

router.include_router(courses.router)
router.include_router(members.router)
router.include_router(events.router)

__all__ = ["router"]
