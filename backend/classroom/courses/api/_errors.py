"""Error translation helpers for the courses API."""

from __future__ import annotations

from fastapi import HTTPException

from classroom.courses.domain import exceptions


def to_http_error(exc: exceptions.CourseError) -> HTTPException:
	"""Translate domain exceptions to FastAPI HTTP errors."""
	return HTTPException(status_code=exc.status_code, detail=exc.detail)
