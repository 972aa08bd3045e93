"""Process-wide handle on the registered courses namespace."""

from __future__ import annotations

from typing import Optional

from classroom.courses.sockets.namespace import CourseNamespace

_course_ns: Optional[CourseNamespace] = None


def set_namespace(namespace: Optional[CourseNamespace]) -> None:
	global _course_ns
	_course_ns = namespace


def get_namespace() -> Optional[CourseNamespace]:
	return _course_ns
