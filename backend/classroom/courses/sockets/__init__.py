"""Socket.IO transport for the courses module."""

from classroom.courses.sockets.namespace import CourseNamespace
from classroom.courses.sockets.server import get_namespace, set_namespace

__all__ = ["CourseNamespace", "get_namespace", "set_namespace"]
