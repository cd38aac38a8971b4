"""
Exceptions raised by the course tree core.

Probe and watch failures never surface here: probes degrade to "no metadata"
and the watcher degrades to not watching the failing path.
"""


class CourseTreeError(Exception):
    """Base class for all course tree errors."""


class InvalidRootError(CourseTreeError):
    """The requested root does not exist or is not a directory."""


class RootNotSetError(CourseTreeError):
    """A tree was requested before any root was configured."""


class ScanError(CourseTreeError):
    """A directory could not be listed or an entry could not be stat-ed."""

    def __init__(self, path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot scan {path}: {reason}")
