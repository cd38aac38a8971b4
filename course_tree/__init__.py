"""
Course Tree Viewer
==================

Scans a course-material folder (videos, PDFs, images, other files) into a
module/file tree with per-file metadata, caches it, and invalidates the cache
when the folder changes on disk.
"""

__version__ = "1.0.0"

from .cache import TreeCache
from .config import Settings, load_settings
from .errors import CourseTreeError, InvalidRootError, RootNotSetError, ScanError
from .kinds import classify, classify_path
from .library import CourseLibrary
from .probes import probe_file
from .scanner import (
    CourseFile,
    FlatEntry,
    Module,
    build_file_path,
    decode_file_path,
    flatten_tree,
    natural_sort_key,
    scan_course_tree,
)
from .watcher import ChangeWatcher

__all__ = [
    "TreeCache",
    "Settings",
    "load_settings",
    "CourseTreeError",
    "InvalidRootError",
    "RootNotSetError",
    "ScanError",
    "classify",
    "classify_path",
    "CourseLibrary",
    "probe_file",
    "CourseFile",
    "FlatEntry",
    "Module",
    "build_file_path",
    "decode_file_path",
    "flatten_tree",
    "natural_sort_key",
    "scan_course_tree",
    "ChangeWatcher",
]
