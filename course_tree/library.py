"""
Core interface of the course tree viewer.

CourseLibrary owns the current root, the tree cache and the change watcher.
A front end (the CLI here, or an HTTP layer) only talks to this class.
"""

import threading
from functools import partial
from pathlib import Path

from .cache import TreeCache
from .config import Settings, load_settings
from .errors import InvalidRootError, RootNotSetError
from .probes import probe_file
from .scanner import FlatEntry, Module, decode_file_path, flatten_tree, scan_course_tree
from .utils import print_info
from .watcher import ChangeWatcher


class CourseLibrary:
    """
    Tree of one course root, kept fresh by filesystem events.

    Changing the root, invalidating the cache and re-deriving the watch set
    happen together under one lock, so get_tree() never pairs a new root
    with an old tree.
    """

    def __init__(self, settings: Settings | None = None, scan_fn=None, watcher=None, progress: bool = False):
        self.settings = settings or load_settings()
        if scan_fn is None:
            scan_fn = partial(
                scan_course_tree,
                probe=partial(
                    probe_file,
                    ffprobe_bin=self.settings.ffprobe_bin,
                    timeout=self.settings.probe_timeout,
                ),
                max_workers=self.settings.probe_workers,
                progress=progress,
            )
        self.cache = TreeCache(scan_fn)
        self.watcher = watcher if watcher is not None else ChangeWatcher(self.cache.invalidate)
        self._lock = threading.Lock()
        self._root: Path | None = None

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    @property
    def root(self) -> Path | None:
        with self._lock:
            return self._root

    def set_root(self, path: Path | str) -> Path:
        """
        Switch to a new course root.

        Returns:
            The resolved root.

        Raises:
            InvalidRootError: path doesn't exist or isn't a directory. The
                previous root, cache and watches are left as they were.
        """
        candidate = Path(path).expanduser()
        try:
            resolved = candidate.resolve(strict=True)
        except (OSError, RuntimeError) as e:
            raise InvalidRootError(f"Folder not found: {candidate}. Please check the path and try again.") from e
        if not resolved.is_dir():
            raise InvalidRootError(f"Not a folder: {candidate}. Please choose a directory.")

        with self._lock:
            self._root = resolved
            self.cache.invalidate()
            self.watcher.rewatch(resolved)
        print_info(f"Course root set to {resolved}")
        return resolved

    def get_tree(self) -> list[Module]:
        """
        Return the module tree of the current root, scanning on a cache miss.

        Raises:
            RootNotSetError: set_root() has not succeeded yet.
            ScanError: The scan failed. Retrying later is safe.
        """
        root = self.root
        if root is None:
            raise RootNotSetError("Root folder not set.")
        return self.cache.get(root)

    def get_flat_list(self) -> list[FlatEntry]:
        return flatten_tree(self.get_tree())

    def resolve_file_path(self, module_key: str, file_name: str) -> Path | None:
        """Absolute path of a file in the current tree, or None if it isn't there."""
        root = self.root
        for mod in self.get_tree():
            if mod.full_path != module_key:
                continue
            for f in mod.files:
                if f.name == file_name:
                    return root.joinpath(*mod.segments, f.name)
        return None

    def resolve_request_path(self, addressable_path: str) -> Path | None:
        """
        Map a /file/... path to an existing file inside the root.

        Doesn't consult the cached tree, so files added since the last scan
        resolve too.

        Returns:
            The absolute path, or None for malformed paths, paths escaping
            the root and anything that isn't a regular file.
        """
        root = self.root
        if root is None:
            raise RootNotSetError("Root folder not set.")
        try:
            parts = decode_file_path(addressable_path)
        except ValueError:
            return None

        candidate = root.joinpath(*parts)
        try:
            resolved = candidate.resolve(strict=True)
        except (OSError, RuntimeError):
            return None
        if not resolved.is_relative_to(root) or not resolved.is_file():
            return None
        return candidate

    def find_entry(self, module_key: str, file_name: str) -> FlatEntry | None:
        for entry in self.get_flat_list():
            if entry.module == module_key and entry.name == file_name:
                return entry
        return None

    def select_entry(self, module_key: str | None = None, file_name: str | None = None) -> FlatEntry | None:
        """
        Pick the entry to show.

        The exact (module, file) pair if it exists, otherwise the first file
        of the course, otherwise None for an empty course.
        """
        flat = self.get_flat_list()
        if module_key is not None and file_name is not None:
            for entry in flat:
                if entry.module == module_key and entry.name == file_name:
                    return entry
        return flat[0] if flat else None

    def neighbours(self, entry: FlatEntry) -> tuple[FlatEntry | None, FlatEntry | None]:
        """Previous and next entries of the flat list around entry."""
        flat = self.get_flat_list()
        for i, candidate in enumerate(flat):
            if candidate.module == entry.module and candidate.name == entry.name:
                previous = flat[i - 1] if i > 0 else None
                following = flat[i + 1] if i + 1 < len(flat) else None
                return previous, following
        return None, None

    def close(self) -> None:
        self.watcher.close()
