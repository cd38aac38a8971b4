"""
Filesystem change watching.

Watches a root and its immediate subdirectories (non-recursively) and reports
every change through a callback. The callback is expected to be cheap; the
tree cache just marks itself invalid.
"""

import os
import threading
from pathlib import Path
from typing import Callable

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .utils import console, print_warning

# Access notifications that don't change anything. Reacting to them would let
# the scanner's own reads invalidate the tree it just built.
READ_ONLY_EVENT_TYPES = {"opened", "closed_no_write"}


class ChangeHandler(FileSystemEventHandler):
    """Forwards every change event to a callback."""

    def __init__(self, on_change: Callable[[FileSystemEvent], None]):
        super().__init__()
        self._on_change = on_change

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.event_type in READ_ONLY_EVENT_TYPES:
            return
        where = os.path.dirname(event.src_path) if not event.is_directory else event.src_path
        console.print(
            f"[dim][WATCH] Change detected in {where}: {event.event_type} {event.src_path}[/dim]",
            highlight=False,
        )
        self._on_change(event)


class ChangeWatcher:
    """
    Set of watches over the current root.

    Directories created two or more levels below the root after rewatch()
    are not watched until the next rewatch().
    """

    def __init__(
        self,
        on_change: Callable[[FileSystemEvent], None],
        observer_factory: Callable[[], object] | None = None
    ):
        self.handler = ChangeHandler(on_change)
        self._observer_factory = observer_factory or Observer
        self._observer = None
        self._watches: list[tuple[Path, object]] = []
        self._lock = threading.Lock()

    @property
    def watched_paths(self) -> list[Path]:
        with self._lock:
            return [path for path, _ in self._watches]

    def _ensure_started(self):
        if self._observer is None:
            self._observer = self._observer_factory()
            self._observer.start()

    def _schedule(self, path: Path) -> None:
        try:
            watch = self._observer.schedule(self.handler, str(path), recursive=False)
        except Exception as e:
            # inotify limits, vanished directories, permission problems...
            print_warning(f"Failed to watch {path}: {e}")
            return
        self._watches.append((path, watch))

    def _unschedule_all(self) -> None:
        for path, watch in self._watches:
            try:
                self._observer.unschedule(watch)
            except Exception as e:
                print_warning(f"Failed to stop watching {path}: {e}")
        self._watches.clear()

    def rewatch(self, root: Path) -> None:
        """
        Replace all watches with watches on root and its child directories.

        Failures are reported and skipped; the affected path just goes
        unwatched.
        """
        root = Path(root)
        with self._lock:
            if self._observer is not None:
                self._unschedule_all()
            try:
                self._ensure_started()
            except Exception as e:
                print_warning(f"Failed to start file watcher: {e}")
                self._observer = None
                return
            self._schedule(root)

            try:
                children = sorted(os.listdir(root))
            except OSError as e:
                print_warning(f"Failed to list {root} for watching: {e}")
                return

            for name in children:
                child = root / name
                try:
                    is_dir = child.is_dir()
                except OSError as e:
                    print_warning(f"Failed to stat {child}: {e}")
                    continue
                if is_dir:
                    self._schedule(child)

    def close(self) -> None:
        """Drop all watches and stop the observer thread."""
        with self._lock:
            if self._observer is None:
                return
            self._unschedule_all()
            try:
                self._observer.stop()
                self._observer.join(timeout=2)
            except Exception as e:
                print_warning(f"Watcher stop error: {e}")
            self._observer = None
