"""
Single-entry tree cache.

Holds the last scan of the current root until something invalidates it.
"""

import threading
from pathlib import Path
from typing import Callable

from .scanner import Module


class TreeCache:
    """
    Memoizes one scanned tree, keyed by root.

    Two locks are involved. The state lock guards the stored tree and the
    generation counter and is only held briefly, so invalidate() can be called
    from a watcher thread without waiting for a scan. The scan lock lets only
    one scan run at a time.

    A scan records the generation it started under and stores its result only
    if that generation is still current. An invalidation that races a scan
    therefore always wins: the cache ends up empty, never stale.
    """

    def __init__(self, scan_fn: Callable[[Path], list[Module]]):
        self._scan_fn = scan_fn
        self._lock = threading.Lock()
        self._scan_lock = threading.Lock()
        self._tree: list[Module] | None = None
        self._root: Path | None = None
        self._generation = 0
        self.scan_count = 0

    @property
    def is_valid(self) -> bool:
        with self._lock:
            return self._tree is not None

    def _lookup(self, root: Path) -> list[Module] | None:
        with self._lock:
            if self._tree is not None and self._root == root:
                return self._tree
            return None

    def get(self, root: Path) -> list[Module]:
        """
        Return the tree for root, scanning if there is no valid entry.

        Raises:
            ScanError: The scan failed; nothing is stored.
        """
        root = Path(root)
        tree = self._lookup(root)
        if tree is not None:
            return tree

        with self._scan_lock:
            # Another caller may have filled the cache while we waited
            tree = self._lookup(root)
            if tree is not None:
                return tree

            with self._lock:
                generation = self._generation
                self.scan_count += 1

            tree = self._scan_fn(root)

            with self._lock:
                if generation == self._generation:
                    self._tree = tree
                    self._root = root
            return tree

    def invalidate(self, *args) -> None:
        """Drop the stored tree. Extra arguments (e.g. a watch event) are ignored."""
        with self._lock:
            self._generation += 1
            self._tree = None
            self._root = None
