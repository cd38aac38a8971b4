"""
Directory scanning for course material.

Walks a root directory depth-first, classifies every file, runs the matching
metadata probe and groups files into modules keyed by their parent directory.
"""

import os
import re
import stat
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import asdict, dataclass, field, replace
from pathlib import Path
from typing import Callable, Generator
from urllib.parse import quote, unquote

from tqdm import tqdm

from .errors import ScanError
from .kinds import PROBED_KINDS, classify_path
from .probes import probe_file

MODULE_SEPARATOR = " / "
FILE_ROUTE = "/file/"

# Characters JavaScript's encodeURIComponent leaves alone
_URI_COMPONENT_SAFE = "-_.!~*'()"


@dataclass
class CourseFile:
    """A single file inside a module."""
    name: str
    kind: str
    path: str
    meta: str | None = None
    module: str = ""  # full_path of the owning module

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class Module:
    """
    Files that live directly in one directory.

    Directories without direct files produce no module.
    """
    name: str
    full_path: str
    depth: int
    segments: tuple[str, ...] = ()
    files: list[CourseFile] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "full_path": self.full_path,
            "depth": self.depth,
            "segments": list(self.segments),
            "files": [f.to_dict() for f in self.files],
        }


@dataclass
class FlatEntry:
    """A file denormalized with its module key, for selection and navigation."""
    module: str
    name: str
    kind: str
    path: str
    meta: str | None = None

    def to_dict(self) -> dict:
        return asdict(self)


def encode_segment(segment: str) -> str:
    """Percent-encode one path segment the way encodeURIComponent does."""
    return quote(segment, safe=_URI_COMPONENT_SAFE)


def build_file_path(segments: tuple[str, ...] | list[str], name: str) -> str:
    """
    Build the addressable path of a file.

    Every directory segment and the file name are encoded separately, so
    names containing "/" or other reserved characters round-trip intact.
    """
    parts = [encode_segment(s) for s in segments]
    parts.append(encode_segment(name))
    return FILE_ROUTE + "/".join(parts)


def decode_file_path(path: str) -> tuple[str, ...]:
    """
    Split an addressable path back into raw relative path components.

    Raises:
        ValueError: The path is not under /file/ or has empty, "." or ".."
            components.
    """
    if not path.startswith(FILE_ROUTE):
        raise ValueError(f"Not a file path: {path!r}")
    parts = tuple(unquote(p) for p in path[len(FILE_ROUTE):].split("/"))
    for part in parts:
        if part in ("", ".", ".."):
            raise ValueError(f"Invalid path component {part!r} in {path!r}")
    return parts


def module_key(segments: tuple[str, ...] | list[str]) -> str:
    """Join directory segments into a module key."""
    return MODULE_SEPARATOR.join(segments)


def _walk(directory: Path, prefix: tuple[str, ...]) -> Generator[tuple[tuple[str, ...], str, Path], None, None]:
    """
    Yield (segments, name, path) for every file under directory.

    Entries are visited in plain lexicographic order at each level. Any
    listing or stat failure aborts the walk.
    """
    try:
        entries = sorted(os.listdir(directory))
    except OSError as e:
        raise ScanError(directory, e.strerror or str(e)) from e

    for entry in entries:
        entry_path = directory / entry
        try:
            mode = entry_path.stat().st_mode
        except OSError as e:
            raise ScanError(entry_path, e.strerror or str(e)) from e

        if stat.S_ISDIR(mode):
            yield from _walk(entry_path, prefix + (entry,))
        else:
            yield prefix, entry, entry_path


def scan_course_tree(
    root: Path,
    probe: Callable[[str, Path], str | None] | None = None,
    max_workers: int = 8,
    progress: bool = False
) -> list[Module]:
    """
    Scan a course directory into an ordered list of modules.

    Args:
        root: Directory to scan.
        probe: Metadata probe taking (kind, path); defaults to probes.probe_file.
        max_workers: Upper bound on probes running at once.
        progress: Show a progress bar while probing.

    Returns:
        Modules in first-creation order. One module exists per distinct
        parent directory across the whole scan.

    Raises:
        ScanError: A directory or entry could not be read. Nothing is returned
            for a partially readable tree.
    """
    root = Path(root)
    probe = probe or probe_file

    modules: dict[tuple[str, ...], Module] = {}
    jobs: list[tuple[CourseFile, str, Path]] = []

    for segments, name, filepath in _walk(root, ()):
        mod = modules.get(segments)
        if mod is None:
            mod = Module(
                name=segments[-1] if segments else "",
                full_path=module_key(segments),
                depth=len(segments),
                segments=segments,
            )
            modules[segments] = mod

        kind = classify_path(name)
        course_file = CourseFile(
            name=name,
            kind=kind,
            path=build_file_path(segments, name),
            module=mod.full_path,
        )
        mod.files.append(course_file)

        if kind in PROBED_KINDS:
            jobs.append((course_file, kind, filepath))

    if jobs:
        with ThreadPoolExecutor(max_workers=max(1, max_workers)) as executor:
            with tqdm(total=len(jobs), unit="file", desc="Probing", disable=not progress) as pbar:
                futures = {
                    executor.submit(probe, kind, filepath): course_file
                    for course_file, kind, filepath in jobs
                }
                for future in as_completed(futures):
                    futures[future].meta = future.result()
                    pbar.update(1)

    return list(modules.values())


def flatten_tree(modules: list[Module]) -> list[FlatEntry]:
    """Project a tree onto a flat list of entries, preserving scan order."""
    return [
        FlatEntry(
            module=mod.full_path,
            name=f.name,
            kind=f.kind,
            path=f.path,
            meta=f.meta,
        )
        for mod in modules
        for f in mod.files
    ]


def natural_sort_key(name: str) -> tuple:
    """
    Numeric-aware, case-insensitive sort key ("Lesson 2" before "Lesson 10").

    Display-only: scanning always uses plain lexicographic order.
    """
    # re.split with a capture group puts the digit runs at odd indices
    parts = [
        (0, int(part), "") if i % 2 else (1, 0, part.casefold())
        for i, part in enumerate(re.split(r'(\d+)', name))
        if part
    ]
    # Raw name breaks ties between names differing only in case
    return parts, name


def sort_files_naturally(modules: list[Module]) -> list[Module]:
    """Return a copy of the tree with each module's files in natural order."""
    return [
        replace(mod, files=sorted(mod.files, key=lambda f: natural_sort_key(f.name)))
        for mod in modules
    ]
