#!/usr/bin/env python3
"""
Course Tree Viewer - CLI Entry Point
====================================

Usage:
    python -m course_tree tree /path/to/course --json tree.json
    python -m course_tree flat /path/to/course
    python -m course_tree resolve --root /path/to/course "Unit 1" lecture.mp4
    python -m course_tree watch /path/to/course
"""

import argparse
import sys
import time
from datetime import datetime
from pathlib import Path

from rich.table import Table
from rich.tree import Tree

from .config import load_settings
from .errors import CourseTreeError
from .library import CourseLibrary
from .scanner import Module, sort_files_naturally
from .utils import console, print_error, print_header, print_success, save_json

KIND_STYLES = {
    "video": "magenta",
    "pdf": "red",
    "image": "green",
    "other": "white",
}


def render_tree(root: Path, modules: list[Module]) -> Tree:
    """Build a rich Tree of modules and their files."""
    tree = Tree(f"[bold blue]{root}[/bold blue]")
    for mod in modules:
        label = mod.full_path or "(root files)"
        branch = tree.add(f"[bold cyan]{label}[/bold cyan] [dim]({len(mod.files)} files)[/dim]")
        for f in mod.files:
            style = KIND_STYLES.get(f.kind, "white")
            meta = f" [yellow]{f.meta}[/yellow]" if f.meta else ""
            branch.add(f"[{style}]{f.name}[/{style}] [dim]{f.kind}[/dim]{meta}")
    return tree


def open_library(args) -> CourseLibrary | None:
    """Create a library and point it at the root from args or COURSE_ROOT."""
    settings = load_settings()
    root = args.root or settings.root
    if root is None:
        print_error("No course root given. Pass ROOT or set COURSE_ROOT.")
        return None

    library = CourseLibrary(settings, progress=getattr(args, "progress", False))
    try:
        library.set_root(root)
    except CourseTreeError as e:
        library.close()
        print_error(str(e))
        return None
    return library


def cmd_tree(args) -> int:
    """Handle the 'tree' command."""
    library = open_library(args)
    if library is None:
        return 1

    with library:
        try:
            modules = library.get_tree()
        except CourseTreeError as e:
            print_error(str(e))
            return 1

        shown = sort_files_naturally(modules) if args.natural else modules
        console.print(render_tree(library.root, shown))

        file_count = sum(len(m.files) for m in modules)
        print_success(f"{len(modules)} modules, {file_count} files")

        if args.json:
            save_json({
                "root": str(library.root),
                "generated_at": datetime.now().isoformat(timespec='seconds'),
                "modules": [m.to_dict() for m in shown],
            }, args.json)
    return 0


def cmd_flat(args) -> int:
    """Handle the 'flat' command."""
    library = open_library(args)
    if library is None:
        return 1

    with library:
        try:
            entries = library.get_flat_list()
        except CourseTreeError as e:
            print_error(str(e))
            return 1

        table = Table(title="Course Files")
        table.add_column("#", style="dim", justify="right")
        table.add_column("Module", style="cyan")
        table.add_column("File")
        table.add_column("Kind", style="magenta")
        table.add_column("Meta", style="yellow")
        table.add_column("Path", style="dim")
        for i, entry in enumerate(entries, 1):
            table.add_row(str(i), entry.module, entry.name, entry.kind, entry.meta or "", entry.path)
        console.print(table)
    return 0


def cmd_resolve(args) -> int:
    """Handle the 'resolve' command."""
    library = open_library(args)
    if library is None:
        return 1

    with library:
        try:
            path = library.resolve_file_path(args.module, args.file)
        except CourseTreeError as e:
            print_error(str(e))
            return 1

    if path is None:
        print_error(f"File not found: {args.module!r} / {args.file!r}")
        return 1
    console.print(str(path), highlight=False)
    return 0


def cmd_watch(args) -> int:
    """Handle the 'watch' command: re-render whenever the folder changes."""
    library = open_library(args)
    if library is None:
        return 1

    print_header("Course Tree Viewer", f"Watching {library.root} (Ctrl-C to stop)")
    try:
        with library:
            while True:
                if not library.cache.is_valid:
                    try:
                        modules = library.get_tree()
                    except CourseTreeError as e:
                        # Retry on the next tick
                        print_error(str(e))
                    else:
                        console.print(render_tree(library.root, modules))
                time.sleep(args.interval)
    except KeyboardInterrupt:
        print("\n[ABORT] Stopped watching")
        return 130


# =============================================================================
# Main
# =============================================================================

def main() -> int:
    parser = argparse.ArgumentParser(
        description="Course Tree Viewer - browse course material with video and PDF metadata",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # --- TREE command ---
    tree_parser = subparsers.add_parser("tree", help="Scan and print the module tree")
    tree_parser.add_argument("root", type=Path, nargs="?", help="Course folder (default: $COURSE_ROOT)")
    tree_parser.add_argument("--json", type=Path, metavar="PATH",
                             help="Also write the tree to a JSON file")
    tree_parser.add_argument("--natural", action="store_true",
                             help="Show files in natural order (Lesson 2 before Lesson 10)")
    tree_parser.add_argument("--progress", action="store_true",
                             help="Show a progress bar while probing media")
    tree_parser.set_defaults(func=cmd_tree)

    # --- FLAT command ---
    flat_parser = subparsers.add_parser("flat", help="Print every file as a flat list")
    flat_parser.add_argument("root", type=Path, nargs="?", help="Course folder (default: $COURSE_ROOT)")
    flat_parser.set_defaults(func=cmd_flat)

    # --- RESOLVE command ---
    resolve_parser = subparsers.add_parser("resolve", help="Print the absolute path of a file")
    resolve_parser.add_argument("--root", type=Path, help="Course folder (default: $COURSE_ROOT)")
    resolve_parser.add_argument("module", type=str, help='Module key, e.g. "Unit 1 / Lesson 2"')
    resolve_parser.add_argument("file", type=str, help="File name inside the module")
    resolve_parser.set_defaults(func=cmd_resolve)

    # --- WATCH command ---
    watch_parser = subparsers.add_parser("watch", help="Print the tree again whenever the folder changes")
    watch_parser.add_argument("root", type=Path, nargs="?", help="Course folder (default: $COURSE_ROOT)")
    watch_parser.add_argument("--interval", type=float, default=1.0,
                              help="Seconds between staleness checks (default: 1)")
    watch_parser.set_defaults(func=cmd_watch)

    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        return 0

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
