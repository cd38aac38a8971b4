"""
Best-effort metadata probes.

Each probe reads one file and returns a short human-readable descriptor, or
None. Probes never raise: a file that can't be inspected simply has no
metadata, and is probed again on the next scan.
"""

import json
import math
import subprocess
from pathlib import Path

import pymupdf

from .kinds import PDF, VIDEO


def get_video_duration(
    filepath: Path,
    ffprobe_bin: str = "ffprobe",
    timeout: float | None = None
) -> str | None:
    """
    Read a video's container duration with ffprobe.

    Returns:
        Duration floored to whole seconds, e.g. "300s", or None.
    """
    cmd = [
        ffprobe_bin,
        "-v", "error",
        "-show_entries", "format=duration",
        "-of", "json",
        str(filepath),
    ]
    try:
        proc = subprocess.run(
            cmd,
            check=False,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except (OSError, subprocess.TimeoutExpired):
        # Missing binary, exec failure or hung probe
        return None

    if proc.returncode != 0:
        return None

    try:
        data = json.loads(proc.stdout)
        duration = float(data["format"]["duration"])
    except (json.JSONDecodeError, KeyError, TypeError, ValueError):
        return None

    if not math.isfinite(duration) or duration < 0:
        return None
    return f"{math.floor(duration)}s"


def get_pdf_page_count(filepath: Path) -> str | None:
    """
    Count the pages of a PDF.

    The whole file is read into memory and parsed from there.

    Returns:
        e.g. "12 pages", or None for unreadable or corrupt files.
    """
    try:
        data = Path(filepath).read_bytes()
        with pymupdf.open(stream=data, filetype="pdf") as doc:
            pages = doc.page_count
    except Exception:
        # PyMuPDF raises several unrelated types for damaged documents
        return None
    # Repair of garbage input can yield an empty document
    if pages < 1:
        return None
    return f"{pages} pages"


def probe_file(
    kind: str,
    filepath: Path,
    ffprobe_bin: str = "ffprobe",
    timeout: float | None = None
) -> str | None:
    """
    Run the probe matching a file's kind.

    Args:
        kind: Kind returned by kinds.classify().
        filepath: Absolute path of the file.
        ffprobe_bin: ffprobe executable used for videos.
        timeout: Seconds before a video probe is abandoned (None waits forever).

    Returns:
        The metadata string, or None if the kind has no probe or probing failed.
    """
    if kind == VIDEO:
        return get_video_duration(filepath, ffprobe_bin, timeout)
    if kind == PDF:
        return get_pdf_page_count(filepath)
    return None
