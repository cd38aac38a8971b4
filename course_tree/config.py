"""
Runtime configuration for the course tree viewer.

Values come from the environment; a .env file in the working directory is
loaded first so local setups don't need exported variables.
"""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from .utils import print_warning

DEFAULT_FFPROBE_BIN = "ffprobe"
DEFAULT_PROBE_WORKERS = 8


@dataclass
class Settings:
    """
    Settings shared by the scanner, probes and CLI.

    probe_timeout is None by default: a hung ffprobe then blocks that file's
    part of the scan until it returns.
    """
    root: Path | None = None
    ffprobe_bin: str = DEFAULT_FFPROBE_BIN
    probe_workers: int = DEFAULT_PROBE_WORKERS
    probe_timeout: float | None = None


def _env_int(name: str, default: int, minimum: int = 1) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        print_warning(f"{name}={raw!r} is not an integer, using {default}")
        return default
    if value < minimum:
        print_warning(f"{name}={value} is below {minimum}, using {minimum}")
        return minimum
    return value


def _env_float(name: str) -> float | None:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return None
    try:
        value = float(raw)
    except ValueError:
        print_warning(f"{name}={raw!r} is not a number, ignoring it")
        return None
    if value <= 0:
        print_warning(f"{name} must be positive, ignoring it")
        return None
    return value


def load_settings(dotenv: bool = True) -> Settings:
    """
    Build Settings from the environment.

    Args:
        dotenv: Load a .env file before reading the environment.

    Returns:
        A populated Settings instance.
    """
    if dotenv:
        load_dotenv()

    root = os.environ.get("COURSE_ROOT", "").strip()
    return Settings(
        root=Path(root).expanduser() if root else None,
        ffprobe_bin=os.environ.get("FFPROBE_BIN", "").strip() or DEFAULT_FFPROBE_BIN,
        probe_workers=_env_int("COURSE_PROBE_WORKERS", DEFAULT_PROBE_WORKERS),
        probe_timeout=_env_float("COURSE_PROBE_TIMEOUT"),
    )
