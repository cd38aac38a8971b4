"""
File kind classification.

A kind is a coarse category that decides which metadata probe runs.
"""

from pathlib import Path

VIDEO = "video"
PDF = "pdf"
IMAGE = "image"
OTHER = "other"

KIND_EXTENSIONS = {
    VIDEO: {".mp4", ".mkv", ".mov", ".webm"},
    PDF: {".pdf"},
    IMAGE: {".jpg", ".jpeg", ".png", ".gif", ".webp"},
}

# Kinds that get a metadata probe; everything else has no metadata
PROBED_KINDS = {VIDEO, PDF}


def classify(extension: str) -> str:
    """
    Map a file extension to its kind.

    Args:
        extension: Extension with or without the leading dot, any casing.

    Returns:
        One of "video", "pdf", "image", "other".
    """
    ext = extension.lower()
    if ext and not ext.startswith('.'):
        ext = f'.{ext}'
    for kind, extensions in KIND_EXTENSIONS.items():
        if ext in extensions:
            return kind
    return OTHER


def classify_path(path: Path | str) -> str:
    """Classify a file by the suffix of its name."""
    return classify(Path(path).suffix)
