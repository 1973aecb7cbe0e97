"""Source loading and input path discovery."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable

from infralint.core.detector import detect_from_name
from infralint.core.errors import LoadError
from infralint.core.models import FileType
from infralint.parsers.base import SourceFile

logger = logging.getLogger(__name__)

__all__ = ["load_source", "discover_paths"]


def load_source(path: str | Path, max_bytes: int, file_type: FileType = FileType.UNKNOWN) -> SourceFile:
    """Read *path* into a ``SourceFile``; any problem raises ``LoadError``."""
    display = str(path)
    target = Path(path)
    if not target.exists():
        raise LoadError(display, "file not found")
    if target.is_dir():
        raise LoadError(display, "is a directory")
    try:
        size = target.stat().st_size
        if size > max_bytes:
            raise LoadError(display, f"file is too large ({size} bytes, limit {max_bytes})")
        data = target.read_bytes()
    except OSError as exc:
        raise LoadError(display, f"cannot read file: {exc.strerror or exc}") from exc
    if len(data) > max_bytes:
        raise LoadError(display, f"file is too large ({len(data)} bytes, limit {max_bytes})")

    text = data.decode("utf-8-sig", errors="replace")
    return SourceFile.from_text(display, text, file_type)


def discover_paths(paths: Iterable[str | Path]) -> list[Path]:
    """Expand directories into the recognisable files beneath them.

    Explicit file paths are kept as given, even when missing, so that the
    loader reports them. Directory walks are sorted, skip hidden
    directories and keep only files whose name identifies their type.
    """
    seen: set[str] = set()
    found: list[Path] = []

    def add(candidate: Path) -> None:
        key = os.path.normpath(str(candidate))
        if key not in seen:
            seen.add(key)
            found.append(candidate)

    for raw in paths:
        root = Path(raw)
        if not root.is_dir():
            add(root)
            continue
        for dirpath, dirnames, filenames in os.walk(root):
            dirnames[:] = sorted(d for d in dirnames if not d.startswith("."))
            for name in sorted(filenames):
                if detect_from_name(name) is not FileType.UNKNOWN:
                    add(Path(dirpath) / name)
                else:
                    logger.debug("Skipping unrecognised file %s", Path(dirpath) / name)
    return found
