"""File type detection from names, extensions and, as a last resort, content."""

from __future__ import annotations

import re
from fnmatch import fnmatchcase
from pathlib import Path

from infralint.core.models import FileType
from infralint.parsers.crontab_parser import MACROS, is_schedule_field

__all__ = ["detect_file_type", "detect_from_name", "looks_like_crontab"]

_EXACT_NAMES: dict[str, FileType] = {
    "Dockerfile": FileType.DOCKERFILE,
    "Containerfile": FileType.DOCKERFILE,
    "Makefile": FileType.MAKEFILE,
    "makefile": FileType.MAKEFILE,
    "GNUmakefile": FileType.MAKEFILE,
    ".env": FileType.ENV,
    "crontab": FileType.CRONTAB,
}

# Checked in order; the first match wins.
_NAME_PATTERNS: list[tuple[str, FileType]] = [
    ("Dockerfile.*", FileType.DOCKERFILE),
    ("*.Dockerfile", FileType.DOCKERFILE),
    ("*.dockerfile", FileType.DOCKERFILE),
    ("*.Makefile", FileType.MAKEFILE),
    ("*.mk", FileType.MAKEFILE),
    (".env.*", FileType.ENV),
    ("*.env", FileType.ENV),
    ("*.service", FileType.SYSTEMD_UNIT),
    ("*.timer", FileType.SYSTEMD_UNIT),
    ("*.socket", FileType.SYSTEMD_UNIT),
    ("*.cron", FileType.CRONTAB),
]

_CRON_ENV_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*\s*=")


def detect_from_name(path: str | Path) -> FileType:
    name = Path(path).name
    if name in _EXACT_NAMES:
        return _EXACT_NAMES[name]
    for pattern, file_type in _NAME_PATTERNS:
        if fnmatchcase(name, pattern):
            return file_type
    return FileType.UNKNOWN


def looks_like_crontab(content: str) -> bool:
    """True when the first meaningful line is a cron schedule."""
    for raw in content.splitlines():
        line = raw.strip()
        if not line or line.startswith("#") or _CRON_ENV_RE.match(line):
            continue
        tokens = line.split()
        if tokens[0].startswith("@"):
            return tokens[0].lower() in MACROS and len(tokens) > 1
        return len(tokens) > 5 and all(is_schedule_field(t) for t in tokens[:5])
    return False


def detect_file_type(path: str | Path, content: str | None = None) -> FileType:
    """Classify *path*; *content* is only consulted when the name is inconclusive."""
    file_type = detect_from_name(path)
    if file_type is FileType.UNKNOWN and content is not None and looks_like_crontab(content):
        return FileType.CRONTAB
    return file_type
