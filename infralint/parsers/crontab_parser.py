"""Crontab parser – five schedule fields, optional user column, command."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import ClassVar

from infralint.core.models import FileType
from infralint.parsers.base import BaseParser, ParsedModel, SourceFile

__all__ = ["CronEntry", "CrontabModel", "CrontabParser", "MACROS", "is_schedule_field"]

MACROS: dict[str, tuple[str, str, str, str, str] | None] = {
    "@yearly": ("0", "0", "1", "1", "*"),
    "@annually": ("0", "0", "1", "1", "*"),
    "@monthly": ("0", "0", "1", "*", "*"),
    "@weekly": ("0", "0", "*", "*", "0"),
    "@daily": ("0", "0", "*", "*", "*"),
    "@midnight": ("0", "0", "*", "*", "*"),
    "@hourly": ("0", "*", "*", "*", "*"),
    "@reboot": None,
}

_NAMES = "jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec|sun|mon|tue|wed|thu|fri|sat"
_FIELD_RE = re.compile(
    rf"^(?:[0-9*][0-9*,/\-]*|(?:{_NAMES})(?:-(?:{_NAMES}))?(?:,(?:{_NAMES})(?:-(?:{_NAMES}))?)*)$",
    re.IGNORECASE,
)
_ENV_LINE_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*\s*=")
_KNOWN_USER_RE = re.compile(
    r"^(?:root|nobody|daemon|bin|sys|www-data|nginx|apache|httpd|postgres|mysql|redis"
    r"|mail|backup|operator|ubuntu|ec2-user|admin)$"
)


def is_schedule_field(token: str) -> bool:
    return _FIELD_RE.match(token) is not None


@dataclass(frozen=True)
class CronEntry:
    minute: str
    hour: str
    day_of_month: str
    month: str
    day_of_week: str
    command: str
    line: int
    run_as_user: str | None = None
    macro: str | None = None

    @property
    def schedule(self) -> tuple[str, str, str, str, str]:
        return (self.minute, self.hour, self.day_of_month, self.month, self.day_of_week)


@dataclass(frozen=True)
class CrontabModel(ParsedModel):
    file_type: ClassVar[FileType] = FileType.CRONTAB

    entries: list[CronEntry] = field(default_factory=list)


class CrontabParser(BaseParser):
    file_type = FileType.CRONTAB

    def parse(self, source: SourceFile) -> CrontabModel:
        entries: list[CronEntry] = []
        errors = []
        for index, raw in enumerate(source.lines):
            lineno = index + 1
            stripped = raw.strip()
            if not stripped or stripped.startswith("#") or _ENV_LINE_RE.match(stripped):
                continue

            if stripped.startswith("@"):
                head = stripped.split(None, 1)
                macro = head[0].lower()
                remainder = head[1] if len(head) > 1 else ""
                if macro not in MACROS:
                    errors.append(self.parse_error(source, lineno, f"Unknown schedule macro '{macro}'", 1))
                    continue
                fields = MACROS[macro] or ("", "", "", "", "")
            else:
                tokens = stripped.split()
                count = 0
                while count < len(tokens) and is_schedule_field(tokens[count]):
                    count += 1
                if count != 5:
                    errors.append(self.parse_error(
                        source, lineno, f"Expected 5 schedule fields, found {count}", 1,
                    ))
                    continue
                parts = stripped.split(None, 5)
                fields = tuple(parts[:5])
                remainder = parts[5] if len(parts) > 5 else ""
                macro = None

            user, command = _split_user(remainder.strip())
            if not command:
                errors.append(self.parse_error(source, lineno, "Cron entry has no command", 1))
                continue
            entries.append(CronEntry(
                minute=fields[0], hour=fields[1], day_of_month=fields[2],
                month=fields[3], day_of_week=fields[4],
                command=command, line=lineno, run_as_user=user, macro=macro,
            ))
        return CrontabModel(path=source.path, errors=errors, entries=entries)


def _split_user(remainder: str) -> tuple[str | None, str]:
    parts = remainder.split(None, 1)
    if len(parts) == 2 and _KNOWN_USER_RE.match(parts[0]):
        return parts[0], parts[1].strip()
    return None, remainder
