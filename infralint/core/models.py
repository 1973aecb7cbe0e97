"""Value types shared by parsers, rules, the engine and reporters."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any

__all__ = ["FileType", "Severity", "Diagnostic", "PARSE_ERROR_RULE_ID"]

PARSE_ERROR_RULE_ID = "parse-error"


class FileType(str, Enum):
    DOCKERFILE = "dockerfile"
    MAKEFILE = "makefile"
    ENV = "env"
    CRONTAB = "crontab"
    SYSTEMD_UNIT = "systemd"
    UNKNOWN = "unknown"


class Severity(str, Enum):
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"

    @property
    def rank(self) -> int:
        """Ordering used for exit-code decisions and summaries."""
        return {Severity.INFO: 0, Severity.WARNING: 1, Severity.ERROR: 2}[self]


@dataclass(frozen=True)
class Diagnostic:
    severity: Severity
    path: str
    line: int
    column: int
    rule_id: str
    message: str

    def sort_key(self) -> tuple[str, int, int, str]:
        return (self.path, self.line, self.column, self.rule_id)

    def format(self) -> str:
        return f"[{self.severity.value}] {self.path}:{self.line}:{self.column}: {self.message}"

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["severity"] = self.severity.value
        return data
