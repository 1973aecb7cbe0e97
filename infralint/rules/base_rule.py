"""Base rule interface and evaluation context for the infralint rule engine."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from infralint.core.models import Diagnostic, FileType, Severity

if TYPE_CHECKING:
    from infralint.parsers.base import ParsedModel

__all__ = ["Severity", "Diagnostic", "RuleContext", "BaseRule"]


@dataclass(frozen=True)
class RuleContext:
    """What a rule may read besides the model: its resolved severity and options."""

    rule_id: str
    path: str
    severity: Severity
    options: Any = None

    def report(self, line: int, message: str, column: int = 0) -> Diagnostic:
        return Diagnostic(
            severity=self.severity, path=self.path, line=line, column=column,
            rule_id=self.rule_id, message=message,
        )


class BaseRule(ABC):
    """Stateless rule; ``evaluate`` must be a pure function of its inputs."""

    rule_id: str = "base"
    applies_to: FileType = FileType.UNKNOWN
    default_severity: Severity = Severity.WARNING
    description: str = ""

    @abstractmethod
    def evaluate(self, model: ParsedModel, ctx: RuleContext) -> list[Diagnostic]:
        """Inspect a parsed model and return any diagnostics found."""
