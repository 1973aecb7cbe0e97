"""Rules for systemd units: restart policy, descriptions, executable paths."""
from __future__ import annotations
import re
from typing import TYPE_CHECKING
from infralint.core.models import FileType
from infralint.rules.base_rule import BaseRule, Diagnostic, RuleContext, Severity
if TYPE_CHECKING:
    from infralint.parsers.systemd_parser import SystemdModel

__all__ = ["MissingRestartRule", "MissingDescriptionRule", "RelativeExecRule"]

_EXEC_KEY_RE = re.compile(r"^Exec(?:Start|StartPre|StartPost|Reload|Stop|StopPost|Condition)$")
_EXEC_PREFIXES = "@-:+!"


class MissingRestartRule(BaseRule):
    rule_id = "systemd-missing-restart"
    applies_to = FileType.SYSTEMD_UNIT
    default_severity = Severity.WARNING
    description = "Long-running services should declare a Restart= policy."

    def evaluate(self, model: SystemdModel, ctx: RuleContext) -> list[Diagnostic]:
        if not ctx.options.require_restart:
            return []
        diagnostics: list[Diagnostic] = []
        for section in model.find("Service"):
            service_type = section.get("Type")
            if service_type is not None and service_type.value == "oneshot":
                continue
            if section.get("Restart") is None:
                diagnostics.append(ctx.report(section.line, "[Service] section has no Restart= directive"))
        return diagnostics


class MissingDescriptionRule(BaseRule):
    rule_id = "systemd-missing-description"
    applies_to = FileType.SYSTEMD_UNIT
    default_severity = Severity.INFO
    description = "Units should carry a Description= in their [Unit] section."

    def evaluate(self, model: SystemdModel, ctx: RuleContext) -> list[Diagnostic]:
        units = model.find("Unit")
        if any(section.get("Description") is not None for section in units):
            return []
        line = units[0].line if units else 1
        return [ctx.report(line, "Unit has no Description= in a [Unit] section")]


class RelativeExecRule(BaseRule):
    rule_id = "systemd-relative-exec"
    applies_to = FileType.SYSTEMD_UNIT
    default_severity = Severity.WARNING
    description = "Exec*= commands should use absolute executable paths."

    def evaluate(self, model: SystemdModel, ctx: RuleContext) -> list[Diagnostic]:
        diagnostics: list[Diagnostic] = []
        for section in model.sections:
            for directive in section.directives:
                if not _EXEC_KEY_RE.match(directive.key):
                    continue
                command = directive.value.lstrip(_EXEC_PREFIXES).split(None, 1)
                if command and not command[0].startswith("/"):
                    diagnostics.append(ctx.report(
                        directive.line, f"{directive.key}= uses a relative executable '{command[0]}'",
                    ))
        return diagnostics
