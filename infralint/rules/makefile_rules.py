"""Rules for Makefiles: .PHONY hygiene, duplicate targets, unsafe recipes."""
from __future__ import annotations
import re
from typing import TYPE_CHECKING
from infralint.core.models import FileType
from infralint.rules.base_rule import BaseRule, Diagnostic, RuleContext, Severity
if TYPE_CHECKING:
    from infralint.parsers.makefile_parser import MakefileModel, Target

__all__ = ["MissingPhonyRule", "DuplicateTargetRule", "UnquotedVariableRule"]

_RM_RE = re.compile(r"(?:^|[\s;&|@(-])rm\s")
_FILE_LIKE_RE = re.compile(r"[./%$]")


def _recipe_creates(name: str, targets: list[Target]) -> bool:
    """Heuristic: does any recipe plausibly write a file called *name*?"""
    quoted = re.escape(name)
    output = re.compile(
        rf"(?:-o\s*|>>?\s*|\btouch\s+(?:\S+\s+)*?|\bmkdir\s+(?:-\S+\s+)*|\b(?:cp|mv|ln)\s.*\s)"
        rf"['\"]?(?:\./)?{quoted}['\"]?(?=$|[\s;&|])"
    )
    for target in targets:
        for step in target.recipe:
            if "$@" in step.text or "$(@" in step.text or output.search(step.text):
                return True
    return False


class MissingPhonyRule(BaseRule):
    rule_id = "makefile-missing-phony"
    applies_to = FileType.MAKEFILE
    default_severity = Severity.INFO
    description = "Targets that do not produce a file should be declared .PHONY."

    def evaluate(self, model: MakefileModel, ctx: RuleContext) -> list[Diagnostic]:
        if not ctx.options.require_phony:
            return []
        by_name: dict[str, list[Target]] = {}
        for target in model.targets:
            by_name.setdefault(target.name, []).append(target)

        diagnostics: list[Diagnostic] = []
        for name, occurrences in by_name.items():
            if name in model.phony or _FILE_LIKE_RE.search(name):
                continue
            if _recipe_creates(name, occurrences):
                continue
            diagnostics.append(ctx.report(
                occurrences[0].line, f"Target '{name}' does not create a file; declare it in .PHONY",
            ))
        return diagnostics


class DuplicateTargetRule(BaseRule):
    rule_id = "makefile-duplicate-target"
    applies_to = FileType.MAKEFILE
    default_severity = Severity.ERROR
    description = "A target name should be defined only once."

    def evaluate(self, model: MakefileModel, ctx: RuleContext) -> list[Diagnostic]:
        diagnostics: list[Diagnostic] = []
        first_seen: dict[str, int] = {}
        for target in model.targets:
            if target.double_colon:
                continue
            if target.name in first_seen:
                diagnostics.append(ctx.report(
                    target.line, f"Target '{target.name}' is already defined on line {first_seen[target.name]}",
                ))
            else:
                first_seen[target.name] = target.line
        return diagnostics


class UnquotedVariableRule(BaseRule):
    rule_id = "makefile-unquoted-variable"
    applies_to = FileType.MAKEFILE
    default_severity = Severity.WARNING
    description = "Variables passed to rm in a recipe should be quoted."

    def evaluate(self, model: MakefileModel, ctx: RuleContext) -> list[Diagnostic]:
        rm_lines = {
            step.line for target in model.targets for step in target.recipe if _RM_RE.search(step.text)
        }
        return [
            ctx.report(ref.line, f"Variable '$({ref.name})' is unquoted in an rm command", ref.column)
            for ref in model.variable_refs
            if not ref.quoted and ref.line in rm_lines
        ]
