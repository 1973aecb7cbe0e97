"""Rules for .env files: weak secrets, duplicate keys, malformed assignments."""
from __future__ import annotations
import math
import re
from collections import Counter
from fnmatch import fnmatchcase
from typing import TYPE_CHECKING
from infralint.core.models import FileType
from infralint.rules.base_rule import BaseRule, Diagnostic, RuleContext, Severity
if TYPE_CHECKING:
    from infralint.parsers.env_parser import EnvModel

__all__ = ["WeakValueRule", "DuplicateKeyRule", "MalformedSpacingRule", "shannon_entropy", "weakness"]

_VAR_REF_RE = re.compile(r"^\$\{?[A-Za-z_][A-Za-z0-9_]*\}?$")


def shannon_entropy(value: str) -> float:
    """Shannon entropy of *value* in bits per character."""
    if not value:
        return 0.0
    total = len(value)
    return -sum((n / total) * math.log2(n / total) for n in Counter(value).values())


def weakness(value: str, denylist: set[str], min_length: int, min_entropy: float) -> str | None:
    """Return why *value* is weak, or ``None`` if it passes every check."""
    if not value:
        return "value is empty"
    if value.lower() in denylist:
        return "value is a commonly used password"
    if len(value) < min_length:
        return f"value is shorter than {min_length} characters"
    entropy = shannon_entropy(value)
    if entropy < min_entropy:
        return f"value entropy {entropy:.2f} bits/char is below {min_entropy}"
    return None


class WeakValueRule(BaseRule):
    rule_id = "env-weak-value"
    applies_to = FileType.ENV
    default_severity = Severity.ERROR
    description = "Password, secret and token values must not be trivially guessable."

    def evaluate(self, model: EnvModel, ctx: RuleContext) -> list[Diagnostic]:
        opts = ctx.options
        if not opts.check_weak_passwords:
            return []
        markers = [m.lower() for m in opts.secret_key_markers]
        denylist = {w.lower() for w in opts.weak_values}
        diagnostics: list[Diagnostic] = []
        for assignment in model.assignments:
            if not any(marker in assignment.key.lower() for marker in markers):
                continue
            value = assignment.value
            if _VAR_REF_RE.match(value):
                continue
            if any(fnmatchcase(value, pattern) for pattern in opts.allowed_weak_patterns):
                continue
            reason = weakness(value, denylist, opts.min_secret_length, opts.min_secret_entropy)
            if reason is not None:
                diagnostics.append(ctx.report(assignment.line, f"Weak value for '{assignment.key}': {reason}"))
        return diagnostics


class DuplicateKeyRule(BaseRule):
    rule_id = "env-duplicate-key"
    applies_to = FileType.ENV
    default_severity = Severity.ERROR
    description = "A key should be assigned only once."

    def evaluate(self, model: EnvModel, ctx: RuleContext) -> list[Diagnostic]:
        diagnostics: list[Diagnostic] = []
        first_seen: dict[str, int] = {}
        for assignment in model.assignments:
            if assignment.key in first_seen:
                diagnostics.append(ctx.report(
                    assignment.line, f"Key '{assignment.key}' is already defined on line {first_seen[assignment.key]}",
                ))
            else:
                first_seen[assignment.key] = assignment.line
        return diagnostics


class MalformedSpacingRule(BaseRule):
    rule_id = "env-malformed-spacing"
    applies_to = FileType.ENV
    default_severity = Severity.WARNING
    description = "Assignments must not have whitespace around '='."

    def evaluate(self, model: EnvModel, ctx: RuleContext) -> list[Diagnostic]:
        return [
            ctx.report(a.line, f"Whitespace around '=' in assignment to '{a.key}'", a.equals_column)
            for a in model.assignments
            if a.has_spacing
        ]
