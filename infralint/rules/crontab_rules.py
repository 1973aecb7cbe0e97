"""Rules for crontab files: schedule field validity and overly frequent jobs."""
from __future__ import annotations
from typing import TYPE_CHECKING
from infralint.core.models import FileType
from infralint.rules.base_rule import BaseRule, Diagnostic, RuleContext, Severity
if TYPE_CHECKING:
    from infralint.parsers.crontab_parser import CrontabModel

__all__ = ["InvalidFieldRule", "EveryMinuteRule", "field_problem"]

_MONTHS = {name: i + 1 for i, name in enumerate(
    ("jan", "feb", "mar", "apr", "may", "jun", "jul", "aug", "sep", "oct", "nov", "dec"))}
_DAYS = {name: i for i, name in enumerate(("sun", "mon", "tue", "wed", "thu", "fri", "sat"))}

_FIELDS: tuple[tuple[str, int, int, dict[str, int] | None], ...] = (
    ("minute", 0, 59, None),
    ("hour", 0, 23, None),
    ("day-of-month", 1, 31, None),
    ("month", 1, 12, _MONTHS),
    ("day-of-week", 0, 7, _DAYS),
)


def _to_number(token: str, names: dict[str, int] | None) -> int | None:
    if token.isdigit():
        return int(token)
    if names is not None:
        return names.get(token.lower())
    return None


def field_problem(value: str, low: int, high: int, names: dict[str, int] | None = None) -> str | None:
    """Describe what is wrong with one schedule field, or ``None`` if it is valid."""
    for item in value.split(","):
        if not item:
            return "empty list item"
        base, slash, step = item.partition("/")
        if slash and (not step.isdigit() or int(step) < 1):
            return f"invalid step '{step}'"
        if base == "*":
            continue
        start, dash, end = base.partition("-")
        numbers: list[int] = []
        for token in ((start, end) if dash else (start,)):
            number = _to_number(token, names)
            if number is None:
                return f"invalid value '{token}'"
            if not low <= number <= high:
                return f"value {number} is outside {low}-{high}"
            numbers.append(number)
        if dash and numbers[0] > numbers[1]:
            return f"range '{base}' is reversed"
    return None


class InvalidFieldRule(BaseRule):
    rule_id = "crontab-invalid-field"
    applies_to = FileType.CRONTAB
    default_severity = Severity.ERROR
    description = "Schedule fields must be within their allowed ranges."

    def evaluate(self, model: CrontabModel, ctx: RuleContext) -> list[Diagnostic]:
        diagnostics: list[Diagnostic] = []
        for entry in model.entries:
            if entry.macro is not None:
                continue
            for value, (label, low, high, names) in zip(entry.schedule, _FIELDS):
                problem = field_problem(value, low, high, names)
                if problem is not None:
                    diagnostics.append(ctx.report(entry.line, f"Invalid {label} field '{value}': {problem}"))
        return diagnostics


class EveryMinuteRule(BaseRule):
    rule_id = "crontab-every-minute"
    applies_to = FileType.CRONTAB
    default_severity = Severity.WARNING
    description = "Jobs scheduled every minute are usually a mistake."

    def evaluate(self, model: CrontabModel, ctx: RuleContext) -> list[Diagnostic]:
        if ctx.options.allow_every_minute:
            return []
        return [
            ctx.report(entry.line, f"Job runs every minute: {entry.command}")
            for entry in model.entries
            if entry.macro is None and entry.minute in ("*", "*/1")
        ]
