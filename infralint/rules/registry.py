"""Read-only rule registry, partitioned by file type in registration order."""

from __future__ import annotations

from types import MappingProxyType
from typing import Iterable, Iterator, Mapping

from infralint.core.errors import RegistryError
from infralint.core.models import FileType, Severity
from infralint.rules.base_rule import BaseRule
from infralint.rules.crontab_rules import EveryMinuteRule, InvalidFieldRule
from infralint.rules.dockerfile_rules import LatestTagRule, MissingHealthcheckRule, MissingUserRule, RootUserRule
from infralint.rules.env_rules import DuplicateKeyRule, MalformedSpacingRule, WeakValueRule
from infralint.rules.makefile_rules import DuplicateTargetRule, MissingPhonyRule, UnquotedVariableRule
from infralint.rules.systemd_rules import MissingDescriptionRule, MissingRestartRule, RelativeExecRule

__all__ = ["RuleRegistry", "DEFAULT_RULES", "DEFAULT_REGISTRY"]


class RuleRegistry:
    """Frozen table of rules; extend by building a new registry."""

    def __init__(self, rules: Iterable[BaseRule]) -> None:
        ordered = tuple(rules)
        seen: set[str] = set()
        for rule in ordered:
            if rule.rule_id in seen:
                raise RegistryError(f"Duplicate rule id '{rule.rule_id}'")
            if rule.applies_to is FileType.UNKNOWN:
                raise RegistryError(f"Rule '{rule.rule_id}' does not apply to any file type")
            if not isinstance(rule.default_severity, Severity):
                raise RegistryError(f"Rule '{rule.rule_id}' has invalid default severity {rule.default_severity!r}")
            seen.add(rule.rule_id)

        self._rules = ordered
        self._by_id: Mapping[str, BaseRule] = MappingProxyType({r.rule_id: r for r in ordered})
        self._by_type: Mapping[FileType, tuple[BaseRule, ...]] = MappingProxyType({
            file_type: tuple(r for r in ordered if r.applies_to is file_type)
            for file_type in FileType
        })

    def __iter__(self) -> Iterator[BaseRule]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def __contains__(self, rule_id: object) -> bool:
        return rule_id in self._by_id

    def get(self, rule_id: str) -> BaseRule | None:
        return self._by_id.get(rule_id)

    def for_type(self, file_type: FileType) -> tuple[BaseRule, ...]:
        return self._by_type.get(file_type, ())

    def rule_ids(self, file_type: FileType) -> frozenset[str]:
        return frozenset(r.rule_id for r in self.for_type(file_type))


DEFAULT_RULES: tuple[BaseRule, ...] = (
    LatestTagRule(),
    MissingUserRule(),
    MissingHealthcheckRule(),
    RootUserRule(),
    MissingPhonyRule(),
    DuplicateTargetRule(),
    UnquotedVariableRule(),
    WeakValueRule(),
    DuplicateKeyRule(),
    MalformedSpacingRule(),
    InvalidFieldRule(),
    EveryMinuteRule(),
    MissingRestartRule(),
    MissingDescriptionRule(),
    RelativeExecRule(),
)

DEFAULT_REGISTRY = RuleRegistry(DEFAULT_RULES)
