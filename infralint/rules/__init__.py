"""Lint rules and the default registry."""

from infralint.rules.base_rule import BaseRule, RuleContext
from infralint.rules.registry import DEFAULT_REGISTRY, RuleRegistry

__all__ = ["BaseRule", "RuleContext", "RuleRegistry", "DEFAULT_REGISTRY"]
