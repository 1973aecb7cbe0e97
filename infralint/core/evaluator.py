"""Rule evaluation for a single parsed model."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from infralint.core.models import Diagnostic, Severity
from infralint.rules.base_rule import RuleContext
from infralint.rules.registry import DEFAULT_REGISTRY, RuleRegistry

if TYPE_CHECKING:
    from infralint.config.settings import InfraLintSettings
    from infralint.parsers.base import ParsedModel

logger = logging.getLogger(__name__)

__all__ = ["evaluate_model", "RULE_ERROR_RULE_ID"]

RULE_ERROR_RULE_ID = "rule-error"


def evaluate_model(
    model: ParsedModel,
    settings: InfraLintSettings,
    registry: RuleRegistry | None = None,
) -> list[Diagnostic]:
    """Return the parser's errors followed by every enabled rule's output.

    Rules run in registration order. A rule that raises contributes a single
    ``rule-error`` diagnostic and the remaining rules still run.
    """
    registry = registry if registry is not None else DEFAULT_REGISTRY
    diagnostics: list[Diagnostic] = list(model.errors)
    options = settings.section(model.file_type)

    for rule in registry.for_type(model.file_type):
        enabled, severity = settings.rule_state(rule)
        if not enabled:
            continue
        ctx = RuleContext(rule_id=rule.rule_id, path=model.path, severity=severity, options=options)
        try:
            diagnostics.extend(rule.evaluate(model, ctx))
        except Exception as exc:
            logger.warning("Rule %s failed on %s", rule.rule_id, model.path, exc_info=True)
            diagnostics.append(Diagnostic(
                severity=Severity.ERROR, path=model.path, line=0, column=0,
                rule_id=RULE_ERROR_RULE_ID, message=f"Rule '{rule.rule_id}' failed: {exc}",
            ))
    return diagnostics
