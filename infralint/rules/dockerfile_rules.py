"""Rules for Dockerfiles: image pinning, non-root user, health checks."""
from __future__ import annotations
from typing import TYPE_CHECKING
from infralint.core.models import FileType
from infralint.rules.base_rule import BaseRule, Diagnostic, RuleContext, Severity
if TYPE_CHECKING:
    from infralint.parsers.dockerfile_parser import DockerfileModel

__all__ = ["LatestTagRule", "MissingUserRule", "MissingHealthcheckRule", "RootUserRule", "split_from", "image_tag"]


def split_from(arguments: str) -> tuple[str, str | None]:
    """Split ``FROM [--flag=...] image [AS name]`` into image reference and stage alias."""
    tokens = [t for t in arguments.split() if not t.startswith("--")]
    image = tokens[0] if tokens else ""
    alias = tokens[2] if len(tokens) >= 3 and tokens[1].upper() == "AS" else None
    return image, alias


def image_tag(image: str) -> str | None:
    name = image.rsplit("/", 1)[-1]
    if ":" in name:
        return name.split(":", 1)[1]
    return None


def _anchor_line(model: DockerfileModel) -> int:
    stages = model.find("FROM")
    return stages[-1].line if stages else 1


class LatestTagRule(BaseRule):
    rule_id = "dockerfile-latest-tag"
    applies_to = FileType.DOCKERFILE
    default_severity = Severity.WARNING
    description = "Base images must be pinned to a version instead of 'latest' or no tag."

    def evaluate(self, model: DockerfileModel, ctx: RuleContext) -> list[Diagnostic]:
        if ctx.options.allow_latest_tag:
            return []
        diagnostics: list[Diagnostic] = []
        aliases: set[str] = set()
        for inst in model.find("FROM"):
            image, alias = split_from(inst.arguments)
            pinned_elsewhere = (
                not image or "$" in image or "@" in image
                or image.lower() == "scratch" or image.lower() in aliases
            )
            if not pinned_elsewhere:
                tag = image_tag(image)
                if tag is None:
                    diagnostics.append(ctx.report(inst.line, f"Image '{image}' has no tag and implicitly uses 'latest'; pin a specific version"))
                elif tag == "latest":
                    diagnostics.append(ctx.report(inst.line, f"Image '{image}' uses the 'latest' tag; pin a specific version"))
            if alias:
                aliases.add(alias.lower())
        return diagnostics


class MissingUserRule(BaseRule):
    rule_id = "dockerfile-missing-user"
    applies_to = FileType.DOCKERFILE
    default_severity = Severity.WARNING
    description = "Containers should switch to a non-root USER."

    def evaluate(self, model: DockerfileModel, ctx: RuleContext) -> list[Diagnostic]:
        if not ctx.options.require_user or model.has("USER"):
            return []
        return [ctx.report(_anchor_line(model), "No USER instruction found; the container will run as root")]


class MissingHealthcheckRule(BaseRule):
    rule_id = "dockerfile-missing-healthcheck"
    applies_to = FileType.DOCKERFILE
    default_severity = Severity.INFO
    description = "Service images should declare a HEALTHCHECK."

    def evaluate(self, model: DockerfileModel, ctx: RuleContext) -> list[Diagnostic]:
        if not ctx.options.require_healthcheck or model.has("HEALTHCHECK"):
            return []
        return [ctx.report(_anchor_line(model), "No HEALTHCHECK instruction found")]


class RootUserRule(BaseRule):
    rule_id = "dockerfile-root-user"
    applies_to = FileType.DOCKERFILE
    default_severity = Severity.WARNING
    description = "The last USER instruction should not switch back to root."

    def evaluate(self, model: DockerfileModel, ctx: RuleContext) -> list[Diagnostic]:
        users = model.find("USER")
        if not users:
            return []
        last = users[-1]
        name = last.arguments.split(":", 1)[0].strip()
        if name in ("root", "0"):
            return [ctx.report(last.line, f"Final USER is '{name}'; switch to an unprivileged user", last.column)]
        return []
