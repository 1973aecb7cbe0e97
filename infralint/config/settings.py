"""Pydantic-based configuration model, YAML loader and resolver for infralint."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Mapping, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from infralint.core.errors import ConfigError
from infralint.core.models import Diagnostic, FileType, Severity
from infralint.rules.registry import DEFAULT_REGISTRY, RuleRegistry

if TYPE_CHECKING:
    from infralint.rules.base_rule import BaseRule

__all__ = [
    "RuleSetting", "SectionConfig", "DockerfileConfig", "MakefileConfig", "EnvConfig",
    "CrontabConfig", "SystemdConfig", "InfraLintSettings", "ConfigWarning", "RunOverrides",
    "load_config_file", "resolve_settings", "load_settings", "CONFIG_WARNING_RULE_ID",
]

CONFIG_WARNING_RULE_ID = "config-warning"

_CONFIG_FILE_NAMES: list[str] = [
    ".infralint.yaml",
    ".infralint.yml",
    "infralint.yaml",
    "infralint.yml",
]

_RUN_KEYS = ("workers", "timeout", "max_file_size")
_DISABLE_WORDS = {"off", "disable", "disabled", "false", "no"}
_ENABLE_WORDS = {"on", "enable", "enabled", "true", "yes"}

DEFAULT_WEAK_VALUES: list[str] = [
    "admin", "123456", "12345678", "123456789", "qwerty", "password", "password1",
    "letmein", "changeme", "secret", "root", "toor", "test", "default", "welcome",
    "111111", "abc123", "pass", "guest",
]


class RuleSetting(BaseModel):
    """Enablement and severity override for one rule."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    enabled: bool = Field(default=True, description="Run this rule.")
    severity: Optional[Severity] = Field(
        default=None,
        description="Severity stamped on the rule's diagnostics; the rule default when unset.",
    )


class SectionConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    rules: dict[str, RuleSetting] = Field(
        default_factory=dict,
        description="Per-rule settings keyed by rule id.",
    )


class DockerfileConfig(SectionConfig):
    allow_latest_tag: bool = Field(
        default=False,
        description="Accept FROM images tagged 'latest' or without a tag.",
    )
    require_user: bool = Field(
        default=True,
        description="Require a USER instruction.",
    )
    require_healthcheck: bool = Field(
        default=True,
        description="Require a HEALTHCHECK instruction; turn off for non-service images.",
    )


class MakefileConfig(SectionConfig):
    require_phony: bool = Field(
        default=True,
        description="Suggest .PHONY for targets that do not create files.",
    )


class EnvConfig(SectionConfig):
    check_weak_passwords: bool = Field(
        default=True,
        description="Check password, secret and token values for weakness.",
    )
    allowed_weak_patterns: list[str] = Field(
        default_factory=list,
        description="Glob patterns for values exempt from the weak-value check.",
    )
    weak_values: list[str] = Field(
        default_factory=lambda: list(DEFAULT_WEAK_VALUES),
        description="Values always considered weak (case-insensitive).",
    )
    secret_key_markers: list[str] = Field(
        default_factory=lambda: ["password", "secret", "token"],
        description="Key substrings (case-insensitive) that mark a secret.",
    )
    min_secret_length: int = Field(
        default=8, ge=0,
        description="Secrets shorter than this are weak.",
    )
    min_secret_entropy: float = Field(
        default=2.5, ge=0,
        description="Secrets below this Shannon entropy (bits per character) are weak.",
    )


class CrontabConfig(SectionConfig):
    allow_every_minute: bool = Field(
        default=False,
        description="Accept jobs scheduled every minute.",
    )


class SystemdConfig(SectionConfig):
    require_restart: bool = Field(
        default=True,
        description="Require Restart= in [Service] sections.",
    )


class InfraLintSettings(BaseModel):
    """Fully resolved configuration for one run; read-only once built."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    workers: int = Field(
        default=4, ge=1,
        description="Number of files processed in parallel.",
    )
    timeout: Optional[float] = Field(
        default=30.0, gt=0,
        description="Run-wide timeout in seconds; null disables it.",
    )
    max_file_size: int = Field(
        default=1_048_576, ge=1,
        description="Inputs larger than this many bytes are rejected.",
    )
    dockerfile: DockerfileConfig = Field(default_factory=DockerfileConfig)
    makefile: MakefileConfig = Field(default_factory=MakefileConfig)
    env: EnvConfig = Field(default_factory=EnvConfig)
    crontab: CrontabConfig = Field(default_factory=CrontabConfig)
    systemd: SystemdConfig = Field(default_factory=SystemdConfig)

    def section(self, file_type: FileType) -> SectionConfig:
        return getattr(self, file_type.value)

    def rule_state(self, rule: BaseRule) -> tuple[bool, Severity]:
        """Return ``(enabled, severity)`` for *rule*, falling back to its defaults."""
        setting = self.section(rule.applies_to).rules.get(rule.rule_id)
        if setting is None:
            return True, rule.default_severity
        return setting.enabled, setting.severity or rule.default_severity


_SECTION_MODELS: dict[str, type[SectionConfig]] = {
    FileType.DOCKERFILE.value: DockerfileConfig,
    FileType.MAKEFILE.value: MakefileConfig,
    FileType.ENV.value: EnvConfig,
    FileType.CRONTAB.value: CrontabConfig,
    FileType.SYSTEMD_UNIT.value: SystemdConfig,
}


@dataclass(frozen=True)
class ConfigWarning:
    message: str
    source: str = "<config>"

    def to_diagnostic(self) -> Diagnostic:
        return Diagnostic(
            severity=Severity.WARNING, path=self.source, line=0, column=0,
            rule_id=CONFIG_WARNING_RULE_ID, message=self.message,
        )


@dataclass
class RunOverrides:
    """Per-run settings (e.g. command-line flags); they beat the config file."""

    severities: dict[str, str] = field(default_factory=dict)
    disabled_rules: set[str] = field(default_factory=set)
    enabled_rules: set[str] = field(default_factory=set)
    options: dict[str, dict[str, Any]] = field(default_factory=dict)
    workers: int | None = None
    timeout: float | None = None
    max_file_size: int | None = None


def _find_config_file(search_dir: Path) -> Path | None:
    """Walk up from *search_dir* looking for a config file."""
    current = search_dir.resolve()
    while True:
        for name in _CONFIG_FILE_NAMES:
            candidate = current / name
            if candidate.is_file():
                return candidate
        parent = current.parent
        if parent == current:
            break
        current = parent
    return None


def load_config_file(
    config_path: Path | None = None,
    search_dir: Path | None = None,
) -> tuple[dict[str, Any], Path | None]:
    """Read the raw YAML mapping, returning it with the file it came from."""
    if config_path is not None:
        found = Path(config_path).resolve()
        if not found.is_file():
            raise ConfigError(f"Config file not found: {config_path}")
    else:
        found = _find_config_file(search_dir or Path.cwd())
        if found is None:
            return {}, None

    try:
        raw = yaml.safe_load(found.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f"Cannot read config file {found}: {exc}") from exc
    if not isinstance(raw, dict):
        raise ConfigError(f"Config file {found} must contain a mapping at the top level")
    return raw, found


def _normalize_rule_setting(rule_id: str, value: Any, where: str, source: str, warnings: list[ConfigWarning]) -> dict[str, Any]:
    if isinstance(value, bool):
        return {"enabled": value}
    if isinstance(value, str):
        word = value.strip().lower()
        if word in _DISABLE_WORDS:
            return {"enabled": False}
        if word in _ENABLE_WORDS:
            return {"enabled": True}
        return {"severity": value.strip().upper()}
    if isinstance(value, Mapping):
        setting: dict[str, Any] = {}
        for key, item in value.items():
            if key == "severity" and isinstance(item, str):
                setting[key] = item.strip().upper()
            elif key in ("enabled", "severity"):
                setting[key] = item
            else:
                warnings.append(ConfigWarning(f"Unknown key '{key}' for rule '{rule_id}' in {where}", source))
        return setting
    raise ConfigError(f"Invalid setting for rule '{rule_id}' in {where}: {value!r}")


def _normalize_section(
    name: str, value: Any, registry: RuleRegistry, source: str, warnings: list[ConfigWarning],
) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ConfigError(f"Section '{name}' must be a mapping, got {type(value).__name__}")
    model = _SECTION_MODELS[name]
    known_ids = registry.rule_ids(FileType(name))
    where = f"section '{name}'"
    section: dict[str, Any] = {}
    rules: dict[str, Any] = {}

    for key, item in value.items():
        if key == "rules":
            if item is None:
                continue
            if not isinstance(item, Mapping):
                raise ConfigError(f"'rules' in {where} must be a mapping")
            for rule_id, setting in item.items():
                if rule_id not in known_ids:
                    warnings.append(ConfigWarning(f"Unknown rule id '{rule_id}' in {where}", source))
                    continue
                rules[rule_id] = _normalize_rule_setting(rule_id, setting, where, source, warnings)
        elif key in known_ids:
            rules[key] = _normalize_rule_setting(key, item, where, source, warnings)
        elif key in model.model_fields:
            section[key] = item
        else:
            warnings.append(ConfigWarning(f"Unknown option '{key}' in {where}", source))

    if rules:
        section["rules"] = rules
    return section


def _rule_entry(data: dict[str, Any], rule_id: str, registry: RuleRegistry, warnings: list[ConfigWarning]) -> dict[str, Any] | None:
    rule = registry.get(rule_id)
    if rule is None:
        warnings.append(ConfigWarning(f"Unknown rule id '{rule_id}' in command-line override", "<command line>"))
        return None
    section = data.setdefault(rule.applies_to.value, {})
    return section.setdefault("rules", {}).setdefault(rule_id, {})


def _apply_overrides(data: dict[str, Any], overrides: RunOverrides, registry: RuleRegistry, warnings: list[ConfigWarning]) -> None:
    for rule_id in sorted(overrides.disabled_rules):
        entry = _rule_entry(data, rule_id, registry, warnings)
        if entry is not None:
            entry["enabled"] = False
    for rule_id in sorted(overrides.enabled_rules):
        entry = _rule_entry(data, rule_id, registry, warnings)
        if entry is not None:
            entry["enabled"] = True
    for rule_id, severity in overrides.severities.items():
        entry = _rule_entry(data, rule_id, registry, warnings)
        if entry is not None:
            entry["severity"] = severity.strip().upper() if isinstance(severity, str) else severity

    for name, options in overrides.options.items():
        model = _SECTION_MODELS.get(name)
        if model is None:
            warnings.append(ConfigWarning(f"Unknown configuration section '{name}' in command-line override", "<command line>"))
            continue
        section = data.setdefault(name, {})
        for key, value in options.items():
            if key == "rules" or key not in model.model_fields:
                warnings.append(ConfigWarning(f"Unknown option '{key}' in section '{name}'", "<command line>"))
                continue
            section[key] = value

    for key in _RUN_KEYS:
        value = getattr(overrides, key)
        if value is not None:
            data[key] = value


def _check_builtin_defaults(registry: RuleRegistry) -> None:
    try:
        InfraLintSettings()
    except ValidationError as exc:
        raise ConfigError(f"Built-in defaults are invalid: {exc}") from exc
    for rule in registry:
        if rule.applies_to.value not in _SECTION_MODELS:
            raise ConfigError(f"Rule '{rule.rule_id}' applies to '{rule.applies_to.value}', which has no configuration section")


def resolve_settings(
    raw: Mapping[str, Any] | None = None,
    overrides: RunOverrides | None = None,
    registry: RuleRegistry | None = None,
    source: str = "<config>",
) -> tuple[InfraLintSettings, list[ConfigWarning]]:
    """Overlay *raw* config and *overrides* on the defaults.

    Precedence, highest first: overrides, then the config file, then
    built-in defaults. Unknown sections, rule ids and options produce
    warnings and are ignored; values of the wrong type raise ``ConfigError``.
    """
    registry = registry if registry is not None else DEFAULT_REGISTRY
    _check_builtin_defaults(registry)
    warnings: list[ConfigWarning] = []
    if raw is None:
        raw = {}
    if not isinstance(raw, Mapping):
        raise ConfigError("Configuration must be a mapping")

    data: dict[str, Any] = {}
    for key, value in raw.items():
        if key in _RUN_KEYS:
            data[key] = value
        elif key in _SECTION_MODELS:
            data[key] = _normalize_section(key, value, registry, source, warnings)
        else:
            warnings.append(ConfigWarning(f"Unknown configuration section '{key}'", source))

    if overrides is not None:
        _apply_overrides(data, overrides, registry, warnings)

    try:
        settings = InfraLintSettings.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration in {source}: {exc}") from exc
    return settings, warnings


def load_settings(
    config_path: Path | None = None,
    search_dir: Path | None = None,
    overrides: RunOverrides | None = None,
    registry: RuleRegistry | None = None,
) -> tuple[InfraLintSettings, list[ConfigWarning]]:
    """Load the YAML config file (if any) and resolve it against the defaults."""
    raw, found = load_config_file(config_path=config_path, search_dir=search_dir)
    return resolve_settings(raw, overrides=overrides, registry=registry, source=str(found) if found else "<config>")
