"""infralint CLI – Typer multi-command application."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, List, Optional

import typer
import yaml
from rich.panel import Panel
from rich.text import Text

from infralint.config.settings import InfraLintSettings, RunOverrides, load_settings
from infralint.core.aggregator import EXIT_FATAL, LintResult
from infralint.core.detector import detect_file_type
from infralint.core.engine import InfraLintEngine
from infralint.core.errors import FatalRunError, LoadError
from infralint.core.loader import discover_paths, load_source
from infralint.core.models import FileType, Severity
from infralint.rules.registry import DEFAULT_REGISTRY
from infralint.utils.logger import (
    configure_logging, console, create_panel, create_table, format_diagnostic,
    print_error, print_success, print_warning,
)

__all__ = ["app"]

app = typer.Typer(
    name="infralint",
    help="Static checks for Dockerfiles, Makefiles, .env files, crontabs and systemd units.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

_FORMATS = ("text", "json")


def _check_format(output_format: str) -> str:
    value = output_format.lower()
    if value not in _FORMATS:
        raise typer.BadParameter(f"expected one of: {', '.join(_FORMATS)}", param_hint="--format")
    return value


def _split_pair(item: str, flag: str) -> tuple[str, str]:
    key, sep, value = item.partition("=")
    if not sep or not key.strip() or not value.strip():
        raise typer.BadParameter(f"expected KEY=VALUE, got '{item}'", param_hint=flag)
    return key.strip(), value.strip()


def _parse_option_overrides(items: List[str]) -> dict[str, dict[str, Any]]:
    """Turn ``SECTION.KEY=VALUE`` items into nested option overrides (values are YAML)."""
    options: dict[str, dict[str, Any]] = {}
    for item in items:
        target, raw_value = _split_pair(item, "--set")
        section, dot, key = target.partition(".")
        if not dot or not section or not key:
            raise typer.BadParameter(f"expected SECTION.KEY=VALUE, got '{item}'", param_hint="--set")
        try:
            value = yaml.safe_load(raw_value)
        except yaml.YAMLError as exc:
            raise typer.BadParameter(f"cannot parse value '{raw_value}': {exc}", param_hint="--set") from exc
        options.setdefault(section, {})[key] = value
    return options


def _build_overrides(
    severity: List[str],
    disable: List[str],
    enable: List[str],
    set_options: List[str],
    workers: int | None,
    timeout: float | None,
    max_file_size: int | None,
) -> RunOverrides:
    return RunOverrides(
        severities=dict(_split_pair(item, "--severity") for item in severity),
        disabled_rules=set(disable),
        enabled_rules=set(enable),
        options=_parse_option_overrides(set_options),
        workers=workers,
        timeout=timeout,
        max_file_size=max_file_size,
    )


def _print_text_report(result: LintResult) -> None:
    for diagnostic in result.diagnostics:
        console.print(format_diagnostic(diagnostic), soft_wrap=True)
    if result.diagnostics:
        console.print()

    counts = result.counts
    style = "red" if result.exit_code else ("yellow" if counts[Severity.WARNING.value] else "green")
    console.print(create_panel(
        f"Files checked: {result.files_checked}   Failed: {result.files_failed}\n"
        f"Errors: {counts[Severity.ERROR.value]}   Warnings: {counts[Severity.WARNING.value]}   "
        f"Info: {counts[Severity.INFO.value]}",
        title="📋 Lint Summary",
        style=style,
    ))

    if result.exit_code == EXIT_FATAL:
        print_error("No input could be checked.")
    elif result.has_errors:
        print_error("Errors found.")
    elif result.diagnostics:
        print_warning("Only warnings and suggestions found.")
    else:
        print_success("No problems found.")


def _banner() -> None:
    console.print(Panel(
        Text("infralint", style="accent", justify="center"),
        subtitle="Infrastructure config checks",
        border_style="magenta", expand=False, padding=(0, 4),
    ))
    console.print()


@app.command()
def lint(
    paths: List[Path] = typer.Argument(..., help="Files or directories to check"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to .infralint.yaml"),
    output_format: str = typer.Option("text", "--format", "-f", help="Output format: text|json"),
    severity: Optional[List[str]] = typer.Option(None, "--severity", "-s", help="Override a rule severity: RULE=LEVEL"),
    disable: Optional[List[str]] = typer.Option(None, "--disable", help="Disable a rule by id"),
    enable: Optional[List[str]] = typer.Option(None, "--enable", help="Enable a rule by id"),
    set_options: Optional[List[str]] = typer.Option(None, "--set", help="Override an option: SECTION.KEY=VALUE"),
    workers: Optional[int] = typer.Option(None, "--workers", "-w", help="Files processed in parallel"),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Run-wide timeout in seconds"),
    max_file_size: Optional[int] = typer.Option(None, "--max-file-size", help="Reject inputs larger than this many bytes"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
) -> None:
    """Check infrastructure files and report diagnostics."""
    configure_logging(verbose)
    output_format = _check_format(output_format)
    overrides = _build_overrides(
        severity or [], disable or [], enable or [], set_options or [], workers, timeout, max_file_size,
    )

    try:
        settings, warnings = load_settings(config_path=config, search_dir=Path.cwd(), overrides=overrides)
        engine = InfraLintEngine(settings=settings, config_warnings=warnings)
        if output_format == "text":
            with console.status("[bold cyan]Linting files…"):
                result = engine.run_lint(paths)
        else:
            result = engine.run_lint(paths)
    except FatalRunError as exc:
        print_error(str(exc))
        raise typer.Exit(code=EXIT_FATAL)

    if output_format == "json":
        typer.echo(json.dumps(result.to_dict(), indent=2))
    else:
        _print_text_report(result)
    raise typer.Exit(code=result.exit_code)


@app.command()
def rules(
    file_type: Optional[str] = typer.Option(None, "--type", "-t", help="Only show rules for this file type"),
    output_format: str = typer.Option("text", "--format", "-f", help="Output format: text|json"),
) -> None:
    """List the registered rules."""
    output_format = _check_format(output_format)
    selected = list(DEFAULT_REGISTRY)
    if file_type is not None:
        try:
            wanted = FileType(file_type.lower())
        except ValueError:
            raise typer.BadParameter(f"unknown file type '{file_type}'", param_hint="--type")
        selected = list(DEFAULT_REGISTRY.for_type(wanted))

    if output_format == "json":
        typer.echo(json.dumps([
            {
                "rule_id": rule.rule_id,
                "file_type": rule.applies_to.value,
                "default_severity": rule.default_severity.value,
                "description": rule.description,
            }
            for rule in selected
        ], indent=2))
        raise typer.Exit(code=0)

    _banner()
    console.print(create_table(
        "📐 Registered Rules",
        [("Rule", "bold"), ("File type", "cyan"), ("Severity", "yellow"), ("Description", "")],
        [[r.rule_id, r.applies_to.value, r.default_severity.value, r.description] for r in selected],
    ))
    raise typer.Exit(code=0)


@app.command()
def detect(
    paths: List[Path] = typer.Argument(..., help="Files or directories to classify"),
) -> None:
    """Show the file type infralint would use for each input."""
    for path in discover_paths(paths):
        try:
            source = load_source(path, max_bytes=InfraLintSettings().max_file_size)
        except LoadError as exc:
            console.print(Text(f"{path}: unreadable ({exc.reason})", style="muted"), soft_wrap=True)
            continue
        file_type = detect_file_type(path, source.text)
        style = "muted" if file_type is FileType.UNKNOWN else "info"
        console.print(Text.assemble(f"{path}: ", (file_type.value, style)), soft_wrap=True)
    raise typer.Exit(code=0)


if __name__ == "__main__":
    app()
