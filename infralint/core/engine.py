"""Orchestration engine – ties loading, detection, parsing and rules together."""

from __future__ import annotations

import dataclasses
import logging
from concurrent.futures import Future, ThreadPoolExecutor, wait
from pathlib import Path
from typing import Iterable, Sequence

from infralint.config.settings import ConfigWarning, InfraLintSettings
from infralint.core.aggregator import DiagnosticAggregator, FileReport, LintResult
from infralint.core.detector import detect_file_type, detect_from_name
from infralint.core.errors import LoadError
from infralint.core.evaluator import evaluate_model
from infralint.core.loader import discover_paths, load_source
from infralint.core.models import Diagnostic, FileType, Severity
from infralint.parsers import get_parser
from infralint.parsers.base import SourceFile
from infralint.rules.registry import DEFAULT_REGISTRY, RuleRegistry

logger = logging.getLogger(__name__)

__all__ = ["InfraLintEngine", "LOAD_ERROR_RULE_ID", "TIMEOUT_RULE_ID", "INTERNAL_ERROR_RULE_ID"]

LOAD_ERROR_RULE_ID = "load-error"
TIMEOUT_RULE_ID = "timeout"
INTERNAL_ERROR_RULE_ID = "internal-error"


def _file_failure(path: str, rule_id: str, message: str) -> FileReport:
    diagnostic = Diagnostic(
        severity=Severity.ERROR, path=path, line=0, column=0, rule_id=rule_id, message=message,
    )
    return FileReport(path=path, file_type=FileType.UNKNOWN, diagnostics=[diagnostic], failed=True)


class InfraLintEngine:
    """Central orchestrator for a lint run.

    The settings and registry are shared read-only by every worker; each
    worker owns the source and parsed model of the file it processes.
    """

    def __init__(
        self,
        settings: InfraLintSettings | None = None,
        registry: RuleRegistry | None = None,
        config_warnings: Sequence[ConfigWarning] = (),
    ) -> None:
        self.settings = settings or InfraLintSettings()
        self.registry = registry if registry is not None else DEFAULT_REGISTRY
        self.config_warnings = tuple(config_warnings)

    def lint_source(self, source: SourceFile) -> list[Diagnostic]:
        parser = get_parser(source.file_type)
        if parser is None:
            return []
        model = parser.parse(source)
        return evaluate_model(model, self.settings, self.registry)

    def lint_text(self, path: str, text: str, file_type: FileType | None = None) -> list[Diagnostic]:
        """Lint in-memory *text* as if it had been read from *path*."""
        if file_type is None:
            file_type = detect_file_type(path, text)
        return self.lint_source(SourceFile.from_text(path, text, file_type))

    def _process_path(self, path: Path) -> FileReport | None:
        display = str(path)
        try:
            source = load_source(path, self.settings.max_file_size)
            file_type = detect_file_type(path, source.text)
            if file_type is FileType.UNKNOWN:
                logger.debug("Skipping %s: unrecognised file type", display)
                return None
            source = dataclasses.replace(source, file_type=file_type)
            return FileReport(path=display, file_type=file_type, diagnostics=self.lint_source(source))
        except LoadError as exc:
            if detect_from_name(path) is FileType.UNKNOWN:
                logger.debug("Skipping %s: unrecognised file type (%s)", display, exc.reason)
                return None
            logger.info("Cannot load %s: %s", exc.path, exc.reason)
            return _file_failure(display, LOAD_ERROR_RULE_ID, f"Cannot load file: {exc.reason}")
        except Exception as exc:
            logger.warning("Failed to lint %s", display, exc_info=True)
            return _file_failure(display, INTERNAL_ERROR_RULE_ID, f"Internal error while linting: {exc}")

    def run_lint(self, paths: Iterable[str | Path]) -> LintResult:
        """Lint *paths* on the worker pool and return the aggregated result."""
        targets = discover_paths(paths)
        aggregator = DiagnosticAggregator()
        aggregator.add_diagnostics(w.to_diagnostic() for w in self.config_warnings)
        if not targets:
            return aggregator.result()

        timeout = self.settings.timeout
        executor = ThreadPoolExecutor(max_workers=self.settings.workers, thread_name_prefix="infralint")
        pending: set[Future] = set()
        try:
            futures = {executor.submit(self._process_path, target): target for target in targets}
            done, pending = wait(futures, timeout=timeout)
            for future in done:
                report = future.result()
                if report is not None:
                    aggregator.add_report(report)
            for future in pending:
                future.cancel()
                path = str(futures[future])
                logger.warning("Timed out before %s finished", path)
                aggregator.add_report(_file_failure(
                    path, TIMEOUT_RULE_ID, f"Run timed out after {timeout:g}s before this file was checked",
                ))
        finally:
            executor.shutdown(wait=not pending, cancel_futures=True)
        return aggregator.result()
