"""Merging per-file reports into one ordered, counted ``LintResult``."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable

from infralint.core.models import Diagnostic, FileType, Severity

__all__ = ["FileReport", "LintResult", "DiagnosticAggregator", "EXIT_OK", "EXIT_ERRORS", "EXIT_FATAL"]

EXIT_OK = 0
EXIT_ERRORS = 1
EXIT_FATAL = 2


@dataclass(frozen=True)
class FileReport:
    """Outcome for one input; ``failed`` marks load errors, timeouts and crashes."""

    path: str
    file_type: FileType
    diagnostics: list[Diagnostic] = field(default_factory=list)
    failed: bool = False


@dataclass(frozen=True)
class LintResult:
    diagnostics: list[Diagnostic]
    counts: dict[str, int]
    files_checked: int
    files_failed: int
    exit_code: int

    @property
    def has_errors(self) -> bool:
        return self.counts.get(Severity.ERROR.value, 0) > 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "diagnostics": [d.to_dict() for d in self.diagnostics],
            "summary": {
                "counts": dict(self.counts),
                "files_checked": self.files_checked,
                "files_failed": self.files_failed,
                "exit_code": self.exit_code,
            },
        }


class DiagnosticAggregator:
    """Collects file reports in any order and produces a sorted ``LintResult``."""

    def __init__(self) -> None:
        self._reports: list[FileReport] = []
        self._run_diagnostics: list[Diagnostic] = []

    def add_report(self, report: FileReport) -> None:
        self._reports.append(report)

    def add_diagnostics(self, diagnostics: Iterable[Diagnostic]) -> None:
        """Add diagnostics that belong to the run rather than a file (config warnings)."""
        self._run_diagnostics.extend(diagnostics)

    def result(self) -> LintResult:
        reports = sorted(self._reports, key=lambda r: r.path)
        merged = list(self._run_diagnostics)
        for report in reports:
            merged.extend(report.diagnostics)
        merged.sort(key=Diagnostic.sort_key)

        counts = {severity.value: 0 for severity in Severity}
        for diagnostic in merged:
            counts[diagnostic.severity.value] += 1

        checked = [r for r in reports if not r.failed]
        failed = len(reports) - len(checked)
        return LintResult(
            diagnostics=merged,
            counts=counts,
            files_checked=len(checked),
            files_failed=failed,
            exit_code=self._exit_code(checked, failed),
        )

    @staticmethod
    def _exit_code(checked: list[FileReport], failed: int) -> int:
        if failed and not checked:
            return EXIT_FATAL
        if any(d.severity is Severity.ERROR for r in checked for d in r.diagnostics):
            return EXIT_ERRORS
        return EXIT_OK
