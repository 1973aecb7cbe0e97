"""Tests for diagnostic aggregation and exit-code derivation."""
from __future__ import annotations
from infralint.core.aggregator import EXIT_ERRORS, EXIT_FATAL, EXIT_OK, DiagnosticAggregator, FileReport
from infralint.core.models import Diagnostic, FileType, Severity


def _diag(path: str, line: int, rule_id: str, severity: Severity = Severity.WARNING, column: int = 0) -> Diagnostic:
    return Diagnostic(severity=severity, path=path, line=line, column=column, rule_id=rule_id, message="m")


def _report(path: str, *diagnostics: Diagnostic, failed: bool = False) -> FileReport:
    return FileReport(path=path, file_type=FileType.ENV, diagnostics=list(diagnostics), failed=failed)


class TestOrdering:
    def test_sorted_by_path_line_column_rule(self) -> None:
        agg = DiagnosticAggregator()
        agg.add_report(_report("b.env", _diag("b.env", 1, "z")))
        agg.add_report(_report(
            "a.env",
            _diag("a.env", 3, "a"),
            _diag("a.env", 1, "z", column=4),
            _diag("a.env", 1, "b", column=4),
            _diag("a.env", 1, "y"),
        ))
        keys = [d.sort_key() for d in agg.result().diagnostics]
        assert keys == [
            ("a.env", 1, 0, "y"),
            ("a.env", 1, 4, "b"),
            ("a.env", 1, 4, "z"),
            ("a.env", 3, 0, "a"),
            ("b.env", 1, 0, "z"),
        ]

    def test_insertion_order_does_not_matter(self) -> None:
        reports = [_report(p, _diag(p, 2, "r"), _diag(p, 1, "r")) for p in ("c", "a", "b")]
        forward, backward = DiagnosticAggregator(), DiagnosticAggregator()
        for report in reports:
            forward.add_report(report)
        for report in reversed(reports):
            backward.add_report(report)
        assert forward.result() == backward.result()


class TestCounts:
    def test_counts_per_severity(self) -> None:
        agg = DiagnosticAggregator()
        agg.add_report(_report(
            "a", _diag("a", 1, "r", Severity.ERROR), _diag("a", 2, "r", Severity.INFO), _diag("a", 3, "r"),
        ))
        agg.add_diagnostics([_diag("cfg", 0, "config-warning")])
        result = agg.result()
        assert result.counts == {"INFO": 1, "WARNING": 2, "ERROR": 1}
        assert result.files_checked == 1 and result.files_failed == 0

    def test_to_dict(self) -> None:
        agg = DiagnosticAggregator()
        agg.add_report(_report("a", _diag("a", 1, "r")))
        data = agg.result().to_dict()
        assert data["diagnostics"][0]["severity"] == "WARNING"
        assert data["summary"]["exit_code"] == EXIT_OK and data["summary"]["files_checked"] == 1


class TestExitCode:
    def test_empty_run(self) -> None:
        assert DiagnosticAggregator().result().exit_code == EXIT_OK

    def test_warnings_only(self) -> None:
        agg = DiagnosticAggregator()
        agg.add_report(_report("a", _diag("a", 1, "r", Severity.WARNING), _diag("a", 2, "r", Severity.INFO)))
        assert agg.result().exit_code == EXIT_OK

    def test_any_error(self) -> None:
        agg = DiagnosticAggregator()
        agg.add_report(_report("a"))
        agg.add_report(_report("b", _diag("b", 1, "r", Severity.ERROR)))
        assert agg.result().exit_code == EXIT_ERRORS

    def test_all_failed_is_fatal(self) -> None:
        agg = DiagnosticAggregator()
        agg.add_report(_report("a", _diag("a", 0, "load-error", Severity.ERROR), failed=True))
        result = agg.result()
        assert result.exit_code == EXIT_FATAL and result.files_failed == 1 and result.files_checked == 0

    def test_partial_failure_uses_processed_files(self) -> None:
        agg = DiagnosticAggregator()
        agg.add_report(_report("a", _diag("a", 0, "load-error", Severity.ERROR), failed=True))
        agg.add_report(_report("b", _diag("b", 1, "r", Severity.WARNING)))
        result = agg.result()
        assert result.exit_code == EXIT_OK
        assert [d.rule_id for d in result.diagnostics] == ["load-error", "r"]

    def test_partial_failure_with_errors(self) -> None:
        agg = DiagnosticAggregator()
        agg.add_report(_report("a", _diag("a", 0, "load-error", Severity.ERROR), failed=True))
        agg.add_report(_report("b", _diag("b", 1, "r", Severity.ERROR)))
        assert agg.result().exit_code == EXIT_ERRORS
