"""Tests for the lint engine: scenarios, determinism, partial failure and timeouts."""
from __future__ import annotations
import threading
from pathlib import Path
import pytest
from infralint.config.settings import ConfigWarning, InfraLintSettings, resolve_settings
from infralint.core import engine as engine_module
from infralint.core.aggregator import EXIT_ERRORS, EXIT_FATAL, EXIT_OK
from infralint.core.engine import InfraLintEngine
from infralint.core.models import FileType, Severity
from infralint.rules import BaseRule, RuleRegistry
from infralint.rules.dockerfile_rules import MissingUserRule
from tests.conftest import (
    BAD_DOCKERFILE, BAD_ENV, BAD_MAKEFILE, GOOD_DOCKERFILE, GOOD_ENV,
    LATEST_ONLY_DOCKERFILE, SCENARIO_A_DOCKERFILE, SCENARIO_B_ENV, summarize,
)


class _ExplodingRule(BaseRule):
    rule_id = "exploding"
    applies_to = FileType.DOCKERFILE
    default_severity = Severity.WARNING

    def evaluate(self, model, ctx):
        raise RuntimeError("boom")


class TestScenarios:
    def test_scenario_a_dockerfile(self, engine) -> None:
        diags = engine.lint_text("Dockerfile", SCENARIO_A_DOCKERFILE)
        assert sorted(summarize(diags)) == sorted([
            ("dockerfile-latest-tag", "WARNING", 1),
            ("dockerfile-missing-user", "WARNING", 1),
            ("dockerfile-missing-healthcheck", "INFO", 1),
        ])

    def test_scenario_b_env(self, engine) -> None:
        diags = engine.lint_text(".env", SCENARIO_B_ENV)
        assert sorted(summarize(diags)) == [
            ("env-duplicate-key", "ERROR", 4),
            ("env-weak-value", "ERROR", 2),
            ("env-weak-value", "ERROR", 4),
        ]

    def test_scenario_c_makefile(self, engine) -> None:
        diags = engine.lint_text("Makefile", BAD_MAKEFILE)
        assert ("makefile-duplicate-target", "ERROR", 8) in summarize(diags)
        phony = [d for d in diags if d.rule_id == "makefile-missing-phony"]
        assert {d.message.split("'")[1] for d in phony} == {"build", "clean"}
        assert all(d.severity is Severity.INFO for d in phony)

    def test_scenario_d_unreadable_input(self, engine, tmp_path) -> None:
        (tmp_path / ".env").write_text(BAD_ENV)
        missing = tmp_path / "missing" / "Dockerfile"
        result = engine.run_lint([tmp_path / ".env", missing])
        load_errors = [d for d in result.diagnostics if d.rule_id == "load-error"]
        assert len(load_errors) == 1 and load_errors[0].path == str(missing)
        assert any(d.rule_id == "env-weak-value" for d in result.diagnostics)
        assert result.exit_code == EXIT_ERRORS and result.files_failed == 1 and result.files_checked == 1

    def test_scenario_d_warnings_elsewhere(self, engine, tmp_path) -> None:
        (tmp_path / "Dockerfile").write_text(BAD_DOCKERFILE)
        result = engine.run_lint([tmp_path / "Dockerfile", tmp_path / "nope.env"])
        assert result.exit_code == EXIT_OK

    def test_scenario_d_nothing_processed(self, engine, tmp_path) -> None:
        result = engine.run_lint([tmp_path / "a.env", tmp_path / "b" / "Makefile"])
        assert result.exit_code == EXIT_FATAL
        assert [d.rule_id for d in result.diagnostics] == ["load-error", "load-error"]


class TestProperties:
    def test_idempotent(self, engine) -> None:
        assert engine.lint_text(".env", BAD_ENV) == engine.lint_text(".env", BAD_ENV)

    @pytest.mark.parametrize("workers", [1, 2, 3, 8])
    def test_deterministic_across_worker_counts(self, sample_project, workers) -> None:
        baseline = InfraLintEngine(InfraLintSettings(workers=1)).run_lint([sample_project])
        result = InfraLintEngine(InfraLintSettings(workers=workers)).run_lint([sample_project])
        assert result == baseline

    def test_ordering_invariant(self, engine, sample_project) -> None:
        keys = [d.sort_key() for d in engine.run_lint([sample_project]).diagnostics]
        assert keys == sorted(keys)

    def test_duplicate_completeness(self, engine) -> None:
        text = "".join(f"API_KEY=value{i}\n" for i in range(5))
        dups = [d for d in engine.lint_text(".env", text) if d.rule_id == "env-duplicate-key"]
        assert [d.line for d in dups] == [2, 3, 4, 5]

    def test_severity_override_changes_exit_code(self, tmp_path) -> None:
        path = tmp_path / "Dockerfile"
        path.write_text(LATEST_ONLY_DOCKERFILE)
        default = InfraLintEngine(InfraLintSettings()).run_lint([path])
        raised, _ = resolve_settings({"dockerfile": {"rules": {"dockerfile-latest-tag": "error"}}})
        overridden = InfraLintEngine(raised).run_lint([path])

        assert default.exit_code == EXIT_OK and overridden.exit_code == EXIT_ERRORS
        assert default.counts["WARNING"] == 1 and default.counts["ERROR"] == 0
        assert overridden.counts["WARNING"] == 0 and overridden.counts["ERROR"] == 1
        assert default.counts["INFO"] == overridden.counts["INFO"]
        assert len(default.diagnostics) == len(overridden.diagnostics)


class TestDiscovery:
    def test_directory_walk(self, engine, sample_project) -> None:
        result = engine.run_lint([sample_project])
        paths = {Path(d.path).relative_to(sample_project).as_posix() for d in result.diagnostics}
        assert paths == {"Dockerfile", "Makefile", ".env", "jobs.cron", "deploy/systemd/web.service"}
        assert result.files_checked == 5

    def test_unknown_file_skipped(self, engine, tmp_path) -> None:
        notes = tmp_path / "notes.txt"
        notes.write_text("hello\n")
        result = engine.run_lint([notes])
        assert result.diagnostics == [] and result.files_checked == 0 and result.exit_code == EXIT_OK

    def test_crontab_sniffed_from_content(self, engine, tmp_path) -> None:
        jobs = tmp_path / "jobs"
        jobs.write_text("* * * * * /usr/bin/heartbeat\n")
        result = engine.run_lint([jobs])
        assert [d.rule_id for d in result.diagnostics] == ["crontab-every-minute"]

    def test_same_file_twice(self, engine, tmp_path) -> None:
        (tmp_path / ".env").write_text(GOOD_ENV)
        result = engine.run_lint([tmp_path / ".env", tmp_path / ".env"])
        assert result.files_checked == 1

    def test_oversized_file(self, tmp_path) -> None:
        path = tmp_path / "Dockerfile"
        path.write_text(GOOD_DOCKERFILE)
        result = InfraLintEngine(InfraLintSettings(max_file_size=16)).run_lint([path])
        assert [d.rule_id for d in result.diagnostics] == ["load-error"]
        assert "too large" in result.diagnostics[0].message

    def test_no_inputs(self, engine) -> None:
        assert engine.run_lint([]).diagnostics == []

    def test_oversized_unknown_file_skipped(self, tmp_path) -> None:
        archive = tmp_path / "archive.tar.gz"
        archive.write_bytes(b"x" * 64)
        result = InfraLintEngine(InfraLintSettings(max_file_size=16)).run_lint([archive])
        assert result.diagnostics == [] and result.files_failed == 0 and result.exit_code == EXIT_OK

    def test_missing_unknown_file_skipped(self, engine, tmp_path) -> None:
        result = engine.run_lint([tmp_path / "notes.txt"])
        assert result.diagnostics == [] and result.exit_code == EXIT_OK


class TestFailureIsolation:
    def test_rule_crash_becomes_diagnostic(self, tmp_path) -> None:
        registry = RuleRegistry([_ExplodingRule(), MissingUserRule()])
        engine = InfraLintEngine(InfraLintSettings(), registry=registry)
        diags = engine.lint_text("Dockerfile", "FROM alpine:3.19\n")
        assert [d.rule_id for d in diags] == ["rule-error", "dockerfile-missing-user"]
        assert "boom" in diags[0].message

    def test_internal_error_is_per_file(self, engine, tmp_path, monkeypatch) -> None:
        (tmp_path / "Dockerfile").write_text(GOOD_DOCKERFILE)
        (tmp_path / ".env").write_text(BAD_ENV)
        real = engine.lint_source

        def flaky(source):
            if source.file_type is FileType.DOCKERFILE:
                raise ValueError("parser bug")
            return real(source)

        monkeypatch.setattr(engine, "lint_source", flaky)
        result = engine.run_lint([tmp_path])
        assert [d.rule_id for d in result.diagnostics if d.path.endswith("Dockerfile")] == ["internal-error"]
        assert any(d.rule_id == "env-weak-value" for d in result.diagnostics)
        assert result.files_failed == 1 and result.files_checked == 1

    def test_config_warnings_reported(self, tmp_path) -> None:
        (tmp_path / ".env").write_text(GOOD_ENV)
        warning = ConfigWarning("Unknown configuration section 'helm'", "cfg.yaml")
        result = InfraLintEngine(config_warnings=[warning]).run_lint([tmp_path / ".env"])
        assert [(d.rule_id, d.path, d.severity) for d in result.diagnostics] == [
            ("config-warning", "cfg.yaml", Severity.WARNING),
        ]
        assert result.exit_code == EXIT_OK


class TestTimeout:
    def test_unfinished_files_get_timeout_diagnostic(self, tmp_path, monkeypatch) -> None:
        fast = tmp_path / "fast" / "Dockerfile"
        slow = tmp_path / "slow" / "Dockerfile"
        for path in (fast, slow):
            path.parent.mkdir()
            path.write_text(GOOD_DOCKERFILE)

        release = threading.Event()
        real_load = engine_module.load_source

        def blocking_load(path, max_bytes, *args, **kwargs):
            if "slow" in str(path):
                release.wait(10)
            return real_load(path, max_bytes, *args, **kwargs)

        monkeypatch.setattr(engine_module, "load_source", blocking_load)
        engine = InfraLintEngine(InfraLintSettings(workers=2, timeout=0.5))
        try:
            result = engine.run_lint([fast, slow])
        finally:
            release.set()

        assert [(d.rule_id, d.path) for d in result.diagnostics] == [("timeout", str(slow))]
        assert result.files_checked == 1 and result.files_failed == 1
        assert result.exit_code == EXIT_OK
