"""Tests for file type detection."""
from __future__ import annotations
import pytest
from infralint.core.detector import detect_file_type, detect_from_name, looks_like_crontab
from infralint.core.models import FileType
from tests.conftest import BAD_CRONTAB, BAD_MAKEFILE


class TestDetectFromName:
    @pytest.mark.parametrize("name, expected", [
        ("Dockerfile", FileType.DOCKERFILE),
        ("docker/Dockerfile.prod", FileType.DOCKERFILE),
        ("api.Dockerfile", FileType.DOCKERFILE),
        ("Makefile", FileType.MAKEFILE),
        ("GNUmakefile", FileType.MAKEFILE),
        ("rules.mk", FileType.MAKEFILE),
        ("bad.Makefile", FileType.MAKEFILE),
        (".env", FileType.ENV),
        (".env.production", FileType.ENV),
        ("staging.env", FileType.ENV),
        ("web.service", FileType.SYSTEMD_UNIT),
        ("backup.timer", FileType.SYSTEMD_UNIT),
        ("api.socket", FileType.SYSTEMD_UNIT),
        ("crontab", FileType.CRONTAB),
        ("nightly.cron", FileType.CRONTAB),
        ("README.md", FileType.UNKNOWN),
        ("main.py", FileType.UNKNOWN),
    ])
    def test_names(self, name, expected) -> None:
        assert detect_from_name(name) is expected

    def test_basename_beats_extension(self) -> None:
        assert detect_from_name("project.env/Makefile") is FileType.MAKEFILE


class TestContentSniff:
    def test_crontab_content(self) -> None:
        assert looks_like_crontab(BAD_CRONTAB)

    def test_macro_line(self) -> None:
        assert looks_like_crontab("# jobs\n@hourly /usr/bin/poll\n")

    def test_env_lines_are_skipped(self) -> None:
        assert looks_like_crontab("PATH=/usr/bin\n0 * * * * /usr/bin/tick\n")

    def test_makefile_is_not_cron(self) -> None:
        assert not looks_like_crontab(BAD_MAKEFILE)

    def test_too_few_fields(self) -> None:
        assert not looks_like_crontab("0 * * /usr/bin/tick\n")

    def test_empty(self) -> None:
        assert not looks_like_crontab("# nothing here\n\n")


class TestDetectFileType:
    def test_unknown_name_with_cron_content(self) -> None:
        assert detect_file_type("jobs", BAD_CRONTAB) is FileType.CRONTAB

    def test_name_wins_over_content(self) -> None:
        assert detect_file_type("Makefile", BAD_CRONTAB) is FileType.MAKEFILE

    def test_unknown_without_content(self) -> None:
        assert detect_file_type("jobs") is FileType.UNKNOWN

    def test_unknown_with_other_content(self) -> None:
        assert detect_file_type("notes.txt", "hello world\n") is FileType.UNKNOWN
