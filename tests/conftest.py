"""Shared pytest fixtures and sample files for the infralint test suite."""

from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from infralint.config.settings import InfraLintSettings
from infralint.core.engine import InfraLintEngine

BAD_DOCKERFILE = textwrap.dedent("""\
    # Sample Dockerfile with issues
    FROM ubuntu:latest
    RUN apt-get update && apt-get install -y curl
    COPY . /app
    WORKDIR /app
    CMD ["./app"]
""")

GOOD_DOCKERFILE = textwrap.dedent("""\
    # Good Dockerfile example
    FROM ubuntu:20.04
    RUN apt-get update && apt-get install -y curl \\
        && rm -rf /var/lib/apt/lists/*
    USER nobody
    COPY . /app
    WORKDIR /app
    HEALTHCHECK --interval=30s --timeout=10s --start-period=5s --retries=3 \\
        CMD curl -f http://localhost:8080/health || exit 1
    CMD ["./app"]
""")

SCENARIO_A_DOCKERFILE = textwrap.dedent("""\
    FROM ubuntu:latest
    RUN apt-get update
    CMD ["bash"]
""")

LATEST_ONLY_DOCKERFILE = textwrap.dedent("""\
    FROM nginx:latest
    USER nginx
    HEALTHCHECK CMD curl -f http://localhost/ || exit 1
""")

BAD_ENV = textwrap.dedent("""\
    # Bad .env file
    DATABASE_PASSWORD=123456
    API_SECRET = admin
    JWT_TOKEN=qwerty
    DATABASE_PASSWORD=password
""")

GOOD_ENV = textwrap.dedent("""\
    # Good .env file
    DATABASE_PASSWORD=SecureP@ssw0rd123!
    API_SECRET=randomly-generated-secret-key-here
    JWT_TOKEN=eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9
    DATABASE_HOST=localhost
""")

SCENARIO_B_ENV = textwrap.dedent("""\
    # Database credentials
    DATABASE_PASSWORD=123456
    DATABASE_HOST=localhost
    DATABASE_PASSWORD=password
""")

BAD_MAKEFILE = "# Bad Makefile\nbuild:\n\tgo build -o app\n\nclean:\n\trm -f app\n\nbuild:\n\techo 'duplicate target'\n"

GOOD_MAKEFILE = (
    "# Good Makefile\n"
    ".PHONY: build clean test\n"
    "\n"
    "build:\n"
    "\tgo build -o app\n"
    "\n"
    "clean:\n"
    "\trm -f app\n"
    "\n"
    "test:\n"
    "\tgo test ./...\n"
)

BAD_CRONTAB = textwrap.dedent("""\
    # m h dom mon dow command
    SHELL=/bin/bash
    MAILTO=ops@example.com
    */5 * * * * /usr/local/bin/sync-data
    * * * * * /usr/bin/heartbeat
    0 2 * * * root /usr/local/bin/backup.sh
    61 25 * * * /usr/bin/bad-hours
    @daily /usr/bin/rotate-logs
""")

BAD_SERVICE = textwrap.dedent("""\
    [Unit]
    After=network.target

    [Service]
    ExecStart=myapp --serve
    User=app

    [Install]
    WantedBy=multi-user.target
""")

GOOD_SERVICE = textwrap.dedent("""\
    [Unit]
    Description=Example web service
    After=network.target

    [Service]
    Type=simple
    ExecStart=/usr/bin/myapp --serve
    Restart=on-failure

    [Install]
    WantedBy=multi-user.target
""")


def summarize(diagnostics) -> list[tuple[str, str, int]]:
    """Reduce diagnostics to ``(rule_id, severity, line)`` for comparisons."""
    return [(d.rule_id, d.severity.value, d.line) for d in diagnostics]


@pytest.fixture
def settings() -> InfraLintSettings:
    return InfraLintSettings()


@pytest.fixture
def engine(settings: InfraLintSettings) -> InfraLintEngine:
    return InfraLintEngine(settings=settings)


@pytest.fixture
def sample_project(tmp_path: Path) -> Path:
    """A directory tree with one bad file of every supported type."""
    (tmp_path / "Dockerfile").write_text(BAD_DOCKERFILE)
    (tmp_path / "Makefile").write_text(BAD_MAKEFILE)
    (tmp_path / ".env").write_text(BAD_ENV)
    (tmp_path / "jobs.cron").write_text(BAD_CRONTAB)
    units = tmp_path / "deploy" / "systemd"
    units.mkdir(parents=True)
    (units / "web.service").write_text(BAD_SERVICE)
    (tmp_path / "README.md").write_text("# not linted\n")
    hidden = tmp_path / ".git"
    hidden.mkdir()
    (hidden / "Makefile").write_text(BAD_MAKEFILE)
    return tmp_path
