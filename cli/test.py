"""CLI wrapper: Run the test suite against in-memory SQLite."""

from __future__ import annotations

import sys

from cli._runner import run


def main() -> None:
    run(
        [sys.executable, "-m", "pytest", "-q", *sys.argv[1:]],
        env_defaults={"APP_ENV": "test", "DATABASE_URL_APP": "sqlite:///:memory:"},
    )
