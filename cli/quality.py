"""CLI wrappers: Lint and format with ruff."""

from __future__ import annotations

import sys

from cli._runner import run

SOURCE_DIRS = ("app", "cli", "tests")


def lint() -> None:
    run([sys.executable, "-m", "ruff", "check", *SOURCE_DIRS, *sys.argv[1:]])


def fmt() -> None:
    run([sys.executable, "-m", "ruff", "format", *SOURCE_DIRS, *sys.argv[1:]])
