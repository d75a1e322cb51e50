"""CLI wrapper: Start development server with sample data."""

from __future__ import annotations

import sys

from cli._runner import LOCAL_DATABASE_URL, run


def main() -> None:
    run(
        [
            sys.executable,
            "-m",
            "uvicorn",
            "app.main:app",
            "--reload",
            "--host",
            "127.0.0.1",
            "--port",
            "8000",
            *sys.argv[1:],
        ],
        env_defaults={
            "APP_ENV": "local",
            "DATABASE_URL_APP": LOCAL_DATABASE_URL,
            "SEED_SAMPLE_DATA": "true",
        },
    )
