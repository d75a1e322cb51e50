"""
Shared CLI runner helper.

Every wrapper runs its command as a child process and exits with the
child's return code.
"""

from __future__ import annotations

import os
import subprocess
from collections.abc import Mapping, Sequence

# Used when DATABASE_URL_APP is not set so `dev` and `test` work out of the box
LOCAL_DATABASE_URL = "sqlite:///./members.db"


def run(cmd: Sequence[str], env_defaults: Mapping[str, str] | None = None) -> None:
    """
    Run a command and exit with its return code.

    Args:
        cmd: Command and arguments to execute
        env_defaults: Environment variables applied only when not already set

    Example:
        >>> run([sys.executable, "-m", "pytest", "-q"], {"APP_ENV": "test"})
    """
    env = dict(os.environ)
    for key, value in (env_defaults or {}).items():
        env.setdefault(key, value)

    result = subprocess.run(cmd, env=env)
    raise SystemExit(result.returncode)
