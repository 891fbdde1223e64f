"""Run shell commands on behalf of the user."""

import logging
import os
import subprocess

logger = logging.getLogger(__name__)

BASH = "/bin/bash"


def run_bash_once(command: str) -> int:
    """Run command through a login bash; returns its exit code."""
    try:
        return subprocess.run([BASH, "-lc", command]).returncode
    except OSError as e:
        logger.error(f"bash failed: {e}")
        return 127


def run_interactive_bash() -> int:
    """Open a nested interactive bash until the user exits it."""
    env = dict(os.environ, KIKI_INNER_BASH="1")
    try:
        return subprocess.run([BASH], env=env).returncode
    except OSError as e:
        logger.error(f"bash failed: {e}")
        return 127
