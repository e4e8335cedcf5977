"""Runs short snippets through an interpreter (version query, smoke test)."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from gridpack.bridge.process import run_tool, scrubbed_env, tail

logger = logging.getLogger(__name__)


class SubprocessInterpreterProbe:
    """``InterpreterProbe`` that launches the interpreter with ``-c``."""

    def __init__(self, *, timeout: float | None = 60.0) -> None:
        self.timeout = timeout

    def run_snippet(self, interpreter: Path, code: str) -> str | None:
        try:
            result = run_tool(
                [interpreter, "-I", "-c", code],
                env=scrubbed_env(),
                timeout=self.timeout,
            )
        except (OSError, subprocess.SubprocessError) as exc:
            logger.warning("Could not run %s: %s", interpreter, exc)
            return None
        if result.returncode != 0:
            logger.warning(
                "%s exited %d: %s", interpreter, result.returncode, tail(result.stderr)
            )
            return None
        return result.stdout.strip()
