"""Blocking subprocess helper shared by every external-tool bridge.

Every call gets an explicit argv, working directory and environment; no
bridge relies on the parent's current directory.  Launch failures
(``OSError``) and timeouts (``subprocess.TimeoutExpired``) propagate so
each bridge can map them to its own error type.
"""

from __future__ import annotations

import logging
import os
import subprocess
from collections.abc import Iterable, Mapping, Sequence
from pathlib import Path

logger = logging.getLogger(__name__)

# Variables that would redirect an interpreter or pip away from the
# staged copy.
INTERPRETER_ENV_BLOCKLIST: frozenset[str] = frozenset(
    {
        "PYTHONHOME",
        "PYTHONPATH",
        "PYTHONSTARTUP",
        "PYTHONUSERBASE",
        "VIRTUAL_ENV",
        "CONDA_PREFIX",
        "PIP_TARGET",
        "PIP_PREFIX",
        "PIP_ROOT",
        "PIP_USER",
        "PIP_REQUIRE_VIRTUALENV",
        "PIP_BREAK_SYSTEM_PACKAGES",
    }
)


def scrubbed_env(
    drop: Iterable[str] = INTERPRETER_ENV_BLOCKLIST,
    extra: Mapping[str, str] | None = None,
) -> dict[str, str]:
    """Copy of ``os.environ`` without *drop*, updated with *extra*."""
    blocked = {name.upper() for name in drop}
    env = {k: v for k, v in os.environ.items() if k.upper() not in blocked}
    if extra:
        env.update(extra)
    return env


def format_argv(argv: Sequence[str | Path]) -> str:
    return " ".join(str(a) for a in argv)


def run_tool(
    argv: Sequence[str | Path],
    *,
    cwd: Path | None = None,
    env: Mapping[str, str] | None = None,
    timeout: float | None = None,
) -> subprocess.CompletedProcess[str]:
    """Run *argv* to completion and capture its text output.

    Does not raise on a non-zero exit; callers inspect ``returncode``.
    """
    args = [str(a) for a in argv]
    logger.debug("exec: %s (cwd=%s)", format_argv(args), cwd or "-")
    result = subprocess.run(
        args,
        cwd=str(cwd) if cwd is not None else None,
        env=dict(env) if env is not None else None,
        capture_output=True,
        text=True,
        timeout=timeout,
        check=False,
    )
    logger.debug("exit %d: %s", result.returncode, args[0])
    return result


def tail(text: str | None, lines: int = 20) -> str:
    """Last *lines* lines of a tool's output, for error messages."""
    if not text:
        return ""
    return "\n".join(text.strip().splitlines()[-lines:])
