"""git bridge — best-effort source revision of the project directory."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from gridpack.bridge.process import run_tool

logger = logging.getLogger(__name__)


class GitRevisionSource:
    """``RevisionSource`` that asks ``git rev-parse HEAD``.

    ``git`` may be ``None`` (not installed); every lookup then returns
    ``None``.  A failing query (not a repository, corrupt repository)
    is treated the same way.
    """

    def __init__(self, git: Path | None, *, timeout: float | None = 30.0) -> None:
        self.git = Path(git) if git is not None else None
        self.timeout = timeout

    def revision(self, project_dir: Path) -> str | None:
        if self.git is None:
            logger.info("git not available; manifest will carry no revision")
            return None
        try:
            result = run_tool(
                [self.git, "-C", project_dir, "rev-parse", "HEAD"],
                timeout=self.timeout,
            )
        except (OSError, subprocess.SubprocessError) as exc:
            logger.info("git revision lookup failed: %s", exc)
            return None
        rev = result.stdout.strip()
        if result.returncode != 0 or not rev:
            logger.info("%s is not a git checkout; no revision recorded", project_dir)
            return None
        return rev
