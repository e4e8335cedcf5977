"""pip bridge — installs pinned requirements through the staged interpreter.

The staged interpreter's own ``-m pip`` is used, so packages land in the
staged copy's site-packages and nowhere else.  The environment is
scrubbed of variables that could point pip at another prefix.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from gridpack.bridge.process import format_argv, run_tool, scrubbed_env, tail
from gridpack.core.errors import InstallFailed
from gridpack.models.manifest import InstallOptions

logger = logging.getLogger(__name__)


class PipInstaller:
    """``PackageInstaller`` that runs ``<interpreter> -m pip install``."""

    def __init__(self, *, timeout: float | None = None) -> None:
        self.timeout = timeout

    @staticmethod
    def build_argv(
        interpreter: Path, requirements: Path, options: InstallOptions
    ) -> list[str]:
        argv = [
            str(interpreter),
            "-m",
            "pip",
            "install",
            "--disable-pip-version-check",
            "--no-input",
            "-r",
            str(requirements),
        ]
        if options.no_deps:
            argv.append("--no-deps")
        if options.break_system_packages:
            argv.append("--break-system-packages")
        if options.no_cache:
            argv.append("--no-cache-dir")
        argv.extend(options.extra_args)
        return argv

    def install(
        self, interpreter: Path, requirements: Path, options: InstallOptions
    ) -> None:
        argv = self.build_argv(interpreter, requirements, options)
        logger.info("Installing %s into %s", requirements.name, interpreter)
        try:
            result = run_tool(
                argv,
                cwd=requirements.parent,
                env=scrubbed_env(),
                timeout=self.timeout,
            )
        except (OSError, subprocess.SubprocessError) as exc:
            raise InstallFailed(
                f"could not run {format_argv(argv)}: {exc}", path=interpreter
            ) from exc
        if result.returncode != 0:
            raise InstallFailed(
                f"pip install exited {result.returncode}: "
                f"{tail(result.stderr) or tail(result.stdout)}",
                path=requirements,
            )
        logger.debug("pip output:\n%s", tail(result.stdout, 50))
