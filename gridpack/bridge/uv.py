"""uv bridge — runtime provisioning and frozen lockfile export.

``uv python install <version>`` is idempotent; ``uv python dir`` prints
the directory that holds uv-managed runtimes, one subdirectory per
install (``cpython-3.11.9-linux-x86_64-gnu`` and so on).
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from gridpack.bridge.process import format_argv, run_tool, tail
from gridpack.core.errors import ExportFailed, ProvisionFailed
from gridpack.models.manifest import ExportOptions

logger = logging.getLogger(__name__)


class UvRuntimeProvisioner:
    """``RuntimeProvisioner`` backed by ``uv python``."""

    def __init__(self, uv: Path, *, timeout: float | None = None) -> None:
        self.uv = Path(uv)
        self.timeout = timeout

    def install(self, version: str) -> None:
        argv = [self.uv, "python", "install", version]
        logger.info("Provisioning Python %s via uv", version)
        try:
            result = run_tool(argv, timeout=self.timeout)
        except (OSError, subprocess.SubprocessError) as exc:
            raise ProvisionFailed(
                f"could not run {format_argv(argv)}: {exc}", value=version
            ) from exc
        if result.returncode != 0:
            raise ProvisionFailed(
                f"uv python install exited {result.returncode}: "
                f"{tail(result.stderr) or tail(result.stdout)}",
                value=version,
            )

    def managed_dir(self) -> Path:
        argv = [self.uv, "python", "dir"]
        try:
            result = run_tool(argv, timeout=self.timeout)
        except (OSError, subprocess.SubprocessError) as exc:
            raise ProvisionFailed(f"could not run {format_argv(argv)}: {exc}") from exc
        output = result.stdout.strip()
        if result.returncode != 0 or not output:
            raise ProvisionFailed(
                f"uv python dir exited {result.returncode}: {tail(result.stderr)}"
            )
        return Path(output.splitlines()[-1].strip())


class UvLockExporter:
    """``LockExporter`` backed by ``uv export``."""

    def __init__(self, uv: Path, *, timeout: float | None = None) -> None:
        self.uv = Path(uv)
        self.timeout = timeout

    def build_argv(
        self, project_dir: Path, output: Path, options: ExportOptions
    ) -> list[str]:
        argv = [
            str(self.uv),
            "export",
            "--project",
            str(project_dir),
            "--format",
            "requirements-txt",
            "--output-file",
            str(output),
        ]
        if options.frozen:
            argv.append("--frozen")
        if options.no_hashes:
            argv.append("--no-hashes")
        if options.no_header:
            argv.append("--no-header")
        if options.no_emit_workspace:
            argv.append("--no-emit-workspace")
        if options.no_emit_project:
            argv.append("--no-emit-project")
        if options.no_emit_package:
            argv.extend(["--no-emit-package", options.no_emit_package])
        return argv

    def export(self, project_dir: Path, output: Path, options: ExportOptions) -> None:
        argv = self.build_argv(project_dir, output, options)
        try:
            result = run_tool(argv, cwd=project_dir, timeout=self.timeout)
        except (OSError, subprocess.SubprocessError) as exc:
            raise ExportFailed(f"could not run uv export: {exc}", path=project_dir) from exc
        if result.returncode != 0:
            raise ExportFailed(
                f"uv export exited {result.returncode} "
                f"(is uv.lock up to date with pyproject.toml?): {tail(result.stderr)}",
                path=project_dir / "uv.lock",
            )
