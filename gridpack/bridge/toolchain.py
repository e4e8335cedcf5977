"""Toolchain — external tool locations resolved once, at startup.

Stages never consult ``PATH`` themselves; they receive collaborators
built from a ``Toolchain``.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from pydantic import BaseModel, ConfigDict

from gridpack.bridge.archive import LocalArchiveWriter
from gridpack.bridge.git import GitRevisionSource
from gridpack.bridge.interpreter import SubprocessInterpreterProbe
from gridpack.bridge.pip import PipInstaller
from gridpack.bridge.protocols import (
    ArchiveWriter,
    InterpreterProbe,
    LockExporter,
    PackageInstaller,
    RevisionSource,
    RuntimeProvisioner,
)
from gridpack.bridge.uv import UvLockExporter, UvRuntimeProvisioner
from gridpack.config import BuildSettings
from gridpack.core.errors import ToolNotFound

logger = logging.getLogger(__name__)


class Toolchain(BaseModel):
    """Absolute paths of the external tools a build uses."""

    model_config = ConfigDict(frozen=True)

    uv: Path
    git: Path | None = None
    timeout: float | None = None

    @classmethod
    def discover(cls, settings: BuildSettings) -> Toolchain:
        """Resolve tool paths from settings, falling back to ``PATH``.

        Raises ``ToolNotFound`` if ``uv`` cannot be found.  A missing
        ``git`` is allowed: the manifest then has no revision.
        """
        uv = _locate("uv", settings.uv_path)
        if uv is None:
            raise ToolNotFound(
                "uv is required; install it or set GRIDPACK_UV_PATH",
                value="uv",
            )
        git = _locate("git", settings.git_path)
        logger.debug("toolchain: uv=%s git=%s", uv, git or "-")
        return cls(uv=uv, git=git, timeout=settings.tool_timeout_seconds)


def _locate(name: str, configured: Path | None) -> Path | None:
    if configured is not None:
        configured = Path(configured).expanduser()
        return configured.resolve() if configured.is_file() else None
    found = shutil.which(name)
    return Path(found).resolve() if found else None


class Collaborators(BaseModel):
    """The full set of external collaborators a pipeline run needs."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    provisioner: RuntimeProvisioner
    exporter: LockExporter
    installer: PackageInstaller
    probe: InterpreterProbe
    revisions: RevisionSource
    archiver: ArchiveWriter

    @classmethod
    def from_toolchain(cls, toolchain: Toolchain) -> Collaborators:
        return cls(
            provisioner=UvRuntimeProvisioner(toolchain.uv, timeout=toolchain.timeout),
            exporter=UvLockExporter(toolchain.uv, timeout=toolchain.timeout),
            installer=PipInstaller(timeout=toolchain.timeout),
            probe=SubprocessInterpreterProbe(),
            revisions=GitRevisionSource(toolchain.git),
            archiver=LocalArchiveWriter(),
        )
