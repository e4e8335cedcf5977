"""Stage 4 — Installer.

Installs the exported requirements through the *staged* interpreter's own
pip, with resolution disabled (``--no-deps``; the export is already fully
pinned).  If the staged runtime inherited an ``EXTERNALLY-MANAGED``
marker from its source, the protection is overridden for this install
only: the copy is disposable build output.

A failed install is fatal; partial installs are never packaged.
"""

from __future__ import annotations

import logging
from typing import Any

from gridpack.bridge.protocols import PackageInstaller
from gridpack.core.errors import InstallFailed
from gridpack.models.context import BuildContext
from gridpack.models.manifest import InstallOptions
from gridpack.models.request import BuildRequest
from gridpack.models.runtime import StagedRuntime
from gridpack.stages.base import BaseStage

logger = logging.getLogger(__name__)


def install_options_for(request: BuildRequest, staged: StagedRuntime) -> InstallOptions:
    """Installer policies for this build."""
    markers = staged.externally_managed_markers()
    if markers:
        logger.info(
            "Staged runtime is marked externally managed (%s); overriding for this install",
            ", ".join(str(m.relative_to(staged.stage_dir)) for m in markers),
        )
    return InstallOptions(
        no_deps=True,
        break_system_packages=bool(markers) or request.force_break_system_packages,
        no_cache=request.no_cache,
        extra_args=request.pip_args(),
    )


class InstallerStage(BaseStage):
    """Stage 4: Installer — pinned install into the staged runtime."""

    def __init__(self, installer: PackageInstaller) -> None:
        self.installer = installer

    @property
    def stage_id(self) -> str:
        return "s4_install"

    @property
    def display_name(self) -> str:
        return "Installer"

    def execute(self, context: BuildContext) -> dict[str, Any]:
        staged = context.require("staged")
        export_path = context.require("export_path")
        if not staged.interpreter.is_relative_to(staged.stage_dir):
            raise InstallFailed(
                "refusing to install outside the stage", path=staged.interpreter
            )

        options = install_options_for(context.request, staged)
        self.installer.install(staged.interpreter, export_path, options)
        context.install_options = options
        return {
            "interpreter": str(staged.interpreter),
            "options": options.model_dump(),
        }
