"""Stage 1 — Runtime Resolver.

Asks the provisioner to install the declared version (a no-op when it is
already present), then finds the install under the provisioner's managed
directory by its ``cpython-<major>.<minor>.`` directory-name prefix.

When several installs share the prefix the first in name order wins; the
others are logged so a mismatch is visible in the build log.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any

from gridpack.bridge.protocols import RuntimeProvisioner
from gridpack.core.errors import InterpreterMissing, RuntimeNotFound
from gridpack.models.context import BuildContext
from gridpack.models.runtime import INTERPRETER_RELPATH, RuntimeInstallation
from gridpack.stages.base import BaseStage

logger = logging.getLogger(__name__)

_VERSION_RE = re.compile(r"^(?:cpython-)?(\d+)\.(\d+)(?:\.\d+)?(t)?")
_FREETHREADED = "+freethreaded"


def runtime_dir_prefix(version: str) -> tuple[str, bool]:
    """Directory-name prefix for *version* and whether it is free-threaded.

    ``"3.11"`` and ``"3.11.9"`` both give ``("cpython-3.11.", False)``.
    """
    match = _VERSION_RE.match(version.strip())
    if match is None:
        raise RuntimeNotFound(
            "runtime version is not of the form <major>.<minor>[.<patch>]",
            value=version,
        )
    major, minor, threaded = match.groups()
    return f"cpython-{major}.{minor}.", threaded is not None


def find_runtime_dirs(managed_dir: Path, version: str) -> list[Path]:
    """Every install under *managed_dir* matching *version*, in name order."""
    prefix, freethreaded = runtime_dir_prefix(version)
    if not managed_dir.is_dir():
        return []
    return sorted(
        entry
        for entry in managed_dir.iterdir()
        if entry.is_dir()
        and entry.name.startswith(prefix)
        and (_FREETHREADED in entry.name) == freethreaded
    )


def resolve_runtime(version: str, provisioner: RuntimeProvisioner) -> RuntimeInstallation:
    """Provision *version* and locate its installation root."""
    runtime_dir_prefix(version)  # reject unparseable versions before provisioning
    provisioner.install(version)
    managed = provisioner.managed_dir()

    candidates = find_runtime_dirs(managed, version)
    if not candidates:
        raise RuntimeNotFound(
            f"no managed runtime matching Python {version}", path=managed, value=version
        )
    root = candidates[0]
    if len(candidates) > 1:
        logger.warning(
            "Several runtimes match Python %s; using %s (also found: %s)",
            version,
            root.name,
            ", ".join(c.name for c in candidates[1:]),
        )

    interpreter = root / INTERPRETER_RELPATH
    if not interpreter.is_file():
        raise InterpreterMissing(
            "managed runtime has no interpreter executable", path=interpreter
        )
    return RuntimeInstallation(root=root, interpreter=interpreter)


class RuntimeResolverStage(BaseStage):
    """Stage 1: Runtime Resolver — provisions and locates the runtime."""

    def __init__(self, provisioner: RuntimeProvisioner) -> None:
        self.provisioner = provisioner

    @property
    def stage_id(self) -> str:
        return "s1_runtime"

    @property
    def display_name(self) -> str:
        return "Runtime Resolver"

    def execute(self, context: BuildContext) -> dict[str, Any]:
        project = context.require("project")
        installation = resolve_runtime(project.python_version, self.provisioner)
        context.installation = installation
        logger.info("Using runtime %s", installation.root)
        return {
            "runtime_root": str(installation.root),
            "runtime_dir": installation.dirname,
        }
