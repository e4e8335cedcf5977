"""Collaborator protocols for the build pipeline.

Each external tool the pipeline depends on is reached through one of
these narrow interfaces.  The subprocess-backed defaults live in the
sibling modules; tests substitute in-memory fakes.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable

from gridpack.models.artifacts import Artifact
from gridpack.models.manifest import ExportOptions, InstallOptions


@runtime_checkable
class RuntimeProvisioner(Protocol):
    """Installs runtime versions and exposes where they are kept."""

    def install(self, version: str) -> None:
        """Ensure *version* is installed.  A no-op when it already is.

        Raises ``ProvisionFailed`` on failure.
        """
        ...

    def managed_dir(self) -> Path:
        """Directory holding one subdirectory per installed runtime."""
        ...


@runtime_checkable
class LockExporter(Protocol):
    """Turns a lockfile into a flat, pinned requirements file."""

    def export(
        self,
        project_dir: Path,
        output: Path,
        options: ExportOptions,
    ) -> None:
        """Write the export to *output*.  Raises ``ExportFailed``."""
        ...


@runtime_checkable
class PackageInstaller(Protocol):
    """Installs a requirements file into a given interpreter."""

    def install(
        self,
        interpreter: Path,
        requirements: Path,
        options: InstallOptions,
    ) -> None:
        """Raises ``InstallFailed`` on any non-zero exit."""
        ...


@runtime_checkable
class InterpreterProbe(Protocol):
    """Runs small snippets through an interpreter."""

    def run_snippet(self, interpreter: Path, code: str) -> str | None:
        """Return stripped stdout, or ``None`` if the snippet failed."""
        ...


@runtime_checkable
class RevisionSource(Protocol):
    """Best-effort source-control revision lookup."""

    def revision(self, project_dir: Path) -> str | None:
        """Current revision of *project_dir*, or ``None`` if unavailable."""
        ...


@runtime_checkable
class ArchiveWriter(Protocol):
    """Folds a directory tree into a single archive file."""

    def write(self, source_dir: Path, output: Path) -> Artifact:
        """Raises ``ArchiveFailed`` on any error."""
        ...
