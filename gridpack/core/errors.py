"""Build error taxonomy.

Every fatal condition in the build pipeline is a ``BuildError`` subclass.
Each error carries the offending ``path`` or ``value`` (when there is one)
and the ``stage_id`` of the stage that raised it.  The pipeline fills in
``stage_id`` when the error propagates out of a stage, so callers can
report *where* the build stopped without parsing messages.

Non-fatal conditions (no git, missing optional hash inputs) are never
raised; they come back as ``None`` from the function that collects them.
"""

from __future__ import annotations

from pathlib import Path


class BuildError(RuntimeError):
    """Base class for every fatal build failure."""

    def __init__(
        self,
        message: str,
        *,
        path: Path | str | None = None,
        value: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.path = Path(path) if path is not None else None
        self.value = value
        self.stage_id: str = ""

    @property
    def code(self) -> str:
        """Short machine-readable error name (the class name)."""
        return type(self).__name__

    def describe(self) -> str:
        """One-line description including the path/value involved."""
        parts = [f"{self.code}: {self.message}"]
        if self.path is not None:
            parts.append(f"path={self.path}")
        if self.value is not None:
            parts.append(f"value={self.value!r}")
        return " | ".join(parts)


# ---------------------------------------------------------------------------
# Request / configuration
# ---------------------------------------------------------------------------


class InvalidRequest(BuildError):
    """The build request itself is malformed (bad CLI input)."""


class ToolNotFound(BuildError):
    """A required external tool could not be located."""


class MissingInput(BuildError):
    """A required project input file is absent."""


class EmptyVersion(BuildError):
    """The runtime-version file is blank."""


class MissingProjectName(BuildError):
    """No ``name`` could be found in the ``[project]`` table."""


# ---------------------------------------------------------------------------
# Runtime provisioning and staging
# ---------------------------------------------------------------------------


class RuntimeNotFound(BuildError):
    """No managed runtime directory matches the requested version."""


class ProvisionFailed(RuntimeNotFound):
    """The runtime provisioner itself reported a failure."""


class InterpreterMissing(BuildError):
    """The matched runtime directory has no interpreter executable."""


class StageCopyFailed(BuildError):
    """Copying the runtime into the stage did not complete."""


class InterpreterNotStaged(BuildError):
    """The staged runtime has no (or an ambiguous) interpreter executable."""


# ---------------------------------------------------------------------------
# Dependencies, metadata, packaging
# ---------------------------------------------------------------------------


class ExportFailed(BuildError):
    """The lockfile could not be exported frozen."""


class InstallFailed(BuildError):
    """Installing the exported requirements into the stage failed."""


class ManifestIncomplete(BuildError):
    """The staged interpreter could not report its own version."""


class StagedRuntimeBroken(BuildError):
    """The post-install sanity check failed."""


class ArchiveFailed(BuildError):
    """Writing the final archive failed."""
