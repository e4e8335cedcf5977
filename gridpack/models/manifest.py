"""Build manifest — provenance record embedded in every artifact."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

ARTIFACT_TYPE = "standalone-python-runtime"
MANIFEST_FILE = "gridpack-manifest.json"
REQUIREMENTS_EXPORT_FILE = "requirements-export.txt"

# Fixed, timezone-aware timestamp format (always UTC).
TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


class ExportOptions(BaseModel):
    """Options the lockfile export ran with, recorded for audits."""

    model_config = ConfigDict(frozen=True)

    frozen: bool = True
    no_emit_workspace: bool = True
    no_emit_project: bool = True
    no_emit_package: str
    no_hashes: bool = True
    no_header: bool = True


class InstallOptions(BaseModel):
    """Policies the staged package install runs with."""

    model_config = ConfigDict(frozen=True)

    no_deps: bool = True
    break_system_packages: bool = False
    no_cache: bool = False
    extra_args: list[str] = []


class BuildManifest(BaseModel):
    """What was built, from what, and how.

    ``uv_lock_sha256`` and ``exported_requirements_sha256`` are ``None``
    when the corresponding file was absent; ``git_rev`` is ``None`` when
    the project is not under git (or git is unavailable).
    """

    model_config = ConfigDict(frozen=True)

    artifact_type: str = ARTIFACT_TYPE
    env_tag: str = ""
    python_full: str
    python_req: str
    platform: str
    built_at: str
    git_rev: str | None = None
    uv_lock_sha256: str | None = None
    exported_requirements_sha256: str | None = None
    flattened_runtime: bool
    pip_break_system_packages: bool
    uv_export: ExportOptions
    gridpack_version: str = ""

    def to_json(self) -> str:
        return self.model_dump_json(indent=2) + "\n"
