"""Tests for Stage 5 — provenance collection and the manifest file."""

from __future__ import annotations

import hashlib
import json
from datetime import datetime, timedelta, timezone

import pytest

from gridpack import __version__
from gridpack.core.errors import ManifestIncomplete
from gridpack.models.manifest import ExportOptions
from gridpack.models.runtime import INTERPRETER_RELPATH, RuntimeInstallation
from gridpack.stages.s0_config import read_project
from gridpack.stages.s2_stage import stage_runtime
from gridpack.stages.s5_manifest import (
    VERSION_SNIPPET,
    build_manifest,
    utc_timestamp,
    write_manifest,
)

NOW = datetime(2026, 3, 1, 12, 30, 0, tzinfo=timezone.utc)


@pytest.fixture
def staged(make_request, managed_dir):
    root = managed_dir / "cpython-3.11.9-linux-x86_64-gnu"
    return stage_runtime(
        make_request(), RuntimeInstallation(root=root, interpreter=root / INTERPRETER_RELPATH)
    )


@pytest.fixture
def manifest_kwargs(make_request, project_dir, staged, probe, revisions):
    export_path = staged.stage_dir / "requirements-export.txt"
    export_path.write_text("requests==2.31.0\n")
    return {
        "request": make_request(),
        "project": read_project(project_dir),
        "staged": staged,
        "export_path": export_path,
        "export_options": ExportOptions(no_emit_package="gridapp"),
        "break_system_packages": True,
        "probe": probe,
        "revisions": revisions,
        "now": NOW,
    }


class TestUtcTimestamp:
    def test_format(self):
        assert utc_timestamp(NOW) == "2026-03-01T12:30:00Z"

    def test_converts_to_utc(self):
        local = NOW.astimezone(timezone(timedelta(hours=5)))
        assert utc_timestamp(local) == "2026-03-01T12:30:00Z"


class TestBuildManifest:
    def test_fields(self, manifest_kwargs, project_dir, probe):
        manifest = build_manifest(**manifest_kwargs)
        assert manifest.python_full == "3.11.9"
        assert manifest.python_req == "3.11"
        assert manifest.platform == "linux-x86_64"
        assert manifest.env_tag == "grid-prod"
        assert manifest.built_at == "2026-03-01T12:30:00Z"
        assert manifest.git_rev == "4f1c2b9e0d7a4c3b8e6f5a1d2c3b4a5f6e7d8c9b"
        assert manifest.uv_lock_sha256 == hashlib.sha256(
            (project_dir / "uv.lock").read_bytes()
        ).hexdigest()
        assert manifest.exported_requirements_sha256 == hashlib.sha256(
            b"requests==2.31.0\n"
        ).hexdigest()
        assert manifest.flattened_runtime is False
        assert manifest.pip_break_system_packages is True
        assert manifest.gridpack_version == __version__
        assert probe.snippets[-1] == (manifest_kwargs["staged"].interpreter, VERSION_SNIPPET)

    def test_absent_inputs_hash_to_none(self, manifest_kwargs, project_dir):
        (project_dir / "uv.lock").unlink()
        manifest_kwargs["export_path"] = None
        manifest = build_manifest(**manifest_kwargs)
        assert manifest.uv_lock_sha256 is None
        assert manifest.exported_requirements_sha256 is None

    def test_no_git_revision(self, manifest_kwargs, revisions):
        revisions.rev = None
        assert build_manifest(**manifest_kwargs).git_rev is None

    def test_broken_interpreter(self, manifest_kwargs, probe):
        probe.broken.add(VERSION_SNIPPET)
        with pytest.raises(ManifestIncomplete) as excinfo:
            build_manifest(**manifest_kwargs)
        assert excinfo.value.path == manifest_kwargs["staged"].interpreter


class TestWriteManifest:
    def test_written_to_stage(self, manifest_kwargs, staged):
        manifest = build_manifest(**manifest_kwargs)
        path = write_manifest(manifest, staged.stage_dir)
        assert path == staged.stage_dir / "gridpack-manifest.json"
        data = json.loads(path.read_text())
        assert data["artifact_type"] == "standalone-python-runtime"
        assert data["uv_export"]["no_emit_package"] == "gridapp"

    def test_unwritable_stage(self, manifest_kwargs, tmp_path):
        manifest = build_manifest(**manifest_kwargs)
        with pytest.raises(ManifestIncomplete, match="cannot write manifest"):
            write_manifest(manifest, tmp_path / "missing-dir")
