"""Shared test fixtures for gridpack.

External tools are replaced by in-memory fakes that act on real
temporary directories: a fake uv-managed runtime tree, a fake project
with ``.python-version``/``pyproject.toml``/``uv.lock``, and fakes for
the provisioner, exporter, installer, interpreter probe and git.  The
archive writer is the real one.
"""

from __future__ import annotations

import os
import tomllib
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import pytest

from gridpack.bridge.archive import LocalArchiveWriter
from gridpack.bridge.toolchain import Collaborators
from gridpack.core.errors import ExportFailed, InstallFailed, ProvisionFailed
from gridpack.core.orchestrator import BuildPipeline
from gridpack.models.manifest import ExportOptions, InstallOptions
from gridpack.models.request import BuildRequest, LayoutMode
from gridpack.models.runtime import INTERPRETER_RELPATH
from gridpack.stages.s5_manifest import VERSION_SNIPPET
from gridpack.stages.s6_sanity import SANITY_SNIPPET

PROJECT_NAME = "gridapp"
RUNTIME_DIRNAME = "cpython-3.11.9-linux-x86_64-gnu"
FIXED_NOW = datetime(2026, 3, 1, 12, 30, 0, tzinfo=timezone.utc)

GRIDAPP_LOCK = """\
version = 1
requires-python = ">=3.11"

[[package]]
name = "gridapp"
version = "0.1.0"
source = { editable = "." }

[[package]]
name = "requests"
version = "2.31.0"
source = { registry = "https://pypi.org/simple" }
"""


# ---------------------------------------------------------------------------
# Filesystem fixtures
# ---------------------------------------------------------------------------


def write_project(
    root: Path,
    *,
    version: str | None = "3.11",
    name: str | None = PROJECT_NAME,
    lock: str | None = GRIDAPP_LOCK,
) -> Path:
    root.mkdir(parents=True, exist_ok=True)
    if version is not None:
        (root / ".python-version").write_text(version + "\n", encoding="utf-8")
    if name is not None:
        (root / "pyproject.toml").write_text(
            f'[project]\nname = "{name}"\nversion = "0.1.0"\n'
            'requires-python = ">=3.11"\ndependencies = ["requests==2.31.0"]\n',
            encoding="utf-8",
        )
    if lock is not None:
        (root / "uv.lock").write_text(lock, encoding="utf-8")
    return root


def write_runtime(managed_dir: Path, dirname: str = RUNTIME_DIRNAME, *, marker: bool = True) -> Path:
    """Lay out a minimal python-build-standalone tree under *managed_dir*."""
    root = managed_dir / dirname
    interpreter = root / INTERPRETER_RELPATH
    interpreter.parent.mkdir(parents=True, exist_ok=True)
    interpreter.write_text("#!fake python\n", encoding="utf-8")
    stdlib = root / "lib" / "python3.11"
    stdlib.mkdir(parents=True, exist_ok=True)
    (stdlib / "os.py").write_text("# stdlib\n", encoding="utf-8")
    if marker:
        (stdlib / "EXTERNALLY-MANAGED").write_text(
            "[externally-managed]\nError=use uv\n", encoding="utf-8"
        )
    if os.name != "nt":
        (root / "bin" / "python").symlink_to("python3")
    return root


@pytest.fixture
def project_factory() -> Callable[..., Path]:
    """Factory fixture: ``write_project(root, version=..., name=..., lock=...)``."""
    return write_project


@pytest.fixture
def runtime_factory() -> Callable[..., Path]:
    """Factory fixture: ``write_runtime(managed_dir, dirname, marker=...)``."""
    return write_runtime


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """The ``gridapp`` project: Python 3.11, one pinned dependency."""
    return write_project(tmp_path / PROJECT_NAME)


@pytest.fixture
def managed_dir(tmp_path: Path) -> Path:
    """A uv-managed runtime directory holding one CPython 3.11 install."""
    managed = tmp_path / "uv-python"
    write_runtime(managed)
    return managed


# ---------------------------------------------------------------------------
# Fake collaborators
# ---------------------------------------------------------------------------


class FakeProvisioner:
    def __init__(self, managed: Path) -> None:
        self.managed = managed
        self.installed: list[str] = []
        self.fail = False

    def install(self, version: str) -> None:
        if self.fail:
            raise ProvisionFailed("uv python install exited 2: no download", value=version)
        self.installed.append(version)

    def managed_dir(self) -> Path:
        return self.managed


class FakeExporter:
    """Writes ``name==version`` for every locked package but the excluded one."""

    def __init__(self) -> None:
        self.calls: list[tuple[Path, Path, ExportOptions]] = []
        self.leak_project = False

    def export(self, project_dir: Path, output: Path, options: ExportOptions) -> None:
        self.calls.append((project_dir, output, options))
        lock = project_dir / "uv.lock"
        if not lock.is_file():
            raise ExportFailed("uv export exited 2: no lockfile", path=lock)
        packages = tomllib.loads(lock.read_text(encoding="utf-8")).get("package", [])
        lines = [
            f"{pkg['name']}=={pkg['version']}"
            for pkg in packages
            if self.leak_project or pkg["name"] != options.no_emit_package
        ]
        output.write_text("\n".join(lines) + "\n", encoding="utf-8")


class FakeInstaller:
    """Creates one site-packages directory per pinned requirement."""

    def __init__(self) -> None:
        self.calls: list[tuple[Path, Path, InstallOptions]] = []
        self.fail = False

    def install(self, interpreter: Path, requirements: Path, options: InstallOptions) -> None:
        self.calls.append((interpreter, requirements, options))
        if self.fail:
            raise InstallFailed("pip install exited 1: no matching distribution", path=requirements)
        root = interpreter.parent.parent if interpreter.parent.name == "bin" else interpreter.parent
        site = root / "lib" / "python3.11" / "site-packages"
        for line in requirements.read_text(encoding="utf-8").splitlines():
            if line.strip():
                (site / line.split("==")[0]).mkdir(parents=True, exist_ok=True)


class FakeProbe:
    def __init__(self, version: str = "3.11.9") -> None:
        self.version = version
        self.snippets: list[tuple[Path, str]] = []
        self.broken: set[str] = set()

    def run_snippet(self, interpreter: Path, code: str) -> str | None:
        self.snippets.append((interpreter, code))
        if code in self.broken or not Path(interpreter).is_file():
            return None
        if code == VERSION_SNIPPET:
            return self.version
        if code == SANITY_SNIPPET:
            return f"{self.version} (main, Apr  6 2024, 17:59:09) [GCC 11.2.0]"
        return ""


class FakeRevisions:
    def __init__(self, rev: str | None = "4f1c2b9e0d7a4c3b8e6f5a1d2c3b4a5f6e7d8c9b") -> None:
        self.rev = rev

    def revision(self, project_dir: Path) -> str | None:
        return self.rev


@pytest.fixture
def provisioner(managed_dir: Path) -> FakeProvisioner:
    return FakeProvisioner(managed_dir)


@pytest.fixture
def exporter() -> FakeExporter:
    return FakeExporter()


@pytest.fixture
def installer() -> FakeInstaller:
    return FakeInstaller()


@pytest.fixture
def probe() -> FakeProbe:
    return FakeProbe()


@pytest.fixture
def revisions() -> FakeRevisions:
    return FakeRevisions()


@pytest.fixture
def collaborators(
    provisioner: FakeProvisioner,
    exporter: FakeExporter,
    installer: FakeInstaller,
    probe: FakeProbe,
    revisions: FakeRevisions,
) -> Collaborators:
    return Collaborators(
        provisioner=provisioner,
        exporter=exporter,
        installer=installer,
        probe=probe,
        revisions=revisions,
        archiver=LocalArchiveWriter(),
    )


@pytest.fixture
def pipeline(collaborators: Collaborators) -> BuildPipeline:
    """A pipeline over the fakes with a fixed manifest clock."""
    return BuildPipeline(collaborators, clock=lambda: FIXED_NOW)


# ---------------------------------------------------------------------------
# Request factory
# ---------------------------------------------------------------------------


@pytest.fixture
def make_request(tmp_path: Path, project_dir: Path) -> Callable[..., BuildRequest]:
    """Factory fixture: a BuildRequest for the gridapp project."""

    def _factory(**overrides: Any) -> BuildRequest:
        defaults: dict[str, Any] = {
            "project_dir": project_dir,
            "stage_dir": tmp_path / "stage",
            "output_path": tmp_path / "dist" / "gridapp.tar.gz",
            "layout": LayoutMode.NESTED,
            "platform_label": "linux-x86_64",
            "env_tag": "grid-prod",
        }
        defaults.update(overrides)
        return BuildRequest(**defaults)

    return _factory
