"""Unit tests for the CLI — command registration, build, inspect and split-args.

The pipeline is wired to the shared fakes by patching
``BuildPipeline.from_settings``; no external tool is ever started.
"""

from __future__ import annotations

import json
import tarfile

import pytest
from typer.testing import CliRunner

from gridpack import __version__
from gridpack.cli.app import app
from gridpack.cli.commands.inspect_cmd import verify_artifact
from gridpack.core.orchestrator import BuildPipeline
from gridpack.models.manifest import BuildManifest

runner = CliRunner()


@pytest.fixture
def patched_pipeline(monkeypatch, pipeline):
    monkeypatch.setattr(
        BuildPipeline, "from_settings", classmethod(lambda cls, settings, **kw: pipeline)
    )
    return pipeline


@pytest.fixture
def built_archive(tmp_path, project_dir, patched_pipeline):
    output = tmp_path / "dist" / "gridapp.tar.gz"
    result = runner.invoke(
        app,
        [
            "build",
            "--project", str(project_dir),
            "--stage", str(tmp_path / "stage"),
            "--output", str(output),
            "--flatten",
            "--tag", "grid-prod",
        ],
    )
    assert result.exit_code == 0, result.output
    return output


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------


class TestCliApp:
    def test_no_args_shows_help(self):
        result = runner.invoke(app, [])
        assert result.exit_code in (0, 2)
        assert "usage" in result.output.lower()

    def test_help_lists_commands(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for command in ("build", "inspect", "split-args"):
            assert command in result.output

    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_build_help(self):
        result = runner.invoke(app, ["build", "--help"])
        assert result.exit_code == 0
        assert "--flatten" in result.output


# ---------------------------------------------------------------------------
# split-args
# ---------------------------------------------------------------------------


class TestSplitArgsCommand:
    def test_tokens_bracketed(self):
        result = runner.invoke(app, ["split-args", '--index-url "https://m/my index" ""'])
        assert result.exit_code == 0
        assert result.output.splitlines() == ["[--index-url]", "[https://m/my index]", "[]"]

    def test_text_after_double_dash(self):
        result = runner.invoke(app, ["split-args", "--", "--no-compile -q"])
        assert result.exit_code == 0
        assert result.output.splitlines() == ["[--no-compile]", "[-q]"]

    def test_help_still_recognised(self):
        result = runner.invoke(app, ["split-args", "--help"])
        assert result.exit_code == 0
        assert "tokenized" in result.output

    def test_unterminated_quote(self):
        result = runner.invoke(app, ["split-args", '"open'])
        assert result.exit_code == 1
        assert "InvalidRequest" in result.output


# ---------------------------------------------------------------------------
# build
# ---------------------------------------------------------------------------


class TestBuildCommand:
    def test_success_writes_archive(self, built_archive, tmp_path):
        assert built_archive.is_file()
        with tarfile.open(built_archive) as tar:
            names = tar.getnames()
        assert "gridpack-manifest.json" in names
        assert "bin/python3" in names

    def test_invalid_suffix_exits_1(self, tmp_path, project_dir, patched_pipeline):
        result = runner.invoke(
            app,
            ["build", "-p", str(project_dir), "-s", str(tmp_path / "stage"), "-o", str(tmp_path / "x.rar")],
        )
        assert result.exit_code == 1
        assert "unsupported archive extension" in result.output
        assert not (tmp_path / "stage").exists()

    def test_markup_like_values_printed_verbatim(self, tmp_path, project_dir, patched_pipeline):
        output = tmp_path / "[/x]" / "rt.tar.gz"
        result = runner.invoke(
            app,
            [
                "build", "-p", str(project_dir), "-s", str(tmp_path / "stage"),
                "-o", str(output), "--platform", "[/linux]",
            ],
        )
        assert result.exit_code == 0, result.output
        assert output.is_file()
        assert "[/linux]" in result.output

    def test_failure_names_stage_and_error(self, tmp_path, project_dir, patched_pipeline, installer):
        installer.fail = True
        result = runner.invoke(
            app,
            ["build", "-p", str(project_dir), "-s", str(tmp_path / "stage"), "-o", str(tmp_path / "rt.zip")],
        )
        assert result.exit_code == 1
        assert "InstallFailed" in result.output
        assert "s4_install" in result.output
        assert not (tmp_path / "rt.zip").exists()

    def test_missing_uv_exits_1(self, tmp_path, project_dir, monkeypatch):
        monkeypatch.setattr("gridpack.bridge.toolchain.shutil.which", lambda name: None)
        monkeypatch.setattr("gridpack.cli.commands.build.settings.uv_path", None)
        result = runner.invoke(
            app,
            ["build", "-p", str(project_dir), "-s", str(tmp_path / "stage"), "-o", str(tmp_path / "rt.tar")],
        )
        assert result.exit_code == 1
        assert "ToolNotFound" in result.output


# ---------------------------------------------------------------------------
# inspect
# ---------------------------------------------------------------------------


class TestInspectCommand:
    def test_shows_manifest(self, built_archive):
        result = runner.invoke(app, ["inspect", str(built_archive)])
        assert result.exit_code == 0
        assert "3.11.9" in result.output
        assert "gridapp" in result.output

    def test_verify_ok(self, built_archive):
        result = runner.invoke(app, ["inspect", str(built_archive), "--verify"])
        assert result.exit_code == 0
        assert "matches its manifest" in result.output

    def test_verify_detects_tampering(self, built_archive):
        with tarfile.open(built_archive) as tar:
            manifest = BuildManifest.model_validate_json(
                tar.extractfile("gridpack-manifest.json").read()
            )
        tampered = manifest.model_copy(update={"exported_requirements_sha256": "0" * 64})
        problems = verify_artifact(built_archive, tampered)
        assert any("does not match" in p for p in problems)

    def test_verify_detects_wrong_layout(self, built_archive):
        with tarfile.open(built_archive) as tar:
            data = json.loads(tar.extractfile("gridpack-manifest.json").read())
        data["flattened_runtime"] = False
        problems = verify_artifact(built_archive, BuildManifest.model_validate(data))
        assert any("interpreter" in p for p in problems)

    def test_archive_without_manifest(self, tmp_path):
        archive = tmp_path / "plain.tar"
        (tmp_path / "f.txt").write_text("x")
        with tarfile.open(archive, "w") as tar:
            tar.add(tmp_path / "f.txt", arcname="f.txt")
        result = runner.invoke(app, ["inspect", str(archive)])
        assert result.exit_code == 1
        assert "No gridpack-manifest.json" in result.output
