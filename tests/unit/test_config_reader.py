"""Tests for Stage 0 — reading the project descriptor."""

from __future__ import annotations

import pytest

from gridpack.core.errors import EmptyVersion, MissingInput, MissingProjectName
from gridpack.stages.s0_config import read_project, read_project_name, read_python_version


class TestReadPythonVersion:
    def test_first_line_trimmed(self, tmp_path):
        path = tmp_path / ".python-version"
        path.write_text("  3.11.9  \n3.12\n")
        assert read_python_version(path) == "3.11.9"

    def test_skips_blank_and_comment_lines(self, tmp_path):
        path = tmp_path / ".python-version"
        path.write_text("\n# pinned for the grid\n3.12\n")
        assert read_python_version(path) == "3.12"

    @pytest.mark.parametrize("content", ["", "\n", "   \n\t\n"])
    def test_empty_file(self, tmp_path, content):
        path = tmp_path / ".python-version"
        path.write_text(content)
        with pytest.raises(EmptyVersion) as excinfo:
            read_python_version(path)
        assert excinfo.value.path == path

    def test_missing_file(self, tmp_path):
        with pytest.raises(MissingInput):
            read_python_version(tmp_path / ".python-version")


class TestReadProjectName:
    def test_project_table_name(self, tmp_path):
        path = tmp_path / "pyproject.toml"
        path.write_text('[project]\nname = "gridapp"\nversion = "0.1.0"\n')
        assert read_project_name(path) == "gridapp"

    def test_name_in_other_tables_ignored(self, tmp_path):
        path = tmp_path / "pyproject.toml"
        path.write_text(
            '[tool.poetry]\nname = "not-this"\n\n'
            '[project.urls]\nname = "nor-this"\n'
        )
        with pytest.raises(MissingProjectName, match="no name"):
            read_project_name(path)

    def test_sub_table_before_project_name(self, tmp_path):
        path = tmp_path / "pyproject.toml"
        path.write_text(
            '[tool.uv]\nname = "decoy"\n\n[project]\nversion = "1"\nname = "gridapp"\n'
        )
        assert read_project_name(path) == "gridapp"

    def test_no_project_table(self, tmp_path):
        path = tmp_path / "pyproject.toml"
        path.write_text('[build-system]\nrequires = ["hatchling"]\n')
        with pytest.raises(MissingProjectName, match=r"no \[project\] table"):
            read_project_name(path)

    def test_non_string_name(self, tmp_path):
        path = tmp_path / "pyproject.toml"
        path.write_text("[project]\nname = 42\n")
        with pytest.raises(MissingProjectName):
            read_project_name(path)

    def test_invalid_toml(self, tmp_path):
        path = tmp_path / "pyproject.toml"
        path.write_text("[project\nname = ")
        with pytest.raises(MissingProjectName, match="not valid TOML"):
            read_project_name(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(MissingInput):
            read_project_name(tmp_path / "pyproject.toml")


class TestReadProject:
    def test_gridapp(self, project_dir):
        project = read_project(project_dir)
        assert project.name == "gridapp"
        assert project.python_version == "3.11"
        assert project.lockfile == project_dir / "uv.lock"

    def test_missing_lock_is_not_fatal_here(self, tmp_path, project_factory):
        root = project_factory(tmp_path / "nolock", lock=None)
        project = read_project(root)
        assert not project.lockfile.exists()

    def test_missing_project_dir(self, tmp_path):
        with pytest.raises(MissingInput):
            read_project(tmp_path / "absent")

    def test_reads_nothing_else(self, project_dir):
        before = sorted(p.name for p in project_dir.iterdir())
        read_project(project_dir)
        assert sorted(p.name for p in project_dir.iterdir()) == before
