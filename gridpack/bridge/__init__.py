"""Bridges to the external tools a build drives: uv, pip, git, archivers.

Stages depend only on the protocols in :mod:`gridpack.bridge.protocols`;
the modules here provide the subprocess-backed implementations and the
``Toolchain`` that locates the tools once per process.
"""
