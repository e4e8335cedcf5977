"""Runtime configuration — env-driven.

Centralized settings using pydantic-settings.  Reads from a ``.env`` file
and ``GRIDPACK_*`` environment variables.  Only operational knobs live
here (tool locations, timeouts, log level); everything that describes a
single build is on ``BuildRequest``.
"""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class BuildSettings(BaseSettings):
    """Process-wide settings with environment variable overrides.

    Examples
    --------
    Override via environment::

        export GRIDPACK_LOG_LEVEL=DEBUG
        export GRIDPACK_UV_PATH=/opt/uv/bin/uv
        export GRIDPACK_TOOL_TIMEOUT_SECONDS=900

    Or via .env file::

        GRIDPACK_STAGE_DIR=/scratch/gridpack-stage
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="GRIDPACK_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = "INFO"

    # Tool locations — resolved from PATH when unset
    uv_path: Path | None = None
    git_path: Path | None = None

    # None means external tools may run as long as they need
    tool_timeout_seconds: float | None = None

    # Build defaults
    stage_dir: Path = Path("build/stage")


# Module-level singleton — import as `from gridpack.config import settings`
settings = BuildSettings()
