"""Archive format selection and the produced artifact model."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


class ArchiveFormat(str, Enum):
    """Supported archive formats, selected by output file extension."""

    TAR = "tar"
    TAR_GZ = "tar.gz"
    TAR_BZ2 = "tar.bz2"
    TAR_XZ = "tar.xz"
    ZIP = "zip"

    @property
    def is_tar(self) -> bool:
        return self is not ArchiveFormat.ZIP

    @property
    def tar_mode(self) -> str:
        """``tarfile.open`` write mode for tar formats."""
        return {
            ArchiveFormat.TAR: "w",
            ArchiveFormat.TAR_GZ: "w:gz",
            ArchiveFormat.TAR_BZ2: "w:bz2",
            ArchiveFormat.TAR_XZ: "w:xz",
        }[self]

    @classmethod
    def from_path(cls, path: Path | str) -> ArchiveFormat | None:
        """Pick the format for *path* from its suffix, or ``None`` if unknown."""
        name = Path(path).name.lower()
        for suffix, fmt in _SUFFIXES:
            if name.endswith(suffix) and len(name) > len(suffix):
                return fmt
        return None


# Longest suffixes first so ".tar.gz" wins over ".gz"-less ".tar".
_SUFFIXES: list[tuple[str, ArchiveFormat]] = [
    (".tar.gz", ArchiveFormat.TAR_GZ),
    (".tar.bz2", ArchiveFormat.TAR_BZ2),
    (".tar.xz", ArchiveFormat.TAR_XZ),
    (".tgz", ArchiveFormat.TAR_GZ),
    (".tbz2", ArchiveFormat.TAR_BZ2),
    (".txz", ArchiveFormat.TAR_XZ),
    (".tar", ArchiveFormat.TAR),
    (".zip", ArchiveFormat.ZIP),
]

SUPPORTED_SUFFIXES: tuple[str, ...] = tuple(s for s, _ in _SUFFIXES)


class Artifact(BaseModel):
    """The final, immutable archive produced by a build."""

    model_config = ConfigDict(frozen=True)

    path: Path
    format: ArchiveFormat
    size_bytes: int
    sha256: str
    member_count: int
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
