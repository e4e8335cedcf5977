"""Archive bridge — folds the stage into one tar or zip file.

The archive root is the *contents* of the source directory: a file at
``<stage>/requirements-export.txt`` is stored as
``requirements-export.txt``, never under a wrapper folder.

The archive is written to a temporary sibling of the output path and
moved into place only once complete, so a failed run never leaves a
half-written file at the requested path.  Any file already at that path
is removed before writing starts.  The finished file gets the usual
``0o666 & ~umask`` mode rather than the owner-only mode of a temp file.
"""

from __future__ import annotations

import logging
import os
import tarfile
import tempfile
import zipfile
from pathlib import Path

from gridpack.core.errors import ArchiveFailed
from gridpack.core.hasher import sha256_file
from gridpack.models.artifacts import SUPPORTED_SUFFIXES, ArchiveFormat, Artifact

logger = logging.getLogger(__name__)


class LocalArchiveWriter:
    """``ArchiveWriter`` using :mod:`tarfile` and :mod:`zipfile`."""

    def write(self, source_dir: Path, output: Path) -> Artifact:
        source_dir = Path(source_dir)
        output = Path(output)
        fmt = ArchiveFormat.from_path(output)
        if fmt is None:
            raise ArchiveFailed(
                f"unsupported archive extension; expected one of {', '.join(SUPPORTED_SUFFIXES)}",
                path=output,
            )
        if not source_dir.is_dir():
            raise ArchiveFailed("source directory does not exist", path=source_dir)

        tmp_path: Path | None = None
        try:
            if output.exists() or output.is_symlink():
                logger.info("Removing existing archive %s", output)
                output.unlink()
            output.parent.mkdir(parents=True, exist_ok=True)

            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{output.name}.", suffix=".partial", dir=output.parent
            )
            os.close(fd)
            tmp_path = Path(tmp_name)

            if fmt.is_tar:
                count = _write_tar(source_dir, tmp_path, fmt)
            else:
                count = _write_zip(source_dir, tmp_path)

            os.chmod(tmp_path, _default_file_mode())
            os.replace(tmp_path, output)
            tmp_path = None
        except (OSError, tarfile.TarError, zipfile.BadZipFile, zipfile.LargeZipFile) as exc:
            raise ArchiveFailed(f"archiving failed: {exc}", path=output) from exc
        finally:
            if tmp_path is not None:
                tmp_path.unlink(missing_ok=True)

        artifact = Artifact(
            path=output,
            format=fmt,
            size_bytes=output.stat().st_size,
            sha256=sha256_file(output),
            member_count=count,
        )
        logger.info(
            "Wrote %s (%s, %d members, %d bytes)",
            output,
            fmt.value,
            count,
            artifact.size_bytes,
        )
        return artifact


def _default_file_mode() -> int:
    """Mode a plain ``open()`` would give a new file under the current umask."""
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


def _write_tar(source_dir: Path, target: Path, fmt: ArchiveFormat) -> int:
    count = 0

    def _count(info: tarfile.TarInfo) -> tarfile.TarInfo:
        nonlocal count
        count += 1
        return info

    with tarfile.open(target, fmt.tar_mode) as tar:
        for child in sorted(source_dir.iterdir()):
            tar.add(child, arcname=child.name, recursive=True, filter=_count)
    return count


def _write_zip(source_dir: Path, target: Path) -> int:
    count = 0
    seen: set[str] = set()
    with zipfile.ZipFile(target, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for root, dirnames, filenames in os.walk(source_dir, followlinks=True):
            real = os.path.realpath(root)
            if real in seen:
                # symlink loop; already archived under another name
                dirnames[:] = []
                continue
            seen.add(real)
            dirnames.sort()
            root_path = Path(root)
            rel_root = root_path.relative_to(source_dir)
            if rel_root != Path("."):
                zf.write(root_path, rel_root.as_posix() + "/")
                count += 1
            for name in sorted(filenames):
                path = root_path / name
                if not path.exists():
                    logger.warning("Skipping dangling symlink %s", path)
                    continue
                zf.write(path, (rel_root / name).as_posix())
                count += 1
    return count


# ---------------------------------------------------------------------------
# Reading back (inspect / verify)
# ---------------------------------------------------------------------------


def read_member(archive: Path, name: str) -> bytes | None:
    """Bytes of the root-level member *name*, or ``None`` if absent."""
    archive = Path(archive)
    fmt = ArchiveFormat.from_path(archive)
    if fmt is None:
        raise ArchiveFailed("unsupported archive extension", path=archive)
    try:
        if fmt.is_tar:
            with tarfile.open(archive, "r:*") as tar:
                for candidate in (name, f"./{name}"):
                    try:
                        member = tar.getmember(candidate)
                    except KeyError:
                        continue
                    fh = tar.extractfile(member)
                    return fh.read() if fh is not None else None
                return None
        with zipfile.ZipFile(archive) as zf:
            try:
                return zf.read(name)
            except KeyError:
                return None
    except (OSError, tarfile.TarError, zipfile.BadZipFile) as exc:
        raise ArchiveFailed(f"cannot read archive: {exc}", path=archive) from exc


def list_members(archive: Path) -> list[str]:
    """Member names of *archive*, normalised without a leading ``./``."""
    archive = Path(archive)
    fmt = ArchiveFormat.from_path(archive)
    if fmt is None:
        raise ArchiveFailed("unsupported archive extension", path=archive)
    try:
        if fmt.is_tar:
            with tarfile.open(archive, "r:*") as tar:
                names = tar.getnames()
        else:
            with zipfile.ZipFile(archive) as zf:
                names = [n.rstrip("/") for n in zf.namelist()]
    except (OSError, tarfile.TarError, zipfile.BadZipFile) as exc:
        raise ArchiveFailed(f"cannot read archive: {exc}", path=archive) from exc
    return [n.removeprefix("./") for n in names]
