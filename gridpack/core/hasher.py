"""Hashing helpers for manifests, stage traces and artifacts.

Stage traces use canonical JSON (sorted keys, compact separators) so the
same stage result always hashes the same.  File digests are streamed so
large lockfiles and archives are never read into memory at once.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

_CHUNK_SIZE = 1024 * 1024


def canonical_json_bytes(obj: Any) -> bytes:
    """Produce canonical JSON bytes — deterministic, sorted, compact.

    Paths and other non-JSON values are rendered with ``str()``.
    """
    return json.dumps(
        obj, sort_keys=True, separators=(",", ":"), ensure_ascii=True, default=str
    ).encode("utf-8")


def sha256_hex(data: bytes) -> str:
    """Return the SHA-256 hex digest of raw bytes."""
    return hashlib.sha256(data).hexdigest()


def sha256_file(path: Path) -> str:
    """Return the SHA-256 hex digest of a file's bytes."""
    digest = hashlib.sha256()
    with Path(path).open("rb") as fh:
        for chunk in iter(lambda: fh.read(_CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


def optional_file_sha256(path: Path | None) -> str | None:
    """SHA-256 of *path*, or ``None`` when there is no such file."""
    if path is None or not Path(path).is_file():
        return None
    return sha256_file(path)


def compute_output_hash(stage_id: str, outputs: dict[str, Any]) -> str:
    """SHA-256 of canonical(stage_id + sorted outputs).

    Records what a stage produced so two builds can be compared stage by
    stage.
    """
    payload = {"stage_id": stage_id, "outputs": outputs}
    return sha256_hex(canonical_json_bytes(payload))
