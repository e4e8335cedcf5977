"""``gridpack inspect ARCHIVE`` — show (and optionally verify) an artifact.

Reads ``gridpack-manifest.json`` from the archive root.  With
``--verify`` it also recomputes the SHA-256 of the archived
``requirements-export.txt`` and checks that the interpreter sits where
the manifest's layout flag says it should.
"""

from __future__ import annotations

from pathlib import Path

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

from gridpack.bridge.archive import list_members, read_member
from gridpack.core.errors import ArchiveFailed
from gridpack.core.hasher import sha256_hex
from gridpack.models.manifest import MANIFEST_FILE, REQUIREMENTS_EXPORT_FILE, BuildManifest
from gridpack.models.request import LayoutMode
from gridpack.models.runtime import INTERPRETER_RELPATH, staged_runtime_root
from gridpack.monitor.renderer import BuildRenderer

console = Console()


def verify_artifact(archive: Path, manifest: BuildManifest) -> list[str]:
    """Problems found in *archive* relative to *manifest*.  Empty means OK."""
    problems: list[str] = []

    exported = read_member(archive, REQUIREMENTS_EXPORT_FILE)
    if exported is None:
        if manifest.exported_requirements_sha256 is not None:
            problems.append(f"{REQUIREMENTS_EXPORT_FILE} missing from archive")
    else:
        digest = sha256_hex(exported)
        if digest != manifest.exported_requirements_sha256:
            problems.append(
                f"{REQUIREMENTS_EXPORT_FILE} sha256 {digest} does not match "
                f"manifest {manifest.exported_requirements_sha256}"
            )

    members = set(list_members(archive))
    layout = LayoutMode.FLATTENED if manifest.flattened_runtime else LayoutMode.NESTED
    expected = (staged_runtime_root(Path("."), layout) / INTERPRETER_RELPATH).as_posix()
    expected = expected.removeprefix("./")
    if expected not in members:
        problems.append(f"interpreter {expected} not found at the archive root layout")
    return problems


def inspect_cmd(
    archive: Path = typer.Argument(
        ...,
        exists=True,
        dir_okay=False,
        help="Artifact produced by 'gridpack build'.",
    ),
    verify: bool = typer.Option(
        False,
        "--verify",
        help="Check archived files against the manifest hashes.",
    ),
) -> None:
    """Show the build manifest embedded in an artifact."""
    renderer = BuildRenderer(console=console)
    try:
        raw = read_member(archive, MANIFEST_FILE)
    except ArchiveFailed as exc:
        console.print(f"[bold red]Cannot read archive:[/bold red] {escape(exc.describe())}")
        raise typer.Exit(code=1)
    if raw is None:
        console.print(f"[bold red]No {MANIFEST_FILE} at the root of {escape(str(archive))}[/bold red]")
        raise typer.Exit(code=1)

    try:
        manifest = BuildManifest.model_validate_json(raw)
    except ValidationError as exc:
        console.print(f"[bold red]Malformed manifest:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=1)

    console.print(renderer.render_manifest(manifest, title=archive.name))

    if verify:
        problems = verify_artifact(archive, manifest)
        if problems:
            for problem in problems:
                console.print(f"  [red]- {escape(problem)}[/red]")
            console.print("[bold red]Verification failed.[/bold red]")
            raise typer.Exit(code=1)
        console.print("[green]Artifact matches its manifest.[/green]")
