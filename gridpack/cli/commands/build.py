"""``gridpack build`` — build one standalone runtime artifact.

Runs the full pipeline (config -> runtime -> stage -> export -> install
-> manifest -> sanity -> archive) and exits 0 only once the archive has
been written.  Any failure exits 1 with the failing stage, the error
class and the path or value involved.
"""

from __future__ import annotations

from pathlib import Path

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

from gridpack.config import settings
from gridpack.core.errors import BuildError
from gridpack.core.orchestrator import BuildPipeline
from gridpack.models.request import BuildRequest, LayoutMode
from gridpack.monitor.renderer import BuildRenderer

console = Console()


def build_cmd(
    output: Path = typer.Option(
        ...,
        "--output",
        "-o",
        help="Archive to write; format from extension (.tar.gz, .tgz, .tar.xz, .tar.bz2, .tar, .zip).",
    ),
    project_dir: Path = typer.Option(
        Path("."),
        "--project",
        "-p",
        help="Project directory holding .python-version, pyproject.toml and uv.lock.",
    ),
    stage_dir: Path = typer.Option(
        None,
        "--stage",
        "-s",
        help="Stage directory (wiped at the start of the build). Default: GRIDPACK_STAGE_DIR.",
    ),
    platform_label: str = typer.Option(
        "",
        "--platform",
        help="Platform label recorded in the manifest. Default: host platform.",
    ),
    env_tag: str = typer.Option(
        "",
        "--tag",
        "-t",
        help="Free-form artifact tag recorded in the manifest.",
    ),
    flatten: bool = typer.Option(
        False,
        "--flatten",
        help="Put the runtime at the archive root instead of under python/.",
    ),
    no_cache: bool = typer.Option(
        False,
        "--no-cache",
        help="Disable the pip cache during the install.",
    ),
    pip_args: str = typer.Option(
        "",
        "--pip-args",
        help='Extra pip arguments, e.g. \'--index-url https://mirror/simple --trusted-host mirror\'. Double quotes group words.',
    ),
    force_break_system_packages: bool = typer.Option(
        False,
        "--force-break-system-packages",
        help="Pass --break-system-packages even if the runtime is not marked externally managed.",
    ),
) -> None:
    """Build a standalone Python runtime archive from a uv-locked project."""
    renderer = BuildRenderer(console=console)

    layout = LayoutMode.FLATTENED if flatten else LayoutMode.NESTED

    try:
        request = BuildRequest(
            project_dir=project_dir,
            stage_dir=stage_dir or settings.stage_dir,
            output_path=output,
            layout=layout,
            platform_label=platform_label,
            env_tag=env_tag,
            no_cache=no_cache,
            extra_pip_args=pip_args,
            force_break_system_packages=force_break_system_packages,
        )
    except ValidationError as exc:
        console.print("[bold red]Invalid build request:[/bold red]")
        for err in exc.errors():
            location = ".".join(str(p) for p in err["loc"]) or "request"
            console.print(f"  [red]- {location}: {escape(err['msg'])}[/red]")
        raise typer.Exit(code=1)

    pipeline: BuildPipeline | None = None
    try:
        pipeline = BuildPipeline.from_settings(settings)
        context = pipeline.run(request)
    except BuildError as exc:
        renderer.print_failure(exc, pipeline.context if pipeline else None)
        raise typer.Exit(code=1)

    console.print()
    renderer.print_summary(context)
    console.print()
    # Print the archive path plainly for scripting
    console.print(f"[bold]{escape(str(context.request.output_path))}[/bold]")
