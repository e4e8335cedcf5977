"""Rich terminal renderer for build progress, manifests and failures.

Color scheme
------------
- green  : PASSED
- red    : FAILED
- yellow : RUNNING
- dim    : NOT_STARTED
"""

from __future__ import annotations

from rich.console import Console, Group
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from gridpack.core.errors import BuildError
from gridpack.models.artifacts import Artifact
from gridpack.models.context import BuildContext
from gridpack.models.manifest import BuildManifest
from gridpack.models.stages import PIPELINE_STAGE_DEFINITIONS, StageState

# ---------------------------------------------------------------------------
# State -> Rich style mapping
# ---------------------------------------------------------------------------

_STATE_STYLES: dict[StageState, str] = {
    StageState.PASSED: "bold green",
    StageState.FAILED: "bold red",
    StageState.RUNNING: "bold yellow",
    StageState.NOT_STARTED: "dim",
}

_STATE_ICONS: dict[StageState, str] = {
    StageState.PASSED: "[green]PASSED[/green]",
    StageState.FAILED: "[bold red]FAILED[/bold red]",
    StageState.RUNNING: "[yellow]RUNNING[/yellow]",
    StageState.NOT_STARTED: "[dim]NOT STARTED[/dim]",
}


class BuildRenderer:
    """Renders build state as Rich terminal output.

    Parameters
    ----------
    console:
        Rich Console instance.  A new one is created if not provided.
    """

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    # ------------------------------------------------------------------
    # Renderables
    # ------------------------------------------------------------------

    def render_stages(self, context: BuildContext) -> Table:
        """Table of every stage with its state and output hash."""
        table = Table(
            show_header=True,
            header_style="bold cyan",
            expand=True,
            show_lines=False,
            pad_edge=True,
        )
        table.add_column("#", style="dim", width=3, justify="right")
        table.add_column("Stage", min_width=20)
        table.add_column("State", min_width=12, justify="center")
        table.add_column("Output hash", min_width=14)

        for definition in PIPELINE_STAGE_DEFINITIONS:
            state = context.stage_states.get(definition.stage_id, StageState.NOT_STARTED)
            style = _STATE_STYLES.get(state, "")
            output_hash = context.output_hashes.get(definition.stage_id)
            table.add_row(
                str(definition.ordinal),
                f"[{style}]{definition.display_name}[/{style}]",
                _STATE_ICONS.get(state, state.value),
                f"[dim]{output_hash[:12]}[/dim]" if output_hash else "[dim]-[/dim]",
            )
        return table

    def render_manifest(
        self,
        manifest: BuildManifest,
        *,
        artifact: Artifact | None = None,
        title: str = "Build Manifest",
    ) -> Panel:
        """Key/value panel of a manifest (and the artifact, if known)."""
        grid = Table.grid(padding=(0, 2))
        grid.add_column(style="bold")
        grid.add_column()

        rows: list[tuple[str, str]] = [
            ("Artifact type", escape(manifest.artifact_type)),
            ("Env tag", escape(manifest.env_tag) or "[dim]-[/dim]"),
            ("Python", escape(f"{manifest.python_full} (requested {manifest.python_req})")),
            ("Platform", escape(manifest.platform)),
            ("Built at", escape(manifest.built_at)),
            ("Git revision", escape(manifest.git_rev or "") or "[dim]none[/dim]"),
            ("uv.lock sha256", manifest.uv_lock_sha256 or "[dim]absent[/dim]"),
            (
                "Export sha256",
                manifest.exported_requirements_sha256 or "[dim]absent[/dim]",
            ),
            ("Layout", "flattened" if manifest.flattened_runtime else "nested"),
            (
                "Externally-managed override",
                "yes" if manifest.pip_break_system_packages else "no",
            ),
            ("Excluded package", escape(manifest.uv_export.no_emit_package)),
        ]
        if artifact is not None:
            rows.extend(
                [
                    ("Archive", escape(str(artifact.path))),
                    ("Archive sha256", artifact.sha256),
                    ("Archive size", f"{artifact.size_bytes / 1024 / 1024:.1f} MB"),
                ]
            )
        for key, value in rows:
            grid.add_row(key, value)

        return Panel(
            grid,
            title=f"[bold]{escape(title)}[/bold]",
            border_style="green",
            padding=(1, 2),
        )

    def render_failure(self, error: BuildError) -> Panel:
        lines = [
            f"[bold red]{error.code}[/bold red]",
            "",
            f"[bold]Stage:[/bold]   {error.stage_id or '-'}",
            f"[bold]Reason:[/bold]  {escape(error.message)}",
        ]
        if error.path is not None:
            lines.append(f"[bold]Path:[/bold]    {escape(str(error.path))}")
        if error.value is not None:
            lines.append(f"[bold]Value:[/bold]   {escape(error.value)}")
        return Panel(
            Text.from_markup("\n".join(lines)),
            title="[bold]Build failed[/bold]",
            border_style="red",
            padding=(1, 2),
        )

    # ------------------------------------------------------------------
    # Standalone print
    # ------------------------------------------------------------------

    def print_summary(self, context: BuildContext) -> None:
        """Stage table, followed by the manifest panel when the build finished."""
        parts: list = [self.render_stages(context)]
        if context.manifest is not None and context.artifact is not None:
            parts.append(Text(""))
            parts.append(self.render_manifest(context.manifest, artifact=context.artifact))
        self.console.print(Group(*parts))

    def print_failure(self, error: BuildError, context: BuildContext | None = None) -> None:
        if context is not None:
            self.console.print(self.render_stages(context))
        self.console.print(self.render_failure(error))
