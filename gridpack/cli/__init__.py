"""gridpack CLI — Typer-based command-line interface.

Provides the ``gridpack`` command with subcommands for building an
artifact, inspecting an existing one, and previewing how extra installer
arguments are tokenized.

All output uses Rich for formatted terminal display.
"""
