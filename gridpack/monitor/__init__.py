"""Console output for gridpack builds (Rich)."""

from gridpack.monitor.renderer import BuildRenderer

__all__ = ["BuildRenderer"]
