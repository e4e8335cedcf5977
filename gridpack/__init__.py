"""gridpack: reproducible standalone Python runtime artifacts for compute grids.

A build reads ``.python-version`` and ``pyproject.toml``, stages a private
copy of a uv-managed CPython runtime, installs the frozen ``uv.lock``
export into it, writes a provenance manifest and packs the stage into a
single archive that unpacks anywhere without further setup.
"""

__version__ = "0.1.0"
__description__ = "Standalone Python runtime artifacts built from a uv lockfile"

from gridpack.core.orchestrator import BuildPipeline
from gridpack.models.request import BuildRequest, LayoutMode

__all__ = ["BuildPipeline", "BuildRequest", "LayoutMode", "__version__"]
