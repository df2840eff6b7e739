__version__ = "1.0.0"

from .config import BuildOptions
from .manifest import resolve_local_packages
from .model import LocalPackage, RunOutcome, RunRequest
from .orchestrator import AggregateBuildFailure, ProcessRegistry, build_all, build_local_packages

__all__ = [
    "BuildOptions",
    "resolve_local_packages",
    "LocalPackage",
    "RunOutcome",
    "RunRequest",
    "AggregateBuildFailure",
    "ProcessRegistry",
    "build_all",
    "build_local_packages",
]
