# orchestrator.py
from __future__ import annotations

import asyncio
import os
import signal
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .config import BuildOptions
from .manifest import resolve_local_packages
from .model import LocalPackage, RunOutcome, RunRequest
from .runner import error_for, run
from .ui.console import Console, get_console


# ----------------------------------------------------------------------
# Errors
# ----------------------------------------------------------------------

@dataclass
class AggregateBuildFailure(Exception):
    """
    Raised once the first local package fails.

    Only the first failure is reported; siblings are signalled to stop and
    whatever they produced later is not collected.
    """
    failed_name: str
    outputs: Dict[str, str] = field(default_factory=dict)
    exit_status: Optional[int] = None

    @property
    def output(self) -> str:
        return self.outputs.get(self.failed_name, "")

    def __str__(self) -> str:
        if self.exit_status is None:
            return f"Fatal error in '{self.failed_name}' (could not start)"
        return f"Fatal error in '{self.failed_name}' (exit={self.exit_status})"


# ----------------------------------------------------------------------
# Live processes
# ----------------------------------------------------------------------

class ProcessRegistry:
    """Non-owning references to every process spawned for one build."""

    def __init__(self) -> None:
        self._handles: List[Tuple[str, asyncio.subprocess.Process]] = []

    def add(self, name: str, proc: asyncio.subprocess.Process) -> None:
        self._handles.append((name, proc))

    def __len__(self) -> int:
        return len(self._handles)

    def handles(self, name: Optional[str] = None) -> List[asyncio.subprocess.Process]:
        return [p for n, p in self._handles if name is None or n == name]

    def terminate_all(self, except_name: Optional[str] = None) -> List[str]:
        """
        Send SIGTERM to every live process except those of `except_name`.

        Does not wait for them to exit. Returns the names signalled.
        """
        signalled: List[str] = []
        for name, proc in self._handles:
            if name == except_name or proc.returncode is not None:
                continue
            _terminate(proc)
            signalled.append(name)
        return signalled


def _terminate(proc: asyncio.subprocess.Process) -> None:
    try:
        if os.name == "posix":
            # the runner starts each child in its own session
            os.killpg(proc.pid, signal.SIGTERM)
        else:
            proc.terminate()
    except ProcessLookupError:
        # exited between the returncode check and the signal
        pass


# ----------------------------------------------------------------------
# Planning
# ----------------------------------------------------------------------

def plan_requests(
    packages: Iterable[LocalPackage],
    options: BuildOptions,
    console: Optional[Console] = None,
) -> List[RunRequest]:
    """
    One RunRequest per local package. Packages without the requested script
    are skipped with a diagnostic; install/ci need no script entry.
    """
    console = console or get_console()
    before = options.compound_steps()
    script = options.script_step()

    requests: List[RunRequest] = []
    for pkg in packages:
        if script is not None and not pkg.has_script(script):
            console.print_missing_script(pkg.name, script)
            continue
        requests.append(RunRequest(name=pkg.name, script=script, cwd=pkg.directory, before=before))
    return requests


# ----------------------------------------------------------------------
# Public API
# ----------------------------------------------------------------------

async def build_all(
    requests: Sequence[RunRequest],
    *,
    registry: Optional[ProcessRegistry] = None,
    verbose: bool = False,
    npm: Sequence[str] = ("npm",),
    console: Optional[Console] = None,
) -> Dict[str, RunOutcome]:
    """
    Run every request at once and wait for all of them.

    On the first failed outcome every other live process is signalled,
    the remaining tasks are cancelled and AggregateBuildFailure is raised.
    """
    console = console or get_console()
    if registry is None:
        registry = ProcessRegistry()

    tasks = [
        asyncio.ensure_future(run(req, npm=npm, on_spawn=registry.add, console=console))
        for req in requests
    ]
    outcomes: Dict[str, RunOutcome] = {}

    try:
        for next_done in asyncio.as_completed(tasks):
            outcome = await next_done
            outcomes[outcome.name] = outcome
            if outcome.ok:
                continue

            signalled = registry.terminate_all(except_name=outcome.name)
            if signalled:
                console.print_debug(f"terminated: {', '.join(signalled)}")
            for task in tasks:
                task.cancel()

            raise AggregateBuildFailure(
                failed_name=outcome.name,
                outputs={name: o.output for name, o in outcomes.items()},
                exit_status=outcome.exit_status,
            ) from error_for(outcome)
    except asyncio.CancelledError:
        registry.terminate_all()
        for task in tasks:
            task.cancel()
        raise

    if verbose:
        for outcome in outcomes.values():
            if outcome.output:
                console.print_output(outcome.name, outcome.output)

    return outcomes


def build_local_packages(
    options: BuildOptions,
    console: Optional[Console] = None,
) -> Dict[str, RunOutcome]:
    """
    Resolve, plan and build the local packages of `options.target`.

    Raises ManifestError before anything runs, AggregateBuildFailure when a
    package fails.
    """
    console = console or get_console()

    packages = resolve_local_packages(options.target, options.groups, strict=options.strict)
    requests = plan_requests(packages, options, console)

    if not requests:
        console.print_info(":: No local packages to build")
        return {}

    return asyncio.run(
        build_all(requests, verbose=options.verbose, npm=options.npm, console=console)
    )
