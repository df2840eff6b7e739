# runner.py
from __future__ import annotations

import asyncio
import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from .model import GIT_PULL, ROOT_SCRIPTS, RunOutcome, RunRequest
from .ui.console import Console, get_console


# ----------------------------------------------------------------------
# Errors
# ----------------------------------------------------------------------

@dataclass
class RunFailed(Exception):
    name: str
    output: str
    exit_status: int

    def __str__(self) -> str:
        return f"'{self.name}' failed (exit={self.exit_status})"


@dataclass
class SpawnError(Exception):
    name: str
    message: str

    def __str__(self) -> str:
        return f"'{self.name}' could not be started: {self.message}"


def error_for(outcome: RunOutcome) -> Exception:
    """The exception describing a failed outcome."""
    if outcome.exit_status is None:
        return SpawnError(name=outcome.name, message=outcome.output)
    return RunFailed(name=outcome.name, output=outcome.output, exit_status=outcome.exit_status)


TOOL_HINTS = {
    "npm": "Install Node.js (includes npm) or fix PATH.",
    "pnpm": "Install pnpm (e.g., npm install -g pnpm) or fix PATH.",
    "yarn": "Install yarn (e.g., npm install -g yarn) or fix PATH.",
    "git": "Install Git or fix PATH.",
}

# Called with (name, process) right after a process starts.
OnSpawn = Callable[[str, "asyncio.subprocess.Process"], None]

_CHUNK = 64 * 1024


# ----------------------------------------------------------------------
# Commands
# ----------------------------------------------------------------------

def command_for(step: str, npm: Sequence[str] = ("npm",)) -> List[str]:
    """
    argv for one step:
      git-pull     -> git pull
      install / ci -> npm install / npm ci
      <script>     -> npm run -s <script>
    """
    if step == GIT_PULL:
        return ["git", "pull"]
    if step in ROOT_SCRIPTS:
        return [*npm, step]
    return [*npm, "run", "-s", step]


def _resolve_executable(argv: Sequence[str]) -> List[str]:
    # Windows needs the full name of npm.cmd & co.
    exe = shutil.which(argv[0]) or argv[0]
    return [exe, *argv[1:]]


def _hint_for(argv: Sequence[str]) -> Optional[str]:
    tool = Path(argv[0]).stem
    return TOOL_HINTS.get(tool)


# ----------------------------------------------------------------------
# Execution primitives
# ----------------------------------------------------------------------

async def _pump(stream: Optional[asyncio.StreamReader], chunks: List[bytes]) -> None:
    if stream is None:
        return
    while True:
        data = await stream.read(_CHUNK)
        if not data:
            break
        chunks.append(data)


async def run_command(
    name: str,
    argv: Sequence[str],
    cwd: str | Path,
    *,
    allow_failure: bool = False,
    on_spawn: Optional[OnSpawn] = None,
    console: Optional[Console] = None,
) -> RunOutcome:
    """
    Run one process to completion and capture stdout+stderr in arrival order.

    Returns a failed outcome with exit_status=None when the process could not
    be started. With allow_failure, a nonzero exit is reported as a warning and
    the outcome counts as a success.
    """
    console = console or get_console()
    console.print_debug(f"[{name}] $ {' '.join(argv)} (cwd={cwd})")

    kwargs = {}
    if os.name == "posix":
        # own process group, so termination reaches npm's children too
        kwargs["start_new_session"] = True

    try:
        proc = await asyncio.create_subprocess_exec(
            *_resolve_executable(argv),
            cwd=str(cwd),
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            **kwargs,
        )
    except OSError as e:
        message = f"{type(e).__name__}: {e}"
        console.print_fatal(name, message, hint=_hint_for(argv))
        return RunOutcome.failed(name, message, None)

    if on_spawn is not None:
        on_spawn(name, proc)

    chunks: List[bytes] = []
    await asyncio.gather(_pump(proc.stdout, chunks), _pump(proc.stderr, chunks))
    code = await proc.wait()
    output = b"".join(chunks).decode("utf-8", errors="replace")

    if code == 0:
        return RunOutcome.succeeded(name, output)
    if allow_failure:
        console.print_warning(f">> '{name}': `{' '.join(argv)}` exited with {code}, continuing")
        return RunOutcome.succeeded(name, output)
    return RunOutcome.failed(name, output, code)


async def run(
    request: RunRequest,
    *,
    npm: Sequence[str] = ("npm",),
    on_spawn: Optional[OnSpawn] = None,
    console: Optional[Console] = None,
) -> RunOutcome:
    """
    Execute every step of `request` in order and settle a single outcome.

    Step outputs are concatenated. The first failing step ends the request;
    git-pull is best-effort and never fails it.
    """
    console = console or get_console()
    steps = request.steps
    outputs: List[str] = []

    console.print_build_started(request.name)

    for step in steps:
        if len(steps) > 1:
            console.print_step(request.name, step)

        outcome = await run_command(
            request.name,
            command_for(step, npm),
            request.cwd,
            allow_failure=step == GIT_PULL,
            on_spawn=on_spawn,
            console=console,
        )
        outputs.append(outcome.output)

        if not outcome.ok:
            output = "".join(outputs)
            # spawn errors were already reported by run_command
            if outcome.exit_status is not None:
                console.print_failed(request.name, output, outcome.exit_status)
            return RunOutcome.failed(request.name, output, outcome.exit_status)

    console.print_completed(request.name)
    return RunOutcome.succeeded(request.name, "".join(outputs))
