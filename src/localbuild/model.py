# model.py
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Tuple


# Operations npm runs directly (`npm install`, `npm ci`); they don't need a
# matching entry in the package's "scripts".
ROOT_SCRIPTS = ("install", "ci")

GIT_PULL = "git-pull"


@dataclass(frozen=True)
class DependencyEntry:
    """A name -> locator pair from one of the manifest's dependency groups."""
    name: str
    locator: str


@dataclass(frozen=True)
class LocalPackage:
    """A dependency that lives on disk, with the scripts its manifest defines."""
    name: str
    directory: Path
    scripts: Dict[str, str] = field(default_factory=dict)

    def has_script(self, script: str) -> bool:
        return script in ROOT_SCRIPTS or script in self.scripts


@dataclass(frozen=True)
class RunRequest:
    """
    One unit of work for the orchestrator.

    `before` holds the compound operations (git-pull, install, ci) that run,
    in order, ahead of `script` in the same working directory.
    """
    name: str
    script: Optional[str]
    cwd: Path
    before: Tuple[str, ...] = ()

    @property
    def steps(self) -> Tuple[str, ...]:
        if self.script is None:
            return self.before
        return self.before + (self.script,)


@dataclass(frozen=True)
class RunOutcome:
    """
    Final result of a RunRequest.

    exit_status is the process return code (negative signal number when the
    process was killed), or None when the process never started.
    """
    name: str
    ok: bool
    output: str = ""
    exit_status: Optional[int] = None

    @classmethod
    def succeeded(cls, name: str, output: str) -> "RunOutcome":
        return cls(name=name, ok=True, output=output, exit_status=0)

    @classmethod
    def failed(cls, name: str, output: str, exit_status: Optional[int]) -> "RunOutcome":
        return cls(name=name, ok=False, output=output, exit_status=exit_status)

