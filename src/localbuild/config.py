# config.py
from __future__ import annotations

import os
import shlex
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple

from .manifest import DEFAULT_GROUPS
from .model import GIT_PULL


DEFAULT_SCRIPT = "prepare"
DEFAULT_TARGET = "./package.json"

# Command used to invoke npm, e.g. LOCALBUILD_NPM="pnpm" or "yarn"
NPM_ENV = "LOCALBUILD_NPM"


def default_npm() -> Tuple[str, ...]:
    raw = os.environ.get(NPM_ENV, "").strip()
    return tuple(shlex.split(raw)) if raw else ("npm",)


def default_color() -> Optional[bool]:
    # https://no-color.org
    if os.environ.get("NO_COLOR"):
        return False
    return None


@dataclass
class BuildOptions:
    """Everything one invocation needs; CLI flags override these defaults."""
    script: str = DEFAULT_SCRIPT
    target: Path = Path(DEFAULT_TARGET)
    groups: Tuple[str, ...] = DEFAULT_GROUPS

    # compound operations
    install: bool = False
    ci: bool = False
    git_pull: bool = False
    all: bool = False
    # an explicit --script keeps the script step when compound flags are set
    script_requested: bool = False

    verbose: bool = False
    strict: bool = False
    npm: Tuple[str, ...] = field(default_factory=default_npm)

    def compound_steps(self) -> Tuple[str, ...]:
        """
        Steps that run ahead of the script in every local package, in order.

        --all expands to git-pull then ci; --ci wins over --install.
        """
        steps = []
        if self.git_pull or self.all:
            steps.append(GIT_PULL)
        if self.ci or self.all:
            steps.append("ci")
        elif self.install:
            steps.append("install")
        return tuple(steps)

    def script_step(self) -> Optional[str]:
        # compound flags on their own replace the script, unless --script was given too
        compound = self.git_pull or self.ci or self.install
        if self.all or self.script_requested or not compound:
            return self.script
        return None
