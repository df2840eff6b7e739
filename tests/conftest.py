from __future__ import annotations

import json
import shlex
import sys
from pathlib import Path

import pytest

from localbuild.ui.console import Console, set_console


FAKE_NPM = (sys.executable, str(Path(__file__).with_name("fake_npm.py")))

MARKER = "yes-it-worked.txt"


def py(code: str) -> str:
    """Shell command running `code` with the current interpreter."""
    return f"{shlex.quote(sys.executable)} -c {shlex.quote(code)}"


WRITE_MARKER = py(f"open({MARKER!r}, 'w').write('ok')")
FAIL = py("import sys; print('boom'); sys.exit(3)")


def write_manifest(directory: Path, data: dict) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / "package.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def plain_console():
    console = Console(color=False)
    set_console(console)
    yield console
    set_console(Console())


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """
    Root package with two local dependencies (sub1, sub2) whose `prepare`
    script writes a marker file, plus a registry dependency.
    """
    write_manifest(tmp_path / "sub1", {"name": "sub1", "scripts": {"prepare": WRITE_MARKER}})
    write_manifest(tmp_path / "sub2", {"name": "sub2", "scripts": {"prepare": WRITE_MARKER}})
    write_manifest(
        tmp_path,
        {
            "name": "root",
            "dependencies": {"sub1": "file:./sub1", "left-pad": "^1.3.0"},
            "devDependencies": {"sub2": "file:sub2"},
        },
    )
    return tmp_path
