# manifest.py
from __future__ import annotations

import json
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, Iterator, Optional, Sequence, Tuple

from .model import DependencyEntry, LocalPackage
from .ui.console import get_console


MANIFEST_NAME = "package.json"

DEFAULT_GROUPS = ("dependencies", "devDependencies")

# Locator schemes that point at a directory on this filesystem.
LOCAL_SCHEMES = frozenset({"file"})

_LOCATOR_RE = re.compile(r"^([^:]+):(.+)$")


# ----------------------------------------------------------------------
# Errors
# ----------------------------------------------------------------------

class ManifestError(Exception):
    """Base class for manifest problems; all of them abort before anything runs."""


@dataclass
class ManifestNotFound(ManifestError):
    path: Path

    def __str__(self) -> str:
        return f"Manifest not found: {self.path}"


@dataclass
class ManifestParseError(ManifestError):
    path: Path
    reason: str

    def __str__(self) -> str:
        return f"Could not parse manifest {self.path}: {self.reason}"


@dataclass
class SubManifestNotFound(ManifestError):
    name: str
    path: Path

    def __str__(self) -> str:
        return f"Local '{self.name}' has no manifest: {self.path}"


# ----------------------------------------------------------------------
# Loading
# ----------------------------------------------------------------------

def load_manifest(path: str | Path) -> dict:
    """
    Read a package.json file.

    Raises:
      ManifestNotFound: the file does not exist
      ManifestParseError: the file is not a JSON object
    """
    p = Path(path)
    try:
        text = p.read_text(encoding="utf-8")
    except (FileNotFoundError, IsADirectoryError, NotADirectoryError):
        # NotADirectoryError: a `file:` locator naming a tarball or plain file
        raise ManifestNotFound(p) from None
    except UnicodeDecodeError as e:
        raise ManifestParseError(p, f"not valid UTF-8 ({e.reason})") from e

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ManifestParseError(p, str(e)) from e

    if not isinstance(data, dict):
        raise ManifestParseError(p, f"expected a JSON object, got {type(data).__name__}")
    return data


def parse_locator(locator: str) -> Optional[Tuple[str, str]]:
    """Split 'scheme:path' into its parts; None for registry versions like '^1.2.0'."""
    if not isinstance(locator, str):
        return None
    match = _LOCATOR_RE.match(locator)
    if not match:
        return None
    return match.group(1), match.group(2)


def merged_entries(manifest: dict, groups: Iterable[str]) -> Dict[str, str]:
    # later groups overwrite earlier ones by name
    merged: Dict[str, str] = {}
    for group in groups:
        deps = manifest.get(group)
        if not isinstance(deps, dict):
            continue
        for name, locator in deps.items():
            merged[name] = locator
    return merged


def local_entries(manifest: dict, groups: Iterable[str] = DEFAULT_GROUPS) -> Iterator[Tuple[DependencyEntry, str]]:
    """
    Yield (entry, path) for every dependency whose locator uses a local scheme.
    """
    for name, locator in merged_entries(manifest, groups).items():
        parsed = parse_locator(locator)
        if parsed is None:
            continue
        scheme, rel_path = parsed
        if scheme not in LOCAL_SCHEMES:
            continue
        yield DependencyEntry(name=name, locator=locator), rel_path


# ----------------------------------------------------------------------
# Public API
# ----------------------------------------------------------------------

def resolve_local_packages(
    manifest_path: str | Path,
    groups: Sequence[str] = DEFAULT_GROUPS,
    *,
    strict: bool = False,
) -> Iterator[LocalPackage]:
    """
    Lazily yield the local packages referenced by the manifest at `manifest_path`.

    Paths are resolved against the directory holding the manifest. A local
    directory without its own package.json is skipped with a diagnostic,
    or raises SubManifestNotFound when `strict` is set.
    """
    root_path = Path(manifest_path).expanduser().resolve()
    root = load_manifest(root_path)
    base = root_path.parent

    for entry, rel_path in local_entries(root, groups):
        directory = (base / rel_path).resolve()
        sub_path = directory / MANIFEST_NAME

        try:
            local = load_manifest(sub_path)
        except ManifestNotFound:
            if strict:
                raise SubManifestNotFound(entry.name, sub_path) from None
            get_console().print_warning(f":: Local '{entry.name}' has no {MANIFEST_NAME} in {directory}")
            continue

        scripts = local.get("scripts")
        if not isinstance(scripts, dict):
            scripts = {}

        yield LocalPackage(name=entry.name, directory=directory, scripts=dict(scripts))
