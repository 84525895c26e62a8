"""embedpack_core.environment
===========================

Resolve where this copy of embedpack came from, and therefore which copy of
the ``pyembed`` embedding library generated projects should reference.

Sources
-------
local path   running from an embedpack git checkout -> ``<checkout>/pyembed``
git url      built from a known commit -> that commit of the canonical repo
version      anything else -> the published release matching ``__version__``

The resolved location is handed to project generation as an opaque string.
The packaging policy never reads it.
"""

from __future__ import annotations

import logging
import os
import subprocess
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from embedpack_core import __version__

logger = logging.getLogger(__name__)

CANONICAL_GIT_REPO_URL = "https://github.com/embedpack/embedpack.git"

# Git commit this build was produced from.  Empty or "UNKNOWN" when the
# build did not run from a checkout.
BUILD_GIT_COMMIT = os.environ.get("EMBEDPACK_BUILD_GIT_COMMIT", "")

# File that marks the root of an embedpack checkout.
_CHECKOUT_MARKER = Path("packages") / "embedpack_core" / "embedpack_core" / "__init__.py"


@dataclass(frozen=True)
class LocalPathSource:
    path: Path


@dataclass(frozen=True)
class GitUrlSource:
    url: str
    commit: Optional[str] = None
    tag: Optional[str] = None


ToolSource = Union[LocalPathSource, GitUrlSource]


class EmbedLocationKind(str, Enum):
    path = "path"
    git = "git"
    version = "version"


@dataclass(frozen=True)
class EmbedLibraryLocation:
    kind: EmbedLocationKind
    value: str
    revision: Optional[str] = None

    def manifest_fields(self) -> str:
        """Dependency fields as they appear in a generated project manifest."""
        if self.kind == EmbedLocationKind.path:
            return f'path = "{self.value}"'
        if self.kind == EmbedLocationKind.git:
            return f'git = "{self.value}", rev = "{self.revision}"'
        return f'version = "{self.value}"'


def display_version(version: str = __version__, build_commit: str = BUILD_GIT_COMMIT) -> str:
    """Version string shown to users; pre-releases carry the build commit."""
    if version.endswith("-pre") and build_commit not in ("", "UNKNOWN"):
        return f"{version}-{build_commit}"
    return version


def built_git_url(build_commit: str = BUILD_GIT_COMMIT, version: str = __version__) -> GitUrlSource:
    """GitUrlSource for the canonical repository at the build's commit or tag.

    Commit and tag are mutually exclusive; without a usable commit the
    version is turned into a ``v``-prefixed tag.
    """
    commit = build_commit if build_commit not in ("", "UNKNOWN") else None
    if commit is not None:
        tag = None
    elif version.startswith("v"):
        tag = version
    else:
        tag = "v" + version
    return GitUrlSource(url=CANONICAL_GIT_REPO_URL, commit=commit, tag=tag)


@dataclass
class Environment:
    source: ToolSource
    build_commit: str = BUILD_GIT_COMMIT

    def embed_library_location(self) -> EmbedLibraryLocation:
        if isinstance(self.source, LocalPathSource):
            return EmbedLibraryLocation(
                EmbedLocationKind.path, (self.source.path / "pyembed").resolve().as_posix()
            )
        if self.source.commit is not None:
            return EmbedLibraryLocation(EmbedLocationKind.git, self.source.url, self.source.commit)
        return EmbedLibraryLocation(EmbedLocationKind.version, __version__)

    def version_long(self) -> str:
        if isinstance(self.source, LocalPathSource):
            source = self.source.path.as_posix()
        else:
            source = self.source.url
        return (
            f"{display_version(__version__, self.build_commit)}\n"
            f"commit: {self.build_commit or 'unknown'}\n"
            f"source: {source}\n"
            f"pyembed location: {self.embed_library_location().manifest_fields()}"
        )


def _git_toplevel(start: Path) -> Optional[Path]:
    try:
        proc = subprocess.run(
            ["git", "rev-parse", "--show-toplevel"],
            cwd=str(start),
            capture_output=True,
            text=True,
            check=False,
        )
    except OSError:
        logger.debug("git is not available; treating %s as outside a checkout", start)
        return None
    if proc.returncode != 0:
        return None
    return Path(proc.stdout.strip())


def resolve_environment(start: Optional[Path] = None) -> Environment:
    """Work out where embedpack is running from.

    Parameters
    ----------
    start : Path, optional
        Directory to start looking from.  Defaults to this package's
        directory.
    """
    start = Path(start) if start is not None else Path(__file__).resolve().parent
    toplevel = _git_toplevel(start)

    if toplevel is not None and (toplevel / _CHECKOUT_MARKER).is_file():
        logger.debug("running from embedpack checkout %s", toplevel)
        return Environment(LocalPathSource(toplevel))

    # Either not in git, or inside some other project's repository (for
    # example when embedpack is vendored into an application's build).
    return Environment(built_git_url())
