"""Value types shared by the patch management modules."""

from __future__ import annotations

import dataclasses as dc
import typing as typ
from pathlib import Path

from tomlkit import inline_table

if typ.TYPE_CHECKING:
    from tomlkit.items import InlineTable

__all__ = [
    "DEFAULT_ORIGIN_KEY",
    "Branch",
    "CrateCandidate",
    "GitReference",
    "GitSource",
    "GitTarget",
    "LocalPathSource",
    "PatchEntry",
    "PatchReport",
    "PatchSource",
    "PathTarget",
    "Rev",
    "Tag",
    "VersionChange",
    "describe_reference",
]

DEFAULT_ORIGIN_KEY: typ.Final[str] = "crates-io"


@dc.dataclass(frozen=True)
class Branch:
    """Follow the tip of a named branch."""

    name: str
    key: typ.ClassVar[str] = "branch"


@dc.dataclass(frozen=True)
class Tag:
    """Pin to a tag."""

    name: str
    key: typ.ClassVar[str] = "tag"


@dc.dataclass(frozen=True)
class Rev:
    """Pin to an explicit revision."""

    name: str
    key: typ.ClassVar[str] = "rev"


GitReference = Branch | Tag | Rev


def describe_reference(reference: GitReference | None) -> str:
    """Return a short suffix such as `` (branch: main)`` for reports."""
    if reference is None:
        return ""
    return f" ({reference.key}: {reference.name})"


@dc.dataclass(frozen=True)
class LocalPathSource:
    """Redirect crates to members of a local cargo workspace."""

    path: Path


@dc.dataclass(frozen=True)
class GitSource:
    """Redirect crates to a git repository, optionally at a reference."""

    url: str
    reference: GitReference | None = None


PatchSource = LocalPathSource | GitSource


@dc.dataclass(frozen=True)
class CrateCandidate:
    """A package offered by the source workspace."""

    name: str
    version: str
    manifest_path: Path

    @property
    def directory(self) -> Path:
        """Directory holding the package manifest."""
        return self.manifest_path.parent


@dc.dataclass(frozen=True)
class PathTarget:
    directory: Path


@dc.dataclass(frozen=True)
class GitTarget:
    url: str
    reference: GitReference | None = None


@dc.dataclass(frozen=True)
class PatchEntry:
    """A single ``[patch.<origin>]`` entry written by the tool."""

    crate: str
    target: PathTarget | GitTarget

    def to_inline_table(self) -> InlineTable:
        """Render the entry using cargo's inline patch syntax.

        Examples
        --------
        >>> entry = PatchEntry("demo", GitTarget("https://example.com/r", Tag("v1")))
        >>> entry.to_inline_table().as_string()
        '{git = "https://example.com/r", tag = "v1"}'
        """
        table = inline_table()
        target = self.target
        if isinstance(target, PathTarget):
            table["path"] = str(target.directory)
        elif isinstance(target, GitTarget):
            table["git"] = target.url
            if target.reference is not None:
                table[target.reference.key] = target.reference.name
        else:
            typ.assert_never(target)
        return table

    def describe(self) -> str:
        target = self.target
        if isinstance(target, PathTarget):
            return str(target.directory)
        return f"{target.url}{describe_reference(target.reference)}"


@dc.dataclass(frozen=True)
class VersionChange:
    crate: str
    previous: str
    current: str


@dc.dataclass
class PatchReport:
    """Summary of what an apply or remove invocation changed."""

    origin_key: str | None = None
    patched: list[PatchEntry] = dc.field(default_factory=list)
    skipped: list[str] = dc.field(default_factory=list)
    restored: list[str] = dc.field(default_factory=list)
    version_changes: list[VersionChange] = dc.field(default_factory=list)
    removed: list[str] = dc.field(default_factory=list)

    @property
    def patched_crates(self) -> list[str]:
        return [entry.crate for entry in self.patched]
