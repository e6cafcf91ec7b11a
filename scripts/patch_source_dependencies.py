"""Read and rewrite dependency declarations inside a manifest.

A dependency may be declared in three shapes and every accessor here handles
all of them explicitly:

``PlainDeclaration``
    ``serde = "1.0"``
``InlineDeclaration``
    ``serde = { version = "1.0", features = ["derive"] }``
``TableDeclaration``
    ``[dependencies.serde]`` followed by ``version = "1.0"``

When the manifest declares ``[workspace.dependencies]`` that table is
authoritative; otherwise the package-level ``[dependencies]`` table is used.
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import typing as typ

from tomlkit import item
from tomlkit.items import InlineTable

if typ.TYPE_CHECKING:
    from tomlkit.toml_document import TOMLDocument

__all__ = [
    "Declaration",
    "InlineDeclaration",
    "PlainDeclaration",
    "TableDeclaration",
    "classify_declaration",
    "declared_dependencies",
    "declared_origin_url",
    "declared_version",
    "dependency_table",
    "is_workspace",
    "set_version",
]

DependencyTable = cabc.MutableMapping[str, typ.Any]


@dc.dataclass(frozen=True)
class PlainDeclaration:
    version: str


@dc.dataclass(frozen=True)
class InlineDeclaration:
    table: InlineTable


@dc.dataclass(frozen=True)
class TableDeclaration:
    table: DependencyTable


Declaration = PlainDeclaration | InlineDeclaration | TableDeclaration


def classify_declaration(entry: object) -> Declaration | None:
    """Return the declaration shape of ``entry`` or ``None`` when unsupported."""
    if isinstance(entry, str):
        return PlainDeclaration(str(entry))
    # Inline tables are mappings too, so they must be recognised first.
    if isinstance(entry, InlineTable):
        return InlineDeclaration(entry)
    if isinstance(entry, cabc.MutableMapping):
        return TableDeclaration(typ.cast("DependencyTable", entry))
    return None


def is_workspace(document: TOMLDocument) -> bool:
    """Return ``True`` when the manifest declares a ``[workspace]`` section."""
    return isinstance(document.get("workspace"), cabc.Mapping)


def dependency_table(document: TOMLDocument) -> DependencyTable | None:
    """Return the authoritative dependency table of ``document``."""
    workspace = document.get("workspace")
    if isinstance(workspace, cabc.Mapping):
        workspace_dependencies = workspace.get("dependencies")
        if isinstance(workspace_dependencies, cabc.MutableMapping):
            return typ.cast("DependencyTable", workspace_dependencies)

    dependencies = document.get("dependencies")
    if isinstance(dependencies, cabc.MutableMapping):
        return typ.cast("DependencyTable", dependencies)
    return None


def _string_field(table: cabc.Mapping[str, typ.Any], key: str) -> str | None:
    value = table.get(key)
    if isinstance(value, str):
        return str(value)
    return None


def declared_version(entry: object) -> str | None:
    """Return the version declared by ``entry``, if it has one."""
    declaration = classify_declaration(entry)
    if declaration is None:
        return None
    if isinstance(declaration, PlainDeclaration):
        return declaration.version
    if isinstance(declaration, (InlineDeclaration, TableDeclaration)):
        return _string_field(declaration.table, "version")
    typ.assert_never(declaration)


def declared_origin_url(entry: object) -> str | None:
    """Return the ``git`` URL declared by ``entry``, if any."""
    declaration = classify_declaration(entry)
    if declaration is None:
        return None
    if isinstance(declaration, PlainDeclaration):
        return None
    if isinstance(declaration, (InlineDeclaration, TableDeclaration)):
        return _string_field(declaration.table, "git")
    typ.assert_never(declaration)


def declared_dependencies(document: TOMLDocument) -> dict[str, str]:
    """Map each declared dependency to its version.

    Declarations without a version field, such as git-only dependencies, are
    included with an empty string so they can still be redirected.
    """
    table = dependency_table(document)
    if table is None:
        return {}
    return {
        str(name): declared_version(entry) or ""
        for name, entry in table.items()
        if classify_declaration(entry) is not None
    }


def set_version(document: TOMLDocument, crate: str, new_version: str) -> None:
    """Update the declared version of ``crate`` in place.

    Plain declarations are replaced wholesale. Table declarations only have an
    existing ``version`` field rewritten; a declaration without one, such as a
    git-pinned dependency, never gains a version. Unknown crates are ignored.
    """
    table = dependency_table(document)
    if table is None or crate not in table:
        return

    existing = table[crate]
    declaration = classify_declaration(existing)
    if declaration is None:
        return
    if isinstance(declaration, PlainDeclaration):
        table[crate] = _plain_version(existing, new_version)
    elif isinstance(declaration, (InlineDeclaration, TableDeclaration)):
        if "version" in declaration.table:
            declaration.table["version"] = new_version
    else:
        typ.assert_never(declaration)


def _plain_version(existing: object, new_version: str) -> object:
    """Build a replacement string item keeping any trailing comment."""
    replacement = item(new_version)
    trivia = getattr(existing, "trivia", None)
    if trivia is not None and trivia.comment:
        replacement.comment(trivia.comment)
    return replacement
