"""Persist managed patch state inside the manifest itself.

The state lives under ``[workspace.metadata.cargo-patch-source]`` for workspace
manifests and ``[package.metadata.cargo-patch-source]`` otherwise::

    original-versions = { serde = "1.0.0", toml = "" }
    managed-patches = ["crates-io"]

An empty original version records that the declaration had no ``version``
field, so nothing is restored for it on removal.
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import typing as typ

from patch_source_dependencies import is_workspace
from tomlkit import array, inline_table, nl, table
from tomlkit.items import Null, Table, Whitespace

if typ.TYPE_CHECKING:
    from tomlkit.toml_document import TOMLDocument

__all__ = [
    "MANAGED_PATCHES_KEY",
    "METADATA_NAMESPACE",
    "ORIGINAL_VERSIONS_KEY",
    "ManagedState",
    "clear_state",
    "load_state",
    "save_state",
]

METADATA_NAMESPACE: typ.Final[str] = "cargo-patch-source"
ORIGINAL_VERSIONS_KEY: typ.Final[str] = "original-versions"
MANAGED_PATCHES_KEY: typ.Final[str] = "managed-patches"

_METADATA_PARENTS: typ.Final[tuple[str, ...]] = ("workspace", "package")


@dc.dataclass
class ManagedState:
    """Crates and patch origins currently owned by the tool."""

    original_versions: dict[str, str] = dc.field(default_factory=dict)
    managed_origins: list[str] = dc.field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.original_versions and not self.managed_origins

    def add_origin(self, origin: str) -> None:
        """Record ``origin`` unless it is already tracked."""
        if origin not in self.managed_origins:
            self.managed_origins.append(origin)

    def versions_to_restore(self) -> dict[str, str]:
        """Return recorded versions that were declared before patching."""
        return {
            crate: version for crate, version in self.original_versions.items() if version
        }


def _namespace_table(
    document: TOMLDocument,
) -> cabc.Mapping[str, typ.Any] | None:
    for parent_key in _METADATA_PARENTS:
        parent = document.get(parent_key)
        if not isinstance(parent, cabc.Mapping):
            continue
        metadata = parent.get("metadata")
        if not isinstance(metadata, cabc.Mapping):
            continue
        namespace = metadata.get(METADATA_NAMESPACE)
        if isinstance(namespace, cabc.Mapping):
            return namespace
    return None


def load_state(document: TOMLDocument) -> ManagedState:
    """Read the managed state, defaulting to an empty state when absent."""
    namespace = _namespace_table(document)
    if namespace is None:
        return ManagedState()

    state = ManagedState()
    versions = namespace.get(ORIGINAL_VERSIONS_KEY)
    if isinstance(versions, cabc.Mapping):
        state.original_versions = {
            str(crate): str(version)
            for crate, version in versions.items()
            if isinstance(version, str)
        }

    origins = namespace.get(MANAGED_PATCHES_KEY)
    if isinstance(origins, cabc.Sequence) and not isinstance(origins, str):
        for origin in origins:
            if isinstance(origin, str):
                state.add_origin(str(origin))
    return state


def _is_implicit(container: object) -> bool:
    """Return ``True`` for a table that renders no header of its own."""
    return isinstance(container, Table) and container.is_super_table()


def _child_table(
    parent: cabc.MutableMapping[str, typ.Any], key: str, *, super_table: bool
) -> Table:
    """Return ``parent[key]``, creating an empty table when it is missing.

    Tables created inside an existing table take no leading blank line.
    """
    child = parent.get(key)
    if not isinstance(child, cabc.MutableMapping):
        parent[key] = table(is_super_table=super_table)
        child = parent[key]
        if isinstance(parent, Table):
            child.trivia.indent = ""
    return typ.cast("Table", child)


def _followed_by_content(document: TOMLDocument, key: str) -> bool:
    """Return ``True`` when anything is rendered after the top-level ``key``."""
    seen = False
    for body_key, value in document.body:
        if seen and not isinstance(value, (Null, Whitespace)):
            return True
        if body_key is not None and body_key.key == key:
            seen = True
    return False


def save_state(document: TOMLDocument, state: ManagedState) -> None:
    """Write ``state`` into the manifest's private metadata namespace.

    A newly created namespace ends with a blank line when another table
    follows it, so the next header stays visually separated.
    """
    parent_key = "workspace" if is_workspace(document) else "package"
    parent = _child_table(document, parent_key, super_table=True)
    metadata = _child_table(parent, "metadata", super_table=True)
    created = METADATA_NAMESPACE not in metadata
    namespace = _child_table(metadata, METADATA_NAMESPACE, super_table=False)

    versions = inline_table()
    for crate in sorted(state.original_versions):
        versions[crate] = state.original_versions[crate]
    namespace[ORIGINAL_VERSIONS_KEY] = versions

    origins = array()
    origins.extend(state.managed_origins)
    namespace[MANAGED_PATCHES_KEY] = origins

    if created and _followed_by_content(document, parent_key):
        namespace.add(nl())


def clear_state(document: TOMLDocument) -> None:
    """Drop the namespace and the header-less ancestors it leaves empty.

    Only implicit tables, such as those introduced by a dotted
    ``[package.metadata.cargo-patch-source]`` header, are pruned. An explicit
    ``[workspace]`` or ``[package.metadata]`` header survives even when empty.
    """
    for parent_key in _METADATA_PARENTS:
        parent = document.get(parent_key)
        if not isinstance(parent, cabc.MutableMapping):
            continue
        metadata = parent.get("metadata")
        if not isinstance(metadata, cabc.MutableMapping):
            continue
        if METADATA_NAMESPACE not in metadata:
            continue
        del metadata[METADATA_NAMESPACE]
        if not metadata and _is_implicit(metadata):
            del parent["metadata"]
        if not parent and _is_implicit(parent):
            del document[parent_key]
