"""Patch table management for manifests with redirected dependencies.

The helpers in this module read and edit ``[patch.<origin>]`` tables. Removal
is always per crate: a table shared with hand-written entries keeps them, and
empty tables are dropped from the bottom up.

Every table created here starts with its own blank line. Once the manifest is
written and read back, tomlkit attributes that blank line to whatever precedes
the header, so removing a table whose separator moved that way also trims one
newline from the preceding whitespace.
"""

from __future__ import annotations

import collections.abc as cabc
import typing as typ

from tomlkit import table, ws
from tomlkit.items import AoT, Null, Table, Whitespace

if typ.TYPE_CHECKING:
    from patch_source_models import PatchEntry
    from tomlkit.items import Item, Key
    from tomlkit.toml_document import TOMLDocument

__all__ = [
    "insert_patch_entries",
    "patched_crates",
    "strip_managed_entries",
]

PatchTable = cabc.MutableMapping[str, typ.Any]
Body = list[tuple["Key | None", "Item"]]


def _get_patch_table(document: TOMLDocument) -> PatchTable | None:
    """Return the root ``[patch]`` table when it is present."""
    patch_table = document.get("patch")
    if not isinstance(patch_table, cabc.MutableMapping):
        return None
    return typ.cast("PatchTable", patch_table)


def _get_patch_tables(
    document: TOMLDocument, origin: str
) -> tuple[PatchTable, PatchTable] | None:
    """Return the patch and ``origin`` tables when both are present."""
    patch_table = _get_patch_table(document)
    if patch_table is None:
        return None

    source_table = patch_table.get(origin)
    if not isinstance(source_table, cabc.MutableMapping):
        return None

    return patch_table, typ.cast("PatchTable", source_table)


def patched_crates(document: TOMLDocument) -> set[str]:
    """Return every crate with an entry under any ``[patch.*]`` table."""
    patch_table = _get_patch_table(document)
    if patch_table is None:
        return set()

    crates: set[str] = set()
    for source_table in patch_table.values():
        if isinstance(source_table, cabc.Mapping):
            crates.update(str(crate) for crate in source_table)
    return crates


def _body_of(container: object) -> Body | None:
    if isinstance(container, Table):
        return container.value.body
    body = getattr(container, "body", None)
    return body if isinstance(body, list) else None


def _trim_trailing_newline(body: Body, end: int) -> None:
    """Remove one newline from the whitespace rendered just before ``end``."""
    for index in range(end - 1, -1, -1):
        key, value = body[index]
        if isinstance(value, Null):
            continue
        if isinstance(value, Whitespace):
            if value.s.endswith("\n"):
                body[index] = (key, ws(value.s[:-1]))
            return
        if isinstance(value, Table):
            inner = value.value.body
            _trim_trailing_newline(inner, len(inner))
        elif isinstance(value, AoT) and value.body:
            inner = value.body[-1].value.body
            _trim_trailing_newline(inner, len(inner))
        return


def _drop_table(container: PatchTable, key: str) -> None:
    """Delete ``container[key]`` together with any separator it left behind."""
    body = _body_of(container)
    child = container.get(key)
    position = None
    if body is not None:
        position = next(
            (
                index
                for index, (body_key, _) in enumerate(body)
                if body_key is not None and body_key.key == key
            ),
            None,
        )
    del container[key]
    separator_moved = isinstance(child, Table) and "\n" not in child.trivia.indent
    if body is not None and position is not None and separator_moved:
        _trim_trailing_newline(body, position)


def _remove_crate_and_cleanup_empty_sections(
    *,
    document: TOMLDocument,
    patch_table: PatchTable,
    origin: str,
    source_table: PatchTable,
    crate: str,
) -> None:
    """Remove ``crate`` from ``source_table`` and drop empty tables."""
    del source_table[crate]
    if not source_table:
        _drop_table(patch_table, origin)
    if not patch_table:
        _drop_table(document, "patch")


def strip_managed_entries(
    document: TOMLDocument,
    origins: cabc.Iterable[str],
    crates: cabc.Iterable[str],
) -> list[str]:
    """Remove ``crates`` from each ``[patch.<origin>]`` table.

    Parameters
    ----------
    document : TOMLDocument
        Parsed manifest that will be mutated in place.
    origins : Iterable[str]
        Patch table keys owned by the tool.
    crates : Iterable[str]
        Crate names the tool redirected. Other entries sharing an origin
        table are left untouched.

    Returns
    -------
    list[str]
        The crate names removed, once per origin table they were found in.
    """
    crate_names = tuple(crates)
    removed: list[str] = []
    for origin in origins:
        for crate in crate_names:
            tables = _get_patch_tables(document, origin)
            if tables is None:
                break
            patch_table, source_table = tables
            if crate not in source_table:
                continue
            _remove_crate_and_cleanup_empty_sections(
                document=document,
                patch_table=patch_table,
                origin=origin,
                source_table=source_table,
                crate=crate,
            )
            removed.append(crate)
    return removed


def insert_patch_entries(
    document: TOMLDocument, origin: str, entries: cabc.Iterable[PatchEntry]
) -> None:
    """Merge ``entries`` into ``[patch.<origin>]``, keeping existing keys."""
    patch_table = _get_patch_table(document)
    if patch_table is None:
        document["patch"] = table(is_super_table=True)
        patch_table = typ.cast("PatchTable", document["patch"])
        patch_table.trivia.indent = "\n"

    source_table = patch_table.get(origin)
    if not isinstance(source_table, cabc.MutableMapping):
        has_siblings = bool(patch_table)
        patch_table[origin] = table()
        source_table = patch_table[origin]
        if has_siblings:
            source_table.trivia.indent = "\n"

    for entry in entries:
        source_table[entry.crate] = entry.to_inline_table()
