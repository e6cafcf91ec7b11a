"""Detect whether redirected crates already come from a shared git origin."""

from __future__ import annotations

import collections
import collections.abc as cabc
import typing as typ

from patch_source_dependencies import declared_origin_url, dependency_table

if typ.TYPE_CHECKING:
    from tomlkit.toml_document import TOMLDocument

__all__ = ["infer_common_origin"]


def infer_common_origin(
    document: TOMLDocument, crate_names: cabc.Sequence[str]
) -> str | None:
    """Return the git URL declared by a strict majority of ``crate_names``.

    The count must exceed ``len(crate_names) // 2``. Ties and pluralities
    return ``None`` so the caller falls back to the default registry origin.

    Examples
    --------
    >>> from tomlkit import parse
    >>> doc = parse(
    ...     '[dependencies]\\n'
    ...     'a = { git = "https://example.com/u" }\\n'
    ...     'b = { git = "https://example.com/u" }\\n'
    ...     'c = "1"\\n'
    ... )
    >>> infer_common_origin(doc, ["a", "b", "c"])
    'https://example.com/u'
    """
    table = dependency_table(document)
    if table is None or not crate_names:
        return None

    counts: collections.Counter[str] = collections.Counter()
    for name in crate_names:
        url = declared_origin_url(table.get(name))
        if url is not None:
            counts[url] += 1

    if not counts:
        return None
    url, count = counts.most_common(1)[0]
    if count > len(crate_names) // 2:
        return url
    return None
