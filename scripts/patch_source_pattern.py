"""Glob-style crate name patterns.

Only ``*`` (any run of characters, including none) and ``?`` (exactly one
character) are special. Everything else matches literally and a pattern must
cover the whole crate name.
"""

from __future__ import annotations

import collections.abc as cabc
import re
import typing as typ

from patch_source_errors import InvalidPatternError

__all__ = ["compile_pattern", "filter_names", "glob_pattern_regex"]

_TRANSLATIONS: typ.Final[dict[str, str]] = {"*": ".*", "?": "."}


def glob_pattern_regex(pattern: str) -> re.Pattern[str]:
    """Compile ``pattern`` into an anchored regular expression.

    Examples
    --------
    >>> bool(glob_pattern_regex("rattler-*").fullmatch("rattler-conda"))
    True
    >>> bool(glob_pattern_regex("crate+name?").fullmatch("crate-name1"))
    False
    """
    translated = "".join(_TRANSLATIONS.get(char, re.escape(char)) for char in pattern)
    try:
        return re.compile(f"^{translated}$", re.DOTALL)
    except re.error as error:  # pragma: no cover - escaping keeps this unreachable
        raise InvalidPatternError(pattern, str(error)) from error


def compile_pattern(pattern: str) -> cabc.Callable[[str], bool]:
    """Return a predicate that reports whether a name satisfies ``pattern``."""
    regex = glob_pattern_regex(pattern)

    def matches(name: str) -> bool:
        return regex.fullmatch(name) is not None

    return matches


def filter_names(names: cabc.Iterable[str], pattern: str | None) -> list[str]:
    """Return ``names`` that satisfy ``pattern``; ``None`` keeps every name."""
    if pattern is None:
        return list(names)
    matches = compile_pattern(pattern)
    return [name for name in names if matches(name)]
