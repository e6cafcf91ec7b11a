"""Unit tests for shared git origin detection."""

from __future__ import annotations

from patch_source_origin import infer_common_origin
from tomlkit import parse

URL = "https://github.com/prefix-dev/rattler"
FORK = "https://github.com/someone/rattler-fork"


def _manifest(*lines: str) -> str:
    return "\n".join(("[dependencies]", *lines, ""))


def test_majority_origin_is_returned() -> None:
    """Two of three crates sharing a URL form a strict majority."""
    document = parse(
        _manifest(
            f'a = {{ git = "{URL}" }}',
            f'b = {{ git = "{URL}", tag = "v1" }}',
            'c = "3.0.0"',
        )
    )

    assert infer_common_origin(document, ["a", "b", "c"]) == URL


def test_single_fork_does_not_win() -> None:
    """One git crate among ordinary registry crates keeps the default origin."""
    document = parse(
        _manifest(
            f'a = {{ git = "{FORK}" }}',
            'b = "2.0.0"',
            'c = "3.0.0"',
        )
    )

    assert infer_common_origin(document, ["a", "b", "c"]) is None


def test_tie_between_urls_falls_back() -> None:
    """Distinct URLs tied below a majority yield no origin."""
    document = parse(
        _manifest(
            f'a = {{ git = "{URL}" }}',
            f'b = {{ git = "{FORK}" }}',
            'c = "3.0.0"',
            'd = "4.0.0"',
        )
    )

    assert infer_common_origin(document, ["a", "b", "c", "d"]) is None


def test_half_is_not_a_majority() -> None:
    """Exactly half of an even-sized set is not enough."""
    document = parse(
        _manifest(
            f'a = {{ git = "{URL}" }}',
            f'b = {{ git = "{URL}" }}',
            'c = "3.0.0"',
            'd = "4.0.0"',
        )
    )

    assert infer_common_origin(document, ["a", "b", "c", "d"]) is None


def test_full_tables_are_considered() -> None:
    """``[dependencies.<crate>]`` tables contribute their ``git`` field."""
    document = parse(
        "\n".join(
            (
                "[dependencies.a]",
                f'git = "{URL}"',
                "",
                "[dependencies.b]",
                f'git = "{URL}"',
                "",
            )
        )
    )

    assert infer_common_origin(document, ["a", "b"]) == URL


def test_missing_dependency_table() -> None:
    """Without a dependency table there is nothing to infer."""
    assert infer_common_origin(parse('[package]\nname = "x"\n'), ["a"]) is None
