"""Unit tests for dependency declaration accessors."""

from __future__ import annotations

import pytest
from patch_source_dependencies import (
    InlineDeclaration,
    PlainDeclaration,
    TableDeclaration,
    classify_declaration,
    declared_dependencies,
    declared_origin_url,
    declared_version,
    dependency_table,
    set_version,
)
from tomlkit import dumps, parse

MIXED_DEPENDENCIES = "\n".join(
    (
        "[package]",
        'name = "demo"',
        "",
        "[dependencies]",
        'plain = "1.0.0"',
        'inline = { version = "2.0.0", features = ["derive"] }',
        'git-only = { git = "https://example.com/repo", tag = "v1" }',
        "",
        "[dependencies.tabled]",
        'version = "3.0.0"',
        'git = "https://example.com/tabled"',
        "",
    )
)


class TestDependencyTable:
    """Tests for :func:`patch_source_dependencies.dependency_table`."""

    def test_prefers_workspace_dependencies(self) -> None:
        """``[workspace.dependencies]`` wins over ``[dependencies]``."""
        document = parse(
            "\n".join(
                (
                    "[workspace]",
                    'members = ["a"]',
                    "",
                    "[workspace.dependencies]",
                    'shared = "1"',
                    "",
                    "[dependencies]",
                    'local = "2"',
                )
            )
        )

        table = dependency_table(document)

        assert table is not None
        assert list(table) == ["shared"]

    def test_falls_back_to_package_dependencies(self) -> None:
        """A workspace without its own dependency table defers to the package."""
        document = parse(
            '[workspace]\nmembers = []\n\n[dependencies]\nlocal = "2"\n'
        )

        table = dependency_table(document)

        assert table is not None
        assert list(table) == ["local"]

    def test_returns_none_without_dependencies(self) -> None:
        """Manifests without any dependency table yield ``None``."""
        assert dependency_table(parse('[package]\nname = "demo"\n')) is None


class TestClassifyDeclaration:
    """Tests for :func:`patch_source_dependencies.classify_declaration`."""

    def test_recognises_each_shape(self) -> None:
        """Each of the three declaration shapes maps to its own variant."""
        table = dependency_table(parse(MIXED_DEPENDENCIES))
        assert table is not None

        assert classify_declaration(table["plain"]) == PlainDeclaration("1.0.0")
        assert isinstance(classify_declaration(table["inline"]), InlineDeclaration)
        assert isinstance(classify_declaration(table["tabled"]), TableDeclaration)

    def test_rejects_other_values(self) -> None:
        """Non-declaration values are not classified."""
        assert classify_declaration(42) is None


class TestDeclaredFields:
    """Tests for version and git URL extraction."""

    @pytest.mark.parametrize(
        ("crate", "expected"),
        [
            ("plain", "1.0.0"),
            ("inline", "2.0.0"),
            ("git-only", None),
            ("tabled", "3.0.0"),
        ],
    )
    def test_declared_version(self, crate: str, expected: str | None) -> None:
        """Versions are read from every shape that carries one."""
        table = dependency_table(parse(MIXED_DEPENDENCIES))
        assert table is not None

        assert declared_version(table[crate]) == expected

    @pytest.mark.parametrize(
        ("crate", "expected"),
        [
            ("plain", None),
            ("inline", None),
            ("git-only", "https://example.com/repo"),
            ("tabled", "https://example.com/tabled"),
        ],
    )
    def test_declared_origin_url(self, crate: str, expected: str | None) -> None:
        """The ``git`` field is read from inline and full tables."""
        table = dependency_table(parse(MIXED_DEPENDENCIES))
        assert table is not None

        assert declared_origin_url(table[crate]) == expected

    def test_declared_dependencies_includes_versionless_entries(self) -> None:
        """Git-only declarations are listed with an empty version."""
        assert declared_dependencies(parse(MIXED_DEPENDENCIES)) == {
            "plain": "1.0.0",
            "inline": "2.0.0",
            "git-only": "",
            "tabled": "3.0.0",
        }


class TestSetVersion:
    """Tests for :func:`patch_source_dependencies.set_version`."""

    def test_replaces_plain_declaration(self) -> None:
        """Plain string declarations are replaced wholesale."""
        document = parse(MIXED_DEPENDENCIES)

        set_version(document, "plain", "1.5.0")

        assert document["dependencies"]["plain"] == "1.5.0"

    def test_keeps_trailing_comment_on_plain_declaration(self) -> None:
        """A comment after a plain version survives the rewrite."""
        document = parse('[dependencies]\nserde = "1.0.0" # pinned\n')

        set_version(document, "serde", "1.0.1")

        assert "# pinned" in dumps(document)
        assert document["dependencies"]["serde"] == "1.0.1"

    def test_updates_inline_version_only(self) -> None:
        """Inline tables keep every other field and their layout."""
        document = parse(MIXED_DEPENDENCIES)

        set_version(document, "inline", "2.1.0")

        assert 'inline = { version = "2.1.0", features = ["derive"] }' in dumps(
            document
        )

    def test_updates_full_table_version(self) -> None:
        """Full sub-tables have their ``version`` key rewritten."""
        document = parse(MIXED_DEPENDENCIES)

        set_version(document, "tabled", "3.1.0")

        tabled = document["dependencies"]["tabled"]
        assert tabled["version"] == "3.1.0"
        assert tabled["git"] == "https://example.com/tabled"

    def test_never_adds_version_field(self) -> None:
        """Declarations without a version never gain one."""
        document = parse(MIXED_DEPENDENCIES)

        set_version(document, "git-only", "9.9.9")

        assert "version" not in document["dependencies"]["git-only"]

    def test_ignores_unknown_crates(self) -> None:
        """Updating a crate that is not declared leaves the document alone."""
        document = parse(MIXED_DEPENDENCIES)

        set_version(document, "missing", "1.0.0")

        assert dumps(document) == MIXED_DEPENDENCIES

    def test_targets_workspace_dependencies(self) -> None:
        """The workspace table is updated when it is authoritative."""
        document = parse(
            '[workspace]\n\n[workspace.dependencies]\nshared = "1"\n\n'
            '[dependencies]\nshared = "1"\n'
        )

        set_version(document, "shared", "2")

        assert document["workspace"]["dependencies"]["shared"] == "2"
        assert document["dependencies"]["shared"] == "1"
