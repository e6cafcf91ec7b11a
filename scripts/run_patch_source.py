#!/usr/bin/env -S uv run python
"""Command-line entry point for redirecting Cargo dependencies.

The ``apply`` command points matching dependencies of a manifest at a local
workspace or a git repository by writing ``[patch]`` entries, and ``remove``
restores the manifest to its previous state.

Options can also be supplied through ``PATCH_SOURCE_*`` environment variables,
for example ``PATCH_SOURCE_MANIFEST_PATH`` or ``PATCH_SOURCE_TIMEOUT_SECS``.

Examples
--------
Redirect every ``rattler-*`` dependency to a local checkout::

    cargo patch-source apply --path ../rattler --pattern 'rattler-*'

Redirect to a branch of a git repository, then undo it::

    cargo patch-source apply --git https://github.com/prefix-dev/rattler \
        --branch main --pattern 'rattler-*'
    cargo patch-source remove
"""

# /// script
# requires-python = ">=3.11"
# dependencies = [
#     "cyclopts>=3,<4",
#     "plumbum",
#     "tomlkit",
# ]
# ///
from __future__ import annotations

import logging
import sys
import typing as typ
from pathlib import Path

import cyclopts
from cyclopts import App, Parameter
from patch_source_errors import ConflictingOptionsError, NoSourceSpecifiedError
from patch_source_models import (
    Branch,
    GitReference,
    GitSource,
    LocalPathSource,
    PatchSource,
    Rev,
    Tag,
)
from patch_source_state import apply_patches, remove_patches
from patch_source_workspace import DEFAULT_METADATA_TIMEOUT_SECS

LOGGER = logging.getLogger(__name__)

CARGO_SUBCOMMAND: typ.Final[str] = "patch-source"

app = App(
    name="cargo-patch-source",
    help="Redirect Cargo.toml dependencies to a local workspace or git repository.",
    config=cyclopts.config.Env("PATCH_SOURCE_", command=False),
)


def _configure_logging(*, quiet: bool) -> None:
    logging.basicConfig(
        level=logging.WARNING if quiet else logging.INFO,
        format="%(message)s",
    )


def resolve_manifest_path(manifest_path: Path | None) -> Path:
    """Return ``manifest_path`` or ``Cargo.toml`` in the working directory."""
    if manifest_path is None:
        return Path.cwd() / "Cargo.toml"
    return Path(manifest_path)


def build_source(
    *,
    path: Path | None,
    git: str | None,
    branch: str | None = None,
    tag: str | None = None,
    rev: str | None = None,
) -> PatchSource:
    """Translate command-line options into a :data:`PatchSource`.

    Raises
    ------
    NoSourceSpecifiedError
        Raised when neither ``path`` nor ``git`` is given.
    ConflictingOptionsError
        Raised when both sources are given, when more than one git reference
        is given, or when a git reference accompanies a local path.
    """
    if path is not None and git is not None:
        message = "--path and --git cannot be used together"
        raise ConflictingOptionsError(message)

    references: list[GitReference] = []
    if branch is not None:
        references.append(Branch(branch))
    if tag is not None:
        references.append(Tag(tag))
    if rev is not None:
        references.append(Rev(rev))
    if len(references) > 1:
        message = "only one of --branch, --tag or --rev may be given"
        raise ConflictingOptionsError(message)

    if git is not None:
        return GitSource(git, references[0] if references else None)
    if references:
        message = "--branch, --tag and --rev require --git"
        raise ConflictingOptionsError(message)
    if path is not None:
        return LocalPathSource(Path(path).absolute())
    raise NoSourceSpecifiedError


@app.command
def apply(
    *,
    path: Path | None = None,
    git: str | None = None,
    branch: str | None = None,
    tag: str | None = None,
    rev: str | None = None,
    pattern: str | None = None,
    manifest_path: Path | None = None,
    timeout_secs: typ.Annotated[
        int,
        Parameter(env_var="PATCH_SOURCE_TIMEOUT_SECS"),
    ] = DEFAULT_METADATA_TIMEOUT_SECS,
    quiet: typ.Annotated[
        bool,
        Parameter(env_var="PATCH_SOURCE_QUIET"),
    ] = False,
) -> None:
    """Apply patches from a source to a Cargo.toml.

    Parameters
    ----------
    path : Path, optional
        Local cargo workspace whose members replace matching dependencies.
    git : str, optional
        Git repository URL to redirect matching dependencies to.
    branch : str, optional
        Branch to follow; only valid with ``--git``.
    tag : str, optional
        Tag to pin; only valid with ``--git``.
    rev : str, optional
        Revision to pin; only valid with ``--git``.
    pattern : str, optional
        Glob restricting which crates are patched, e.g. ``rattler-*``.
        Required with ``--git``.
    manifest_path : Path, optional
        Manifest to modify. Defaults to ``Cargo.toml`` in the working
        directory.
    timeout_secs : int, optional
        Timeout for the ``cargo metadata`` query of a local workspace.
    quiet : bool, optional
        Only report warnings and errors.
    """
    _configure_logging(quiet=quiet)
    if timeout_secs <= 0:
        message = "timeout-secs must be a positive integer"
        raise ConflictingOptionsError(message)

    source = build_source(path=path, git=git, branch=branch, tag=tag, rev=rev)
    apply_patches(
        source,
        resolve_manifest_path(manifest_path),
        pattern,
        timeout_secs=timeout_secs,
    )


@app.command
def remove(
    *,
    pattern: str | None = None,
    manifest_path: Path | None = None,
    quiet: typ.Annotated[
        bool,
        Parameter(env_var="PATCH_SOURCE_QUIET"),
    ] = False,
) -> None:
    """Remove the patches managed by this tool from a Cargo.toml.

    Parameters
    ----------
    pattern : str, optional
        Accepted for forward compatibility; every managed patch is removed.
    manifest_path : Path, optional
        Manifest to modify. Defaults to ``Cargo.toml`` in the working
        directory.
    quiet : bool, optional
        Only report warnings and errors.
    """
    _configure_logging(quiet=quiet)
    if pattern is not None:
        LOGGER.warning(
            "ignoring --pattern %r: remove always restores every managed patch",
            pattern,
        )
    remove_patches(resolve_manifest_path(manifest_path))


def main(argv: typ.Sequence[str] | None = None) -> None:
    """Run the CLI, accepting cargo's external subcommand calling convention.

    Cargo runs ``cargo-patch-source patch-source <args>`` for
    ``cargo patch-source <args>``, so a leading ``patch-source`` is dropped.
    """
    tokens = list(sys.argv[1:] if argv is None else argv)
    if tokens and tokens[0] == CARGO_SUBCOMMAND:
        tokens = tokens[1:]
    app(tokens)


if __name__ == "__main__":
    main()
