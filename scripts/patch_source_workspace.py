"""Enumerate the member packages of a local cargo workspace.

``cargo metadata`` is the authority on workspace membership, so the query
delegates to it rather than expanding ``members`` globs by hand.
"""

from __future__ import annotations

import json
import logging
import shlex
import typing as typ
from pathlib import Path

from patch_source_errors import (
    CargoMetadataError,
    NotAWorkspaceError,
    SourceNotFoundError,
)
from patch_source_models import CrateCandidate
from plumbum import local
from plumbum.commands import CommandNotFound
from plumbum.commands.processes import ProcessTimedOut

LOGGER = logging.getLogger(__name__)

__all__ = [
    "DEFAULT_METADATA_TIMEOUT_SECS",
    "metadata_command",
    "parse_workspace_members",
    "query_workspace_crates",
]

DEFAULT_METADATA_TIMEOUT_SECS: typ.Final[int] = 120


def metadata_command(manifest: Path) -> list[str]:
    """Return the ``cargo metadata`` arguments used to describe ``manifest``."""
    return [
        "metadata",
        "--format-version",
        "1",
        "--no-deps",
        "--manifest-path",
        str(manifest),
    ]


def _run_cargo_metadata(manifest: Path, timeout_secs: int) -> str:
    """Run ``cargo metadata`` for ``manifest`` and return its stdout."""
    arguments = metadata_command(manifest)
    joined = shlex.join(["cargo", *arguments])
    try:
        cargo_invocation = local["cargo"][arguments]
        return_code, stdout, stderr = cargo_invocation.run(
            retcode=None,
            timeout=timeout_secs,
        )
    except CommandNotFound as error:
        message = "cargo not found on PATH"
        raise CargoMetadataError(manifest, message) from error
    except ProcessTimedOut as error:
        LOGGER.exception(
            "cargo metadata timed out after %s seconds: %s", timeout_secs, joined
        )
        detail = f"timed out after {timeout_secs} seconds"
        raise CargoMetadataError(manifest, detail) from error

    if return_code != 0:
        LOGGER.error("cargo command failed: %s", joined)
        diagnostics = (stderr or stdout or "").strip()
        detail = f"exit code {return_code}"
        if diagnostics:
            detail = f"{detail}: {diagnostics}"
        raise CargoMetadataError(manifest, detail)
    return stdout


def parse_workspace_members(payload: str, manifest: Path) -> list[CrateCandidate]:
    """Extract workspace member packages from ``cargo metadata`` JSON."""
    try:
        metadata = json.loads(payload)
    except ValueError as error:
        message = f"invalid JSON output: {error}"
        raise CargoMetadataError(manifest, message) from error

    if not isinstance(metadata, dict):
        message = "unexpected metadata layout"
        raise CargoMetadataError(manifest, message)

    member_ids = set(metadata.get("workspace_members") or ())
    candidates: list[CrateCandidate] = []
    for package in metadata.get("packages") or ():
        if package.get("id") not in member_ids:
            continue
        try:
            candidates.append(
                CrateCandidate(
                    name=package["name"],
                    version=package["version"],
                    manifest_path=Path(package["manifest_path"]),
                )
            )
        except KeyError as error:
            message = f"package entry missing {error.args[0]!r}"
            raise CargoMetadataError(manifest, message) from error
    return candidates


def query_workspace_crates(
    workspace_root: Path,
    *,
    timeout_secs: int = DEFAULT_METADATA_TIMEOUT_SECS,
) -> list[CrateCandidate]:
    """Return every member package of the workspace rooted at ``workspace_root``.

    Parameters
    ----------
    workspace_root : Path
        Directory containing the source workspace's ``Cargo.toml``.
    timeout_secs : int, optional
        Upper bound on the ``cargo metadata`` invocation.

    Returns
    -------
    list[CrateCandidate]
        Member packages in the order cargo reports them.

    Raises
    ------
    SourceNotFoundError
        Raised when the root directory or its manifest does not exist.
    NotAWorkspaceError
        Raised when the manifest declares no member packages.
    CargoMetadataError
        Raised when cargo is unavailable, fails, times out, or emits output
        that cannot be interpreted.
    """
    workspace_root = Path(workspace_root)
    if not workspace_root.is_dir():
        raise SourceNotFoundError(workspace_root)
    manifest = workspace_root / "Cargo.toml"
    if not manifest.is_file():
        raise SourceNotFoundError(manifest)

    payload = _run_cargo_metadata(manifest, timeout_secs)
    members = parse_workspace_members(payload, manifest)
    if not members:
        raise NotAWorkspaceError(workspace_root)
    return members
