"""Manifest reading and serialisation helpers.

These utilities encapsulate TOML parsing and rendering so that the patch
workflow can focus on document mutation while relying on consistent output
formatting and error reporting.
"""

from __future__ import annotations

import typing as typ
from pathlib import Path

from patch_source_errors import (
    ManifestNotFoundError,
    ManifestParseError,
    ManifestReadError,
    ManifestWriteError,
)
from tomlkit import dumps, parse
from tomlkit.exceptions import TOMLKitError

if typ.TYPE_CHECKING:
    from tomlkit.toml_document import TOMLDocument

__all__ = ["read_manifest", "render_manifest", "write_manifest"]


def read_manifest(manifest: Path) -> TOMLDocument:
    """Parse ``manifest`` into a format-preserving document."""
    manifest = Path(manifest)
    if not manifest.is_file():
        raise ManifestNotFoundError(manifest)
    try:
        text = manifest.read_text(encoding="utf-8")
    except OSError as error:
        raise ManifestReadError(manifest, error.strerror) from error
    except UnicodeDecodeError as error:
        raise ManifestReadError(manifest, str(error)) from error
    try:
        return parse(text)
    except TOMLKitError as error:
        raise ManifestParseError(manifest, str(error)) from error


def render_manifest(document: TOMLDocument) -> str:
    """Serialise ``document`` and ensure a trailing newline."""
    rendered = dumps(document)
    if not rendered.endswith("\n"):
        rendered = f"{rendered}\n"
    return rendered


def write_manifest(document: TOMLDocument, manifest: Path) -> None:
    """Serialise ``document`` to ``manifest``."""
    manifest = Path(manifest)
    try:
        manifest.write_text(render_manifest(document), encoding="utf-8")
    except OSError as error:
        raise ManifestWriteError(manifest, error.strerror) from error
