"""Error taxonomy for manifest patch management.

Every error derives from :class:`PatchSourceError`, itself a ``SystemExit``
subclass, so an uncaught failure terminates the CLI with its message in the
same way the rest of the tooling aborts. Each error keeps the structured
context (path, pattern) a caller needs to act on it, plus a stable
``diagnostic`` code for log filtering.
"""

from __future__ import annotations

import typing as typ
from pathlib import Path

__all__ = [
    "CargoMetadataError",
    "CompletionError",
    "ConflictingOptionsError",
    "FormatError",
    "InputError",
    "InvalidPatternError",
    "ManifestNotFoundError",
    "ManifestParseError",
    "ManifestReadError",
    "ManifestWriteError",
    "NoMatchingCratesError",
    "NoPatchesFoundError",
    "NoSourceSpecifiedError",
    "NotAWorkspaceError",
    "PatchSourceError",
    "PatternRequiredError",
    "SelectionError",
    "SourceNotFoundError",
]


class PatchSourceError(SystemExit):
    """Base class for every failure surfaced by the patch tooling."""

    diagnostic: typ.ClassVar[str] = "patch::error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class InputError(PatchSourceError):
    """Raised when a required input is missing or invalid."""


class SelectionError(PatchSourceError):
    """Raised when crate selection cannot produce a usable candidate set."""


class CompletionError(PatchSourceError):
    """Raised when an operation has nothing to act upon."""


class FormatError(PatchSourceError):
    """Raised when manifest text cannot be interpreted."""


class _PathError(PatchSourceError):
    """Shared plumbing for errors tied to a filesystem location."""

    template: typ.ClassVar[str] = "{path}"

    def __init__(self, path: Path, detail: str | None = None) -> None:
        self.path = Path(path)
        self.detail = detail
        message = self.template.format(path=self.path)
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class ManifestNotFoundError(_PathError, InputError):
    """The target manifest does not exist."""

    diagnostic = "patch::target::not_found"
    template = "target manifest not found at {path}"


class SourceNotFoundError(_PathError, InputError):
    """The source workspace root or its manifest does not exist."""

    diagnostic = "patch::source::not_found"
    template = "source path does not exist: {path}"


class NotAWorkspaceError(_PathError, InputError):
    """The source manifest exists but declares no member packages."""

    diagnostic = "patch::source::not_workspace"
    template = "source path is not a valid cargo workspace: {path}"


class ManifestReadError(_PathError):
    """The manifest could not be read from disk."""

    diagnostic = "patch::io::read"
    template = "failed to read Cargo.toml at {path}"


class ManifestWriteError(_PathError):
    """The manifest could not be written back to disk."""

    diagnostic = "patch::io::write"
    template = "failed to write Cargo.toml at {path}"


class ManifestParseError(_PathError, FormatError):
    """The manifest text is not valid TOML."""

    diagnostic = "patch::toml::parse"
    template = "failed to parse Cargo.toml at {path}"


class CargoMetadataError(_PathError):
    """``cargo metadata`` could not describe the source workspace."""

    diagnostic = "patch::cargo::metadata"
    template = "failed to query cargo metadata for {path}"


class NoSourceSpecifiedError(InputError):
    """Neither a local path nor a git repository was supplied."""

    diagnostic = "patch::cli::no_source"

    def __init__(self) -> None:
        super().__init__("no source specified; use --path or --git")


class ConflictingOptionsError(InputError):
    """Command-line options were combined in an unsupported way."""

    diagnostic = "patch::cli::conflict"


class NoMatchingCratesError(SelectionError):
    """The pattern matched no candidate crate."""

    diagnostic = "patch::pattern::no_match"

    def __init__(self, pattern: str) -> None:
        self.pattern = pattern
        super().__init__(f"no crates found matching pattern: {pattern}")


class PatternRequiredError(SelectionError):
    """A git source was requested without a pattern to bound it."""

    diagnostic = "patch::pattern::required"

    def __init__(self, url: str) -> None:
        self.url = url
        super().__init__(
            f"a --pattern is required when patching from git source {url}; "
            "remote workspace members cannot be enumerated"
        )


class InvalidPatternError(SelectionError):
    """The pattern could not be compiled."""

    diagnostic = "patch::pattern::invalid"

    def __init__(self, pattern: str, detail: str) -> None:
        self.pattern = pattern
        self.detail = detail
        super().__init__(f"failed to parse pattern {pattern!r}: {detail}")


class NoPatchesFoundError(CompletionError):
    """No patches managed by this tool were found in the manifest."""

    diagnostic = "patch::remove::not_found"

    def __init__(self, path: Path | None = None) -> None:
        self.path = None if path is None else Path(path)
        message = "no patches found to remove"
        if self.path is not None:
            message = f"{message} in {self.path}"
        super().__init__(message)
