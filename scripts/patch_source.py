"""Facade module for manifest patch management.

This module gathers the public surface of the focused helper modules so that
callers have a single import point. The implementation lives in the
``patch_source_*`` modules documented alongside each function.
"""

from __future__ import annotations

from patch_source_dependencies import (
    declared_origin_url,
    declared_version,
    dependency_table,
    set_version,
)
from patch_source_errors import (
    CargoMetadataError,
    ConflictingOptionsError,
    InvalidPatternError,
    ManifestNotFoundError,
    ManifestParseError,
    ManifestReadError,
    ManifestWriteError,
    NoMatchingCratesError,
    NoPatchesFoundError,
    NoSourceSpecifiedError,
    NotAWorkspaceError,
    PatchSourceError,
    PatternRequiredError,
    SourceNotFoundError,
)
from patch_source_metadata import ManagedState, clear_state, load_state, save_state
from patch_source_models import (
    DEFAULT_ORIGIN_KEY,
    Branch,
    CrateCandidate,
    GitReference,
    GitSource,
    LocalPathSource,
    PatchEntry,
    PatchReport,
    PatchSource,
    Rev,
    Tag,
)
from patch_source_origin import infer_common_origin
from patch_source_pattern import compile_pattern
from patch_source_state import (
    apply_patches,
    apply_to_document,
    remove_from_document,
    remove_patches,
)
from patch_source_workspace import query_workspace_crates

__all__ = [
    "DEFAULT_ORIGIN_KEY",
    "Branch",
    "CargoMetadataError",
    "ConflictingOptionsError",
    "CrateCandidate",
    "GitReference",
    "GitSource",
    "InvalidPatternError",
    "LocalPathSource",
    "ManagedState",
    "ManifestNotFoundError",
    "ManifestParseError",
    "ManifestReadError",
    "ManifestWriteError",
    "NoMatchingCratesError",
    "NoPatchesFoundError",
    "NoSourceSpecifiedError",
    "NotAWorkspaceError",
    "PatchEntry",
    "PatchReport",
    "PatchSource",
    "PatchSourceError",
    "PatternRequiredError",
    "Rev",
    "SourceNotFoundError",
    "Tag",
    "apply_patches",
    "apply_to_document",
    "clear_state",
    "compile_pattern",
    "declared_origin_url",
    "declared_version",
    "dependency_table",
    "infer_common_origin",
    "load_state",
    "query_workspace_crates",
    "remove_from_document",
    "remove_patches",
    "save_state",
    "set_version",
]
