"""Apply and remove dependency redirections in a cargo manifest.

The manifest is the only source of truth. Every apply begins by undoing the
redirections recorded in the manifest's private metadata (restoring versions
and stripping exactly the crates the tool owns), so repeated applies converge
instead of accumulating. Entries the tool did not write are never touched: a
crate that already has a ``[patch.*]`` entry is skipped and reported.

The document-level functions mutate a parsed manifest in memory; the
path-level wrappers read the manifest once and write it once at the end, so a
failure part-way leaves the file on disk untouched.
"""

from __future__ import annotations

import collections.abc as cabc
import logging
import typing as typ
from pathlib import Path

from patch_source_dependencies import declared_dependencies, set_version
from patch_source_errors import (
    NoMatchingCratesError,
    NoPatchesFoundError,
    PatternRequiredError,
)
from patch_source_metadata import clear_state, load_state, save_state
from patch_source_models import (
    DEFAULT_ORIGIN_KEY,
    GitSource,
    GitTarget,
    LocalPathSource,
    PatchEntry,
    PatchReport,
    PathTarget,
    VersionChange,
)
from patch_source_origin import infer_common_origin
from patch_source_pattern import compile_pattern, filter_names
from patch_source_serialise import read_manifest, write_manifest
from patch_source_tables import (
    insert_patch_entries,
    patched_crates,
    strip_managed_entries,
)
from patch_source_workspace import (
    DEFAULT_METADATA_TIMEOUT_SECS,
    query_workspace_crates,
)

if typ.TYPE_CHECKING:
    from patch_source_metadata import ManagedState
    from patch_source_models import PatchSource
    from tomlkit.toml_document import TOMLDocument

LOGGER = logging.getLogger(__name__)

__all__ = [
    "apply_patches",
    "apply_to_document",
    "remove_from_document",
    "remove_patches",
]


def _restore_versions(
    document: TOMLDocument, state: ManagedState, report: PatchReport
) -> None:
    """Put back every recorded version that existed before patching."""
    versions = state.versions_to_restore()
    if not versions:
        return
    LOGGER.info("Restoring original versions for %d crates", len(versions))
    for crate, version in sorted(versions.items()):
        set_version(document, crate, version)
        LOGGER.info("  Restored %s to %s", crate, version)
        report.restored.append(crate)


def _self_clean(document: TOMLDocument, report: PatchReport) -> None:
    """Undo the redirections recorded by a previous apply, if any."""
    state = load_state(document)
    if state.is_empty():
        return
    _restore_versions(document, state, report)
    strip_managed_entries(document, state.managed_origins, state.original_versions)
    clear_state(document)


def _skip_foreign_entries(
    document: TOMLDocument, crates: cabc.Iterable[str], report: PatchReport
) -> list[str]:
    """Drop crates that already have a patch entry the tool does not own."""
    existing = patched_crates(document)
    kept: list[str] = []
    for crate in crates:
        if crate in existing:
            LOGGER.info("  Skipping %s because a patch entry already exists", crate)
            report.skipped.append(crate)
            continue
        kept.append(crate)
    return kept


def _persist(
    document: TOMLDocument,
    origin_key: str,
    original_versions: dict[str, str],
    entries: list[PatchEntry],
    report: PatchReport,
) -> None:
    """Record the new managed state and write the patch entries."""
    state = load_state(document)
    state.original_versions = dict(original_versions)
    state.add_origin(origin_key)
    save_state(document, state)
    insert_patch_entries(document, origin_key, entries)
    report.origin_key = origin_key
    report.patched.extend(entries)


def _apply_local_path(
    document: TOMLDocument,
    source: LocalPathSource,
    declared: dict[str, str],
    pattern: str | None,
    report: PatchReport,
    timeout_secs: int,
) -> None:
    candidates = query_workspace_crates(source.path, timeout_secs=timeout_secs)
    if pattern is not None:
        matches = compile_pattern(pattern)
        candidates = [candidate for candidate in candidates if matches(candidate.name)]
        if not candidates:
            raise NoMatchingCratesError(pattern)

    candidates = [candidate for candidate in candidates if candidate.name in declared]
    if not candidates:
        LOGGER.info("No matching crates found in current dependencies")
        return

    kept = set(
        _skip_foreign_entries(
            document, (candidate.name for candidate in candidates), report
        )
    )
    selected = [candidate for candidate in candidates if candidate.name in kept]
    if not selected:
        LOGGER.info("No crates to patch after skipping existing patch entries")
        return

    crate_names = [candidate.name for candidate in selected]
    origin = infer_common_origin(document, crate_names)
    if origin is not None:
        LOGGER.info("  Detected git source: %s", origin)

    original_versions = {name: declared[name] for name in crate_names}
    entries: list[PatchEntry] = []
    for candidate in selected:
        previous = original_versions[candidate.name]
        if previous:
            set_version(document, candidate.name, candidate.version)
            report.version_changes.append(
                VersionChange(candidate.name, previous, candidate.version)
            )
            if previous != candidate.version:
                LOGGER.info(
                    "  Updated %s version %s -> %s",
                    candidate.name,
                    previous,
                    candidate.version,
                )
        entry = PatchEntry(candidate.name, PathTarget(candidate.directory))
        LOGGER.info(
            "  Patching %s %s -> %s",
            candidate.name,
            candidate.version,
            entry.describe(),
        )
        entries.append(entry)

    _persist(
        document, origin or DEFAULT_ORIGIN_KEY, original_versions, entries, report
    )


def _apply_git(
    document: TOMLDocument,
    source: GitSource,
    declared: dict[str, str],
    pattern: str | None,
    report: PatchReport,
) -> None:
    # A remote repository's members cannot be listed without cloning it, so
    # the pattern is the only bound on which dependencies are redirected.
    if pattern is None:
        raise PatternRequiredError(source.url)

    matched = filter_names(declared, pattern)
    if not matched:
        raise NoMatchingCratesError(pattern)

    crate_names = _skip_foreign_entries(document, matched, report)
    if not crate_names:
        LOGGER.info("No crates to patch after skipping existing patch entries")
        return

    original_versions = {name: declared[name] for name in crate_names}
    entries: list[PatchEntry] = []
    for name in crate_names:
        entry = PatchEntry(name, GitTarget(source.url, source.reference))
        LOGGER.info("  Patching %s -> %s", name, entry.describe())
        entries.append(entry)

    _persist(document, DEFAULT_ORIGIN_KEY, original_versions, entries, report)


def apply_to_document(
    document: TOMLDocument,
    source: PatchSource,
    pattern: str | None = None,
    *,
    timeout_secs: int = DEFAULT_METADATA_TIMEOUT_SECS,
) -> PatchReport:
    """Redirect matching dependencies of ``document`` to ``source``.

    Parameters
    ----------
    document : TOMLDocument
        Parsed manifest that will be mutated in place.
    source : PatchSource
        Local workspace or git repository providing the replacement crates.
    pattern : str | None, optional
        Glob restricting which crates are redirected. Mandatory for git
        sources; ``None`` selects every eligible crate of a local workspace.
    timeout_secs : int, optional
        Upper bound on the ``cargo metadata`` query of a local workspace.

    Returns
    -------
    PatchReport
        The crates patched, skipped, and restored by this invocation.

    Raises
    ------
    PatternRequiredError
        Raised for a git source without a pattern.
    NoMatchingCratesError
        Raised when ``pattern`` matches no candidate crate.
    SourceNotFoundError, NotAWorkspaceError, CargoMetadataError
        Propagated from the workspace query of a local source.
    """
    report = PatchReport()
    _self_clean(document, report)
    declared = declared_dependencies(document)

    if isinstance(source, LocalPathSource):
        _apply_local_path(document, source, declared, pattern, report, timeout_secs)
    elif isinstance(source, GitSource):
        _apply_git(document, source, declared, pattern, report)
    else:
        typ.assert_never(source)
    return report


def remove_from_document(
    document: TOMLDocument, *, manifest: Path | None = None
) -> PatchReport:
    """Undo every redirection the tool recorded in ``document``.

    Raises
    ------
    NoPatchesFoundError
        Raised when no managed state is recorded, or when none of the recorded
        patch entries remain in the manifest.
    """
    state = load_state(document)
    if state.is_empty():
        raise NoPatchesFoundError(manifest)

    report = PatchReport()
    _restore_versions(document, state, report)
    removed = strip_managed_entries(
        document, state.managed_origins, state.original_versions
    )
    if not removed:
        raise NoPatchesFoundError(manifest)

    clear_state(document)
    for crate in removed:
        LOGGER.info("  Removed patch for %s", crate)
    report.removed.extend(removed)
    return report


def apply_patches(
    source: PatchSource,
    manifest: Path,
    pattern: str | None = None,
    *,
    timeout_secs: int = DEFAULT_METADATA_TIMEOUT_SECS,
) -> PatchReport:
    """Apply patches from ``source`` to the manifest at ``manifest``."""
    manifest = Path(manifest)
    document = read_manifest(manifest)
    report = apply_to_document(document, source, pattern, timeout_secs=timeout_secs)
    write_manifest(document, manifest)
    LOGGER.info("Successfully applied patches to %s", manifest)
    return report


def remove_patches(manifest: Path) -> PatchReport:
    """Remove the patches managed by the tool from ``manifest``."""
    manifest = Path(manifest)
    document = read_manifest(manifest)
    report = remove_from_document(document, manifest=manifest)
    write_manifest(document, manifest)
    LOGGER.info("Successfully removed patches from %s", manifest)
    return report
