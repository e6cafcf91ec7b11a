"""Tests for the aggregated public interface."""

from __future__ import annotations

import patch_source
import patch_source_state


def test_facade_reexports_workflow() -> None:
    """The facade exposes the same callables as the helper modules."""
    assert patch_source.apply_patches is patch_source_state.apply_patches
    assert patch_source.remove_patches is patch_source_state.remove_patches


def test_facade_all_is_resolvable() -> None:
    """Every advertised name is importable from the facade."""
    missing = [name for name in patch_source.__all__ if not hasattr(patch_source, name)]

    assert missing == []


def test_errors_abort_like_system_exit() -> None:
    """Public errors terminate the interpreter when left uncaught."""
    error = patch_source.NoPatchesFoundError()

    assert isinstance(error, SystemExit)
    assert str(error) == "no patches found to remove"
    assert error.diagnostic == "patch::remove::not_found"
