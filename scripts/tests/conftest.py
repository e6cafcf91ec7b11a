"""Shared fixtures for patch management tests."""

from __future__ import annotations

import dataclasses as dc
import sys
import typing as typ
from pathlib import Path

import pytest

SCRIPTS_DIR = Path(__file__).resolve().parents[1]
if str(SCRIPTS_DIR) not in sys.path:
    sys.path.insert(0, str(SCRIPTS_DIR))

import patch_source_state  # noqa: E402
from patch_source_models import CrateCandidate  # noqa: E402

PROJECT_MANIFEST: typ.Final[str] = "\n".join(
    (
        "[package]",
        'name = "target-project"',
        'version = "0.1.0"',
        'edition = "2021"',
        "",
        "[dependencies]",
        'rattler-one = "1.0.0"',
        'rattler-two = "2.0.0"',
        'other-crate = "3.0.0"',
        "",
    )
)


@dc.dataclass
class FakeWorkspace:
    """Stand-in for ``query_workspace_crates`` serving canned members."""

    root: Path
    members: dict[str, str]
    calls: list[tuple[Path, int]] = dc.field(default_factory=list)

    def candidates(self) -> list[CrateCandidate]:
        return [
            CrateCandidate(
                name=name,
                version=version,
                manifest_path=self.root / "crates" / name / "Cargo.toml",
            )
            for name, version in self.members.items()
        ]

    def __call__(self, root: Path, *, timeout_secs: int) -> list[CrateCandidate]:
        self.calls.append((root, timeout_secs))
        return self.candidates()


@pytest.fixture
def fake_workspace(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> FakeWorkspace:
    """Serve ``rattler-one``, ``rattler-two`` and ``other-crate`` as members."""
    workspace = FakeWorkspace(
        root=tmp_path / "mock-workspace",
        members={
            "rattler-one": "1.0.0",
            "rattler-two": "2.0.0",
            "other-crate": "3.0.0",
        },
    )
    monkeypatch.setattr(patch_source_state, "query_workspace_crates", workspace)
    return workspace


@pytest.fixture
def write_manifest(tmp_path: Path) -> typ.Callable[[str], Path]:
    """Return a helper that writes manifest text into a project directory."""

    def _write(text: str) -> Path:
        project = tmp_path / "target-project"
        project.mkdir(exist_ok=True)
        manifest = project / "Cargo.toml"
        manifest.write_text(text, encoding="utf-8")
        return manifest

    return _write


@pytest.fixture
def project_manifest(write_manifest: typ.Callable[[str], Path]) -> Path:
    """Provision a package manifest depending on the fake workspace crates."""
    return write_manifest(PROJECT_MANIFEST)
