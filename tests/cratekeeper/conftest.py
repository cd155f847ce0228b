"""Shared test helpers for building workspaces on disk."""

from pathlib import Path

import pytest


def write_member(root: Path, name: str, deps: list[str] | None = None) -> Path:
    """Write crates/<name>/Cargo.toml with path dependencies on *deps*.

    Returns the manifest path.
    """
    member_dir = root / "crates" / name
    member_dir.mkdir(parents=True, exist_ok=True)
    lines = [
        "[package]\n",
        f'name = "{name}"\n',
        'version = "0.1.0"\n',
        "\n",
        "[dependencies]\n",
    ]
    for dep in deps or []:
        lines.append(f'{dep} = {{ path = "../{dep}" }}\n')
    manifest = member_dir / "Cargo.toml"
    manifest.write_text("".join(lines))
    return manifest


def build_workspace(
    root: Path,
    members: list[str],
    deps: dict[str, list[str]] | None = None,
    root_manifest: str | None = None,
) -> Path:
    """Create a workspace with a single-line member list and member manifests.

    Pass *root_manifest* to write a custom root Cargo.toml instead.
    """
    root.mkdir(parents=True, exist_ok=True)
    if root_manifest is None:
        entries = ", ".join(f'"crates/{m}"' for m in members)
        root_manifest = f'[workspace]\nresolver = "2"\nmembers = [{entries}]\n'
    (root / "Cargo.toml").write_text(root_manifest)
    for member in members:
        write_member(root, member, (deps or {}).get(member))
    return root


@pytest.fixture
def ws_root(tmp_path: Path) -> Path:
    """Path for a workspace root (not created)."""
    return tmp_path / "ws"
