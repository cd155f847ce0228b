"""Tests for workspace/resolver.py — path resolution and validation."""

from pathlib import Path

import pytest

from cratekeeper.errors import InvalidMemberName, MemberNotFound, NotAWorkspace
from cratekeeper.settings import WorkspaceSettings
from cratekeeper.workspace.resolver import (
    discover_members,
    require_member,
    resolve_workspace,
    validate_member_name,
)

from ..conftest import build_workspace


class TestResolveWorkspace:
    def test_resolves_paths(self, ws_root: Path) -> None:
        build_workspace(ws_root, ["core"])
        paths = resolve_workspace(ws_root, WorkspaceSettings())
        assert paths.root == ws_root.resolve()
        assert paths.root_manifest == ws_root.resolve() / "Cargo.toml"
        assert paths.members_dir == ws_root.resolve() / "crates"
        assert paths.member_manifest("core") == (
            ws_root.resolve() / "crates" / "core" / "Cargo.toml"
        )
        assert paths.member_path("core") == "crates/core"

    def test_relative_root(self, ws_root: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        build_workspace(ws_root, [])
        monkeypatch.chdir(ws_root)
        assert resolve_workspace(".", WorkspaceSettings()).root == ws_root.resolve()

    def test_custom_members_dir(self, ws_root: Path) -> None:
        build_workspace(ws_root, [])
        paths = resolve_workspace(ws_root, WorkspaceSettings(members_dir="packages"))
        assert paths.member_path("api") == "packages/api"

    def test_missing_manifest(self, ws_root: Path) -> None:
        ws_root.mkdir()
        with pytest.raises(NotAWorkspace):
            resolve_workspace(ws_root, WorkspaceSettings())

    def test_manifest_without_marker(self, ws_root: Path) -> None:
        ws_root.mkdir()
        (ws_root / "Cargo.toml").write_text('[package]\nname = "solo"\n')
        with pytest.raises(NotAWorkspace, match=r"\[workspace\]"):
            resolve_workspace(ws_root, WorkspaceSettings())

    def test_marker_in_comment_does_not_count(self, ws_root: Path) -> None:
        ws_root.mkdir()
        (ws_root / "Cargo.toml").write_text("# [workspace]\n[package]\n")
        with pytest.raises(NotAWorkspace):
            resolve_workspace(ws_root, WorkspaceSettings())


class TestRequireMember:
    def test_existing(self, ws_root: Path) -> None:
        build_workspace(ws_root, ["core"])
        paths = resolve_workspace(ws_root, WorkspaceSettings())
        assert require_member(paths, "core") == paths.member_dir("core")

    def test_missing(self, ws_root: Path) -> None:
        build_workspace(ws_root, ["core"])
        paths = resolve_workspace(ws_root, WorkspaceSettings())
        with pytest.raises(MemberNotFound):
            require_member(paths, "ghost")


class TestDiscoverMembers:
    def test_only_dirs_with_manifest(self, ws_root: Path) -> None:
        build_workspace(ws_root, ["util", "core"])
        (ws_root / "crates" / "scratch").mkdir()
        (ws_root / "crates" / "notes.txt").write_text("x")
        paths = resolve_workspace(ws_root, WorkspaceSettings())
        assert discover_members(paths) == ["core", "util"]

    def test_no_members_dir(self, ws_root: Path) -> None:
        build_workspace(ws_root, [])
        paths = resolve_workspace(ws_root, WorkspaceSettings())
        assert discover_members(paths) == []


class TestValidateMemberName:
    @pytest.mark.parametrize("name", ["core", "my-crate", "my_crate2"])
    def test_valid(self, name: str) -> None:
        assert validate_member_name(name) == name

    @pytest.mark.parametrize("name", ["", "../evil", "a/b", "with space", ".", "core\n"])
    def test_invalid(self, name: str) -> None:
        with pytest.raises(InvalidMemberName):
            validate_member_name(name)
