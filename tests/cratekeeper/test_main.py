"""Tests for main.run() — CLI dispatch, output streams and exit codes."""

from pathlib import Path
from unittest.mock import patch

import pytest

from cratekeeper.build import BuildResult
from cratekeeper.main import main, run

from .conftest import build_workspace


class TestAddMemberCommand:
    def test_success(self, ws_root: Path, capsys: pytest.CaptureFixture[str]) -> None:
        build_workspace(ws_root, ["core"])
        code = run(
            ["add-member", str(ws_root), "cli", "--link", "core", "ghost", "--no-verify"]
        )
        out = capsys.readouterr().out
        assert code == 0
        assert "[ok] scaffold" in out
        assert "[ok] link core" in out
        assert "[warn] link ghost" in out
        assert "Skipped link targets: ghost" in out
        assert (ws_root / "crates" / "cli" / "Cargo.toml").is_file()

    def test_defaults_to_current_directory(
        self, ws_root: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        build_workspace(ws_root, [])
        monkeypatch.chdir(ws_root)
        assert run(["add-member", "--kind", "bin", "tool", "--no-verify"]) == 0
        assert (ws_root / "crates" / "tool" / "src" / "main.rs").is_file()

    def test_existing_member(self, ws_root: Path, capsys: pytest.CaptureFixture[str]) -> None:
        build_workspace(ws_root, ["core"])
        assert run(["add-member", str(ws_root), "core", "--no-verify"]) == 1
        assert "Member already exists" in capsys.readouterr().err

    def test_not_a_workspace(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        assert run(["add-member", str(tmp_path), "cli", "--no-verify"]) == 1
        assert "Error:" in capsys.readouterr().err

    def test_build_failure_keeps_exit_zero(
        self, ws_root: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        build_workspace(ws_root, [])
        failed = BuildResult(ok=False, returncode=101, output="error: boom")
        with patch("cratekeeper.workspace.mutator.verify_buildable", return_value=failed):
            code = run(["add-member", str(ws_root), "cli"])
        captured = capsys.readouterr()
        assert code == 0
        assert "[warn] verify: error: boom" in captured.out
        assert "Build verification: FAILED" in captured.out
        assert "error: boom" in captured.err


class TestRemoveMemberCommand:
    def test_success(self, ws_root: Path, capsys: pytest.CaptureFixture[str]) -> None:
        build_workspace(ws_root, ["core", "cli"], deps={"cli": ["core"]})
        assert run(["remove-member", str(ws_root), "core", "--no-verify"]) == 0
        out = capsys.readouterr().out
        assert "[ok] delete" in out
        assert "Dependency removed from: cli" in out

    def test_missing_member(self, ws_root: Path, capsys: pytest.CaptureFixture[str]) -> None:
        build_workspace(ws_root, ["core"])
        assert run(["remove-member", str(ws_root), "ghost", "--no-verify"]) == 1
        assert "Member not found" in capsys.readouterr().err

    def test_stage_failure_exit_code(self, ws_root: Path) -> None:
        build_workspace(ws_root, ["core"])
        with patch(
            "cratekeeper.workspace.mutator.shutil.rmtree",
            side_effect=OSError("busy"),
        ):
            assert run(["remove-member", str(ws_root), "core", "--no-verify"]) == 1


class TestListMembersCommand:
    def test_consistent(self, ws_root: Path, capsys: pytest.CaptureFixture[str]) -> None:
        build_workspace(ws_root, ["core", "cli"])
        assert run(["list-members", str(ws_root)]) == 0
        assert capsys.readouterr().out.split() == ["crates/core", "crates/cli"]

    def test_drift(self, ws_root: Path, capsys: pytest.CaptureFixture[str]) -> None:
        build_workspace(ws_root, [], root_manifest='[workspace]\nmembers = ["crates/gone"]\n')
        assert run(["list-members", str(ws_root)]) == 1
        assert "Registered but missing on disk: crates/gone" in capsys.readouterr().err


class TestSettingsErrors:
    def test_bad_settings(self, ws_root: Path, capsys: pytest.CaptureFixture[str]) -> None:
        build_workspace(ws_root, [])
        (ws_root / "cratekeeper.toml").write_text("[cratekeeper]\nmembers_dir = 1\n")
        assert run(["list-members", str(ws_root)]) == 1
        assert "members_dir" in capsys.readouterr().err


class TestMain:
    def test_exits_with_run_code(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setattr("sys.argv", ["cratekeeper", "list-members", str(tmp_path)])
        with pytest.raises(SystemExit) as exc:
            main()
        assert exc.value.code == 1

    def test_requires_command(self) -> None:
        with pytest.raises(SystemExit) as exc:
            run([])
        assert exc.value.code == 2
