"""Workspace mutations — add and remove members, keeping the graph consistent.

Orchestrates path resolution, member skeleton creation, the member registry
and the dependency graph editor. Each step runs in a fixed order:

  add:    validate → scaffold → register → link targets → commit → verify
  remove: validate → delete dir → unregister → unlink dependents → commit → verify

Each manifest edit is atomic on its own, but the sequence is not a
transaction. Validation errors are raised before anything is touched; a
filesystem failure after that stops the sequence and is returned in the
report together with the files already changed. Commit and build
verification are best-effort and never undo earlier steps.

Key classes: WorkspaceMutator, MutationReport, StageResult, MembershipStatus.
"""

from __future__ import annotations

import fnmatch
import logging
import shutil
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path

from .. import vcs
from ..build import BuildResult, verify_buildable
from ..errors import FilesystemError, InvalidMemberName, MemberAlreadyExists
from ..settings import WorkspaceSettings
from . import graph, registry
from .resolver import (
    WorkspacePaths,
    discover_members,
    require_member,
    resolve_workspace,
    validate_member_name,
)
from .scaffold import KINDS, create_member_skeleton

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StageResult:
    """One progress line of a mutation."""

    name: str
    ok: bool
    detail: str = ""
    required: bool = True


@dataclass
class MutationReport:
    """Everything one add/remove did, in order."""

    member: str
    action: str  # "add" | "remove"
    stages: list[StageResult] = field(default_factory=list)
    linked: list[str] = field(default_factory=list)
    already_linked: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    dependents: list[str] = field(default_factory=list)
    unlinked_from: list[str] = field(default_factory=list)
    touched: list[Path] = field(default_factory=list)
    committed: bool | None = None  # None: not attempted
    build: BuildResult | None = None
    error: str = ""

    @property
    def ok(self) -> bool:
        return not self.error and all(s.ok for s in self.stages if s.required)

    def touch(self, path: Path) -> None:
        if path not in self.touched:
            self.touched.append(path)

    def summary_lines(self) -> list[str]:
        verb = "Added" if self.action == "add" else "Removed"
        lines = [f"{verb} member {self.member}" if self.ok else f"Failed: {self.error}"]
        if self.linked:
            lines.append(f"Linked to: {', '.join(self.linked)}")
        if self.already_linked:
            lines.append(f"Already linked: {', '.join(self.already_linked)}")
        if self.skipped:
            lines.append(f"Skipped link targets: {', '.join(self.skipped)}")
        if self.dependents:
            lines.append(f"Depended on by: {', '.join(self.dependents)}")
        if self.unlinked_from:
            lines.append(f"Dependency removed from: {', '.join(self.unlinked_from)}")
        if self.touched:
            lines.append("Touched:")
            lines.extend(f"  {p}" for p in self.touched)
        if self.committed is not None:
            lines.append(f"Commit: {'created' if self.committed else 'not created'}")
        if self.build is None:
            lines.append("Build verification: not run")
        else:
            lines.append(
                f"Build verification: {'passed' if self.build.ok else 'FAILED'}"
            )
        return lines


@dataclass
class MembershipStatus:
    """Registry entries compared with the member directories on disk."""

    registered: list[str]
    present: list[str]
    missing: list[str]  # registered, but no directory
    unregistered: list[str]  # directory with manifest, but not registered

    @property
    def consistent(self) -> bool:
        return not self.missing and not self.unregistered


ScaffoldFn = Callable[[Path, str, str, WorkspaceSettings], Path]
SnapshotFn = Callable[[Path, str, float], bool]
VerifyFn = Callable[[Path, tuple[str, ...], float], BuildResult]
ProgressFn = Callable[[StageResult], None]


class WorkspaceMutator:
    """Adds and removes workspace members.

    Collaborators (skeleton creation, git snapshot, build verification) are
    injectable so callers and tests can replace the external processes.
    """

    def __init__(
        self,
        settings: WorkspaceSettings,
        scaffold: ScaffoldFn | None = None,
        snapshot: SnapshotFn | None = None,
        verify: VerifyFn | None = None,
        progress: ProgressFn | None = None,
    ) -> None:
        self.settings = settings
        self._scaffold = scaffold or create_member_skeleton
        self._snapshot = snapshot or vcs.snapshot
        self._verify = verify or verify_buildable
        self._progress = progress

    def _stage(
        self,
        report: MutationReport,
        name: str,
        ok: bool,
        detail: str = "",
        required: bool = True,
    ) -> None:
        stage = StageResult(name=name, ok=ok, detail=detail, required=required)
        report.stages.append(stage)
        if self._progress is not None:
            self._progress(stage)

    # --- add ---

    def add_member(
        self,
        root: Path | str,
        name: str,
        kind: str = "lib",
        links: Iterable[str] = (),
        commit: bool = True,
        verify: bool = True,
    ) -> MutationReport:
        """Create member *name* and link it to each of *links*.

        Raises:
            InvalidMemberName: If name is not usable.
            ValueError: If kind is unknown.
            NotAWorkspace: If root is not a workspace.
            MemberAlreadyExists: If the member directory already exists.
        """
        validate_member_name(name)
        if kind not in KINDS:
            raise ValueError(f"Unknown member kind: {kind!r} (expected 'lib' or 'bin')")
        paths = resolve_workspace(root, self.settings)
        member_dir = paths.member_dir(name)
        if member_dir.exists():
            raise MemberAlreadyExists(f"Member already exists: {member_dir}")

        report = MutationReport(member=name, action="add")
        stage = "scaffold"
        try:
            manifest = self._scaffold(member_dir, name, kind, self.settings)
            report.touch(member_dir)
            self._stage(report, stage, True, f"created {kind} member at {member_dir}")

            stage = "register"
            member_path = paths.member_path(name)
            outcome = registry.add(paths, member_path)
            if outcome == registry.ADDED:
                report.touch(paths.root_manifest)
                self._stage(report, stage, True, f"added {member_path} to member list")
            else:
                self._stage(report, stage, True, f"{member_path} already listed")

            for target in links:
                stage = f"link {target}"
                self._link(paths, report, name, target, manifest)
        except FilesystemError as e:
            self._abort(report, stage, e)
            return report

        self._finish(paths, report, f"Add member {name}", commit, verify)
        return report

    def _link(
        self,
        paths: WorkspacePaths,
        report: MutationReport,
        name: str,
        target: str,
        manifest: Path,
    ) -> None:
        stage = f"link {target}"
        try:
            validate_member_name(target)
        except InvalidMemberName as e:
            logger.warning("%s", e)
            report.skipped.append(target)
            self._stage(report, stage, False, "invalid member name; skipped", False)
            return

        outcome = graph.link(paths, name, target)
        if outcome == graph.LINKED:
            report.linked.append(target)
            report.touch(manifest)
            self._stage(report, stage, True, f"{name} now depends on {target}")
        elif outcome == graph.ALREADY_LINKED:
            report.already_linked.append(target)
            self._stage(report, stage, True, f"{name} already depends on {target}")
        else:
            report.skipped.append(target)
            self._stage(report, stage, False, "unknown link target; skipped", False)

    # --- remove ---

    def remove_member(
        self,
        root: Path | str,
        name: str,
        commit: bool = True,
        verify: bool = True,
    ) -> MutationReport:
        """Delete member *name* and every dependency edge pointing at it.

        Raises:
            InvalidMemberName: If name is not usable.
            NotAWorkspace: If root is not a workspace.
            MemberNotFound: If the member directory does not exist.
            FilesystemError: If another member's manifest cannot be read.
        """
        validate_member_name(name)
        paths = resolve_workspace(root, self.settings)
        member_dir = require_member(paths, name)
        others = discover_members(paths)

        report = MutationReport(member=name, action="remove")
        report.dependents = graph.dependents(paths, name, others)
        if report.dependents:
            logger.info("%s is depended on by %s", name, ", ".join(report.dependents))
        stage = "delete"
        try:
            try:
                shutil.rmtree(member_dir)
            except OSError as e:
                raise FilesystemError(f"Cannot delete {member_dir}: {e}") from e
            report.touch(member_dir)
            self._stage(report, stage, True, f"deleted {member_dir}")

            stage = "unregister"
            member_path = paths.member_path(name)
            outcome = registry.remove(paths, member_path)
            if outcome == registry.REMOVED:
                report.touch(paths.root_manifest)
                self._stage(report, stage, True, f"removed {member_path} from member list")
            else:
                self._stage(report, stage, True, f"{member_path} was not listed")

            stage = "unlink"
            unlinked = graph.unlink_all(paths, name, others)
            for manifest in unlinked.modified:
                report.touch(manifest)
                report.unlinked_from.append(manifest.parent.name)
            self._stage(
                report,
                stage,
                True,
                f"{len(unlinked.modified)} manifest(s) updated, "
                f"{len(unlinked.untouched)} unchanged",
            )
        except FilesystemError as e:
            self._abort(report, stage, e)
            return report

        self._finish(paths, report, f"Remove member {name}", commit, verify)
        return report

    # --- shared ---

    def _abort(self, report: MutationReport, stage: str, error: FilesystemError) -> None:
        logger.error("%s of %s stopped at %s: %s", report.action, report.member, stage, error)
        report.error = str(error)
        self._stage(report, stage, False, str(error))

    def _finish(
        self,
        paths: WorkspacePaths,
        report: MutationReport,
        message: str,
        commit: bool,
        verify: bool,
    ) -> None:
        """Best-effort commit and build verification; failures are only reported."""
        if commit:
            if vcs.is_versioned(paths.root):
                report.committed = self._snapshot(
                    paths.root, message, self.settings.vcs_timeout
                )
                self._stage(
                    report,
                    "commit",
                    report.committed,
                    message if report.committed else "no commit created",
                    required=False,
                )
            else:
                logger.debug("%s is not a git work tree; not committing", paths.root)

        if verify:
            report.build = self._verify(
                paths.root, self.settings.build_command, self.settings.build_timeout
            )
            detail = " ".join(self.settings.build_command)
            if not report.build.ok and report.build.output:
                detail = report.build.output.splitlines()[-1]
            self._stage(report, "verify", report.build.ok, detail, required=False)

    # --- inspect ---

    def list_members(self, root: Path | str) -> MembershipStatus:
        """Compare the member list with member directories on disk."""
        paths = resolve_workspace(root, self.settings)
        registered = registry.list_entries(paths)
        present = [paths.member_path(n) for n in discover_members(paths)]

        def _listed(member_path: str) -> bool:
            return any(fnmatch.fnmatchcase(member_path, e) for e in registered)

        missing = [
            e
            for e in registered
            if not any(ch in e for ch in "*?[") and not (paths.root / e).is_dir()
        ]
        unregistered = [p for p in present if not _listed(p)]
        return MembershipStatus(
            registered=registered,
            present=present,
            missing=missing,
            unregistered=unregistered,
        )
