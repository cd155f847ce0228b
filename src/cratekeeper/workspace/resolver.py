"""Workspace path resolution and validation.

Turns a candidate workspace root plus WorkspaceSettings into absolute paths
for the root manifest, the members directory, and individual members. Only
reads the filesystem; never creates or modifies anything.

Key class: WorkspacePaths.
Key functions: resolve_workspace(), require_member(), discover_members(),
    validate_member_name().
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path

from ..errors import InvalidMemberName, MemberNotFound, NotAWorkspace
from ..manifest.editor import has_section, read_manifest
from ..settings import WorkspaceSettings

logger = logging.getLogger(__name__)

# Member names double as directory names and dependency keys
_NAME_RE = re.compile(r"[A-Za-z0-9_-]+")


@dataclass(frozen=True)
class WorkspacePaths:
    """Absolute paths of one validated workspace."""

    root: Path
    settings: WorkspaceSettings

    @property
    def root_manifest(self) -> Path:
        return self.root / self.settings.manifest_name

    @property
    def members_dir(self) -> Path:
        return self.root / self.settings.members_dir

    def member_dir(self, name: str) -> Path:
        return self.members_dir / name

    def member_manifest(self, name: str) -> Path:
        return self.member_dir(name) / self.settings.manifest_name

    def member_path(self, name: str) -> str:
        """Registry entry for *name*, always ``/``-separated (e.g. ``crates/core``)."""
        return f"{Path(self.settings.members_dir).as_posix()}/{name}"


def validate_member_name(name: str) -> str:
    """Return *name* unchanged, or raise InvalidMemberName."""
    if not _NAME_RE.fullmatch(name) or name in {".", ".."}:
        raise InvalidMemberName(
            f"Invalid member name {name!r}: use letters, digits, '-' and '_' only."
        )
    return name


def resolve_workspace(root: Path | str, settings: WorkspaceSettings) -> WorkspacePaths:
    """Resolve *root* to an absolute path and check it is a workspace.

    Raises:
        NotAWorkspace: If the root manifest is missing or lacks the
            ``[workspace]`` marker section.
    """
    resolved = Path(root).expanduser().resolve()
    paths = WorkspacePaths(root=resolved, settings=settings)

    manifest = paths.root_manifest
    if not manifest.is_file():
        raise NotAWorkspace(f"No {settings.manifest_name} found in {resolved}")
    if not has_section(read_manifest(manifest), settings.workspace_marker):
        raise NotAWorkspace(
            f"{manifest} has no [{settings.workspace_marker}] section"
        )

    logger.debug("Resolved workspace at %s", resolved)
    return paths


def require_member(paths: WorkspacePaths, name: str) -> Path:
    """Return the directory of an existing member.

    Raises:
        MemberNotFound: If the member directory does not exist.
    """
    member_dir = paths.member_dir(name)
    if not member_dir.is_dir():
        raise MemberNotFound(f"Member not found: {member_dir}")
    return member_dir


def discover_members(paths: WorkspacePaths) -> list[str]:
    """Names of member directories (those holding a manifest), sorted."""
    if not paths.members_dir.is_dir():
        return []
    return sorted(
        p.name
        for p in paths.members_dir.iterdir()
        if p.is_dir() and (p / paths.settings.manifest_name).is_file()
    )
