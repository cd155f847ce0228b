"""Member registry — the member-list array in the root manifest.

Adding an entry that is already listed, or removing one that is not, is an
informational outcome rather than an error; callers carry on either way.
"""

import logging

from ..manifest.editor import (
    read_array,
    read_manifest,
    rewrite_file,
    splice_array_delete,
    splice_array_insert,
)
from .resolver import WorkspacePaths

logger = logging.getLogger(__name__)

# Registry outcomes
ADDED = "added"
ALREADY_PRESENT = "already_present"
REMOVED = "removed"
NOT_PRESENT = "not_present"


def list_entries(paths: WorkspacePaths) -> list[str]:
    """Return the member-list entries in manifest order."""
    text = read_manifest(paths.root_manifest)
    return read_array(text, paths.settings.members_key)


def add(paths: WorkspacePaths, member_path: str) -> str:
    """Add *member_path* to the member list. Returns ADDED or ALREADY_PRESENT."""
    key = paths.settings.members_key
    changed = rewrite_file(
        paths.root_manifest,
        lambda text: splice_array_insert(text, key, member_path),
    )
    if not changed:
        logger.info("%s is already registered in %s", member_path, paths.root_manifest)
        return ALREADY_PRESENT
    logger.info("Registered %s in %s", member_path, paths.root_manifest)
    return ADDED


def remove(paths: WorkspacePaths, member_path: str) -> str:
    """Remove *member_path* from the member list. Returns REMOVED or NOT_PRESENT."""
    key = paths.settings.members_key
    changed = rewrite_file(
        paths.root_manifest,
        lambda text: splice_array_delete(text, key, member_path),
    )
    if not changed:
        logger.info("%s was not registered in %s", member_path, paths.root_manifest)
        return NOT_PRESENT
    logger.info("Unregistered %s from %s", member_path, paths.root_manifest)
    return REMOVED
