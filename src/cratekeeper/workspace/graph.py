"""Dependency graph editing — path dependencies between workspace members.

An edge ``from -> to`` is one line in ``from``'s manifest, inside the
dependency section, whose key is ``to``::

    [dependencies]
    core = { path = "../core" }

Links only ever point at members that have a manifest; anything else is
skipped with a warning. Unlinking matches keys exactly, so removing ``foo``
never touches ``foobar``.

Key class: UnlinkReport.
Key functions: link(), unlink_all(), dependents(), dependency_entry().
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from ..manifest.editor import (
    filter_section_delete,
    filter_section_insert,
    read_manifest,
    rewrite_file,
    section_keys,
)
from .resolver import WorkspacePaths

logger = logging.getLogger(__name__)

# Link outcomes
LINKED = "linked"
ALREADY_LINKED = "already_linked"
SKIPPED = "skipped"


@dataclass
class UnlinkReport:
    """Which member manifests unlink_all() changed and which it left alone."""

    modified: list[Path] = field(default_factory=list)
    untouched: list[Path] = field(default_factory=list)


def dependency_entry(paths: WorkspacePaths, from_name: str, to_name: str) -> str:
    """Dependency line declaring ``to_name`` from ``from_name``'s manifest."""
    rel = os.path.relpath(paths.member_dir(to_name), paths.member_dir(from_name))
    return f'{to_name} = {{ path = "{Path(rel).as_posix()}" }}'


def link(paths: WorkspacePaths, from_name: str, to_name: str) -> str:
    """Declare ``to_name`` as a dependency of ``from_name``.

    Returns:
        LINKED, ALREADY_LINKED, or SKIPPED (self-edge or unknown target).
    """
    if from_name == to_name:
        logger.warning("Refusing to link %s to itself", from_name)
        return SKIPPED
    if not paths.member_manifest(to_name).is_file():
        logger.warning(
            "Link target %s has no manifest at %s; skipping",
            to_name,
            paths.member_manifest(to_name),
        )
        return SKIPPED

    section = paths.settings.dependency_section
    entry = dependency_entry(paths, from_name, to_name)
    changed = rewrite_file(
        paths.member_manifest(from_name),
        lambda text: filter_section_insert(text, section, to_name, entry),
    )
    if not changed:
        logger.info("%s already depends on %s", from_name, to_name)
        return ALREADY_LINKED
    logger.info("Linked %s -> %s", from_name, to_name)
    return LINKED


def _strip_all(text: str, sections: Iterable[str], name: str) -> str:
    for section in sections:
        text = filter_section_delete(text, section, name)
    return text


def unlink_all(paths: WorkspacePaths, name: str, others: Iterable[str]) -> UnlinkReport:
    """Remove every dependency on *name* from the manifests of *others*.

    Members without a manifest are ignored. Each manifest is rewritten
    atomically and only if something was removed.
    """
    sections = paths.settings.unlink_sections
    report = UnlinkReport()
    for other in others:
        if other == name:
            continue
        manifest = paths.member_manifest(other)
        if not manifest.is_file():
            continue
        if rewrite_file(manifest, lambda text: _strip_all(text, sections, name)):
            logger.info("Removed dependency on %s from %s", name, manifest)
            report.modified.append(manifest)
        else:
            report.untouched.append(manifest)
    return report


def dependents(paths: WorkspacePaths, name: str, others: Iterable[str]) -> list[str]:
    """Members among *others* whose manifest declares a dependency on *name*."""
    found = []
    for other in others:
        manifest = paths.member_manifest(other)
        if other == name or not manifest.is_file():
            continue
        text = read_manifest(manifest)
        if any(name in section_keys(text, s) for s in paths.settings.unlink_sections):
            found.append(other)
    return found
