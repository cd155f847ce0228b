"""Member skeleton creation — manifest and source stub for a new member.

Writes a minimal package manifest with an empty dependency section, plus
``src/lib.rs`` or ``src/main.rs`` depending on the member kind. Never
overwrites an existing file.
"""

import logging
from pathlib import Path

from ..errors import FilesystemError
from ..settings import WorkspaceSettings

logger = logging.getLogger(__name__)

KINDS = ("lib", "bin")

_MANIFEST_TEMPLATE = """\
[package]
name = "{name}"
version = "0.1.0"
edition = "2021"

[{dependency_section}]
"""

_LIB_TEMPLATE = """\
pub fn add(left: u64, right: u64) -> u64 {
    left + right
}

#[cfg(test)]
mod tests {
    use super::*;

    #[test]
    fn it_works() {
        assert_eq!(add(2, 2), 4);
    }
}
"""

_BIN_TEMPLATE = """\
fn main() {
    println!("Hello, world!");
}
"""

# kind → (source file relative to the member dir, template)
_SOURCE_FILES = {
    "lib": ("src/lib.rs", _LIB_TEMPLATE),
    "bin": ("src/main.rs", _BIN_TEMPLATE),
}


def create_member_skeleton(
    member_dir: Path, name: str, kind: str, settings: WorkspaceSettings
) -> Path:
    """Create *member_dir* with a manifest and a source stub.

    Args:
        member_dir: Directory for the new member; must not exist yet.
        name: Package name written into the manifest.
        kind: "lib" or "bin".
        settings: Supplies the manifest file name and dependency section.

    Returns:
        Path to the created manifest.

    Raises:
        ValueError: If kind is unknown.
        FilesystemError: If the directory exists or cannot be written.
    """
    if kind not in _SOURCE_FILES:
        raise ValueError(f"Unknown member kind: {kind!r} (expected 'lib' or 'bin')")

    source_rel, source_template = _SOURCE_FILES[kind]
    manifest = member_dir / settings.manifest_name
    try:
        member_dir.mkdir(parents=True, exist_ok=False)
        manifest.write_text(
            _MANIFEST_TEMPLATE.format(
                name=name, dependency_section=settings.dependency_section
            ),
            encoding="utf-8",
        )
        source = member_dir / source_rel
        source.parent.mkdir(parents=True, exist_ok=True)
        source.write_text(source_template, encoding="utf-8")
    except OSError as e:
        raise FilesystemError(f"Cannot create member skeleton at {member_dir}: {e}") from e

    logger.info("Created %s member skeleton at %s", kind, member_dir)
    return manifest
