"""Git integration — best-effort snapshot after a workspace mutation.

Provides is_versioned() and snapshot(). A snapshot is only taken when the
workspace root is already a git work tree; this module never runs
``git init``. Every failure is logged and reported as False, never raised.
"""

import logging
import subprocess
from pathlib import Path

logger = logging.getLogger(__name__)


def is_versioned(root: Path) -> bool:
    """True if *root* is the top of a git work tree."""
    return (root / ".git").exists()


def snapshot(root: Path, message: str, timeout: float = 30.0) -> bool:
    """Stage all changes under *root* and commit them.

    Silently returns False when *root* is not versioned or there is nothing
    to commit.

    Args:
        root: Absolute workspace root, used as the git working directory.
        message: Commit message describing the mutation.
        timeout: Seconds allowed for each git invocation.

    Returns:
        True if a commit was made, False otherwise (not versioned, no
        changes, or error).
    """
    if not is_versioned(root):
        logger.debug("Skipping snapshot: %s is not a git work tree", root)
        return False

    try:
        subprocess.run(
            ["git", "add", "-A"],
            cwd=root,
            capture_output=True,
            timeout=timeout,
            check=True,
        )
        result = subprocess.run(
            ["git", "diff", "--cached", "--quiet"],
            cwd=root,
            capture_output=True,
            timeout=timeout,
        )
        if result.returncode == 0:
            # No staged changes
            return False

        subprocess.run(
            ["git", "commit", "-m", message],
            cwd=root,
            capture_output=True,
            timeout=timeout,
            check=True,
        )
        logger.debug("Workspace commit: %s", message)
        return True
    except subprocess.CalledProcessError as e:
        stderr = (e.stderr or b"").decode("utf-8", errors="replace").strip()
        logger.warning("git failed while committing %r: %s", message, stderr)
        return False
    except (subprocess.TimeoutExpired, FileNotFoundError):
        logger.warning("Failed to commit workspace: %s", message)
        return False
