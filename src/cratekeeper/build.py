"""Build verification — run the workspace build command after a mutation.

The command (``cargo check --workspace`` by default) runs with the workspace
root as its working directory. A failing, missing, or timed-out command is
reported through BuildResult; it never raises and never undoes the mutation.
"""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

# Keep reports readable when the build prints pages of diagnostics
_MAX_OUTPUT_CHARS = 4000


@dataclass(frozen=True)
class BuildResult:
    """Outcome of one build verification run."""

    ok: bool
    returncode: int | None
    output: str = ""


def verify_buildable(
    root: Path, command: Sequence[str], timeout: float = 600.0
) -> BuildResult:
    """Run *command* in *root* and report whether it succeeded."""
    if not command:
        return BuildResult(ok=False, returncode=None, output="No build command configured")

    logger.debug("Verifying build in %s: %s", root, " ".join(command))
    try:
        result = subprocess.run(
            list(command),
            cwd=root,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except FileNotFoundError:
        logger.warning("Build command not found: %s", command[0])
        return BuildResult(
            ok=False, returncode=None, output=f"Command not found: {command[0]}"
        )
    except subprocess.TimeoutExpired:
        logger.warning("Build verification timed out after %.0fs", timeout)
        return BuildResult(
            ok=False, returncode=None, output=f"Timed out after {timeout:.0f}s"
        )

    output = (result.stdout + result.stderr).strip()
    if len(output) > _MAX_OUTPUT_CHARS:
        output = "..." + output[-_MAX_OUTPUT_CHARS:]
    if result.returncode != 0:
        logger.warning("Build verification failed (exit %d)", result.returncode)
    return BuildResult(ok=result.returncode == 0, returncode=result.returncode, output=output)
