"""Workspace settings — reads cratekeeper.toml + .env to produce WorkspaceSettings.

Every knob has a default matching a plain Cargo workspace, so no
configuration file is required. Sources, lowest to highest precedence:

  1. WorkspaceSettings defaults
  2. the ``[cratekeeper]`` table of ``<workspace>/cratekeeper.toml``
  3. ``CRATEKEEPER_*`` environment variables (``.env`` files are loaded
     from the current directory and the workspace root first)

Key entities:
  - WorkspaceSettings: frozen dataclass with all resolved settings.
  - load_settings(): merge the sources above for one workspace root.
"""

from __future__ import annotations

import logging
import os
import shlex
import tomllib
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

SETTINGS_FILE_NAME = "cratekeeper.toml"
ENV_PREFIX = "CRATEKEEPER_"

# ---------------------------------------------------------------------------
# WorkspaceSettings
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class WorkspaceSettings:
    """Resolved settings for one workspace.

    Names the manifest dialect (file names, marker section, array key,
    dependency sections) and the external commands run after a mutation.
    """

    # Manifest dialect
    manifest_name: str = "Cargo.toml"
    workspace_marker: str = "workspace"
    members_key: str = "members"
    members_dir: str = "crates"
    dependency_section: str = "dependencies"
    unlink_sections: tuple[str, ...] = (
        "dependencies",
        "dev-dependencies",
        "build-dependencies",
    )

    # External collaborators
    build_command: tuple[str, ...] = ("cargo", "check", "--workspace")
    build_timeout: float = 600.0
    vcs_timeout: float = 30.0


# ---------------------------------------------------------------------------
# load_settings
# ---------------------------------------------------------------------------

_STR_KEYS = {
    "manifest_name",
    "workspace_marker",
    "members_key",
    "members_dir",
    "dependency_section",
}
_LIST_KEYS = {"unlink_sections", "build_command"}
_FLOAT_KEYS = {"build_timeout", "vcs_timeout"}


def load_settings(workspace_root: Path | None = None) -> WorkspaceSettings:
    """Read cratekeeper.toml + environment and return WorkspaceSettings.

    Args:
        workspace_root: Directory searched for ``cratekeeper.toml`` and
                        ``.env``. Only the current directory's ``.env`` is
                        consulted when None.

    Raises:
        ValueError: If a value has the wrong type or the TOML is malformed.
    """
    local_env = Path(".env")
    if local_env.is_file():
        load_dotenv(local_env)

    raw: dict = {}
    if workspace_root is not None:
        workspace_env = workspace_root / ".env"
        if workspace_env.is_file():
            load_dotenv(workspace_env)

        toml_path = workspace_root / SETTINGS_FILE_NAME
        if toml_path.is_file():
            try:
                with open(toml_path, "rb") as f:
                    raw = tomllib.load(f).get("cratekeeper", {})
            except tomllib.TOMLDecodeError as e:
                raise ValueError(f"Malformed {toml_path}: {e}") from e
            logger.debug("Loaded settings from %s", toml_path)

    values: dict[str, object] = {}
    for key in _STR_KEYS | _LIST_KEYS | _FLOAT_KEYS:
        env_value = os.getenv(ENV_PREFIX + key.upper())
        if env_value:
            values[key] = _from_env(key, env_value)
        elif key in raw:
            values[key] = _from_toml(key, raw[key])

    unknown = set(raw) - _STR_KEYS - _LIST_KEYS - _FLOAT_KEYS
    if unknown:
        logger.warning("Ignoring unknown settings: %s", ", ".join(sorted(unknown)))

    return WorkspaceSettings(**values)  # type: ignore[arg-type]


def _from_env(key: str, value: str) -> object:
    """Convert an environment string to the type of *key*."""
    if key in _LIST_KEYS:
        if key == "build_command":
            return tuple(shlex.split(value))
        return tuple(part.strip() for part in value.split(",") if part.strip())
    if key in _FLOAT_KEYS:
        try:
            return float(value)
        except ValueError:
            raise ValueError(
                f"{ENV_PREFIX}{key.upper()}={value!r} is not a number."
            ) from None
    return value


def _from_toml(key: str, value: object) -> object:
    """Validate a TOML value for *key*."""
    if key in _LIST_KEYS:
        if isinstance(value, str) and key == "build_command":
            return tuple(shlex.split(value))
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            raise ValueError(f"'{key}' must be a list of strings.")
        return tuple(value)
    if key in _FLOAT_KEYS:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"'{key}' must be a number.")
        return float(value)
    if not isinstance(value, str) or not value:
        raise ValueError(f"'{key}' must be a non-empty string.")
    return value
