"""Exception types raised by workspace mutations.

Everything here aborts the current operation. Non-fatal conditions (unknown
link targets, VCS or build verification failures) are never raised; they are
recorded on the MutationReport instead.
"""


class CratekeeperError(Exception):
    """Base exception for cratekeeper."""


class NotAWorkspace(CratekeeperError):
    """Raised when the root manifest is missing or has no workspace marker."""


class MemberNotFound(CratekeeperError):
    """Raised when removing a member whose directory does not exist."""


class MemberAlreadyExists(CratekeeperError):
    """Raised when adding a member whose directory already exists."""


class InvalidMemberName(CratekeeperError):
    """Raised when a member name cannot be used as a directory and dependency key."""


class FilesystemError(CratekeeperError):
    """Raised when creating, deleting, reading or replacing a file fails."""
