"""cratekeeper - add and remove members of a multi-package workspace.

Keeps the member directories, the root manifest's member list, and the
dependency declarations of every other member consistent when a member is
added or removed. Manifests are edited line by line, never re-serialized.

Package entry point. Exports the version string only; functional modules are
imported by main.py.
"""

__version__ = "0.1.0"
