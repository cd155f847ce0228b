"""Manifest editing — line-oriented edits of member-list arrays and dependency sections.

Provides the array-splice and section-filter state machines used by the
member registry and the dependency graph editor, plus rewrite_file() for
atomic per-file replacement.
"""
