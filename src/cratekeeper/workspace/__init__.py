"""Workspace management — path resolution, member registry, dependency graph, mutations.

Provides WorkspaceMutator for adding and removing members, built on the
resolver, registry, graph and scaffold modules.
"""
