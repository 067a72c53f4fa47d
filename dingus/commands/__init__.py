"""Command tree lookup."""

from .resolver import CommandTreeResolver, ResolvedCommandContext, merge_variables

__all__ = ['CommandTreeResolver', 'ResolvedCommandContext', 'merge_variables']
