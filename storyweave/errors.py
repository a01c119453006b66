"""
Error types.

Analyzers are total over well-formed snapshots and never raise; the only
exception surface is snapshot parsing, where the payload is not a story
snapshot at all.
"""


class StoryweaveError(Exception):
    """Base class for errors raised by this package."""
    pass


class SnapshotError(StoryweaveError, ValueError):
    """Raised when a payload handed to a ``from_dict`` parser is not a mapping."""
    pass
