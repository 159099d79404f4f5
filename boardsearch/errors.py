"""Exception types raised by the search engine and its position adapters."""

from __future__ import annotations


class BoardSearchError(Exception):
    """Base class for every error raised by :mod:`boardsearch`."""


class MalformedPositionError(BoardSearchError, ValueError):
    """Raised when a position cannot be parsed or fails validation.

    This is distinct from a position without legal moves, which is a normal
    terminal state and never raises.
    """


class SearchAbortedError(BoardSearchError):
    """Raised when the recursion meets a child state it cannot build."""


__all__ = ["BoardSearchError", "MalformedPositionError", "SearchAbortedError"]
