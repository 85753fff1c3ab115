"""
Error taxonomy for the best-stories pipeline.
"""
from __future__ import annotations

from typing import Optional


class BestStoriesError(Exception):
    """Base class for every error raised by the package."""


class TransportError(BestStoriesError):
    """The upstream API could not be reached or answered with a non-success status."""

    def __init__(self, message: str, url: Optional[str] = None, status_code: Optional[int] = None):
        self.message = message
        self.url = url
        self.status_code = status_code
        super().__init__(self.message)


class ValidationError(BestStoriesError, ValueError):
    """Caller supplied a story count that is not a positive integer."""


class RunCancelled(BestStoriesError):
    """The run was interrupted before every story was resolved."""


class DecodeWarning(UserWarning):
    """
    A token or field could not be parsed into its expected shape.

    Never raised by the decoder: instances are logged and collected so callers
    can report them next to an otherwise successful result.
    """

    def __init__(self, message: str, story_id: Optional[int] = None, field: Optional[str] = None):
        self.message = message
        self.story_id = story_id
        self.field = field
        super().__init__(message)
