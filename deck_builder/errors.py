"""
Exception hierarchy for deck building.

The parser and paginator never raise on content; these exceptions cover
caller-level failures that end the run with a single message.
"""

from typing import Optional


class DeckBuildError(Exception):
    """Base exception for all deck building errors"""

    def __init__(self, message: str, cause: Optional[Exception] = None):
        super().__init__(message)
        self.cause = cause


class DeckUsageError(DeckBuildError):
    """Bad input/output path, unknown layout or an input with no slides"""
    pass


class RenderError(DeckBuildError):
    """The presentation could not be written"""
    pass
