"""
Exception types for Tolge.
"""
from typing import Optional


class TolgeError(Exception):
    """Base class for all errors reported to callers."""


class ValidationError(TolgeError):
    """A request is missing required data or is not valid in the current state."""


class FetchError(TolgeError):
    """A page could not be downloaded."""

    def __init__(self, url: str, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.url = url
        self.status = status


class ChallengePageError(FetchError):
    """The server answered with a bot-challenge page instead of the article."""


class ExtractionError(TolgeError):
    """Not enough article content could be recovered from a page."""

    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message)
        self.url = url


class ModelError(TolgeError):
    """The text-generation service failed or returned nothing usable."""


class SessionNotFoundError(TolgeError):
    def __init__(self, session_id: str):
        super().__init__(f"Session not found or expired: {session_id}")
        self.session_id = session_id
