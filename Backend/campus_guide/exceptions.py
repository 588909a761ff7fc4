# campus_guide/exceptions.py


class CampusGuideError(Exception):
    """Base class for errors raised by the campus guide backend."""


class AuthenticationRequired(CampusGuideError):
    """A mutating operation was called without a signed-in user."""

    def __init__(self, message: str = "User not authenticated"):
        super().__init__(message)


class StoreUnavailable(CampusGuideError):
    """The progress or chat store could not be read or written."""
