"""Error types raised by the services.

The HTTP layer in ``neurotrader.main`` maps each of these to a status code;
services never deal with HTTP themselves.
"""


class NeuroTraderError(Exception):
    """Base class for all service errors"""

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class ValidationError(NeuroTraderError):
    """Missing or malformed input"""


class NotFoundError(NeuroTraderError):
    """A session, profile or waitlist entry does not exist"""


class DuplicateError(NeuroTraderError):
    """A unique constraint would be violated"""


class UpstreamUnavailable(NeuroTraderError):
    """The agent process or the hosted API failed, timed out or is not configured"""

    DEFAULT_MESSAGE = "The AI service is temporarily unavailable. Please try again in a moment."

    def __init__(self, message: str = DEFAULT_MESSAGE, reason: str = ""):
        super().__init__(message)
        # Diagnostic detail, logged but never sent to the client
        self.reason = reason


class StorageError(NeuroTraderError):
    """The database call failed"""


class StorageUnavailable(StorageError):
    """The database could not be initialised at startup"""
