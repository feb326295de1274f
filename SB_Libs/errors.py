"""Custom exception hierarchy for StatBuddy."""


class StatBuddyError(Exception):
    """Base class for all custom errors raised by StatBuddy."""


class DecodeError(StatBuddyError):
    """Raised when a source image is missing, unreadable, corrupt or access is denied."""


class ExtractionError(StatBuddyError):
    """Raised when a crop rectangle cannot be extracted from its source image."""


class PersistenceError(StatBuddyError):
    """Raised when the preferences store cannot be read or written."""
