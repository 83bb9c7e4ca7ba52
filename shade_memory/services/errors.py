"""
Error taxonomy shared by the chat and session services.
"""


class ShadeMemoryError(Exception):
    """Base class for all memory and session storage errors"""


class InvalidInputError(ShadeMemoryError, ValueError):
    """Raised for empty, missing or malformed caller input (ids, paths, limits)"""


class SessionNotFoundError(ShadeMemoryError, LookupError):
    """Raised when a session record does not exist on disk"""


class InvalidSessionFileError(ShadeMemoryError, ValueError):
    """Raised when a session file exists but cannot be parsed"""


class StorageIOError(ShadeMemoryError, OSError):
    """Raised when the filesystem rejects a read, write or delete"""


class SummaryGenerationError(ShadeMemoryError, RuntimeError):
    """Raised when a summarizer produces no usable summary"""
