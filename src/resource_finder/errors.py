"""
Error taxonomy for the Resource Finder.

Every error raised by the search and data-source layers derives from
FinderError so callers at the tool boundary can catch one type and still
branch on the specific kind when they need to.
"""

from typing import Any, Dict, Optional


class FinderError(Exception):
    """Base class for all Resource Finder errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert the error to a dictionary representation."""
        return {
            'type': self.__class__.__name__,
            'message': self.message,
            'details': self.details,
        }


class PatternError(FinderError):
    """Raised when a resource glob pattern cannot be compiled."""

    def __init__(self, pattern: str, reason: str):
        super().__init__(
            f'Invalid resource pattern "{pattern}": {reason}',
            {'pattern': pattern, 'reason': reason},
        )
        self.pattern = pattern
        self.reason = reason


class RegexError(FinderError):
    """
    Raised when a content pattern is not a valid regular expression.

    The regex engine's own message is kept verbatim in ``engine_message`` so
    it can be shown to the user unchanged.
    """

    def __init__(self, pattern: str, engine_message: str):
        super().__init__(
            f'Invalid content pattern "{pattern}": {engine_message}',
            {'pattern': pattern, 'engine_message': engine_message},
        )
        self.pattern = pattern
        self.engine_message = engine_message


class CapabilityError(FinderError):
    """Raised when an operation is invoked on a provider that does not support it."""

    def __init__(self, capability: str, provider: str):
        super().__init__(
            f"Data source '{provider}' does not support the '{capability}' capability",
            {'capability': capability, 'provider': provider},
        )
        self.capability = capability
        self.provider = provider


class NotFoundError(FinderError):
    """Raised when a data source or resource root does not exist."""

    def __init__(self, target: str, reason: str = "not found"):
        super().__init__(f"{target}: {reason}", {'target': target})
        self.target = target


class IoError(FinderError):
    """Transient read or stat failure on a single resource."""

    def __init__(self, path: str, cause: Exception):
        super().__init__(f"Error reading {path}: {cause}", {'path': path})
        self.path = path
        self.cause = cause
