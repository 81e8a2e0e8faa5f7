"""
Domain errors raised by the crud and service layers.

Routers translate these into HTTP responses; messages are safe to show to the
end user. ``NotFoundError`` lives in ``db.core`` next to the models it refers to.
"""

from typing import Optional


class NotAuthenticatedError(Exception):
    """The request carries no session / identity."""

    def __init__(self, message: str = "Not authenticated"):
        super().__init__(message)


class ValidationFailedError(ValueError):
    """Input was rejected before it reached the store."""

    def __init__(self, message: str = "Validation failed", errors: Optional[list] = None):
        super().__init__(message)
        self.errors = errors or []


class PersistenceError(Exception):
    """The store rejected a read or write. The underlying cause is logged, not exposed."""


class PermissionDeniedError(Exception):
    """The current user may see the record but not change it."""
