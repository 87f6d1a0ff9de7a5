"""
errors.py
---------
Exceptions of the booking engine.

Business-rule failures are NOT exceptions (see results.ValidationResult).
These classes cover the commit boundary only.
"""


class BookingEngineError(Exception):
    """Base class for errors raised across the data-store boundary."""


class CommitConflictError(BookingEngineError):
    """
    The data store refused a commit because a concurrent booking already holds
    the room or staff member for an overlapping time. The only retryable error.
    """

    def __init__(self, message: str, resource: str = "", reservation_id=None):
        super().__init__(message)
        self.resource = resource
        self.reservation_id = reservation_id


class CommitTransportError(BookingEngineError):
    """The data store could not be reached or failed for a non-conflict reason."""
