# wellness_calendar/errors.py
"""
Exception types raised by the scheduling core.
Routers translate these into HTTP errors at the edge.
"""


class CalendarError(Exception):
    """Base exception for calendar computations."""

    pass


class ParseError(CalendarError, ValueError):
    """Raised when a time string or payload cannot be parsed."""

    pass


class PayloadError(CalendarError):
    """Raised when an upstream record cannot be normalized."""

    pass


class ApiError(Exception):
    """Raised by the REST client when a request fails.

    kind is "auth" when the user should log in again, "network" when a retry
    may help, "rejected" when the server refused the request (conflict,
    validation) and "payload" when the server answered with something unusable.
    """

    def __init__(self, kind: str, message: str, status_code: int = None):
        super().__init__(message)
        self.kind = kind
        self.status_code = status_code
