"""Errors raised by the dashboard client."""


class DashboardError(Exception):
    """Base class for every failure surfaced by :mod:`roledash.client`."""


class NetworkError(DashboardError):
    """The request never produced an HTTP response (DNS, timeout, offline)."""


class ValidationError(DashboardError):
    """The backend answered with a non-2xx status.

    ``str(exc)`` is the server's message and is meant to be shown verbatim.
    """

    def __init__(self, message: str, status: int | None = None, errors: list[str] | None = None):
        super().__init__(message)
        self.status = status
        self.errors = errors or []


class UnauthorizedError(DashboardError):
    """HTTP 401, or no token available to send."""

    status = 401
