"""Custom exceptions for the ABA Clinic billing client."""

from __future__ import annotations


class BillingException(Exception):
    """Base exception for the billing client."""

    pass


class NotFoundError(BillingException):
    """Raised when an invoice or consultation is not in the collection."""

    pass


class ServiceError(BillingException):
    """Raised when a backend call fails.

    `detail` holds the descriptive message supplied by the server, if any.
    """

    def __init__(self, message: str, status_code: int | None = None, detail: str | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail


class ConfigurationError(BillingException):
    """Raised when configuration is invalid."""

    pass


class AuthenticationError(BillingException):
    """Raised when no usable credentials are available."""

    pass


class AuthorizationError(BillingException):
    """Raised when the viewer's role does not allow an action."""

    pass
