"""Exceptions for the URL shortener service layer.

This module contains the exception hierarchy for the service layer,
providing domain-specific exceptions that abstract underlying implementation details.
"""


class ServiceError(Exception):
    """Base exception for all service-level errors."""
    pass


class URLError(ServiceError):
    """Base exception for URL-related errors."""
    pass


class URLValidationError(URLError):
    """URL failed validation checks."""
    pass


class InvalidURLError(URLValidationError):
    """The URL is empty or does not use the http/https scheme."""
    pass


class URLCreationError(URLError):
    """Error occurred during URL creation."""
    pass


class ShortCodeExhaustedError(URLCreationError):
    """Every attempt to claim a short code lost to a concurrent insert."""
    pass


class URLNotFoundError(URLError):
    """URL with the specified short code was not found."""
    pass


class URLStorageError(ServiceError):
    """The registry could not be reached; the operation did not complete."""
    pass
