"""Custom exceptions for the rfpdesk application."""


class RFPDeskException(Exception):
    """Base exception for rfpdesk application."""

    pass


class ValidationError(RFPDeskException):
    """Raised when input or a requested state change is invalid."""

    pass


class InvalidTransitionError(ValidationError):
    """Raised when a disallowed status transition is attempted."""

    pass


class NoValidVendorsError(ValidationError):
    """Raised when none of the requested vendors can receive an RFP."""

    pass


class NotFoundError(RFPDeskException):
    """Raised when a resource is not found."""

    pass


class ConflictError(RFPDeskException):
    """Raised when a unique key would be duplicated."""

    pass


class ServiceError(RFPDeskException):
    """Raised when a service operation fails."""

    pass


class ConfigurationError(RFPDeskException):
    """Raised when configuration is invalid."""

    pass


class AiError(ServiceError):
    """Raised when the AI provider fails and the failure must not be retried."""

    pass


class AiRateLimitError(AiError):
    """Raised by a provider when the request was rejected for rate limiting."""

    pass


class AiUnavailableError(AiError):
    """Raised when the AI gateway gives up after exhausting its retries."""

    pass


class AiParseError(AiError):
    """Raised when AI output cannot be turned into the expected JSON shape."""

    pass


class TransportError(ServiceError):
    """Raised when email cannot be sent or fetched."""

    pass


class TransportNotConfiguredError(TransportError):
    """Raised when SMTP/IMAP credentials are missing."""

    pass
