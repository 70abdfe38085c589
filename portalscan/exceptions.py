"""Custom exceptions for PortalScan.

Provides structured error handling with categorized exceptions
and standardized error response format.

The ``FetchError`` branch is the per-domain failure taxonomy. Its
``reason`` is what ends up verbatim in a result's ``error`` field, so
the labels below are part of the stream contract.
"""

from typing import Optional, Dict, Any

MAX_ERROR_MESSAGE = 50


class PortalScanException(Exception):
    """Base exception for all PortalScan errors.

    Provides structured error response format with:
    - error_code: Machine-readable error identifier
    - message: Human-readable error description
    - details: Optional additional context
    """

    error_code: str = "PORTALSCAN_ERROR"
    status_code: int = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Return structured error response dict."""
        response = {
            "error": True,
            "error_code": self.error_code,
            "message": self.message,
        }
        if self.details:
            response["details"] = self.details
        return response


# ============ Validation Errors (4xx) ============


class ValidationError(PortalScanException):
    """Input validation failed."""

    error_code = "VALIDATION_ERROR"
    status_code = 400


class DomainCountError(ValidationError):
    """Domain list is empty or larger than allowed."""

    error_code = "DOMAIN_COUNT"

    def __init__(self, count: int, maximum: int):
        super().__init__(
            f"Expected between 1 and {maximum} domains, got {count}",
            details={"count": count, "max": maximum},
        )


# ============ Configuration Errors ============


class ConfigurationError(PortalScanException):
    """Configuration issue."""

    error_code = "CONFIGURATION_ERROR"

    def __init__(self, setting: str, message: str):
        super().__init__(f"Configuration error for {setting}: {message}", details={"setting": setting})


# ============ Fetch Errors (per-domain, never raised past the orchestrator) ============


class FetchError(PortalScanException):
    """Base class for content-source failures."""

    error_code = "FETCH_ERROR"
    status_code = 502
    label = "Unknown error"

    def __init__(self, message: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message or self.label, details)

    @property
    def reason(self) -> str:
        """Short description surfaced in the scrape outcome."""
        return self.label


class FetchTimeoutError(FetchError):
    """Per-domain deadline expired or the call was cancelled."""

    error_code = "TIMEOUT"
    status_code = 504
    label = "Timeout"


class DnsError(FetchError):
    error_code = "DNS_ERROR"
    label = "DNS error"


class ConnectionRefusedFetchError(FetchError):
    error_code = "CONNECTION_REFUSED"
    label = "Connection refused"


class TlsError(FetchError):
    error_code = "TLS_ERROR"
    label = "SSL error"


class ConnectionResetFetchError(FetchError):
    error_code = "CONNECTION_RESET"
    label = "Connection reset"


class HttpStatusError(FetchError):
    """Target answered with a non-2xx status."""

    error_code = "HTTP_STATUS"

    def __init__(self, status: int, url: Optional[str] = None):
        self.status = int(status)
        details: Dict[str, Any] = {"status": self.status}
        if url:
            details["url"] = url
        super().__init__(f"HTTP {self.status}", details=details)

    @property
    def reason(self) -> str:
        return f"HTTP {self.status}"


class UnknownFetchError(FetchError):
    """Anything the taxonomy does not recognise; carries a truncated message."""

    error_code = "UNKNOWN_ERROR"

    @property
    def reason(self) -> str:
        text = (self.message or "").strip()
        return text[:MAX_ERROR_MESSAGE] if text else self.label


# ============ Utility Functions ============


def error_response(exception: PortalScanException) -> tuple:
    """Create Flask JSON response from exception.

    Returns:
        Tuple of (response_dict, status_code) ready for jsonify
    """
    return exception.to_dict(), exception.status_code
