"""Error taxonomy and sanitization utilities."""

from __future__ import annotations

import re

from kubernetes.client.exceptions import ApiException


class StaticSiteOperatorError(Exception):
    """Base class for all operator errors."""


class ConfigError(StaticSiteOperatorError):
    """Invalid operator configuration."""


class BuildError(StaticSiteOperatorError, ValueError):
    """A StaticSite spec that cannot be turned into child manifests."""


class PassTimeoutError(StaticSiteOperatorError):
    """A reconcile pass ran past its deadline."""


class ClusterAPIError(StaticSiteOperatorError):
    """A cluster API call failed."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class NotFoundError(ClusterAPIError):
    """The requested object does not exist."""


class ConflictError(ClusterAPIError):
    """A write was rejected because of a stale resource version or a name clash."""


class ClusterUnavailableError(ClusterAPIError):
    """The cluster API could not be reached or is throttling us."""


class ReconcileError(StaticSiteOperatorError):
    """Aggregate of the failures recorded during one reconcile pass."""

    def __init__(self, failures: list[tuple[str, Exception]]) -> None:
        self.failures = failures
        super().__init__(
            "; ".join(f"{step}: {sanitize_exception(err)}" for step, err in failures)
        )


def from_api_exception(error: ApiException, operation: str) -> ClusterAPIError:
    """Translate a kubernetes ApiException into the operator taxonomy.

    Args:
        error: Exception raised by the kubernetes client
        operation: Short description of the call, used in the message

    Returns:
        The matching ClusterAPIError subclass instance
    """
    status = error.status
    message = f"{operation} failed: {status} {error.reason}"
    if status == 404:
        return NotFoundError(message, status)
    if status == 409:
        return ConflictError(message, status)
    if status is None or status == 0 or status == 429 or status >= 500:
        return ClusterUnavailableError(message, status)
    return ClusterAPIError(message, status)


# Patterns that might expose sensitive information
SENSITIVE_PATTERNS = [
    r"bearer\s+([A-Za-z0-9\-\._~\+/]+=*)",
    r"authorization[:\s]+([^\s,;\)]+)",
]

# Fields to redact completely
SENSITIVE_FIELDS = {
    "password",
    "secret",
    "credentials",
    "token",
}


def sanitize_error_message(message: str) -> str:
    """Sanitize error message to remove sensitive information.

    Args:
        message: Original error message

    Returns:
        Sanitized error message with sensitive data redacted
    """
    sanitized = message

    for pattern in SENSITIVE_PATTERNS:
        sanitized = re.sub(pattern, "[REDACTED]", sanitized, flags=re.IGNORECASE)

    for field in SENSITIVE_FIELDS:
        sanitized = re.sub(
            rf"\b{field}[:=]\s*([^\s,;\)]+)",
            f"{field}: [REDACTED]",
            sanitized,
            flags=re.IGNORECASE,
        )

    return sanitized


def sanitize_exception(error: Exception) -> str:
    """Sanitize exception message.

    Args:
        error: Exception object

    Returns:
        Sanitized error message, or the exception type when it has no message
    """
    error_msg = str(error) or type(error).__name__
    return sanitize_error_message(error_msg)

