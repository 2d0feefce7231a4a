"""Custom exceptions for the reqcli application."""

from typing import Optional


class ReqcliError(Exception):
    """Base class for reqcli exceptions with a process exit code.

    All custom exceptions should inherit from this class so the CLI can
    report them uniformly and exit with ``exit_code``.
    """
    exit_code: int = 1

    def __init__(self, message: str = "reqcli error"):
        self.message = message
        super().__init__(message)


class RateLimitConfigError(ReqcliError, ValueError):
    """Raised when a rate specification cannot be parsed."""


class InvalidRateFormatError(RateLimitConfigError):
    """Raised when a rate spec is not ``<positive integer>/<duration>``."""

    def __init__(self, detail: str = "rate must be in format 'requests/duration' (e.g., '10/s', '100/30s')"):
        super().__init__(f"invalid rate format: {detail}")


class InvalidDurationError(RateLimitConfigError):
    """Raised when the duration part of a rate spec is unparseable or not positive."""

    def __init__(self, detail: str = "duration must be positive"):
        super().__init__(f"invalid duration: {detail}")


class RateLimitExceededError(ReqcliError):
    """Raised by the non-blocking admission check when no token is available.

    Recoverable: the caller decides whether to retry, queue or abort.
    """

    def __init__(self, retry_after: Optional[float] = None):
        self.retry_after = retry_after
        message = "rate limit exceeded"
        if retry_after is not None:
            message += f" (retry after {retry_after:.3f}s)"
        super().__init__(message)


class RateLimitWaitCancelled(ReqcliError):
    """Raised when a blocking wait cannot obtain a token before its deadline."""

    def __init__(self, detail: str = "rate limit wait cancelled"):
        super().__init__(detail)


class AuthConfigError(ReqcliError, ValueError):
    """Raised when an authenticator is constructed with missing settings."""


class TokenFetchError(ReqcliError):
    """Raised when the OAuth2 token endpoint cannot supply an access token.

    Covers transport failures, non-200 responses and malformed bodies.
    """

    def __init__(self, detail: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(f"failed to get OAuth2 token: {detail}")


class RequestBuildError(ReqcliError):
    """Raised when the outbound request cannot be assembled."""


class TransportError(ReqcliError):
    """Raised when the HTTP transport fails to complete the request."""

    def __init__(self, detail: str):
        super().__init__(f"request failed: {detail}")
