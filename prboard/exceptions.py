"""prboard exception classes."""


class PRBoardError(Exception):
    """Base exception for all prboard errors."""

    def __init__(self, code: str, message: str) -> None:
        self.code = code
        self.message = message
        super().__init__(f"[{code}] {message}")


class ConfigurationError(PRBoardError):
    """Raised when dashboard or default configuration is missing or unparseable."""

    def __init__(self, message: str) -> None:
        super().__init__("CONFIGURATION_ERROR", message)


class AuthError(PRBoardError):
    """Raised when no credential is available for the fetch service."""

    def __init__(self, message: str = "GitHub token is required") -> None:
        super().__init__("AUTH_REQUIRED", message)


class ValidationError(PRBoardError):
    """Raised when a required boundary parameter is missing or malformed."""

    def __init__(self, message: str) -> None:
        super().__init__("VALIDATION_ERROR", message)


class TransportError(PRBoardError):
    """Raised when a fetch-service call fails or returns a non-success status."""

    def __init__(
        self, code: str, message: str, status_code: int | None = None
    ) -> None:
        super().__init__(code, message)
        self.status_code = status_code


class NotFoundError(TransportError):
    """Raised when the upstream resource does not exist."""

    pass


class RateLimitedError(TransportError):
    """Raised when the upstream API rate limit is exhausted."""

    def __init__(
        self,
        code: str,
        message: str,
        retry_after: int,
        status_code: int | None = None,
    ) -> None:
        super().__init__(code, message, status_code)
        self.retry_after = retry_after


class ServerError(TransportError):
    """Raised on upstream server errors (5xx) and connection failures."""

    pass
