"""
prboard logging utilities.

Provides configurable logging for upstream HTTP traffic, cache activity and
pagination progress. Ensures credentials (GitHub tokens, Authorization
headers) never reach the log output.
"""

import logging
import re
from typing import Any

_sdk_logger = logging.getLogger("prboard")
_http_logger = logging.getLogger("prboard.http")
_cache_logger = logging.getLogger("prboard.cache")

# Patterns for credentials that should be masked
_SENSITIVE_PATTERNS = [
    # GitHub personal access tokens (classic and fine-grained) and app tokens
    (re.compile(r"\b(ghp|gho|ghu|ghs|ghr)_[A-Za-z0-9]{20,}\b"), "[TOKEN_REDACTED]"),
    (re.compile(r"\bgithub_pat_[A-Za-z0-9_]{20,}\b"), "[TOKEN_REDACTED]"),
    # Authorization header values
    (re.compile(r"(Bearer|token)\s+[A-Za-z0-9_\-.=]{8,}", re.IGNORECASE), r"\1 [REDACTED]"),
    # Secret/token key-value pairs
    (re.compile(r"(secret|token|password|api_key)['\"]?\s*[:=]\s*['\"][^'\"]+['\"]", re.IGNORECASE), r"\1: [REDACTED]"),
]

_DEFAULT_SENSITIVE_KEYS = {
    "authorization",
    "x-github-token",
    "token",
    "secret",
    "password",
    "api_key",
}


class SensitiveDataFilter(logging.Filter):
    """Masks credentials in the rendered message of every record it sees."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.msg = mask_sensitive_data(record.getMessage())
        record.args = ()
        return True


def configure_logging(
    level: int = logging.INFO,
    http_level: int | None = None,
    cache_level: int | None = None,
    handler: logging.Handler | None = None,
    format_string: str | None = None,
) -> None:
    """
    Configure prboard logging.

    Args:
        level: Default log level for all prboard loggers (default: INFO)
        http_level: Log level for upstream request/response logging (default: same as level)
        cache_level: Log level for cache hit/miss logging (default: same as level)
        handler: Custom handler to use (default: StreamHandler to stderr)
        format_string: Custom format string (default: includes timestamp, level, logger name)

    Example:
        ```python
        import logging
        from prboard.logging import configure_logging

        # Show cache hits and misses while developing
        configure_logging(level=logging.INFO, cache_level=logging.DEBUG)
        ```
    """
    if format_string is None:
        format_string = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    formatter = logging.Formatter(format_string)

    if handler is None:
        handler = logging.StreamHandler()

    handler.setFormatter(formatter)
    handler.addFilter(SensitiveDataFilter())

    _sdk_logger.setLevel(level)
    _sdk_logger.addHandler(handler)

    _http_logger.setLevel(http_level if http_level is not None else level)
    _cache_logger.setLevel(cache_level if cache_level is not None else level)


def get_logger(name: str | None = None) -> logging.Logger:
    """
    Get a prboard logger.

    Args:
        name: Logger name suffix (e.g., "http", "cache"). If None, returns the main logger.

    Returns:
        Logger instance
    """
    if name is None:
        return _sdk_logger
    return logging.getLogger(f"prboard.{name}")


def mask_sensitive_data(text: str) -> str:
    """
    Mask credentials in a string.

    Args:
        text: Text that may contain tokens or Authorization values

    Returns:
        Text with sensitive data masked
    """
    result = text
    for pattern, replacement in _SENSITIVE_PATTERNS:
        result = pattern.sub(replacement, result)
    return result


def safe_log_dict(data: dict[str, Any], sensitive_keys: set[str] | None = None) -> dict[str, Any]:
    """
    Create a copy of a dictionary with sensitive values masked.

    Args:
        data: Dictionary that may contain sensitive values
        sensitive_keys: Keys to mask (default: authorization, x-github-token, token, secret, password, api_key)

    Returns:
        Dictionary with sensitive values replaced with "[REDACTED]"
    """
    if sensitive_keys is None:
        sensitive_keys = _DEFAULT_SENSITIVE_KEYS

    result: dict[str, Any] = {}
    for key, value in data.items():
        key_lower = key.lower()
        if key_lower in sensitive_keys or any(sk in key_lower for sk in sensitive_keys):
            result[key] = "[REDACTED]"
        elif isinstance(value, dict):
            result[key] = safe_log_dict(value, sensitive_keys)
        elif isinstance(value, list):
            result[key] = [
                safe_log_dict(item, sensitive_keys) if isinstance(item, dict) else item
                for item in value
            ]
        else:
            result[key] = value

    return result


def log_http_request(
    method: str,
    url: str,
    headers: dict[str, str] | None = None,
    params: dict[str, Any] | None = None,
) -> None:
    """Log an upstream HTTP request at DEBUG level with credentials masked."""
    if not _http_logger.isEnabledFor(logging.DEBUG):
        return

    log_parts = [f"{method} {url}"]

    if headers:
        log_parts.append(f"headers={safe_log_dict(headers)}")

    if params:
        log_parts.append(f"params={safe_log_dict(params)}")

    _http_logger.debug(" | ".join(log_parts))


def log_http_response(
    status_code: int,
    url: str,
    elapsed_ms: float | None = None,
    item_count: int | None = None,
) -> None:
    """Log an upstream HTTP response at DEBUG level."""
    if not _http_logger.isEnabledFor(logging.DEBUG):
        return

    log_parts = [f"Response {status_code} from {url}"]

    if elapsed_ms is not None:
        log_parts.append(f"elapsed={elapsed_ms:.2f}ms")

    if item_count is not None:
        log_parts.append(f"items={item_count}")

    _http_logger.debug(" | ".join(log_parts))


def log_cache_access(key: str, hit: bool) -> None:
    """Log a cache lookup at DEBUG level."""
    if not _cache_logger.isEnabledFor(logging.DEBUG):
        return

    _cache_logger.debug("%s %s", "HIT" if hit else "MISS", key)


__all__ = [
    "SensitiveDataFilter",
    "configure_logging",
    "get_logger",
    "mask_sensitive_data",
    "safe_log_dict",
    "log_http_request",
    "log_http_response",
    "log_cache_access",
]
