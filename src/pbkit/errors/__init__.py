"""Error taxonomy for ProductBoard API failures.

- ErrorKind: closed set of failure categories
- ApiError: the single exception type raised by the client
- parse_api_error / transport_error: classification at the HTTP boundary
- ToolError: rendering of failures for tool callers
"""

from .errors import (
    DEFAULT_RETRY_AFTER,
    ApiError,
    ErrorKind,
    ToolError,
    backoff_delay,
    extract_error_message,
    get_retry_delay,
    is_retryable,
    parse_api_error,
    transport_error,
)

__all__ = [
    "ErrorKind", "ApiError", "ToolError",
    "parse_api_error", "transport_error", "extract_error_message",
    "is_retryable", "get_retry_delay", "backoff_delay", "DEFAULT_RETRY_AFTER",
]
