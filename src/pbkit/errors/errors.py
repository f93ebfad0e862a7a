"""ProductBoard API error taxonomy.

Maps transport failures and HTTP error responses to a closed set of error
kinds, and decides retryability and retry delay for each. The retry loop
itself lives in the client; this module only classifies.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any, Self

import orjson
from pydantic import BaseModel

DEFAULT_RETRY_AFTER = 60
FALLBACK_MESSAGE = "Unknown error"

# Backoff for non rate-limit retries: 1s, 2s, 4s ... capped at 30s
BACKOFF_BASE = 1.0
BACKOFF_MAX = 30.0


class ErrorKind(StrEnum):
    """Error categories driving handling policy."""
    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    AUTHORIZATION = "authorization"
    NOT_FOUND = "not_found"
    RATE_LIMIT = "rate_limit"
    SERVER = "server"
    TRANSPORT = "transport"
    UNKNOWN = "unknown"


_STATUS_KINDS: dict[int, ErrorKind] = {
    400: ErrorKind.VALIDATION,
    401: ErrorKind.AUTHENTICATION,
    403: ErrorKind.AUTHORIZATION,
    404: ErrorKind.NOT_FOUND,
    429: ErrorKind.RATE_LIMIT,
    500: ErrorKind.SERVER,
    502: ErrorKind.SERVER,
    503: ErrorKind.SERVER,
    504: ErrorKind.SERVER,
}

_DEFAULT_CODES: dict[ErrorKind, str] = {
    ErrorKind.VALIDATION: "VALIDATION_ERROR",
    ErrorKind.AUTHENTICATION: "AUTHENTICATION_ERROR",
    ErrorKind.AUTHORIZATION: "AUTHORIZATION_ERROR",
    ErrorKind.NOT_FOUND: "NOT_FOUND",
    ErrorKind.RATE_LIMIT: "RATE_LIMIT_EXCEEDED",
    ErrorKind.SERVER: "SERVER_ERROR",
    ErrorKind.TRANSPORT: "NETWORK_ERROR",
    ErrorKind.UNKNOWN: "UNKNOWN_ERROR",
}

_ALWAYS_RETRYABLE: frozenset[ErrorKind] = frozenset({
    ErrorKind.RATE_LIMIT,
    ErrorKind.SERVER,
    ErrorKind.TRANSPORT,
})


def backoff_delay(attempt: int) -> float:
    """Exponential delay in seconds for retry `attempt` (0-indexed)."""
    return min(BACKOFF_BASE * (2 ** attempt), BACKOFF_MAX)


class ApiError(Exception):
    """Classified failure of a ProductBoard API call.

    One exception type for every kind; callers branch on `kind`.

    Attributes:
        kind: Taxonomy kind
        status_code: HTTP status, 0 when no response was received
        message: Human-readable message extracted from the response
        details: Structured details from the response body, if any
        code: Upstream error code (or a default per kind)
        retry_after: Seconds to wait before retrying (rate_limit only)
    """

    __slots__ = ("kind", "status_code", "message", "details", "code", "retry_after")

    def __init__(
        self,
        kind: ErrorKind,
        status_code: int,
        message: str,
        *,
        details: dict[str, Any] | None = None,
        code: str | None = None,
        retry_after: int | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.status_code = status_code
        self.message = message
        self.details = details
        self.code = code or _DEFAULT_CODES[kind]
        self.retry_after = retry_after if kind is ErrorKind.RATE_LIMIT else None

    @property
    def retryable(self) -> bool:
        if self.kind in _ALWAYS_RETRYABLE:
            return True
        return self.kind is ErrorKind.UNKNOWN and self.status_code >= 500

    def retry_delay(self, attempt: int) -> float:
        """Seconds to wait before retry `attempt` (0-indexed)."""
        if self.kind is ErrorKind.RATE_LIMIT:
            return float(self.retry_after if self.retry_after is not None else DEFAULT_RETRY_AFTER)
        return backoff_delay(attempt)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "kind": self.kind.value,
            "code": self.code,
            "statusCode": self.status_code,
            "message": self.message,
        }
        if self.details is not None:
            data["details"] = self.details
        if self.retry_after is not None:
            data["retryAfter"] = self.retry_after
        return data

    def __repr__(self) -> str:
        return f"ApiError(kind={self.kind.value!r}, status_code={self.status_code}, message={self.message!r})"


# ═══════════════════════════════════════════════════════════════════════════════
# Classification
# ═══════════════════════════════════════════════════════════════════════════════


def extract_error_message(data: object) -> str:
    """Pull a message out of an error body of unknown shape. Never raises."""
    if not data:
        return FALLBACK_MESSAGE
    if isinstance(data, str):
        return data
    if isinstance(data, dict):
        if isinstance(msg := data.get("message"), str):
            return msg
        if isinstance(err := data.get("error"), str):
            return err
        if isinstance(desc := data.get("error_description"), str):
            return desc
        if isinstance(err, dict) and isinstance(msg := err.get("message"), str):
            return msg
        errors = data.get("errors")
        if isinstance(errors, list) and errors:
            first = errors[0]
            if isinstance(first, str):
                return first
            if isinstance(first, dict) and isinstance(msg := first.get("message"), str):
                return msg
    try:
        return orjson.dumps(data, default=str).decode()
    except TypeError:
        return "Unknown error (unparseable response)"


def _parse_retry_after(header: str | None) -> int:
    if header is None:
        return DEFAULT_RETRY_AFTER
    try:
        return max(int(header.strip()), 0)
    except ValueError:
        return DEFAULT_RETRY_AFTER


def parse_api_error(status_code: int, data: object = None, retry_after_header: str | None = None) -> ApiError:
    """Classify an HTTP error response into an ApiError."""
    message = extract_error_message(data)
    body = data if isinstance(data, dict) else {}
    details = body.get("details") if isinstance(body.get("details"), dict) else None
    kind = _STATUS_KINDS.get(status_code, ErrorKind.UNKNOWN)

    match kind:
        case ErrorKind.RATE_LIMIT:
            retry_after = _parse_retry_after(retry_after_header)
            return ApiError(
                kind, status_code,
                f"Rate limit exceeded. Retry after {retry_after} seconds",
                details=details, retry_after=retry_after,
            )
        case ErrorKind.UNKNOWN:
            code = body.get("code") if isinstance(body.get("code"), str) else None
            return ApiError(kind, status_code, message, details=details, code=code)
        case _:
            return ApiError(kind, status_code, message, details=details)


def transport_error(exc: Exception) -> ApiError:
    """Classify a request that produced no usable response (connect error, timeout, redirect loop)."""
    message = str(exc) or type(exc).__name__
    return ApiError(ErrorKind.TRANSPORT, 0, f"Network error: {message}")


def is_retryable(error: BaseException) -> bool:
    """Whether a failed request may succeed on retry."""
    return isinstance(error, ApiError) and error.retryable


def get_retry_delay(error: BaseException, attempt: int) -> float:
    """Seconds to wait before retry `attempt` (0-indexed)."""
    if isinstance(error, ApiError):
        return error.retry_delay(attempt)
    return backoff_delay(attempt)


# ═══════════════════════════════════════════════════════════════════════════════
# Tool-facing error
# ═══════════════════════════════════════════════════════════════════════════════


class ToolError(BaseModel):
    """Structured error response for a failed tool invocation."""

    model_config = {"frozen": True}

    tool_name: str
    message: str
    kind: ErrorKind = ErrorKind.UNKNOWN
    status_code: int = 0
    details: dict[str, Any] | None = None
    recoverable: bool = True

    @classmethod
    def create(
        cls,
        tool_name: str,
        message: str,
        kind: ErrorKind = ErrorKind.UNKNOWN,
        *,
        recoverable: bool = True,
    ) -> Self:
        return cls(tool_name=tool_name, message=message, kind=kind, recoverable=recoverable)

    @classmethod
    def from_api_error(cls, tool_name: str, error: ApiError) -> Self:
        return cls(
            tool_name=tool_name,
            message=error.message,
            kind=error.kind,
            status_code=error.status_code,
            details=error.details,
            recoverable=error.retryable,
        )

    def render(self) -> str:
        """Format error for LLM consumption."""
        status = f" HTTP {self.status_code}" if self.status_code else ""
        parts = [f"**Tool Error ({self.tool_name}) [{self.kind.value}{status}]:** {self.message}"]
        if self.recoverable:
            parts.append("\n_This error may be recoverable - consider retrying later._")
        if self.details:
            parts.append(f"\n\nDetails:\n```\n{orjson.dumps(self.details, option=orjson.OPT_INDENT_2, default=str).decode()}\n```")
        return "".join(parts)

    __str__ = render
