"""Classification of errors raised by the external sentiment service.

Raw botocore exceptions are mapped once onto :class:`ErrorCategory`; retry
decisions downstream only ever look at the category.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectionError as BotoConnectionError,
    ConnectTimeoutError,
    EndpointConnectionError,
    NoCredentialsError,
    PartialCredentialsError,
    ReadTimeoutError,
)


class ErrorCategory(str, Enum):
    THROTTLING = "THROTTLING"
    SERVICE = "SERVICE"
    VALIDATION = "VALIDATION"
    AUTHENTICATION = "AUTHENTICATION"
    UNKNOWN = "UNKNOWN"


THROTTLING_CODES = frozenset(
    {
        "ThrottlingException",
        "ProvisionedThroughputExceededException",
        "TooManyRequestsException",
    }
)
SERVICE_CODES = frozenset(
    {
        "InternalServerException",
        "ServiceUnavailableException",
        "InternalServerError",
    }
)
VALIDATION_CODES = frozenset(
    {
        "InvalidRequestException",
        "TextSizeLimitExceededException",
        "ValidationException",
        "BatchSizeLimitExceededException",
        "UnsupportedLanguageException",
    }
)
AUTHENTICATION_CODES = frozenset(
    {
        "UnrecognizedClientException",
        "AccessDeniedException",
        "InvalidSignatureException",
    }
)

# Everything else is answered with the neutral fallback without another attempt.
RETRYABLE_CATEGORIES = frozenset({ErrorCategory.THROTTLING, ErrorCategory.SERVICE})


def error_code(exc: BaseException) -> str | None:
    if isinstance(exc, ClientError):
        return exc.response.get("Error", {}).get("Code")
    return None


def http_status(exc: BaseException) -> int | None:
    if isinstance(exc, ClientError):
        status = exc.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
        if isinstance(status, int):
            return status
    return None


def classify_error(exc: BaseException) -> ErrorCategory:
    """Map an exception raised by the sentiment client onto an :class:`ErrorCategory`."""
    if isinstance(exc, ClientError):
        code = error_code(exc)
        if code in THROTTLING_CODES:
            return ErrorCategory.THROTTLING
        if code in SERVICE_CODES:
            return ErrorCategory.SERVICE
        if code in VALIDATION_CODES:
            return ErrorCategory.VALIDATION
        if code in AUTHENTICATION_CODES:
            return ErrorCategory.AUTHENTICATION
        status = http_status(exc)
        if status is not None and status >= 500:
            return ErrorCategory.SERVICE
        if status == 429:
            return ErrorCategory.THROTTLING
        return ErrorCategory.UNKNOWN

    if isinstance(exc, (NoCredentialsError, PartialCredentialsError)):
        return ErrorCategory.AUTHENTICATION
    if isinstance(exc, (EndpointConnectionError, BotoConnectionError, ConnectTimeoutError, ReadTimeoutError)):
        return ErrorCategory.SERVICE
    return ErrorCategory.UNKNOWN


def is_retryable_error(exc: BaseException) -> bool:
    return classify_error(exc) in RETRYABLE_CATEGORIES


def describe_error(exc: BaseException) -> dict[str, Any]:
    """Summarise ``exc`` for logging without request headers or credentials."""
    summary: dict[str, Any] = {
        "name": type(exc).__name__,
        "message": str(exc) or "Unknown error",
        "category": classify_error(exc).value,
    }
    if isinstance(exc, ClientError):
        error = exc.response.get("Error", {})
        metadata = exc.response.get("ResponseMetadata", {})
        summary["code"] = error.get("Code")
        summary["message"] = error.get("Message") or summary["message"]
        summary["status"] = metadata.get("HTTPStatusCode")
        summary["request_id"] = metadata.get("RequestId")
    elif isinstance(exc, BotoCoreError):
        summary["code"] = type(exc).__name__
    return summary
