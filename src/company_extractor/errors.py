"""Error taxonomy and upstream error classification."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

AUTH_MARKER = "requested entity was not found"

_QUOTA_STATUSES = {"RESOURCE_EXHAUSTED", "RATE_LIMIT_ERROR"}
_TRANSIENT_STATUSES = {"INTERNAL", "UNAVAILABLE", "API_ERROR", "OVERLOADED_ERROR"}
_TRANSIENT_CODES = {500, 503, 529}

QUOTA_MESSAGE = (
    "Research limit reached: the API quota for this key has been exhausted. "
    "Use a personal API key to continue."
)
AUTH_MESSAGE = (
    "API project mismatch or session expired. Please re-select a valid API key."
)
GENERIC_MESSAGE = (
    "An unexpected error occurred during research. Please try again with fewer items."
)


class ExtractorError(Exception):
    """Base class for errors raised by the extractor itself."""


class ParseError(ExtractorError, ValueError):
    """The upstream answer held no recoverable JSON payload."""


class PersistenceError(ExtractorError):
    """A mirror sink could not be set up or written."""


class ErrorKind(str, Enum):
    QUOTA = "quota"
    TRANSIENT = "transient"
    AUTH = "auth"
    PARSE = "parse"
    OTHER = "other"


@dataclass
class BatchFailure:
    """User-facing description of a batch that stopped on a research error."""

    message: str
    kind: ErrorKind
    is_quota: bool = False
    needs_reauth: bool = False
    cause: BaseException | None = field(default=None, repr=False, compare=False)


def error_fields(exc: BaseException) -> tuple[str | None, int | None, str]:
    """Pull (status, code, message) out of an SDK error or a plain exception.

    Looks at the error body the SDKs attach (``body["error"]``) first, then at
    ``status_code`` / ``code`` / ``status`` attributes. Status is upper-cased,
    message lower-cased.
    """
    body = getattr(exc, "body", None)
    detail = body.get("error") if isinstance(body, dict) else None
    if not isinstance(detail, dict):
        detail = {}

    status = detail.get("type") or detail.get("status") or getattr(exc, "status", None)
    status = str(status).upper() if isinstance(status, str) and status else None

    code = getattr(exc, "status_code", None) or detail.get("code") or getattr(exc, "code", None)
    try:
        code = int(code) if code is not None else None
    except (TypeError, ValueError):
        code = None

    message = detail.get("message") or str(exc) or ""
    return status, code, str(message).lower()


def is_quota_error(exc: BaseException) -> bool:
    status, code, message = error_fields(exc)
    return (
        status in _QUOTA_STATUSES
        or code == 429
        or "429" in message
        or "quota" in message
        or "rate limit" in message
    )


def is_retryable_error(exc: BaseException) -> bool:
    """Quota exhaustion and transient service failures are worth retrying."""
    if isinstance(exc, ExtractorError):
        return False
    if is_quota_error(exc):
        return True
    status, code, _ = error_fields(exc)
    return status in _TRANSIENT_STATUSES or code in _TRANSIENT_CODES


def is_auth_error(exc: BaseException) -> bool:
    _, _, message = error_fields(exc)
    return AUTH_MARKER in message


def classify_error(exc: BaseException) -> ErrorKind:
    if isinstance(exc, ParseError):
        return ErrorKind.PARSE
    if is_auth_error(exc):
        return ErrorKind.AUTH
    if is_quota_error(exc):
        return ErrorKind.QUOTA
    if is_retryable_error(exc):
        return ErrorKind.TRANSIENT
    return ErrorKind.OTHER


def describe_failure(exc: BaseException) -> BatchFailure:
    """Turn the exception that aborted a batch into a displayable failure."""
    kind = classify_error(exc)
    if kind is ErrorKind.AUTH:
        return BatchFailure(AUTH_MESSAGE, kind, needs_reauth=True, cause=exc)
    if kind is ErrorKind.QUOTA:
        return BatchFailure(QUOTA_MESSAGE, kind, is_quota=True, cause=exc)
    return BatchFailure(GENERIC_MESSAGE, kind, cause=exc)
