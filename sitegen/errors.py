"""Exception taxonomy and user-facing error classification."""

from __future__ import annotations

from enum import Enum
from typing import Optional

import httpx


class SitegenError(Exception):
    """Base class for every error raised by sitegen."""


class GenAIError(SitegenError):
    """Raised when a call to the text or image model fails."""

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        model: str = "",
    ):
        self.status_code = status_code
        self.model = model
        super().__init__(message)


class ParseError(SitegenError):
    """Raised when a model reply is not valid JSON or violates the reply shape."""


class FatalPipelineError(SitegenError):
    """Structured generation failed; the run is aborted without a document."""


class DegradedAssetError(SitegenError):
    """One refinement, image, or favicon call failed and a fallback was used."""

    def __init__(self, message: str, placeholder_id: str = ""):
        self.placeholder_id = placeholder_id
        super().__init__(message)


class GenerationInProgressError(SitegenError):
    """A generation was requested while another one is still running."""


class ExportPreconditionError(SitegenError):
    """Export was requested before anything was generated."""


class ExportInProgressError(SitegenError):
    """Export was requested while another export is still running."""


class PersistenceWriteError(SitegenError):
    """Writing the local state record failed."""


class StorageQuotaError(PersistenceWriteError):
    """The serialized state record does not fit the store quota."""


class ErrorCategory(str, Enum):
    """Likely cause of a user-visible failure."""

    authentication = "authentication"
    quota = "quota"
    overload = "overload"
    content_policy = "content_policy"
    malformed_response = "malformed_response"
    network = "network"
    unknown = "unknown"


USER_MESSAGES = {
    ErrorCategory.authentication: (
        "The API key was rejected. Check GEMINI_API_KEY in your .env file."
    ),
    ErrorCategory.quota: (
        "The API quota or rate limit was exceeded. Wait a moment and try again, "
        "or check the billing settings of your API project."
    ),
    ErrorCategory.overload: (
        "The model is overloaded right now. Please try again in a few minutes."
    ),
    ErrorCategory.content_policy: (
        "The request was blocked by the model's safety filters. "
        "Rephrase your idea and try again."
    ),
    ErrorCategory.malformed_response: (
        "The model returned a response that could not be understood. "
        "Please try again; simplifying the request often helps."
    ),
    ErrorCategory.network: (
        "Could not reach the model API. Check your internet connection and try again."
    ),
    ErrorCategory.unknown: (
        "An error occurred while generating the website. Please try again."
    ),
}

_AUTH_SIGNATURES = ("api key", "api_key", "unauthenticated", "permission denied")
_QUOTA_SIGNATURES = ("quota", "rate limit", "resource_exhausted", "resource exhausted")
_OVERLOAD_SIGNATURES = ("overloaded", "unavailable", "try again later")
_POLICY_SIGNATURES = ("safety", "blocked", "prohibited", "policy")


def _root_cause(exc: BaseException) -> BaseException:
    seen = set()
    current = exc
    while current.__cause__ is not None and id(current) not in seen:
        seen.add(id(current))
        current = current.__cause__
    return current


def classify_error(exc: BaseException) -> ErrorCategory:
    """Map an exception to the most likely user-facing cause."""
    root = _root_cause(exc)

    if isinstance(root, ParseError):
        return ErrorCategory.malformed_response
    if isinstance(root, (httpx.TransportError, ConnectionError, TimeoutError)):
        return ErrorCategory.network

    status = getattr(root, "status_code", None)
    if status in (401, 403):
        return ErrorCategory.authentication
    if status == 429:
        return ErrorCategory.quota
    if status in (500, 502, 503, 504):
        return ErrorCategory.overload

    text = " ".join(str(e) for e in (exc, root)).lower()
    if any(sig in text for sig in _AUTH_SIGNATURES):
        return ErrorCategory.authentication
    if any(sig in text for sig in _QUOTA_SIGNATURES):
        return ErrorCategory.quota
    if any(sig in text for sig in _OVERLOAD_SIGNATURES):
        return ErrorCategory.overload
    if any(sig in text for sig in _POLICY_SIGNATURES):
        return ErrorCategory.content_policy
    if "json" in text:
        return ErrorCategory.malformed_response
    if isinstance(root, GenAIError) and status is None and "request failed" in text:
        return ErrorCategory.network
    return ErrorCategory.unknown


def user_message(exc: BaseException) -> str:
    """Human-readable, actionable message for *exc*."""
    if isinstance(
        exc,
        (
            ExportPreconditionError,
            GenerationInProgressError,
            ExportInProgressError,
            ValueError,
        ),
    ):
        return str(exc)
    return USER_MESSAGES[classify_error(exc)]
