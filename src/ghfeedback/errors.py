"""Error taxonomy for gh-feedback.

Only :class:`NotFoundError` is ever caught to drive control flow (the item
locator falls through to the next detection strategy on it). Everything else
aborts the current command.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

_HTTP_NOT_FOUND = 404
_HTTP_FORBIDDEN = 403

_NOT_FOUND_MARKERS = ("http 404", "not found", "could not resolve to a")
_PERMISSION_MARKERS = (
    "must have write access",
    "resource not accessible",
    "http 403",
    "does not have permission",
)


class FeedbackError(Exception):
    """Base class for every error gh-feedback raises on purpose."""


class RemoteError(FeedbackError):
    """A call to GitHub failed (network, malformed response, unexpected schema)."""

    def __init__(self, message: str, *, status_code: int = 0, stderr: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.stderr = stderr


class NotFoundError(RemoteError):
    """The requested resource does not exist (HTTP 404 or GraphQL NOT_FOUND)."""


class PermissionDeniedError(RemoteError):
    """The authenticated user lacks write access for a mutation."""


class ItemNotFoundError(NotFoundError):
    """No detection strategy could find the feedback item."""


class WorkflowViolation(FeedbackError):
    """A requested transition is not allowed from the item's current state."""

    def __init__(self, message: str, offenders: Sequence[object] = ()) -> None:
        super().__init__(message)
        self.offenders = list(offenders)


class InvalidInputError(FeedbackError):
    """Malformed user input, rejected before any network call."""


def classify_failure(message: str, *, status_code: int = 0, stderr: str = "") -> RemoteError:
    """Build the most specific :class:`RemoteError` for a failed remote call.

    Works from an HTTP status when one is known and falls back to matching the
    error text, since ``gh`` only reports failures through stderr.
    """
    lowered = f"{message}\n{stderr}".lower()
    if "rate limit" in lowered:
        return RemoteError(f"GitHub API rate limit exceeded: {message}", status_code=status_code, stderr=stderr)
    if status_code == _HTTP_NOT_FOUND or (not status_code and any(m in lowered for m in _NOT_FOUND_MARKERS)):
        return NotFoundError(message, status_code=status_code or _HTTP_NOT_FOUND, stderr=stderr)
    if status_code == _HTTP_FORBIDDEN or any(m in lowered for m in _PERMISSION_MARKERS):
        return PermissionDeniedError(message, status_code=status_code or _HTTP_FORBIDDEN, stderr=stderr)
    return RemoteError(message, status_code=status_code, stderr=stderr)
