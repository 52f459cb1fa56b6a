"""Transient/permanent classification of pipeline failures.

Message-substring matching is the only signal most remote tool servers give
us. Everything that inspects error text lives here so it can be swapped for
structured error codes without touching the orchestrator.
"""

from dataclasses import dataclass

from contentflow_core.types import ErrorType

from .errors import ContentflowError

_TRANSIENT_CODES = frozenset({"TRANSPORT_ERROR", "TOOL_TIMEOUT"})
_TRANSIENT_MARKERS = ("timeout", "timed out", "token expired", "expired token")
_PERMANENT_MARKERS = ("invalid token", "invalid payload")


@dataclass(frozen=True)
class ErrorClassification:
    """Whether retrying the whole run later is worthwhile."""

    error_type: ErrorType
    retryable: bool

    def to_metadata(self) -> dict[str, object]:
        """Metadata form attached to a failed research step."""
        return {"error_type": self.error_type.value, "retryable": self.retryable}


TRANSIENT = ErrorClassification(ErrorType.TRANSIENT, retryable=True)
PERMANENT = ErrorClassification(ErrorType.PERMANENT, retryable=False)


def classify_error(error: BaseException) -> ErrorClassification:
    """Classify an error as transient or permanent.

    Args:
        error: Terminal error of a remote call

    Returns:
        ErrorClassification; unknown failures default to permanent
    """
    if type(error).__name__ == "FetchError":
        return TRANSIENT

    message = str(error).lower()
    if any(marker in message for marker in _TRANSIENT_MARKERS):
        return TRANSIENT
    # Message markers outrank the error code
    if any(marker in message for marker in _PERMANENT_MARKERS):
        return PERMANENT
    if isinstance(error, ContentflowError) and error.code in _TRANSIENT_CODES:
        return TRANSIENT
    return PERMANENT
