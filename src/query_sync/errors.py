"""Error taxonomy for the data-synchronization layer.

Errors coming back from the remote data client are forwarded verbatim through
query and mutation state. ``describe_error`` is only meant for the presentation
side (the error branch of the render adapter, the inspector API).
"""

from dataclasses import dataclass
from typing import Any


class RemoteError(Exception):
    """An error returned by the remote data store.

    Attributes:
        message: Human-readable message from the store
        code: Machine code (database error code, HTTP-derived code, ...)
        details: Optional extra detail text
        hint: Optional hint from the store
        status: HTTP status of the response, if any
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: str | None = None,
        hint: str | None = None,
        status: int | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details
        self.hint = hint
        self.status = status

    @classmethod
    def from_payload(cls, payload: Any, status: int | None = None) -> "RemoteError":
        """Build an error from a response body.

        Accepts ``{"error": {"message", "code", ...}}``, ``{"error": "text"}``
        and ``{"message": "text"}`` shapes.
        """
        if isinstance(payload, dict):
            error = payload.get("error")
            if isinstance(error, dict):
                return cls(
                    message=error.get("message") or payload.get("message") or "Unknown error",
                    code=error.get("code"),
                    details=error.get("details"),
                    hint=error.get("hint"),
                    status=status,
                )
            if isinstance(error, str):
                return cls(message=error, status=status)
            if payload.get("message"):
                return cls(message=str(payload["message"]), code=payload.get("code"), status=status)

        return cls(message=f"Request failed with status {status}", status=status)

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "code": self.code,
            "details": self.details,
            "hint": self.hint,
            "status": self.status,
        }

    def __repr__(self) -> str:
        return f"RemoteError(message={self.message!r}, code={self.code!r}, status={self.status!r})"


class TransportError(Exception):
    """The remote data store could not be reached (network failure, timeout)."""


class QueryError(Exception):
    """Raised by ``QueryCache.fetch`` when the error payload is not an exception.

    The original payload is kept untouched on ``error``.
    """

    def __init__(self, error: Any) -> None:
        super().__init__(str(error))
        self.error = error


class MutationError(Exception):
    """Raised by ``Err.unwrap`` when the error payload is not an exception."""

    def __init__(self, error: Any) -> None:
        super().__init__(str(error))
        self.error = error


@dataclass(frozen=True)
class ErrorMessage:
    """User-facing description of an error."""

    user_message: str
    technical_message: str | None = None
    error_code: str | None = None
    action: str | None = None


# Known database error codes and how they are presented
_CODE_MESSAGES: dict[str, ErrorMessage] = {
    "PGRST116": ErrorMessage(
        user_message="You do not have access to this data.",
        technical_message="Row level security violation: access denied.",
        action="Sign in again or contact support if the problem persists.",
    ),
    "23505": ErrorMessage(
        user_message="This data already exists.",
        technical_message="Unique constraint violation.",
        action="Try a different value or change the existing one.",
    ),
    "23503": ErrorMessage(
        user_message="This action is not possible because other data depends on it.",
        technical_message="Foreign key constraint violation.",
        action="Check related data before performing this action.",
    ),
    "23514": ErrorMessage(
        user_message="The data entered does not meet the requirements.",
        technical_message="Check constraint violation.",
        action="Check that your input meets the criteria.",
    ),
    "22P02": ErrorMessage(
        user_message="The data entered has an invalid format.",
        technical_message="Invalid text representation.",
        action="Check the format of your input.",
    ),
}

_CONTEXT_PREFIXES: dict[str, str] = {
    "authentication": "There was a problem signing in.",
    "task-save": "The task could not be saved.",
    "profile-update": "Your profile could not be updated.",
    "reflection-save": "Your reflection could not be saved.",
    "specialist-patients": "Something went wrong while managing patients.",
}

DEFAULT_USER_MESSAGE = "An error occurred. Please try again later."


def describe_error(error: Any, context: str | None = None) -> ErrorMessage:
    """Describe an error for display.

    Args:
        error: Any error payload (RemoteError, exception, dict or string)
        context: Optional operation context, e.g. ``"task-save"``

    Returns:
        ErrorMessage with a user message and whatever technical detail is known
    """
    code = getattr(error, "code", None)
    message = getattr(error, "message", None)
    hint = getattr(error, "hint", None)
    if isinstance(error, dict):
        code = error.get("code")
        message = error.get("message")
        hint = error.get("hint")

    described: ErrorMessage
    if code and code in _CODE_MESSAGES:
        known = _CODE_MESSAGES[code]
        described = ErrorMessage(
            user_message=known.user_message,
            technical_message=message or known.technical_message,
            error_code=code,
            action=hint or known.action,
        )
    elif isinstance(error, TransportError):
        described = ErrorMessage(
            user_message="The server could not be reached.",
            technical_message=str(error),
            action="Check your connection and try again.",
        )
    elif message or isinstance(error, Exception):
        described = ErrorMessage(
            user_message=message or DEFAULT_USER_MESSAGE,
            technical_message=message or str(error),
            error_code=code,
            action=hint or "Refresh the page or try again later.",
        )
    elif isinstance(error, str) and error:
        described = ErrorMessage(user_message=error)
    else:
        described = ErrorMessage(user_message=DEFAULT_USER_MESSAGE)

    prefix = _CONTEXT_PREFIXES.get(context or "")
    if prefix:
        return ErrorMessage(
            user_message=f"{prefix} {described.user_message}",
            technical_message=described.technical_message,
            error_code=described.error_code,
            action=described.action,
        )
    return described
