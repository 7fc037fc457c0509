from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    BACKEND_UNAVAILABLE = "backend_unavailable"
    BACKEND_ERROR = "backend_error"
    RESOLUTION_NOT_FOUND = "resolution_not_found"
    STATE_NOT_FOUND = "state_not_found"
    INPUT_INVALID = "input_invalid"


class RelayError(RuntimeError):
    """Raised when a relay operation cannot proceed."""

    kind: Optional[ErrorKind] = None


class ConfigError(RelayError):
    """Raised when required settings are missing or malformed."""


class InputInvalidError(RelayError):
    kind = ErrorKind.INPUT_INVALID


class StateNotFoundError(RelayError):
    """Raised when a user has no rendered task list yet."""

    kind = ErrorKind.STATE_NOT_FOUND

    def __init__(self, user_id: int) -> None:
        super().__init__(f"No task list has been rendered for user {user_id}")
        self.user_id = user_id


class ResolutionNotFoundError(RelayError):
    """Raised when a display number is absent from the last rendered page."""

    kind = ErrorKind.RESOLUTION_NOT_FOUND

    def __init__(self, *, user_id: int, display_number: int) -> None:
        super().__init__(
            f"Display number {display_number} is not on the last page rendered for user {user_id}"
        )
        self.user_id = user_id
        self.display_number = display_number


class BackendRequestError(RelayError):
    """Raised when the todo backend rejects a request or cannot be reached."""

    def __init__(
        self,
        message: str,
        *,
        kind: ErrorKind = ErrorKind.BACKEND_ERROR,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.status_code = status_code


class SummarizerError(RelayError):
    """Raised when the summarization API or page fetch fails."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code
