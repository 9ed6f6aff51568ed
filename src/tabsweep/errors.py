from __future__ import annotations

from enum import StrEnum


class ErrorCode(StrEnum):
    INVALID_INPUT = "INVALID_INPUT"
    COOKIE_STORE_UNAVAILABLE = "COOKIE_STORE_UNAVAILABLE"
    COOKIE_REMOVE_FAILED = "COOKIE_REMOVE_FAILED"


class TabSweepError(Exception):
    """Raised for all expected failure conditions.

    Collaborator wrappers (the cookie bridge) raise it; the deletion
    coordinator catches it per unit of work and logs it. The HTTP layer
    serialises it into the JSON error envelope for bad requests.
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        suggestion: str,
        recoverable: bool = False,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion
        self.recoverable = recoverable

    def to_dict(self) -> dict:
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "suggestion": self.suggestion,
                "recoverable": self.recoverable,
            }
        }
