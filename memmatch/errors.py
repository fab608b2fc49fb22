"""
Errors raised at the session/service boundary.

The engine itself never raises for bad input; it returns Rejected results.
These exceptions cover requests that cannot even reach an engine.
"""


class MemmatchError(Exception):
    """Base class for memmatch errors."""
    error_code = "INTERNAL_ERROR"


class SessionNotFoundError(MemmatchError, KeyError):
    error_code = "SESSION_NOT_FOUND"

    def __init__(self, session_id: str):
        super().__init__(session_id)
        self.session_id = session_id

    def __str__(self) -> str:
        return f"Session not found: {self.session_id}"


class InvalidRequestError(MemmatchError, ValueError):
    error_code = "INVALID_REQUEST"


class StageLockedError(InvalidRequestError):
    error_code = "STAGE_LOCKED"
