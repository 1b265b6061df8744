"""
Errors raised by the session lifecycle and the store adapters.

Invalid bids are NOT errors - the reducer ignores them silently.
Only structural violations on lifecycle entry points and store
failures are raised to the caller.
"""


class WarError(Exception):
    """Base class for all weighted_war errors."""
    error_code = "INTERNAL_ERROR"

    def __init__(self, message: str, session_id: str | None = None):
        super().__init__(message)
        self.message = message
        self.session_id = session_id


class SessionNotFound(WarError):
    error_code = "SESSION_NOT_FOUND"


class SessionAlreadyExists(WarError):
    error_code = "ALREADY_EXISTS"


class AlreadyJoined(WarError):
    error_code = "ALREADY_JOINED"


class RoomFull(WarError):
    error_code = "ROOM_FULL"


class StoreError(WarError):
    """The store backend failed."""
    error_code = "STORE_ERROR"


class StoreWriteError(StoreError):
    """The store could not persist a document."""
    error_code = "WRITE_ERROR"


class WriteConflict(StoreWriteError):
    """A conditional write lost against a concurrent writer."""
    error_code = "WRITE_CONFLICT"

    def __init__(
        self,
        message: str,
        session_id: str | None = None,
        expected_version: int | None = None,
        actual_version: int | None = None,
    ):
        super().__init__(message, session_id=session_id)
        self.expected_version = expected_version
        self.actual_version = actual_version
