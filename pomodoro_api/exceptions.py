class PomodoroError(Exception):
    """Base class for domain errors surfaced to API callers."""


class SessionNotFoundError(PomodoroError):
    """Session is missing or belongs to another user. Callers must not tell the two apart."""

    def __init__(self, session_id: int):
        super().__init__(f"Session {session_id} not found")
        self.session_id = session_id


class SessionAlreadyCompletedError(PomodoroError):
    def __init__(self, session_id: int):
        super().__init__(f"Session {session_id} is already completed")
        self.session_id = session_id


class InvalidRangeError(PomodoroError, ValueError):
    """Malformed year/month or date range."""


class UserAlreadyExistsError(PomodoroError, ValueError):
    pass
