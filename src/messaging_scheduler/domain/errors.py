"""Errors raised by the session registry and dispatch paths."""


class SessionSchedulerError(Exception):
    """Base class for session scheduler errors."""


class DuplicateSessionError(SessionSchedulerError):
    """A session with this identifier exists or was used before."""

    def __init__(self, session_id: str) -> None:
        super().__init__(f"Session {session_id} already exists")
        self.session_id = session_id


class SessionNotFoundError(SessionSchedulerError):
    """No live session has this identifier."""

    def __init__(self, session_id: str) -> None:
        super().__init__(f"Session {session_id} not found")
        self.session_id = session_id


class SessionNotReady(SessionSchedulerError):
    """The session is not authenticated."""

    def __init__(self, session_id: str) -> None:
        super().__init__(f"Session {session_id} is not ready")
        self.session_id = session_id


class DispatchInFlight(SessionSchedulerError):
    """A dispatch for this session is already running."""

    def __init__(self, session_id: str) -> None:
        super().__init__(f"A dispatch is already running for session {session_id}")
        self.session_id = session_id


class DispatchFailure(SessionSchedulerError):
    """The dispatch service failed for one session."""

    def __init__(self, session_id: str, cause: BaseException) -> None:
        super().__init__(f"Dispatch failed for session {session_id}: {cause}")
        self.session_id = session_id
        self.cause = cause


class AuthFailure(SessionSchedulerError):
    """The messaging client reported an authentication failure."""

    def __init__(self, session_id: str, reason: str | None) -> None:
        super().__init__(f"Authentication failed for session {session_id}: {reason}")
        self.session_id = session_id
        self.reason = reason
