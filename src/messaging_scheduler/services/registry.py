"""In-memory session registry and per-session authentication state machine."""

import logging
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from functools import partial

from messaging_scheduler.adapters.messaging_client import MessagingClient
from messaging_scheduler.domain.errors import (
    AuthFailure,
    DispatchInFlight,
    DuplicateSessionError,
)
from messaging_scheduler.domain.sessions import (
    AuthChallengeReceived,
    Authenticated,
    AuthFailed,
    Disconnected,
    LifecycleEvent,
    ScheduledWork,
    SessionStatus,
    SessionStatusView,
)

logger = logging.getLogger(__name__)

# States from which a (re)authentication attempt may proceed.
_AUTHENTICATING_STATUSES = {
    SessionStatus.INITIALIZING,
    SessionStatus.QR_READY,
    SessionStatus.AUTH_FAILURE,
}

SessionListener = Callable[["Session"], None]


@dataclass(eq=False)
class Session:
    """One messaging identity, its lifecycle state and dispatch guard.

    Every mutable field is guarded by ``_lock``. Lifecycle transitions, the
    scheduled-work descriptor and the dispatch flag are only changed through
    the methods below.
    """

    id: str
    client: MessagingClient
    status: SessionStatus = SessionStatus.INITIALIZING
    pending_auth_challenge: str | None = None
    scheduled_work: ScheduledWork | None = None
    auth_failure: AuthFailure | None = None
    on_scheduled_work: SessionListener | None = field(default=None, repr=False)
    _dispatch_in_flight: bool = field(default=False, init=False, repr=False)
    _lock: threading.Lock = field(
        default_factory=threading.Lock, init=False, repr=False
    )

    @property
    def dispatch_in_flight(self) -> bool:
        """Return true while a dispatch call holds this session."""
        return self._dispatch_in_flight

    def apply(self, event: LifecycleEvent) -> bool:
        """Apply a lifecycle event and return whether the state changed."""
        with self._lock:
            if self.status is SessionStatus.DISCONNECTED:
                return False
            if isinstance(event, AuthChallengeReceived):
                if self.status not in _AUTHENTICATING_STATUSES:
                    return False
                if (
                    self.status is SessionStatus.QR_READY
                    and self.pending_auth_challenge == event.payload
                ):
                    return False
                self.status = SessionStatus.QR_READY
                self.pending_auth_challenge = event.payload
                self.auth_failure = None
                return True
            if isinstance(event, Authenticated):
                if self.status not in _AUTHENTICATING_STATUSES:
                    return False
                self.status = SessionStatus.READY
                self.pending_auth_challenge = None
                self.auth_failure = None
                return True
            if isinstance(event, AuthFailed):
                failure = AuthFailure(self.id, event.reason)
                changed = self.status is not SessionStatus.AUTH_FAILURE
                self.status = SessionStatus.AUTH_FAILURE
                self.pending_auth_challenge = None
                self.auth_failure = failure
                return changed
            if isinstance(event, Disconnected):
                self.status = SessionStatus.DISCONNECTED
                self.pending_auth_challenge = None
                return True
        return False

    def register_scheduled_work(self, sheet_id: str, spreadsheet_id: str) -> None:
        """Register recurring dispatch work; valid in any status."""
        with self._lock:
            self.scheduled_work = ScheduledWork(
                sheet_id=sheet_id, spreadsheet_id=spreadsheet_id
            )
        if self.on_scheduled_work is not None:
            self.on_scheduled_work(self)

    def clear_scheduled_work(self, only_if: ScheduledWork | None = None) -> bool:
        """Unset scheduled work.

        With ``only_if`` the descriptor is cleared only when it is still the
        registered one. Returns whether anything was cleared.
        """
        with self._lock:
            if self.scheduled_work is None:
                return False
            if only_if is not None and self.scheduled_work != only_if:
                return False
            self.scheduled_work = None
            return True

    def try_acquire_dispatch(self) -> bool:
        """Take the dispatch mutex if it is free."""
        with self._lock:
            if self._dispatch_in_flight:
                return False
            self._dispatch_in_flight = True
            return True

    def release_dispatch(self) -> None:
        """Release the dispatch mutex."""
        with self._lock:
            self._dispatch_in_flight = False

    @contextmanager
    def dispatch_slot(self) -> Iterator["Session"]:
        """Hold the dispatch mutex for the block or raise DispatchInFlight."""
        if not self.try_acquire_dispatch():
            raise DispatchInFlight(self.id)
        try:
            yield self
        finally:
            self.release_dispatch()

    def view(self) -> SessionStatusView:
        """Return a consistent read-only snapshot."""
        with self._lock:
            return SessionStatusView(
                session_id=self.id,
                status=self.status,
                auth_challenge=self.pending_auth_challenge,
                failure_reason=self.auth_failure.reason if self.auth_failure else None,
                scheduled_work=self.scheduled_work,
            )


class SessionRegistry:
    """Owns every live session keyed by identifier."""

    def __init__(self, client_factory: Callable[[str], MessagingClient]) -> None:
        self._client_factory = client_factory
        self._sessions: dict[str, Session] = {}
        self._retired: set[str] = set()
        self._lock = threading.Lock()
        self._scheduled_work_listeners: list[SessionListener] = []
        self._removal_listeners: list[SessionListener] = []

    def add_scheduled_work_listener(self, listener: SessionListener) -> None:
        """Call ``listener`` whenever a session registers scheduled work."""
        self._scheduled_work_listeners.append(listener)

    def add_removal_listener(self, listener: SessionListener) -> None:
        """Call ``listener`` after a session is removed."""
        self._removal_listeners.append(listener)

    def create_session(self, session_id: str) -> Session:
        """Create, wire and store a new session.

        Raises DuplicateSessionError for live or previously removed ids.
        """
        with self._lock:
            if session_id in self._sessions or session_id in self._retired:
                raise DuplicateSessionError(session_id)
            client = self._client_factory(session_id)
            session = Session(
                id=session_id,
                client=client,
                on_scheduled_work=self._notify_scheduled_work,
            )
            client.subscribe(partial(self.handle_event, session_id))
            self._sessions[session_id] = session
        logger.info("Session created", extra={"session_id": session_id})
        return session

    def get_session(self, session_id: str) -> Session | None:
        """Return a live session, if present."""
        with self._lock:
            return self._sessions.get(session_id)

    def remove_session(self, session_id: str) -> None:
        """Remove a session; repeated calls are no-ops."""
        with self._lock:
            session = self._sessions.pop(session_id, None)
            if session is not None:
                self._retired.add(session_id)
        if session is None:
            return
        logger.info("Session removed", extra={"session_id": session_id})
        for listener in list(self._removal_listeners):
            listener(session)

    def all_sessions(self) -> list[Session]:
        """Return a snapshot of live sessions."""
        with self._lock:
            return list(self._sessions.values())

    def handle_event(self, session_id: str, event: LifecycleEvent) -> None:
        """Apply a client lifecycle event to its session."""
        session = self.get_session(session_id)
        if session is None:
            logger.info(
                "Ignoring event for unknown session",
                extra={"session_id": session_id, "event": type(event).__name__},
            )
            return
        if not session.apply(event):
            logger.debug(
                "Lifecycle event had no effect",
                extra={"session_id": session_id, "event": type(event).__name__},
            )
            return
        if session.status is SessionStatus.AUTH_FAILURE:
            logger.error("Authentication failure: %s", session.auth_failure)
        else:
            logger.info(
                "Session status changed to %s",
                session.status,
                extra={"session_id": session_id},
            )
        if session.status is SessionStatus.DISCONNECTED:
            self.remove_session(session_id)

    def _notify_scheduled_work(self, session: Session) -> None:
        logger.info(
            "Scheduling enabled",
            extra={"session_id": session.id, "scheduled_work": session.scheduled_work},
        )
        for listener in list(self._scheduled_work_listeners):
            listener(session)
