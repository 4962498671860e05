"""Application service for session creation, status and on-demand dispatch."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol
from uuid import uuid4

from messaging_scheduler.adapters.dispatch_client import DispatchClient
from messaging_scheduler.domain.dispatch import DispatchMode, DispatchResult
from messaging_scheduler.domain.errors import (
    DispatchFailure,
    DuplicateSessionError,
    SessionNotFoundError,
    SessionNotReady,
)
from messaging_scheduler.domain.sessions import (
    LifecycleEvent,
    SessionStatus,
    SessionStatusView,
)
from messaging_scheduler.services.registry import Session, SessionRegistry

logger = logging.getLogger(__name__)


class SessionIdStore(Protocol):
    """Persistence interface for known session identifiers."""

    def load(self) -> list[str]:
        """Return every persisted session id."""

    def save(self, session_ids: list[str]) -> None:
        """Replace the persisted session ids."""


def _new_session_id() -> str:
    return str(uuid4())


@dataclass
class SessionService:
    """Operations exposed to the HTTP layer."""

    registry: SessionRegistry
    store: SessionIdStore
    dispatch_client: DispatchClient
    id_factory: Callable[[], str] = field(default=_new_session_id)

    async def create_session(self) -> str:
        """Mint, persist and start a new session; return its id."""
        session_id = self.id_factory()
        session = self.registry.create_session(session_id)
        session_ids = self.store.load()
        if session_id not in session_ids:
            session_ids.append(session_id)
            self.store.save(session_ids)
        await self._initialize(session)
        return session_id

    async def restore_sessions(self) -> list[str]:
        """Recreate sessions for every persisted id."""
        restored: list[str] = []
        for session_id in dict.fromkeys(self.store.load()):
            if self.registry.get_session(session_id) is not None:
                continue
            try:
                session = self.registry.create_session(session_id)
            except DuplicateSessionError:
                logger.warning(
                    "Skipping retired session id", extra={"session_id": session_id}
                )
                continue
            logger.info("Restoring session", extra={"session_id": session_id})
            await self._initialize(session)
            restored.append(session_id)
        return restored

    def get_session_status(self, session_id: str) -> SessionStatusView:
        """Return status and pending challenge for a session."""
        return self._require_session(session_id).view()

    def list_sessions(self) -> list[SessionStatusView]:
        """Return status views for every live session."""
        return [session.view() for session in self.registry.all_sessions()]

    def deliver_event(self, session_id: str, event: LifecycleEvent) -> bool:
        """Route a bridge lifecycle event through the session's client."""
        session = self.registry.get_session(session_id)
        if session is None:
            return False
        session.client.emit(event)
        return True

    async def request_dispatch(
        self,
        session_id: str,
        sheet_id: str,
        spreadsheet_id: str,
        mode: DispatchMode,
        register_scheduled_work: bool | None = None,
    ) -> DispatchResult:
        """Dispatch once on demand, registering scheduled work when asked.

        ``register_scheduled_work`` defaults to what ``mode`` implies.
        """
        session = self._require_session(session_id)
        if session.status is not SessionStatus.READY:
            raise SessionNotReady(session_id)
        if register_scheduled_work is None:
            register_scheduled_work = mode.registers_scheduled_work
        if register_scheduled_work:
            session.register_scheduled_work(sheet_id, spreadsheet_id)
        with session.dispatch_slot():
            try:
                return await self.dispatch_client.dispatch(
                    session.client, sheet_id, spreadsheet_id, mode
                )
            except Exception as exc:
                raise DispatchFailure(session_id, exc) from exc

    def forget_session(self, session: Session) -> None:
        """Drop a removed session from the identifier store."""
        session_ids = self.store.load()
        if session.id not in session_ids:
            return
        self.store.save([sid for sid in session_ids if sid != session.id])

    def _require_session(self, session_id: str) -> Session:
        session = self.registry.get_session(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    async def _initialize(self, session: Session) -> None:
        try:
            await session.client.initialize()
        except Exception:
            logger.exception(
                "Failed to initialize messaging client",
                extra={"session_id": session.id},
            )
