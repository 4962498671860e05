"""Self-starting, self-stopping periodic dispatcher for scheduled work."""

import asyncio
import contextlib
import logging
import time
from dataclasses import dataclass, field
from enum import StrEnum

from messaging_scheduler.adapters.dispatch_client import DispatchClient
from messaging_scheduler.domain.dispatch import DispatchMode
from messaging_scheduler.domain.errors import DispatchFailure
from messaging_scheduler.domain.sessions import SessionStatus
from messaging_scheduler.services.registry import Session, SessionRegistry

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 60.0


class SchedulerState(StrEnum):
    """Whether the periodic loop is active."""

    STOPPED = "STOPPED"
    RUNNING = "RUNNING"


@dataclass
class SchedulerCoordinator:
    """Drive scheduled dispatch for ready sessions until their work runs out.

    The loop is started by ``start`` (wired to scheduled-work registration) and
    stops itself at the end of the first tick after which no session retains
    scheduled work. Each interval spawns a tick task, so a slow dispatch only
    delays its own session: later ticks skip it while its mutex is held.
    """

    registry: SessionRegistry
    dispatch_client: DispatchClient
    interval_seconds: float = DEFAULT_INTERVAL_SECONDS
    scheduled_work_ttl_seconds: float | None = None
    _loop_task: asyncio.Task[None] | None = field(default=None, init=False, repr=False)
    _tick_tasks: set[asyncio.Task[None]] = field(
        default_factory=set, init=False, repr=False
    )
    _stale_since: dict[str, float] = field(default_factory=dict, init=False, repr=False)

    @property
    def state(self) -> SchedulerState:
        """Return the current loop state."""
        if self._loop_task is None:
            return SchedulerState.STOPPED
        return SchedulerState.RUNNING

    def start(self) -> None:
        """Start the periodic loop; no-op while running."""
        if self._loop_task is not None:
            return
        self._loop_task = asyncio.get_running_loop().create_task(
            self._run(), name="scheduled-dispatch-loop"
        )
        logger.info(
            "Scheduled message loop started",
            extra={"interval_seconds": self.interval_seconds},
        )

    def stop(self) -> None:
        """Cancel future ticks; in-flight dispatches keep running."""
        task, self._loop_task = self._loop_task, None
        if task is None:
            return
        task.cancel()
        logger.info("Scheduled message loop stopped")

    async def shutdown(self) -> None:
        """Stop the loop and cancel ticks still running."""
        loop_task = self._loop_task
        self.stop()
        pending = [task for task in self._tick_tasks if not task.done()]
        if loop_task is not None:
            pending.append(loop_task)
        for task in pending:
            task.cancel()
        for task in pending:
            with contextlib.suppress(asyncio.CancelledError):
                await task

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            task = asyncio.create_task(self.tick(), name="scheduled-dispatch-tick")
            self._tick_tasks.add(task)
            task.add_done_callback(self._on_tick_done)

    def _on_tick_done(self, task: asyncio.Task[None]) -> None:
        self._tick_tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.exception("Scheduled dispatch tick failed", exc_info=exc)

    async def tick(self) -> None:
        """Run one pass over all sessions with scheduled work."""
        sessions = self.registry.all_sessions()
        eligible = [
            session
            for session in sessions
            if session.status is SessionStatus.READY
            and session.scheduled_work is not None
        ]
        if eligible:
            logger.info(
                "Running scheduled message check", extra={"sessions": len(eligible)}
            )
            await asyncio.gather(
                *(self._dispatch_scheduled(session) for session in eligible)
            )
        self._evict_stale_work(sessions)
        if not any(
            session.scheduled_work is not None
            for session in self.registry.all_sessions()
        ):
            self.stop()

    async def _dispatch_scheduled(self, session: Session) -> None:
        work = session.scheduled_work
        if work is None:
            return
        if not session.try_acquire_dispatch():
            logger.info(
                "Dispatch already in flight, skipping this tick",
                extra={"session_id": session.id},
            )
            return
        try:
            logger.info(
                "Checking session for sheet %s",
                work.sheet_id,
                extra={"session_id": session.id},
            )
            result = await self.dispatch_client.dispatch(
                session.client,
                work.sheet_id,
                work.spreadsheet_id,
                DispatchMode.SCHEDULED,
            )
        except Exception as exc:
            failure = DispatchFailure(session.id, exc)
            logger.exception(
                "Error processing scheduled messages",
                extra={"session_id": failure.session_id},
            )
            return
        finally:
            session.release_dispatch()
        if result.scheduled_exhausted and session.clear_scheduled_work(only_if=work):
            logger.info(
                "All scheduled messages sent for sheet %s, stopping checks",
                work.sheet_id,
                extra={"session_id": session.id},
            )

    def _evict_stale_work(self, sessions: list[Session]) -> None:
        """Clear scheduled work left on sessions outside READY past the TTL."""
        ttl = self.scheduled_work_ttl_seconds
        if ttl is None:
            return
        now = time.monotonic()
        stale_ids: set[str] = set()
        for session in sessions:
            work = session.scheduled_work
            if work is None or session.status is SessionStatus.READY:
                continue
            since = self._stale_since.setdefault(session.id, now)
            if now - since >= ttl and session.clear_scheduled_work(only_if=work):
                logger.warning(
                    "Evicted scheduled work from session not ready for %.0fs",
                    now - since,
                    extra={"session_id": session.id},
                )
                continue
            stale_ids.add(session.id)
        self._stale_since = {
            session_id: since
            for session_id, since in self._stale_since.items()
            if session_id in stale_ids
        }
