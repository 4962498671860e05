"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path

from supabase import create_client

from messaging_scheduler.adapters.dispatch_client import HttpxDispatchClient
from messaging_scheduler.adapters.json_session_store import JsonFileSessionIdStore
from messaging_scheduler.adapters.messaging_client import HttpxMessagingBridge
from messaging_scheduler.adapters.supabase_session_store import (
    SupabaseSessionIdStore,
)
from messaging_scheduler.config import Settings
from messaging_scheduler.services.registry import SessionRegistry
from messaging_scheduler.services.scheduler import SchedulerCoordinator
from messaging_scheduler.services.sessions import SessionIdStore, SessionService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    registry: SessionRegistry
    scheduler: SchedulerCoordinator
    session_service: SessionService
    close_resources: Callable[[], Awaitable[None]]


def wire_listeners(
    registry: SessionRegistry,
    scheduler: SchedulerCoordinator,
    session_service: SessionService,
) -> None:
    """Connect registry events to the scheduler and identifier store."""
    registry.add_scheduled_work_listener(lambda _session: scheduler.start())
    registry.add_removal_listener(session_service.forget_session)


def build_session_store(settings: Settings) -> SessionIdStore:
    """Pick the identifier store for the configured backend."""
    if settings.uses_supabase:
        supabase_client = create_client(
            settings.supabase_url, settings.supabase_service_key
        )
        return SupabaseSessionIdStore(supabase_client, table=settings.sessions_table)
    return JsonFileSessionIdStore(Path(settings.sessions_file))


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    bridge = HttpxMessagingBridge.create(
        base_url=resolved_settings.client_bridge_url,
        webhook_url=resolved_settings.client_webhook_url,
    )
    dispatch_client = HttpxDispatchClient.create(
        base_url=resolved_settings.dispatch_service_url,
        timeout=resolved_settings.dispatch_timeout_seconds,
    )
    registry = SessionRegistry(client_factory=bridge.client_for)
    scheduler = SchedulerCoordinator(
        registry=registry,
        dispatch_client=dispatch_client,
        interval_seconds=resolved_settings.scheduler_interval_seconds,
        scheduled_work_ttl_seconds=resolved_settings.scheduled_work_ttl_seconds,
    )
    session_service = SessionService(
        registry=registry,
        store=build_session_store(resolved_settings),
        dispatch_client=dispatch_client,
    )
    wire_listeners(registry, scheduler, session_service)

    async def close_resources() -> None:
        await bridge.close()
        await dispatch_client.close()

    return AppContainer(
        settings=resolved_settings,
        registry=registry,
        scheduler=scheduler,
        session_service=session_service,
        close_resources=close_resources,
    )
