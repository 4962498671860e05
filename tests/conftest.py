"""Shared test fixtures."""

import pytest

from messaging_scheduler.config import Settings
from messaging_scheduler.containers import AppContainer, wire_listeners
from messaging_scheduler.services.registry import SessionRegistry
from messaging_scheduler.services.scheduler import SchedulerCoordinator
from messaging_scheduler.services.sessions import SessionService
from tests.fakes import FakeDispatchClient, FakeMessagingClient, InMemorySessionIdStore


@pytest.fixture
def settings() -> Settings:
    return Settings(
        api_token="test-token",
        client_bridge_url="http://bridge.local",
        dispatch_service_url="http://dispatch.local",
        scheduler_interval_seconds=3600,
    )


@pytest.fixture
def session_store() -> InMemorySessionIdStore:
    return InMemorySessionIdStore()


@pytest.fixture
def dispatch_client() -> FakeDispatchClient:
    return FakeDispatchClient()


@pytest.fixture
def registry() -> SessionRegistry:
    return SessionRegistry(client_factory=FakeMessagingClient)


@pytest.fixture
def scheduler(
    settings: Settings,
    registry: SessionRegistry,
    dispatch_client: FakeDispatchClient,
) -> SchedulerCoordinator:
    return SchedulerCoordinator(
        registry=registry,
        dispatch_client=dispatch_client,
        interval_seconds=settings.scheduler_interval_seconds,
    )


@pytest.fixture
def session_service(
    registry: SessionRegistry,
    scheduler: SchedulerCoordinator,
    session_store: InMemorySessionIdStore,
    dispatch_client: FakeDispatchClient,
) -> SessionService:
    service = SessionService(
        registry=registry,
        store=session_store,
        dispatch_client=dispatch_client,
    )
    wire_listeners(registry, scheduler, service)
    return service


@pytest.fixture
def container(
    settings: Settings,
    registry: SessionRegistry,
    scheduler: SchedulerCoordinator,
    session_service: SessionService,
) -> AppContainer:
    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        registry=registry,
        scheduler=scheduler,
        session_service=session_service,
        close_resources=close_resources,
    )
