"""Tests for container wiring."""

import asyncio
from pathlib import Path

from messaging_scheduler.adapters.json_session_store import JsonFileSessionIdStore
from messaging_scheduler.config import Settings
from messaging_scheduler.containers import build_container
from messaging_scheduler.services.scheduler import SchedulerState


def test_build_container_creates_services(settings: Settings, tmp_path: Path) -> None:
    sessions_file = tmp_path / "sessions.json"
    container = build_container(
        settings.model_copy(update={"sessions_file": str(sessions_file)})
    )

    store = container.session_service.store
    assert isinstance(store, JsonFileSessionIdStore)
    assert store.path == sessions_file
    assert container.scheduler.registry is container.registry
    assert container.scheduler.interval_seconds == 3600
    assert container.scheduler.state is SchedulerState.STOPPED
    asyncio.run(container.close_resources())


def test_container_registration_starts_scheduler(
    settings: Settings, tmp_path: Path
) -> None:
    container = build_container(
        settings.model_copy(update={"sessions_file": str(tmp_path / "s.json")})
    )

    async def scenario() -> None:
        session = container.registry.create_session("s1")
        session.register_scheduled_work("Sheet1", "SS1")
        assert container.scheduler.state is SchedulerState.RUNNING
        await container.scheduler.shutdown()
        await container.close_resources()

    asyncio.run(scenario())
