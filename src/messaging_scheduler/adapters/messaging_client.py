"""Messaging bridge client adapter."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol

import httpx

from messaging_scheduler.domain.sessions import LifecycleEvent

logger = logging.getLogger(__name__)

LifecycleHandler = Callable[[LifecycleEvent], None]


class MessagingClient(Protocol):
    """Per-session handle to the underlying messaging connection."""

    session_id: str

    def subscribe(self, handler: LifecycleHandler) -> None:
        """Register a callback for lifecycle events."""

    def emit(self, event: LifecycleEvent) -> None:
        """Deliver a lifecycle event to subscribed callbacks."""

    async def initialize(self) -> None:
        """Start the connection; events follow asynchronously."""


@dataclass
class HttpxMessagingClient(MessagingClient):
    """Messaging client backed by an HTTP bridge that calls back via webhook."""

    session_id: str
    http_client: httpx.AsyncClient
    base_url: str
    webhook_url: str | None = None
    handlers: list[LifecycleHandler] = field(default_factory=list)

    def subscribe(self, handler: LifecycleHandler) -> None:
        """Register a callback for lifecycle events."""
        self.handlers.append(handler)

    def emit(self, event: LifecycleEvent) -> None:
        """Deliver an event received from the bridge."""
        for handler in list(self.handlers):
            handler(event)

    async def initialize(self) -> None:
        """Ask the bridge to start (or restore) this session."""
        url = f"{self.base_url.rstrip('/')}/sessions/{self.session_id}/initialize"
        payload: dict[str, object] = {"sessionId": self.session_id}
        if self.webhook_url is not None:
            payload["webhookUrl"] = self.webhook_url
        response = await self.http_client.post(url, json=payload, timeout=30)
        response.raise_for_status()
        logger.info("Messaging client initializing", extra={"session_id": self.session_id})


@dataclass
class HttpxMessagingBridge:
    """Factory for per-session bridge clients sharing one HTTP session."""

    base_url: str
    webhook_url: str | None
    http_client: httpx.AsyncClient

    @classmethod
    def create(cls, base_url: str, webhook_url: str | None) -> "HttpxMessagingBridge":
        """Create a bridge factory with a managed httpx session."""
        return cls(
            base_url=base_url, webhook_url=webhook_url, http_client=httpx.AsyncClient()
        )

    def client_for(self, session_id: str) -> HttpxMessagingClient:
        """Return a new client handle for a session."""
        return HttpxMessagingClient(
            session_id=session_id,
            http_client=self.http_client,
            base_url=self.base_url,
            webhook_url=self.webhook_url,
        )

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
