"""Message dispatch service client."""

from dataclasses import dataclass
from typing import Protocol

import httpx

from messaging_scheduler.adapters.messaging_client import MessagingClient
from messaging_scheduler.domain.dispatch import DispatchMode, DispatchResult


class DispatchClient(Protocol):
    """Interface for the external message dispatch service."""

    async def dispatch(
        self,
        client: MessagingClient,
        sheet_id: str,
        spreadsheet_id: str,
        mode: DispatchMode,
    ) -> DispatchResult:
        """Process due messages from a sheet through the session's client."""


@dataclass
class HttpxDispatchClient(DispatchClient):
    """HTTPX-backed dispatch service client."""

    base_url: str
    http_client: httpx.AsyncClient
    timeout: float | None = None

    @classmethod
    def create(cls, base_url: str, timeout: float | None = None) -> "HttpxDispatchClient":
        """Create a dispatch client with a managed httpx session."""
        return cls(base_url=base_url, http_client=httpx.AsyncClient(), timeout=timeout)

    async def dispatch(
        self,
        client: MessagingClient,
        sheet_id: str,
        spreadsheet_id: str,
        mode: DispatchMode,
    ) -> DispatchResult:
        """Run one dispatch and return the parsed result."""
        url = f"{self.base_url.rstrip('/')}/dispatch"
        payload: dict[str, object] = {
            "sessionId": client.session_id,
            "sheetName": sheet_id,
            "spreadsheetId": spreadsheet_id,
            **mode.as_flags(),
        }
        response = await self.http_client.post(url, json=payload, timeout=self.timeout)
        response.raise_for_status()
        return DispatchResult.model_validate(response.json() or {})

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
