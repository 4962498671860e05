"""Pydantic models for API and bridge webhook payloads."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from messaging_scheduler.domain.sessions import (
    AuthChallengeReceived,
    Authenticated,
    AuthFailed,
    Disconnected,
    LifecycleEvent,
    SessionStatusView,
)


class SendNowRequest(BaseModel):
    """Body of an on-demand dispatch request."""

    model_config = ConfigDict(populate_by_name=True)

    session_id: str | None = Field(default=None, alias="sessionId")
    mode: str | None = None
    sheet_name: str | None = Field(default=None, alias="sheetName")
    spreadsheet_id: str | None = Field(default=None, alias="spreadsheetId")


class ClientEventPayload(BaseModel):
    """Lifecycle event posted by the messaging bridge."""

    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(alias="sessionId")
    type: Literal["qr", "ready", "auth_failure", "disconnected"]
    qr: str | None = None
    reason: str | None = None

    @model_validator(mode="after")
    def require_challenge_payload(self) -> "ClientEventPayload":
        """Reject challenge events that carry no challenge."""
        if self.type == "qr" and not self.qr:
            raise ValueError("qr is required for qr events")
        return self

    def to_event(self) -> LifecycleEvent:
        """Convert the payload into a domain lifecycle event."""
        if self.type == "qr":
            return AuthChallengeReceived(payload=self.qr or "")
        if self.type == "ready":
            return Authenticated()
        if self.type == "auth_failure":
            return AuthFailed(reason=self.reason)
        return Disconnected(reason=self.reason)


def session_view_payload(view: SessionStatusView) -> dict[str, object]:
    """Serialize a session status view for JSON responses."""
    scheduled = view.scheduled_work
    return {
        "sessionId": view.session_id,
        "status": view.status.value,
        "qr": view.auth_challenge,
        "reason": view.failure_reason,
        "scheduledWork": (
            {"sheetName": scheduled.sheet_id, "spreadsheetId": scheduled.spreadsheet_id}
            if scheduled
            else None
        ),
    }
