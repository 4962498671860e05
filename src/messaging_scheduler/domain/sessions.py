"""Domain models for messaging sessions."""

from dataclasses import dataclass
from enum import StrEnum


class SessionStatus(StrEnum):
    """Authentication lifecycle state of a messaging session."""

    INITIALIZING = "INITIALIZING"
    QR_READY = "QR_READY"
    READY = "READY"
    AUTH_FAILURE = "AUTH_FAILURE"
    DISCONNECTED = "DISCONNECTED"


@dataclass(frozen=True)
class ScheduledWork:
    """Recurring dispatch target registered for a session."""

    sheet_id: str
    spreadsheet_id: str


@dataclass(frozen=True)
class AuthChallengeReceived:
    """The client produced a new authentication challenge (QR payload)."""

    payload: str


@dataclass(frozen=True)
class Authenticated:
    """The client finished authenticating."""


@dataclass(frozen=True)
class AuthFailed:
    """The client rejected the stored credentials."""

    reason: str | None = None


@dataclass(frozen=True)
class Disconnected:
    """The client was logged out or permanently disconnected."""

    reason: str | None = None


LifecycleEvent = AuthChallengeReceived | Authenticated | AuthFailed | Disconnected


@dataclass(frozen=True)
class SessionStatusView:
    """Read-only snapshot of a session for API consumers."""

    session_id: str
    status: SessionStatus
    auth_challenge: str | None
    failure_reason: str | None
    scheduled_work: ScheduledWork | None
