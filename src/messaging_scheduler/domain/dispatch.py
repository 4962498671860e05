"""Models for message dispatch requests and results."""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class DispatchMode(StrEnum):
    """Which messages a dispatch call should process."""

    INSTANT = "instant"
    SCHEDULED = "scheduled"
    COMBINED = "combined"

    @staticmethod
    def normalize(raw: str | None) -> str:
        """Lowercase a user-supplied mode name, defaulting to combined."""
        return (raw or DispatchMode.COMBINED.value).lower()

    @classmethod
    def parse(cls, raw: str | None) -> "DispatchMode":
        """Parse a user-supplied mode, falling back to combined."""
        try:
            return cls(cls.normalize(raw))
        except ValueError:
            return cls.COMBINED

    @classmethod
    def names_known_mode(cls, raw: str | None) -> bool:
        """Return true when ``raw`` names one of the modes exactly."""
        return cls.normalize(raw) in {mode.value for mode in cls}

    @property
    def registers_scheduled_work(self) -> bool:
        """Return true when this mode enables recurring processing."""
        return self in {DispatchMode.SCHEDULED, DispatchMode.COMBINED}

    def as_flags(self) -> dict[str, bool]:
        """Return the mode as the dispatch service's boolean flags."""
        return {
            "instantMode": self is DispatchMode.INSTANT,
            "scheduledMode": self is DispatchMode.SCHEDULED,
            "combinedMode": self is DispatchMode.COMBINED,
        }


class DispatchResult(BaseModel):
    """Result reported by the message dispatch service."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    scheduled_messages_remaining: int | None = Field(
        default=None, alias="scheduledMessagesRemaining"
    )

    @property
    def scheduled_exhausted(self) -> bool:
        """Return true when no scheduled messages remain for the sheet."""
        return self.scheduled_messages_remaining == 0
