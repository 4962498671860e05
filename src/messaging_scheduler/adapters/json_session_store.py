"""JSON file store for session identifiers."""

import json
import logging
from dataclasses import dataclass
from pathlib import Path

from messaging_scheduler.services.sessions import SessionIdStore

logger = logging.getLogger(__name__)


@dataclass
class JsonFileSessionIdStore(SessionIdStore):
    """Keeps session ids as a JSON list in a local file."""

    path: Path

    def load(self) -> list[str]:
        """Return stored ids; unreadable files count as empty."""
        if not self.path.exists():
            return []
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            logger.exception("Error loading sessions file", extra={"path": str(self.path)})
            return []
        if not isinstance(data, list):
            logger.error("Sessions file is not a list", extra={"path": str(self.path)})
            return []
        return [str(item) for item in data]

    def save(self, session_ids: list[str]) -> None:
        """Write ids to the file, logging failures."""
        try:
            self.path.write_text(json.dumps(session_ids, indent=2), encoding="utf-8")
        except OSError:
            logger.exception("Error saving sessions file", extra={"path": str(self.path)})
