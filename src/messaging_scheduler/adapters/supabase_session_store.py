"""Supabase-backed store for session identifiers."""

from dataclasses import dataclass

from supabase import Client

from messaging_scheduler.services.sessions import SessionIdStore


@dataclass
class SupabaseSessionIdStore(SessionIdStore):
    """Supabase implementation keeping one row per session id."""

    client: Client
    table: str = "messaging_sessions"

    def load(self) -> list[str]:
        """Return stored session ids in creation order."""
        response = (
            self.client.table(self.table)
            .select("session_id")
            .order("created_at")
            .execute()
        )
        return [str(row["session_id"]) for row in response.data or []]

    def save(self, session_ids: list[str]) -> None:
        """Insert new ids and delete ids no longer present."""
        existing = set(self.load())
        wanted = list(dict.fromkeys(session_ids))
        added = [session_id for session_id in wanted if session_id not in existing]
        removed = sorted(existing.difference(wanted))
        if added:
            self.client.table(self.table).insert(
                [{"session_id": session_id} for session_id in added]
            ).execute()
        if removed:
            self.client.table(self.table).delete().in_("session_id", removed).execute()
