"""Supabase-backed session repository."""

from dataclasses import dataclass
from datetime import UTC, datetime

from supabase import Client, PostgrestAPIError

from photobooth_gallery.domain.sessions import SessionRecord, SessionStatus
from photobooth_gallery.services.reconciler import PersistenceError, SessionRepository

_SESSION_COLUMNS = (
    "session_id, folder_name, status, access_token, is_public, layout_used, "
    "created_at, updated_at, deleted_at"
)


@dataclass
class SupabaseSessionRepository(SessionRepository):
    """Supabase implementation for photobooth sessions."""

    client: Client

    def get_session(self, session_id: str) -> SessionRecord | None:
        """Return a session by id, if present."""
        response = (
            self.client.table("sessions")
            .select(_SESSION_COLUMNS)
            .eq("session_id", session_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _to_session(response.data[0])

    def create_session(
        self,
        session_id: str,
        folder_name: str,
        access_token: str,
        created_at: datetime,
    ) -> SessionRecord:
        """Create a session row and return it."""
        try:
            response = (
                self.client.table("sessions")
                .insert(
                    {
                        "session_id": session_id,
                        "folder_name": folder_name,
                        "status": SessionStatus.ACTIVE.value,
                        "access_token": access_token,
                        "is_public": False,
                        "layout_used": "none",
                        "created_at": created_at.isoformat(),
                        "updated_at": created_at.isoformat(),
                    }
                )
                .execute()
            )
        except PostgrestAPIError as exc:
            raise PersistenceError(f"Failed to create session {session_id}") from exc
        if not response.data:
            raise PersistenceError(f"Failed to create session {session_id}")
        return _to_session(response.data[0])

    def list_sessions(self, statuses: list[SessionStatus]) -> list[SessionRecord]:
        """Return sessions with the given statuses, oldest first."""
        response = (
            self.client.table("sessions")
            .select(_SESSION_COLUMNS)
            .in_("status", [status.value for status in statuses])
            .order("created_at")
            .execute()
        )
        return [_to_session(row) for row in response.data or []]

    def mark_deleted(self, session_id: str, deleted_at: datetime) -> None:
        """Soft-delete a session."""
        self.client.table("sessions").update(
            {
                "status": SessionStatus.DELETED.value,
                "deleted_at": deleted_at.isoformat(),
                "updated_at": datetime.now(tz=UTC).isoformat(),
            }
        ).eq("session_id", session_id).execute()


def _to_session(row: dict[str, object]) -> SessionRecord:
    created_at = _parse_timestamp(row.get("created_at"))
    return SessionRecord(
        session_id=str(row["session_id"]),
        folder_name=str(row["folder_name"]),
        status=SessionStatus(row["status"]),
        access_token=str(row.get("access_token") or ""),
        created_at=created_at or datetime.now(tz=UTC),
        updated_at=_parse_timestamp(row.get("updated_at")),
        deleted_at=_parse_timestamp(row.get("deleted_at")),
        is_public=bool(row.get("is_public", False)),
        layout_used=str(row.get("layout_used") or "none"),
    )


def _parse_timestamp(value: object) -> datetime | None:
    if isinstance(value, str) and value:
        parsed = datetime.fromisoformat(value)
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)
    return None
