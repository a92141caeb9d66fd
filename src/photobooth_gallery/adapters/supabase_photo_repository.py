"""Supabase-backed photo repository."""

from dataclasses import dataclass
from datetime import UTC, datetime

from supabase import Client, PostgrestAPIError

from photobooth_gallery.domain.media import MediaKind
from photobooth_gallery.domain.sessions import PhotoDraft, PhotoRecord
from photobooth_gallery.services.reconciler import PersistenceError, PhotoRepository

_PHOTO_COLUMNS = (
    "session_id, photo_number, original_path, processed_path, media_path, "
    "media_kind, processed_at"
)


@dataclass
class SupabasePhotoRepository(PhotoRepository):
    """Supabase implementation for session photos."""

    client: Client

    def replace_photos(
        self, session_id: str, photos: list[PhotoDraft], reactivate: bool
    ) -> int:
        """Replace a session's photos through the transactional RPC."""
        payload = [
            {
                "photo_number": photo.photo_number,
                "original_path": photo.original_path,
                "processed_path": photo.processed_path,
                "media_path": photo.media_path,
                "media_kind": photo.media_kind.value,
                "processed_at": photo.processed_at.isoformat(),
            }
            for photo in photos
        ]
        try:
            response = self.client.rpc(
                "replace_session_photos",
                {
                    "p_session_id": session_id,
                    "p_photos": payload,
                    "p_reactivate": reactivate,
                },
            ).execute()
        except PostgrestAPIError as exc:
            raise PersistenceError(
                f"Failed to replace photos for session {session_id}"
            ) from exc
        if response.data is None:
            raise PersistenceError(f"Failed to replace photos for session {session_id}")
        return int(response.data)

    def list_photos(self, session_id: str) -> list[PhotoRecord]:
        """Return a session's photos ordered by number."""
        response = (
            self.client.table("photos")
            .select(_PHOTO_COLUMNS)
            .eq("session_id", session_id)
            .order("photo_number")
            .execute()
        )
        return [_to_photo(row) for row in response.data or []]

    def count_photos_by_session(self, session_ids: list[str]) -> dict[str, int]:
        """Return photo counts keyed by session id."""
        if not session_ids:
            return {}
        response = (
            self.client.table("photos")
            .select("session_id")
            .in_("session_id", session_ids)
            .execute()
        )
        counts: dict[str, int] = {}
        for row in response.data or []:
            key = str(row["session_id"])
            counts[key] = counts.get(key, 0) + 1
        return counts


def _to_photo(row: dict[str, object]) -> PhotoRecord:
    processed_at = row.get("processed_at")
    return PhotoRecord(
        session_id=str(row["session_id"]),
        photo_number=int(row["photo_number"]),
        original_path=str(row["original_path"]),
        processed_path=str(row["processed_path"]),
        media_path=row.get("media_path") or None,
        media_kind=MediaKind(row.get("media_kind") or MediaKind.IMAGE.value),
        processed_at=(
            datetime.fromisoformat(processed_at)
            if isinstance(processed_at, str) and processed_at
            else datetime.now(tz=UTC)
        ),
    )
