"""Supabase repository for operator-level settings."""

from dataclasses import dataclass
from datetime import UTC, datetime

from supabase import Client, PostgrestAPIError

from photobooth_gallery.services.reconciler import PersistenceError
from photobooth_gallery.services.watch_root import GlobalSettingsRepository

_SETTINGS_ROW_ID = 1


@dataclass
class SupabaseGlobalSettingsRepository(GlobalSettingsRepository):
    """Supabase implementation for the single global settings row."""

    client: Client

    def get_watch_folder(self) -> str | None:
        """Return the stored watch folder override."""
        response = (
            self.client.table("global_settings")
            .select("watch_folder_path")
            .eq("id", _SETTINGS_ROW_ID)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return response.data[0].get("watch_folder_path") or None

    def set_watch_folder(self, path: str) -> None:
        """Store a new watch folder override."""
        try:
            self.client.table("global_settings").upsert(
                {
                    "id": _SETTINGS_ROW_ID,
                    "watch_folder_path": path,
                    "updated_at": datetime.now(tz=UTC).isoformat(),
                }
            ).execute()
        except PostgrestAPIError as exc:
            raise PersistenceError("Failed to store watch folder") from exc
