"""Domain models for photobooth sessions and their photos."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from photobooth_gallery.domain.media import MediaKind


class SessionStatus(Enum):
    """Lifecycle status of a session."""

    ACTIVE = "active"
    COMPLETED = "completed"
    DELETED = "deleted"


class ReconcileOutcome(Enum):
    """How a reconciliation attempt ended."""

    RECONCILED = "reconciled"
    BELOW_THRESHOLD = "below_threshold"
    UNSTABLE = "unstable"
    MISSING_FOLDER = "missing_folder"
    RETIRED = "retired"


def derive_session_id(folder_name: str) -> str:
    """Return the session id for a watched folder.

    The folder name is the identity, so rescanning a folder always resolves
    to the same session and gallery URLs stay predictable.
    """
    return folder_name


@dataclass(frozen=True)
class SessionRecord:
    """Represents a persisted photobooth session."""

    session_id: str
    folder_name: str
    status: SessionStatus
    access_token: str
    created_at: datetime
    updated_at: datetime | None = None
    deleted_at: datetime | None = None
    is_public: bool = False
    layout_used: str = "none"


@dataclass(frozen=True)
class PhotoDraft:
    """A numbered photo ready to be persisted."""

    photo_number: int
    original_path: str
    processed_path: str
    media_kind: MediaKind
    processed_at: datetime
    media_path: str | None = None

    def for_session(self, session_id: str) -> "PhotoRecord":
        """Return the record this draft becomes once persisted."""
        return PhotoRecord(
            session_id=session_id,
            photo_number=self.photo_number,
            original_path=self.original_path,
            processed_path=self.processed_path,
            media_kind=self.media_kind,
            processed_at=self.processed_at,
            media_path=self.media_path,
        )


@dataclass(frozen=True)
class PhotoRecord:
    """Represents a persisted photo belonging to a session."""

    session_id: str
    photo_number: int
    original_path: str
    processed_path: str
    media_kind: MediaKind
    processed_at: datetime
    media_path: str | None = None


@dataclass(frozen=True)
class ReconciliationResult:
    """Summary of one reconciliation attempt for a folder."""

    session_id: str
    folder_name: str
    outcome: ReconcileOutcome
    files_found: int
    photos_persisted: int = 0
    dropped_files: list[str] = field(default_factory=list)
    created: bool = False
    resurrected: bool = False

    @property
    def partial(self) -> bool:
        """Return True when some files were dropped from the photo set."""
        return bool(self.dropped_files)

    def to_dict(self) -> dict[str, object]:
        """Serialize the result for API responses."""
        return {
            "session_id": self.session_id,
            "folder_name": self.folder_name,
            "outcome": self.outcome.value,
            "files_found": self.files_found,
            "photos_persisted": self.photos_persisted,
            "dropped_files": list(self.dropped_files),
            "created": self.created,
            "resurrected": self.resurrected,
            "partial": self.partial,
        }
