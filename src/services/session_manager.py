"""
In-memory store for upload sessions.

An upload session lives between "analyze" (the photo has been scanned and
garments detected) and "process" (the selected garments are stored). It
holds the source photo, the detected items with their selection flags and
the pipeline's current step and progress, so a client can poll it.

Sessions are kept per user and expire after a period of inactivity.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Dict, Generic, List, Optional, TypeVar
import threading

from config.settings import get_settings
from core.errors import InvalidRequestError
from core.logging import LoggerMixin
from wardrobe.images import ImagePayload
from wardrobe.models import DetectedItem


T = TypeVar("T")

BUSY_MESSAGE = "Your items are still being added. Please wait."


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UploadStep(str, Enum):
    """Where an upload is in the pipeline."""
    IDLE = "idle"
    ANALYZING = "analyzing"
    GENERATING_IMAGES = "generating-images"
    UPLOADING_IMAGES = "uploading-images"
    SAVING = "saving"
    COMPLETE = "complete"


BUSY_STEPS = frozenset({
    UploadStep.ANALYZING,
    UploadStep.GENERATING_IMAGES,
    UploadStep.UPLOADING_IMAGES,
    UploadStep.SAVING,
})


@dataclass
class UploadProgress:
    current_item: int = 0
    total_items: int = 0


@dataclass
class UploadSession:
    """State of one user's upload."""

    user_id: str
    image: ImagePayload
    items: List[DetectedItem] = field(default_factory=list)
    step: UploadStep = UploadStep.IDLE
    progress: UploadProgress = field(default_factory=UploadProgress)
    error: Optional[str] = None

    @property
    def is_busy(self) -> bool:
        return self.step in BUSY_STEPS

    def selected_items(self) -> List[DetectedItem]:
        return [item for item in self.items if item.selected]

    def find_item(self, item_id: str) -> Optional[DetectedItem]:
        for item in self.items:
            if item.id == item_id:
                return item
        return None

    def replace_item(self, updated: DetectedItem) -> None:
        self.items = [updated if item.id == updated.id else item for item in self.items]

    def set_all_selected(self, selected: bool) -> None:
        self.items = [item.model_copy(update={"selected": selected}) for item in self.items]


@dataclass
class SessionData(Generic[T]):
    """Container for session data with metadata."""

    data: T
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)
    ttl_seconds: int = 3600

    def is_expired(self) -> bool:
        """Expired once idle for longer than the TTL."""
        return _utcnow() > self.updated_at + timedelta(seconds=self.ttl_seconds)

    def touch(self) -> None:
        self.updated_at = _utcnow()


class UploadSessionStore(LoggerMixin):
    """
    Thread-safe in-memory upload session store.

    Usage:
        store = UploadSessionStore()
        store.set("user_123", UploadSession(user_id="user_123", image=payload))
        session = store.get("user_123")
        store.delete("user_123")

    Sessions are process-local: a multi-worker deployment needs sticky
    routing per user.
    """

    def __init__(self, ttl_seconds: int = 3600):
        self._ttl_seconds = ttl_seconds
        self._lock = threading.RLock()
        self._sessions: Dict[str, SessionData[UploadSession]] = {}

    def _live_entry(self, user_id: str) -> Optional[SessionData[UploadSession]]:
        """Caller holds the lock. Drops the entry if it has expired."""
        entry = self._sessions.get(user_id)
        if entry is None:
            return None
        if entry.is_expired():
            del self._sessions[user_id]
            self.logger.info("Upload session expired", user_id=user_id)
            return None
        return entry

    def get(self, user_id: str) -> Optional[UploadSession]:
        """Return the user's session, or None if missing or expired."""
        with self._lock:
            entry = self._live_entry(user_id)
            if entry is None:
                return None
            entry.touch()
            return entry.data

    def set(self, user_id: str, session: UploadSession) -> None:
        with self._lock:
            self._sessions[user_id] = SessionData(data=session, ttl_seconds=self._ttl_seconds)

    def replace_if_idle(self, user_id: str, session: UploadSession) -> None:
        """
        Store a new session unless the current one is mid-run.

        Raises:
            InvalidRequestError: if the user's session is busy
        """
        with self._lock:
            entry = self._live_entry(user_id)
            if entry is not None and entry.data.is_busy:
                raise InvalidRequestError(BUSY_MESSAGE)
            self._sessions[user_id] = SessionData(data=session, ttl_seconds=self._ttl_seconds)

    def begin(self, user_id: str, step: UploadStep) -> Optional[UploadSession]:
        """
        Move an idle session into ``step`` in one locked check-and-set.

        Only one caller can win; the rest see a busy session.

        Returns:
            The session, or None if the user has none

        Raises:
            InvalidRequestError: if the session is already busy
        """
        with self._lock:
            entry = self._live_entry(user_id)
            if entry is None:
                return None
            if entry.data.is_busy:
                raise InvalidRequestError(BUSY_MESSAGE)
            entry.data.step = step
            entry.touch()
            return entry.data

    def update_step(
        self,
        user_id: str,
        step: UploadStep,
        current_item: Optional[int] = None,
        total_items: Optional[int] = None,
    ) -> None:
        """Record pipeline progress on the user's session, if it still exists."""
        with self._lock:
            entry = self._sessions.get(user_id)
            if entry is None:
                return
            session = entry.data
            session.step = step
            if current_item is not None:
                session.progress.current_item = current_item
            if total_items is not None:
                session.progress.total_items = total_items
            entry.touch()

    def delete(self, user_id: str) -> bool:
        with self._lock:
            return self._sessions.pop(user_id, None) is not None

    def clear_expired(self) -> int:
        """
        Clear all expired sessions.

        Returns:
            Number of sessions cleared
        """
        with self._lock:
            expired_keys = [k for k, v in self._sessions.items() if v.is_expired()]
            for key in expired_keys:
                del self._sessions[key]

        if expired_keys:
            self.logger.info("Cleared expired upload sessions", count=len(expired_keys))
        return len(expired_keys)

    def get_stats(self) -> Dict[str, int]:
        with self._lock:
            busy = sum(1 for v in self._sessions.values() if v.data.is_busy)
            return {"sessions": len(self._sessions), "busy": busy}


# Global store; sessions must survive across requests

_upload_sessions: Optional[UploadSessionStore] = None
_upload_sessions_lock = threading.Lock()


def get_upload_session_store() -> UploadSessionStore:
    """Get the upload session store singleton."""
    global _upload_sessions
    if _upload_sessions is None:
        with _upload_sessions_lock:
            if _upload_sessions is None:
                _upload_sessions = UploadSessionStore(
                    ttl_seconds=get_settings().upload_session_ttl_seconds
                )
    return _upload_sessions
