import threading
from dataclasses import dataclass

from app.ingestion.models import FileCategory, UploadedFile


@dataclass
class UploadAttempt:
    """Everything needed to run, or re-run, one unit of ingestion.

    Exactly one input is set: ``file``, ``text`` or ``profile_url``.
    ``source_id`` is filled in once the record exists.
    """

    file_id: str
    owner_id: str
    category: FileCategory
    token: str | None
    file: UploadedFile | None = None
    text: str | None = None
    profile_url: str | None = None
    full_name: str | None = None
    company: str | None = None
    linkedin_access_token: str | None = None
    source_id: str | None = None
    failed_stage: str = ""

    @property
    def is_identity(self) -> bool:
        return self.profile_url is not None

    @property
    def display_name(self) -> str:
        if self.file is not None:
            return self.file.file_name
        if self.profile_url is not None:
            return self.profile_url
        return f"{self.category.value} text"


class AttemptRegistry:
    """Session-local attempts keyed by progress id, kept for retries."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._attempts: dict[str, UploadAttempt] = {}

    def register(self, attempt: UploadAttempt) -> None:
        with self._lock:
            self._attempts[attempt.file_id] = attempt

    def get(self, file_id: str) -> UploadAttempt | None:
        with self._lock:
            return self._attempts.get(file_id)

    def discard(self, file_id: str) -> None:
        with self._lock:
            self._attempts.pop(file_id, None)

    def clear(self) -> None:
        with self._lock:
            self._attempts.clear()
