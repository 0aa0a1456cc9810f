import threading
import uuid
from collections.abc import Callable
from dataclasses import replace

from app.logging.logger import Log
from app.progress.models import ProgressEntry, ProgressStatus


class ProgressReporter:
    """Ordered, in-memory list of progress entries for one session.

    Entries are frozen; every mutation replaces the entry under a lock so
    interleaved ticks and completion callbacks never lose an update.
    """

    def __init__(self, processing_ceiling: int = 90) -> None:
        self._lock = threading.Lock()
        self._entries: dict[str, ProgressEntry] = {}
        self._processing_ceiling = processing_ceiling

    def start(self, file_name: str, file_id: str | None = None) -> ProgressEntry:
        """Register a new upload and return its entry (status pending, 0%)."""
        entry = ProgressEntry(file_id=file_id or str(uuid.uuid4()), file_name=file_name)
        with self._lock:
            self._entries[entry.file_id] = entry
        return entry

    def bind_source(self, file_id: str, source_id: str) -> ProgressEntry | None:
        return self._replace(file_id, lambda entry: replace(entry, source_id=source_id))

    def update(
        self,
        file_id: str,
        status: ProgressStatus,
        progress: int | None = None,
    ) -> ProgressEntry | None:
        def apply(entry: ProgressEntry) -> ProgressEntry:
            value = entry.progress if progress is None else self._clamp(progress)
            return replace(entry, status=status, progress=value, error=None, retryable=None)

        return self._replace(file_id, apply)

    def advance(self, file_id: str, progress: int) -> ProgressEntry | None:
        """Move a running entry forward; progress never goes backwards.

        Values stay below 100 until ``complete`` is called.
        """

        def apply(entry: ProgressEntry) -> ProgressEntry:
            if entry.status.terminal:
                return entry
            value = max(entry.progress, min(self._clamp(progress), 99))
            return replace(entry, status=ProgressStatus.PROCESSING, progress=value)

        return self._replace(file_id, apply)

    def tick(self, step: int) -> None:
        """Advance every in-flight entry by ``step`` up to the processing ceiling."""
        with self._lock:
            for file_id, entry in self._entries.items():
                if entry.status.terminal or entry.progress >= self._processing_ceiling:
                    continue
                self._entries[file_id] = replace(
                    entry,
                    progress=min(entry.progress + step, self._processing_ceiling),
                )

    def complete(self, file_id: str, source_id: str | None = None) -> ProgressEntry | None:
        def apply(entry: ProgressEntry) -> ProgressEntry:
            return replace(
                entry,
                status=ProgressStatus.COMPLETED,
                progress=100,
                error=None,
                retryable=None,
                source_id=source_id or entry.source_id,
            )

        return self._replace(file_id, apply)

    def fail(self, file_id: str, error: str, retryable: bool) -> ProgressEntry | None:
        def apply(entry: ProgressEntry) -> ProgressEntry:
            return replace(entry, status=ProgressStatus.FAILED, error=error, retryable=retryable)

        return self._replace(file_id, apply)

    def claim_retry(self, file_id: str) -> ProgressEntry | None:
        """Atomically move a failed, retryable entry back to pending at 0%.

        Returns the failed entry as it was, or None when the entry is missing,
        not failed, or not retryable. Only one concurrent caller can win.
        """
        with self._lock:
            entry = self._entries.get(file_id)
            if entry is None or entry.status is not ProgressStatus.FAILED or not entry.retryable:
                return None
            self._entries[file_id] = replace(
                entry,
                status=ProgressStatus.PENDING,
                progress=0,
                error=None,
                retryable=None,
            )
            return entry

    def get(self, file_id: str) -> ProgressEntry | None:
        with self._lock:
            return self._entries.get(file_id)

    def entries(self) -> list[ProgressEntry]:
        with self._lock:
            return list(self._entries.values())

    def remove(self, file_id: str) -> ProgressEntry | None:
        with self._lock:
            return self._entries.pop(file_id, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def has_active_uploads(self) -> bool:
        return any(not entry.status.terminal for entry in self.entries())

    def failed_uploads(self) -> list[ProgressEntry]:
        return [e for e in self.entries() if e.status is ProgressStatus.FAILED]

    def completed_uploads(self) -> list[ProgressEntry]:
        return [e for e in self.entries() if e.status is ProgressStatus.COMPLETED]

    def _replace(
        self,
        file_id: str,
        apply: Callable[[ProgressEntry], ProgressEntry],
    ) -> ProgressEntry | None:
        with self._lock:
            entry = self._entries.get(file_id)
            if entry is None:
                Log.debug(f"Progress update for unknown upload {file_id} ignored")
                return None
            updated = apply(entry)
            self._entries[file_id] = updated
            return updated

    @staticmethod
    def _clamp(progress: int) -> int:
        return max(0, min(100, progress))
