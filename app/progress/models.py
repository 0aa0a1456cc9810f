from dataclasses import dataclass
from enum import Enum


class ProgressStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def terminal(self) -> bool:
        return self in (ProgressStatus.COMPLETED, ProgressStatus.FAILED)


@dataclass(frozen=True)
class ProgressEntry:
    """Session-local, advisory view of one upload.

    The source record stays authoritative; entries are never persisted.
    """

    file_id: str
    file_name: str
    status: ProgressStatus = ProgressStatus.PENDING
    progress: int = 0
    error: str | None = None
    retryable: bool | None = None
    source_id: str | None = None
