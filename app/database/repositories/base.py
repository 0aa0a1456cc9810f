from abc import ABC, abstractmethod
from typing import Any

from app.database.models import NewSourceRecord, SourceRecord
from app.ingestion.models import ProcessingStatus

StatusPayload = str | dict[str, Any] | None


class BaseSourceRecordStore(ABC):
    """Contract for persisting source records.

    Exactly one writer per record is assumed: every ``update_status`` call is
    a last-writer-wins patch without a concurrency token.
    """

    @abstractmethod
    def create(self, record: NewSourceRecord) -> str:
        """Insert a new record at PENDING and return its id."""

    @abstractmethod
    def update_status(
        self,
        source_id: str,
        status: ProcessingStatus,
        payload: StatusPayload = None,
        error: str | None = None,
        retryable: bool | None = None,
    ) -> None:
        """Patch the status of a record.

        A ``str`` payload is stored as raw text, a ``dict`` payload as
        structured data. ``error`` and ``retryable`` are stored only for
        FAILED; any other status clears them.

        Raises:
            SourceNotFoundError: if no record with this id exists.
        """

    @abstractmethod
    def find_by_id(self, source_id: str) -> SourceRecord:
        """Raises SourceNotFoundError if no record with this id exists."""

    @abstractmethod
    def list_by_owner(self, owner_id: str) -> list[SourceRecord]:
        """Return the owner's records, newest first."""

    @abstractmethod
    def find_completed_by_checksum(self, owner_id: str, checksum: str) -> SourceRecord | None:
        """Return the newest COMPLETED record of the owner with this checksum."""
