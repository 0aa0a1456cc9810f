import copy
import threading
import uuid
from dataclasses import replace
from datetime import datetime, timezone

from app.database.models import NewSourceRecord, SourceRecord
from app.database.repositories.base import BaseSourceRecordStore, StatusPayload
from app.ingestion.exceptions import SourceNotFoundError
from app.ingestion.models import ProcessingStatus

_EPOCH = datetime.fromtimestamp(0, tz=timezone.utc)


class InMemorySourceRecordStore(BaseSourceRecordStore):
    """Process-local store for local development and tests.

    Records are copied on the way in and out so callers never share state
    with the store.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._records: dict[str, SourceRecord] = {}

    def create(self, record: NewSourceRecord) -> str:
        now = datetime.now(timezone.utc)
        source_id = str(uuid.uuid4())
        with self._lock:
            self._records[source_id] = SourceRecord(
                id=source_id,
                owner_id=record.owner_id,
                file_name=record.file_name,
                mime_type=record.mime_type,
                byte_size=record.byte_size,
                checksum=record.checksum,
                storage_path=record.storage_path,
                category=record.category,
                status=ProcessingStatus.PENDING,
                created_at=now,
                updated_at=now,
            )
        return source_id

    def update_status(
        self,
        source_id: str,
        status: ProcessingStatus,
        payload: StatusPayload = None,
        error: str | None = None,
        retryable: bool | None = None,
    ) -> None:
        with self._lock:
            current = self._records.get(source_id)
            if current is None:
                raise SourceNotFoundError(f"Source {source_id} not found")
            changes: dict[str, object] = {
                "status": status,
                "updated_at": datetime.now(timezone.utc),
            }
            if isinstance(payload, str):
                changes["raw_text"] = payload
            elif isinstance(payload, dict):
                changes["structured_data"] = copy.deepcopy(payload)
            if status is ProcessingStatus.FAILED:
                changes["processing_error"] = error
                changes["retryable"] = retryable
            else:
                changes["processing_error"] = None
                changes["retryable"] = None
            self._records[source_id] = replace(current, **changes)

    def find_by_id(self, source_id: str) -> SourceRecord:
        with self._lock:
            record = self._records.get(source_id)
            if record is None:
                raise SourceNotFoundError(f"Source {source_id} not found")
            return copy.deepcopy(record)

    def list_by_owner(self, owner_id: str) -> list[SourceRecord]:
        with self._lock:
            records = [copy.deepcopy(r) for r in self._records.values() if r.owner_id == owner_id]
        # dict preserves insertion order; reversed gives newest first on ties
        return sorted(reversed(records), key=lambda r: r.created_at or _EPOCH, reverse=True)

    def find_completed_by_checksum(self, owner_id: str, checksum: str) -> SourceRecord | None:
        for record in self.list_by_owner(owner_id):
            if record.checksum == checksum and record.status is ProcessingStatus.COMPLETED:
                return record
        return None
