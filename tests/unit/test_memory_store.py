import pytest

from app.database.models import NewSourceRecord
from app.database.repositories.memory_store import InMemorySourceRecordStore
from app.ingestion.exceptions import SourceNotFoundError
from app.ingestion.models import FileCategory, ProcessingStatus


def _new_record(checksum: str = "a" * 64, owner: str = "user-1") -> NewSourceRecord:
    return NewSourceRecord(
        owner_id=owner,
        file_name="cv.pdf",
        mime_type="application/pdf",
        byte_size=10,
        checksum=checksum,
        storage_path=f"{owner}/2024/01/01/1_cv.pdf",
        category=FileCategory.RESUME,
    )


class TestCreate:
    def test_new_record_is_pending(self) -> None:
        store = InMemorySourceRecordStore()
        source_id = store.create(_new_record())

        record = store.find_by_id(source_id)
        assert record.status is ProcessingStatus.PENDING
        assert record.raw_text is None
        assert record.created_at is not None

    def test_ids_are_unique(self) -> None:
        store = InMemorySourceRecordStore()
        assert store.create(_new_record()) != store.create(_new_record())


class TestUpdateStatus:
    def test_payload_routing(self) -> None:
        store = InMemorySourceRecordStore()
        source_id = store.create(_new_record())

        store.update_status(source_id, ProcessingStatus.PROCESSING, "raw")
        store.update_status(source_id, ProcessingStatus.COMPLETED, {"skills": []})

        record = store.find_by_id(source_id)
        assert record.raw_text == "raw"
        assert record.structured_data == {"skills": []}
        assert record.status is ProcessingStatus.COMPLETED

    def test_non_failed_status_clears_error(self) -> None:
        store = InMemorySourceRecordStore()
        source_id = store.create(_new_record())
        store.update_status(source_id, ProcessingStatus.FAILED, error="boom", retryable=True)

        store.update_status(source_id, ProcessingStatus.PENDING)

        record = store.find_by_id(source_id)
        assert record.processing_error is None
        assert record.retryable is None

    def test_unknown_id_raises(self) -> None:
        with pytest.raises(SourceNotFoundError):
            InMemorySourceRecordStore().update_status("nope", ProcessingStatus.PROCESSING)

    def test_returned_records_are_copies(self) -> None:
        store = InMemorySourceRecordStore()
        source_id = store.create(_new_record())
        store.update_status(source_id, ProcessingStatus.COMPLETED, {"skills": ["Go"]})

        record = store.find_by_id(source_id)
        assert record.structured_data is not None
        record.structured_data["skills"].append("Rust")

        assert store.find_by_id(source_id).structured_data == {"skills": ["Go"]}


class TestQueries:
    def test_list_by_owner_newest_first(self) -> None:
        store = InMemorySourceRecordStore()
        first = store.create(_new_record())
        second = store.create(_new_record())
        store.create(_new_record(owner="someone-else"))

        ids = [r.id for r in store.list_by_owner("user-1")]
        assert ids == [second, first]

    def test_find_completed_by_checksum_ignores_other_statuses(self) -> None:
        store = InMemorySourceRecordStore()
        pending = store.create(_new_record())
        completed = store.create(_new_record())
        store.update_status(completed, ProcessingStatus.COMPLETED, {"skills": []})

        match = store.find_completed_by_checksum("user-1", "a" * 64)

        assert match is not None
        assert match.id == completed
        assert match.id != pending

    def test_find_completed_by_checksum_scoped_to_owner(self) -> None:
        store = InMemorySourceRecordStore()
        source_id = store.create(_new_record(owner="other"))
        store.update_status(source_id, ProcessingStatus.COMPLETED, {})

        assert store.find_completed_by_checksum("user-1", "a" * 64) is None
