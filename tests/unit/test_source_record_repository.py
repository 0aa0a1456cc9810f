from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import psycopg
import pytest
from psycopg.types.json import Jsonb

from app.database.connection import PoolNotInitializedError
from app.database.models import NewSourceRecord, SourceRecord
from app.database.repositories.source_record_repository import SourceRecordRepository
from app.ingestion.exceptions import SourceNotFoundError, TransportError
from app.ingestion.models import FileCategory, ProcessingStatus

_REPO = "app.database.repositories.source_record_repository.get_connection"


def _make_row(**overrides: object) -> dict:
    row = {
        "id": "11111111-2222-3333-4444-555555555555",
        "user_id": "user-1",
        "file_name": "cv.pdf",
        "file_type": "application/pdf",
        "file_size": 2048,
        "file_checksum": "a" * 64,
        "storage_path": "user-1/2024/01/01/1_cv.pdf",
        "source_type": "cover_letter",
        "processing_status": "failed",
        "raw_text": "text",
        "structured_data": None,
        "processing_error": "Analysis failed: boom",
        "processing_retryable": True,
        "created_at": datetime(2024, 1, 1, tzinfo=timezone.utc),
        "updated_at": datetime(2024, 1, 2, tzinfo=timezone.utc),
    }
    row.update(overrides)
    return row


def _mock_connection(mock_get_conn: MagicMock) -> tuple[MagicMock, MagicMock]:
    """Wire up a mock connection + cursor and return (mock_conn, mock_cursor)."""
    mock_cursor = MagicMock()
    mock_conn = MagicMock()
    mock_conn.cursor.return_value.__enter__ = MagicMock(return_value=mock_cursor)
    mock_conn.cursor.return_value.__exit__ = MagicMock(return_value=False)
    mock_get_conn.return_value.__enter__ = MagicMock(return_value=mock_conn)
    mock_get_conn.return_value.__exit__ = MagicMock(return_value=False)
    return mock_conn, mock_cursor


def _new_record() -> NewSourceRecord:
    return NewSourceRecord(
        owner_id="user-1",
        file_name="cv.pdf",
        mime_type="application/pdf",
        byte_size=2048,
        checksum="a" * 64,
        storage_path="user-1/2024/01/01/1_cv.pdf",
        category=FileCategory.COVER_LETTER,
    )


class TestCreate:
    @patch(_REPO)
    def test_inserts_pending_record_and_returns_id(self, mock_get_conn: MagicMock) -> None:
        mock_conn, mock_cursor = _mock_connection(mock_get_conn)
        mock_cursor.fetchone.return_value = ("new-id",)

        source_id = SourceRecordRepository().create(_new_record())

        assert source_id == "new-id"
        params = mock_cursor.execute.call_args[0][1]
        assert params[6] == "cover_letter"
        assert params[7] == "pending"
        mock_conn.commit.assert_called_once()


class TestUpdateStatus:
    @patch(_REPO)
    def test_string_payload_sets_raw_text(self, mock_get_conn: MagicMock) -> None:
        _conn, mock_cursor = _mock_connection(mock_get_conn)
        mock_cursor.rowcount = 1

        SourceRecordRepository().update_status("id-1", ProcessingStatus.PROCESSING, "hello")

        sql, params = mock_cursor.execute.call_args[0]
        assert "raw_text = %s" in sql
        assert "processing_error = NULL" in sql
        assert params == ["processing", "hello", "id-1"]

    @patch(_REPO)
    def test_dict_payload_sets_structured_data(self, mock_get_conn: MagicMock) -> None:
        _conn, mock_cursor = _mock_connection(mock_get_conn)
        mock_cursor.rowcount = 1

        SourceRecordRepository().update_status(
            "id-1", ProcessingStatus.COMPLETED, {"skills": ["Python"]}
        )

        sql, params = mock_cursor.execute.call_args[0]
        assert "structured_data = %s" in sql
        assert isinstance(params[1], Jsonb)

    @patch(_REPO)
    def test_failed_sets_error_and_retryable(self, mock_get_conn: MagicMock) -> None:
        _conn, mock_cursor = _mock_connection(mock_get_conn)
        mock_cursor.rowcount = 1

        SourceRecordRepository().update_status(
            "id-1", ProcessingStatus.FAILED, error="boom", retryable=False
        )

        sql, params = mock_cursor.execute.call_args[0]
        assert "processing_error = %s" in sql
        assert params == ["failed", "boom", False, "id-1"]

    @patch(_REPO)
    def test_missing_record_raises(self, mock_get_conn: MagicMock) -> None:
        _conn, mock_cursor = _mock_connection(mock_get_conn)
        mock_cursor.rowcount = 0

        with pytest.raises(SourceNotFoundError, match="Source id-9 not found"):
            SourceRecordRepository().update_status("id-9", ProcessingStatus.PROCESSING)


class TestFind:
    @patch(_REPO)
    def test_find_by_id_maps_row(self, mock_get_conn: MagicMock) -> None:
        _conn, mock_cursor = _mock_connection(mock_get_conn)
        mock_cursor.fetchone.return_value = _make_row()

        record = SourceRecordRepository().find_by_id("11111111-2222-3333-4444-555555555555")

        assert isinstance(record, SourceRecord)
        assert record.category is FileCategory.COVER_LETTER
        assert record.status is ProcessingStatus.FAILED
        assert record.processing_error == "Analysis failed: boom"
        assert record.retryable is True

    @patch(_REPO)
    def test_find_by_id_raises_when_missing(self, mock_get_conn: MagicMock) -> None:
        _conn, mock_cursor = _mock_connection(mock_get_conn)
        mock_cursor.fetchone.return_value = None

        with pytest.raises(SourceNotFoundError):
            SourceRecordRepository().find_by_id("missing")

    @patch(_REPO)
    def test_list_by_owner(self, mock_get_conn: MagicMock) -> None:
        _conn, mock_cursor = _mock_connection(mock_get_conn)
        mock_cursor.fetchall.return_value = [_make_row(id="b"), _make_row(id="a")]

        records = SourceRecordRepository().list_by_owner("user-1")

        assert [r.id for r in records] == ["b", "a"]

    @patch(_REPO)
    def test_find_completed_by_checksum_returns_none(self, mock_get_conn: MagicMock) -> None:
        _conn, mock_cursor = _mock_connection(mock_get_conn)
        mock_cursor.fetchone.return_value = None

        assert SourceRecordRepository().find_completed_by_checksum("user-1", "a" * 64) is None
        params = mock_cursor.execute.call_args[0][1]
        assert params == ("user-1", "a" * 64, "completed")


class TestDriverErrors:
    @patch(_REPO)
    def test_operational_error_is_retryable(self, mock_get_conn: MagicMock) -> None:
        mock_get_conn.return_value.__enter__ = MagicMock(
            side_effect=psycopg.OperationalError("connection refused")
        )
        mock_get_conn.return_value.__exit__ = MagicMock(return_value=False)

        with pytest.raises(TransportError) as exc_info:
            SourceRecordRepository().find_by_id("id-1")
        assert exc_info.value.retryable is True

    @patch(_REPO)
    def test_other_driver_error_is_not_retryable(self, mock_get_conn: MagicMock) -> None:
        _conn, mock_cursor = _mock_connection(mock_get_conn)
        mock_cursor.execute.side_effect = psycopg.errors.UndefinedTable("no sources")

        with pytest.raises(TransportError) as exc_info:
            SourceRecordRepository().list_by_owner("user-1")
        assert exc_info.value.retryable is False

    @patch(_REPO, side_effect=PoolNotInitializedError("Connection pool not initialized."))
    def test_uninitialized_pool_is_transport_error(self, _mock_get_conn: MagicMock) -> None:
        with pytest.raises(TransportError, match="Database unavailable") as exc_info:
            SourceRecordRepository().create(_new_record())
        assert exc_info.value.retryable is False
