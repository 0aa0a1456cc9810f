from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

import psycopg
from psycopg.rows import dict_row
from psycopg.types.json import Jsonb

from app.database.connection import PoolNotInitializedError, get_connection
from app.database.models import NewSourceRecord, SourceRecord
from app.database.repositories.base import BaseSourceRecordStore, StatusPayload
from app.ingestion.exceptions import SourceNotFoundError, TransportError
from app.ingestion.models import FileCategory, ProcessingStatus

_COLUMNS = """
    id, user_id, file_name, file_type, file_size, file_checksum, storage_path,
    source_type, processing_status, raw_text, structured_data, processing_error,
    processing_retryable, created_at, updated_at
"""


@contextmanager
def _database_errors() -> Generator[None, None, None]:
    """Translate driver errors; connection problems are retryable, others are not."""
    try:
        yield
    except psycopg.OperationalError as exc:
        raise TransportError(f"Database unavailable: {exc}") from exc
    except psycopg.Error as exc:
        raise TransportError(f"Database error: {exc}", retryable=False) from exc
    except PoolNotInitializedError as exc:
        raise TransportError(f"Database unavailable: {exc}", retryable=False) from exc


class SourceRecordRepository(BaseSourceRecordStore):
    """Database operations for the sources table."""

    def create(self, record: NewSourceRecord) -> str:
        with _database_errors(), get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO sources
                    (user_id, file_name, file_type, file_size, file_checksum,
                     storage_path, source_type, processing_status)
                    VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
                    RETURNING id
                    """,
                    (
                        record.owner_id,
                        record.file_name,
                        record.mime_type,
                        record.byte_size,
                        record.checksum,
                        record.storage_path,
                        record.category.source_type,
                        ProcessingStatus.PENDING.value,
                    ),
                )
                row = cur.fetchone()
            conn.commit()

        if row is None:
            raise RuntimeError("Insert into sources returned no id")
        return str(row[0])

    def update_status(
        self,
        source_id: str,
        status: ProcessingStatus,
        payload: StatusPayload = None,
        error: str | None = None,
        retryable: bool | None = None,
    ) -> None:
        assignments = ["processing_status = %s", "updated_at = NOW()"]
        params: list[Any] = [status.value]

        if isinstance(payload, str):
            assignments.append("raw_text = %s")
            params.append(payload)
        elif isinstance(payload, dict):
            assignments.append("structured_data = %s")
            params.append(Jsonb(payload))

        if status is ProcessingStatus.FAILED:
            assignments.extend(["processing_error = %s", "processing_retryable = %s"])
            params.extend([error, retryable])
        else:
            assignments.extend(["processing_error = NULL", "processing_retryable = NULL"])

        params.append(source_id)
        with _database_errors(), get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    f"UPDATE sources SET {', '.join(assignments)} WHERE id = %s",  # noqa: S608
                    params,
                )
                if cur.rowcount == 0:
                    raise SourceNotFoundError(f"Source {source_id} not found")
            conn.commit()

    def find_by_id(self, source_id: str) -> SourceRecord:
        with _database_errors(), get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"SELECT {_COLUMNS} FROM sources WHERE id = %s",  # noqa: S608
                    (source_id,),
                )
                row = cur.fetchone()

        if row is None:
            raise SourceNotFoundError(f"Source {source_id} not found")
        return self._to_record(row)

    def list_by_owner(self, owner_id: str) -> list[SourceRecord]:
        with _database_errors(), get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    SELECT {_COLUMNS} FROM sources
                    WHERE user_id = %s
                    ORDER BY created_at DESC
                    """,  # noqa: S608
                    (owner_id,),
                )
                rows = cur.fetchall()
        return [self._to_record(row) for row in rows]

    def find_completed_by_checksum(self, owner_id: str, checksum: str) -> SourceRecord | None:
        with _database_errors(), get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    SELECT {_COLUMNS} FROM sources
                    WHERE user_id = %s
                      AND file_checksum = %s
                      AND processing_status = %s
                    ORDER BY created_at DESC
                    LIMIT 1
                    """,  # noqa: S608
                    (owner_id, checksum, ProcessingStatus.COMPLETED.value),
                )
                row = cur.fetchone()
        return self._to_record(row) if row is not None else None

    @staticmethod
    def _to_record(row: dict[str, Any]) -> SourceRecord:
        return SourceRecord(
            id=str(row["id"]),
            owner_id=str(row["user_id"]),
            file_name=row["file_name"],
            mime_type=row["file_type"],
            byte_size=row["file_size"],
            checksum=row["file_checksum"],
            storage_path=row["storage_path"],
            category=FileCategory.from_source_type(row["source_type"]),
            status=ProcessingStatus(row["processing_status"]),
            raw_text=row["raw_text"],
            structured_data=row["structured_data"],
            processing_error=row["processing_error"],
            retryable=row["processing_retryable"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )
