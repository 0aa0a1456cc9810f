from dataclasses import dataclass
from datetime import datetime
from typing import Any

from app.ingestion.models import FileCategory, ProcessingStatus


@dataclass(frozen=True)
class NewSourceRecord:
    """Metadata required to create a row in the sources table."""

    owner_id: str
    file_name: str
    mime_type: str
    byte_size: int
    checksum: str
    storage_path: str
    category: FileCategory


@dataclass
class SourceRecord:
    """Represents a row from the sources table."""

    id: str
    owner_id: str
    file_name: str
    mime_type: str
    byte_size: int
    checksum: str
    storage_path: str
    category: FileCategory
    status: ProcessingStatus
    raw_text: str | None = None
    structured_data: dict[str, Any] | None = None
    processing_error: str | None = None
    retryable: bool | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
