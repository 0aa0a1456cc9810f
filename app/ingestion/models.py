from dataclasses import dataclass
from enum import Enum


class ProcessingStatus(str, Enum):
    """Persisted lifecycle state of a source record."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class FileCategory(str, Enum):
    """Declared category of ingested content."""

    RESUME = "resume"
    COVER_LETTER = "coverLetter"
    LINKEDIN = "linkedin"
    CASE_STUDIES = "caseStudies"

    @property
    def source_type(self) -> str:
        """Database representation (snake_case)."""
        return {
            FileCategory.RESUME: "resume",
            FileCategory.COVER_LETTER: "cover_letter",
            FileCategory.LINKEDIN: "linkedin",
            FileCategory.CASE_STUDIES: "case_studies",
        }[self]

    @classmethod
    def from_source_type(cls, value: str) -> "FileCategory":
        for category in cls:
            if category.source_type == value or category.value == value:
                return category
        raise ValueError(f"Unknown source type '{value}'")


@dataclass(frozen=True)
class UploadedFile:
    """Raw upload as handed over by the caller."""

    file_name: str
    mime_type: str
    content: bytes

    @property
    def byte_size(self) -> int:
        return len(self.content)


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    error: str | None = None
    code: str | None = None
    file_type: str | None = None
    file_size: int | None = None


@dataclass(frozen=True)
class StorageUploadResult:
    success: bool
    storage_path: str | None = None
    error: str | None = None
    retryable: bool = False


@dataclass(frozen=True)
class UploadResult:
    """Outcome returned to callers of the ingestion service.

    ``file_id`` is the source record id once one exists; ``progress_id`` is
    the session-local id under which progress is reported.
    """

    success: bool
    file_id: str | None = None
    error: str | None = None
    retryable: bool | None = None
    progress_id: str | None = None
