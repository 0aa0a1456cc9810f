import math
from typing import ClassVar

from app.ingestion.models import FileCategory, UploadedFile, ValidationResult

PDF = "application/pdf"
DOCX = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
TXT = "text/plain"
MD = "text/markdown"

_MIB = 1024 * 1024

_MIME_LABELS = {PDF: "PDF", DOCX: "DOCX", TXT: "TXT", MD: "MD"}


def _join_labels(labels: list[str]) -> str:
    if len(labels) == 1:
        return labels[0]
    if len(labels) == 2:
        return f"{labels[0]} or {labels[1]}"
    return f"{', '.join(labels[:-1])}, or {labels[-1]}"


def format_size_limit(size_bytes: int) -> str:
    """Human-readable limit, rounded up so it never reads below the real value."""
    if size_bytes < _MIB:
        return f"{math.ceil(size_bytes / 1024)}KB"
    return f"{math.ceil(size_bytes * 10 / _MIB) / 10:g}MB"


class FileValidator:
    """Enforces size, type and name constraints before any I/O happens."""

    ALLOWED_TYPES: ClassVar[dict[FileCategory, tuple[str, ...]]] = {
        FileCategory.RESUME: (PDF, DOCX),
        FileCategory.COVER_LETTER: (PDF, DOCX, TXT, MD),
        FileCategory.CASE_STUDIES: (PDF, TXT, MD),
        FileCategory.LINKEDIN: (),
    }

    def __init__(self, max_file_size_bytes: int, min_text_length: int = 10) -> None:
        self._max_file_size_bytes = max_file_size_bytes
        self._min_text_length = min_text_length

    def validate(self, file: UploadedFile, category: FileCategory) -> ValidationResult:
        """Check an uploaded file against the limits of its category.

        Every failure is non-retryable: the caller has to supply another file.
        """
        if file.byte_size > self._max_file_size_bytes:
            return self._too_large()

        allowed = self.ALLOWED_TYPES.get(category, ())
        if file.mime_type not in allowed:
            return ValidationResult(
                valid=False,
                error=self.invalid_type_message(category),
                code="INVALID_TYPE",
            )

        if not file.file_name or not file.file_name.strip():
            return ValidationResult(valid=False, error="Invalid file name", code="INVALID_NAME")

        return ValidationResult(valid=True, file_type=file.mime_type, file_size=file.byte_size)

    def validate_text(self, text: str) -> ValidationResult:
        """Check manually entered text."""
        if len(text.strip()) < self._min_text_length:
            return ValidationResult(
                valid=False,
                error=f"Text must be at least {self._min_text_length} characters long",
                code="TEXT_TOO_SHORT",
            )
        size = len(text.encode("utf-8"))
        if size > self._max_file_size_bytes:
            return self._too_large()
        return ValidationResult(valid=True, file_type=TXT, file_size=size)

    @classmethod
    def invalid_type_message(cls, category: FileCategory) -> str:
        allowed = cls.ALLOWED_TYPES.get(category, ())
        if not allowed:
            return "This category does not accept file uploads."
        labels = [_MIME_LABELS[mime] for mime in allowed]
        return f"Please upload a {_join_labels(labels)} file."

    def _too_large(self) -> ValidationResult:
        return ValidationResult(
            valid=False,
            error=(
                "File is too large. Please upload a file smaller than "
                f"{format_size_limit(self._max_file_size_bytes)}."
            ),
            code="FILE_TOO_LARGE",
        )
