class TextExtractionError(Exception):
    """Raised when text cannot be extracted from a document."""

    retryable = True


class UnsupportedMimeTypeError(TextExtractionError):
    """Raised when no extractor is registered for the declared mime type."""


class EmptyDocumentError(TextExtractionError):
    """Raised when extraction succeeded but produced no text."""
