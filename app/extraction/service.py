from collections.abc import Mapping

from app.extraction.base import BaseTextExtractor
from app.extraction.exceptions import EmptyDocumentError, UnsupportedMimeTypeError
from app.logging.logger import Log


class TextExtractionService:
    """Routes document bytes to the extractor registered for their mime type."""

    def __init__(self, extractors: Mapping[str, BaseTextExtractor]) -> None:
        self._extractors = dict(extractors)

    @property
    def supported_mime_types(self) -> list[str]:
        return sorted(self._extractors)

    def extract(self, content: bytes, mime_type: str) -> str:
        """Extract text, treating an empty result as a failure.

        Raises:
            UnsupportedMimeTypeError: if no extractor handles ``mime_type``.
            EmptyDocumentError: if the document yields no text.
            TextExtractionError: if the adapter fails.
        """
        extractor = self._extractors.get(mime_type)
        if extractor is None:
            raise UnsupportedMimeTypeError(f"No text extractor for mime type '{mime_type}'")
        text = extractor.extract(content)
        if not text.strip():
            raise EmptyDocumentError("No text could be extracted from the document")
        Log.debug(f"{type(extractor).__name__} extracted {len(text)} chars")
        return text
