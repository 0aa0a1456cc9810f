import pymupdf

from app.extraction.base import BaseTextExtractor
from app.extraction.exceptions import TextExtractionError


class PyMuPdfAdapter(BaseTextExtractor):
    """Extracts text from PDF using PyMuPDF."""

    def extract(self, content: bytes) -> str:
        try:
            with pymupdf.open(stream=content, filetype="pdf") as doc:  # type: ignore[no-untyped-call]
                pages = [page.get_text() for page in doc]
            return "\n".join(pages).strip()
        except TextExtractionError:
            raise
        except Exception as exc:
            raise TextExtractionError(f"pymupdf extraction failed: {exc}") from exc
