import io

from docx import Document

from app.extraction.base import BaseTextExtractor
from app.extraction.exceptions import TextExtractionError


class DocxAdapter(BaseTextExtractor):
    """Extracts paragraph and table text from DOCX using python-docx."""

    def extract(self, content: bytes) -> str:
        try:
            doc = Document(io.BytesIO(content))
            lines = [p.text.strip() for p in doc.paragraphs if p.text and p.text.strip()]
            for table in doc.tables:
                for row in table.rows:
                    cells = [cell.text.strip() for cell in row.cells if cell.text.strip()]
                    if cells:
                        lines.append(" | ".join(cells))
            return "\n".join(lines).strip()
        except Exception as exc:
            raise TextExtractionError(f"docx extraction failed: {exc}") from exc
