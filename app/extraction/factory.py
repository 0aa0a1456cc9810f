from app.config.settings import Settings
from app.extraction.base import BaseTextExtractor
from app.extraction.docx_adapter import DocxAdapter
from app.extraction.pdfplumber_adapter import PdfPlumberAdapter
from app.extraction.plain_text_adapter import PlainTextAdapter
from app.extraction.pymupdf_adapter import PyMuPdfAdapter
from app.extraction.service import TextExtractionService
from app.ingestion.validator import DOCX, MD, PDF, TXT


class TextExtractorFactory:
    """Creates the text extraction service with the configured PDF engine."""

    PDF_ADAPTERS: dict[str, type[BaseTextExtractor]] = {
        "pdfplumber": PdfPlumberAdapter,
        "pymupdf": PyMuPdfAdapter,
    }

    @classmethod
    def create(cls, settings: Settings) -> TextExtractionService:
        engine = settings.pdf_engine.lower()
        pdf_adapter_cls = cls.PDF_ADAPTERS.get(engine)
        if pdf_adapter_cls is None:
            raise ValueError(
                f"Unknown PDF engine '{engine}'. Choose from: {list(cls.PDF_ADAPTERS)}"
            )
        plain_text = PlainTextAdapter()
        return TextExtractionService(
            {
                PDF: pdf_adapter_cls(),
                DOCX: DocxAdapter(),
                TXT: plain_text,
                MD: plain_text,
            }
        )
