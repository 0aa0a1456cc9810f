from app.extraction.base import BaseTextExtractor


class PlainTextAdapter(BaseTextExtractor):
    """Decodes TXT and Markdown uploads as UTF-8, dropping a leading BOM."""

    def extract(self, content: bytes) -> str:
        text = content.decode("utf-8-sig", errors="replace")
        return text.replace("\r\n", "\n").replace("\r", "\n").strip()
