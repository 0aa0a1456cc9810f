from abc import ABC, abstractmethod
from typing import Any

from app.ingestion.models import FileCategory


class BaseAnalyzer(ABC):
    """Contract for all analysis adapters."""

    @abstractmethod
    def analyze(self, text: str, category: FileCategory) -> dict[str, Any]:
        """Turn extracted document text into structured profile fields.

        Args:
            text: Plain text from the extraction stage or manual input.
            category: Declared category, selecting resume, cover letter or
                      case study analysis.

        Returns:
            Structured data with workHistory, education, skills, achievements,
            contactInfo, summary, certifications and projects.

        Raises:
            AnalysisError: on any failure.
            AnalysisConfigurationError: when the backend is misconfigured.
        """
