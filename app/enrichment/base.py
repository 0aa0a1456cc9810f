from abc import ABC, abstractmethod
from typing import ClassVar

from app.enrichment.models import EnrichmentHints, EnrichmentResult


class BaseEnrichmentProvider(ABC):
    """Contract for identity enrichment providers."""

    name: ClassVar[str] = ""

    @abstractmethod
    def fetch(self, hints: EnrichmentHints) -> EnrichmentResult:
        """Look up profile data for the hinted person.

        Returns a failed result for backend errors instead of raising; the
        result's ``data`` uses the structured profile shape.
        """
