from app.enrichment.base import BaseEnrichmentProvider
from app.enrichment.models import EnrichmentHints, EnrichmentResult


class PlaceholderProvider(BaseEnrichmentProvider):
    """Last-resort provider that never fails.

    Builds an empty profile from the hints alone so identity connection never
    blocks onboarding. The same hints always produce the same data.
    """

    name = "placeholder"

    def fetch(self, hints: EnrichmentHints) -> EnrichmentResult:
        work_history = []
        if hints.company:
            work_history.append(
                {
                    "id": "placeholder_work_0",
                    "company": hints.company,
                    "title": "",
                    "startDate": None,
                    "endDate": None,
                    "description": None,
                    "location": None,
                    "current": True,
                    "achievements": [],
                }
            )
        data = {
            "name": hints.full_name or hints.username,
            "headline": None,
            "workHistory": work_history,
            "education": [],
            "skills": [],
            "achievements": [],
            "contactInfo": {
                "email": None,
                "phone": None,
                "linkedin": hints.profile_url,
                "website": None,
                "github": None,
            },
            "location": None,
            "summary": None,
            "certifications": [],
            "projects": [],
            "placeholder": True,
        }
        return EnrichmentResult(success=True, provider_used=self.name, data=data)
