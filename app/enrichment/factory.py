from collections.abc import Callable
from typing import ClassVar

from app.config.settings import Settings
from app.enrichment.base import BaseEnrichmentProvider
from app.enrichment.chain import EnrichmentFallbackChain
from app.enrichment.linkedin_oauth_provider import LinkedInOAuthProvider
from app.enrichment.people_data_labs_provider import PeopleDataLabsProvider


def _linkedin(settings: Settings) -> BaseEnrichmentProvider:
    return LinkedInOAuthProvider(
        base_url=settings.linkedin_api_base_url,
        timeout_seconds=settings.linkedin_timeout_seconds,
    )


def _people_data_labs(settings: Settings) -> BaseEnrichmentProvider:
    return PeopleDataLabsProvider(
        api_url=settings.pdl_api_url,
        api_key=settings.pdl_api_key,
        timeout_seconds=settings.pdl_timeout_seconds,
        max_retries=settings.pdl_max_retries,
        backoff_seconds=settings.pdl_retry_backoff_seconds,
        min_likelihood=settings.pdl_min_likelihood,
    )


class EnrichmentChainFactory:
    """Creates the enrichment chain from the configured provider order."""

    PROVIDERS: ClassVar[dict[str, Callable[[Settings], BaseEnrichmentProvider]]] = {
        "linkedin_oauth": _linkedin,
        "people_data_labs": _people_data_labs,
    }

    @classmethod
    def create(cls, settings: Settings) -> EnrichmentFallbackChain:
        providers = []
        for name in settings.enrichment_providers:
            builder = cls.PROVIDERS.get(name.lower())
            if builder is None:
                raise ValueError(
                    f"Unknown enrichment provider '{name}'. Choose from: {list(cls.PROVIDERS)}"
                )
            providers.append(builder(settings))
        return EnrichmentFallbackChain(providers)
