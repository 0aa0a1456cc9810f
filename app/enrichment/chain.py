from collections.abc import Sequence
from dataclasses import replace

from app.enrichment.base import BaseEnrichmentProvider
from app.enrichment.exceptions import ProviderExhaustedError
from app.enrichment.models import EnrichmentHints, EnrichmentResult
from app.enrichment.placeholder_provider import PlaceholderProvider
from app.logging.logger import Log


class EnrichmentFallbackChain:
    """Tries enrichment providers in priority order; first success wins.

    When every provider fails, the placeholder provider answers instead, so
    ``enrich`` always returns a successful result. The failed attempts are
    kept on the result for debugging.
    """

    def __init__(
        self,
        providers: Sequence[BaseEnrichmentProvider],
        fallback: PlaceholderProvider | None = None,
    ) -> None:
        self._providers = list(providers)
        self._fallback = fallback or PlaceholderProvider()

    @property
    def provider_names(self) -> list[str]:
        return [provider.name for provider in self._providers] + [self._fallback.name]

    def enrich(self, hints: EnrichmentHints) -> EnrichmentResult:
        Log.info(f"Enriching identity with hints {hints.presence()}")
        try:
            return self._first_success(hints)
        except ProviderExhaustedError as exc:
            Log.warning(f"{exc}; using {self._fallback.name} data")
            result = self._fallback.fetch(hints)
            return replace(result, attempts=tuple(exc.attempts))

    def _first_success(self, hints: EnrichmentHints) -> EnrichmentResult:
        attempts: list[EnrichmentResult] = []
        for provider in self._providers:
            result = self._attempt(provider, hints)
            if result.success:
                Log.info(f"Enrichment provider {provider.name} succeeded")
                return replace(result, attempts=tuple(attempts))
            Log.warning(
                f"Enrichment provider {provider.name} failed "
                f"(retryable={result.retryable}): {result.error}"
            )
            attempts.append(result)
        raise ProviderExhaustedError(
            f"All {len(self._providers)} enrichment providers failed",
            attempts=tuple(attempts),
        )

    @staticmethod
    def _attempt(provider: BaseEnrichmentProvider, hints: EnrichmentHints) -> EnrichmentResult:
        try:
            return provider.fetch(hints)
        except Exception as exc:
            Log.exception(f"Enrichment provider {provider.name} raised: {exc}")
            return EnrichmentResult.failure(provider.name, str(exc), retryable=True)
