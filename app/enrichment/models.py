from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class EnrichmentHints:
    """What is known about a person before enrichment."""

    profile_url: str | None = None
    username: str | None = None
    full_name: str | None = None
    company: str | None = None
    access_token: str | None = None

    def presence(self) -> dict[str, bool]:
        """Loggable view of the hints: which are set, never their values."""
        return {
            "has_profile_url": bool(self.profile_url),
            "has_username": bool(self.username),
            "has_full_name": bool(self.full_name),
            "has_company": bool(self.company),
            "has_access_token": bool(self.access_token),
        }


@dataclass(frozen=True)
class EnrichmentResult:
    """Outcome of one provider attempt, or of the whole chain."""

    success: bool
    provider_used: str
    data: dict[str, Any] | None = None
    error: str | None = None
    retryable: bool = False
    likelihood_score: float | None = None
    attempts: tuple["EnrichmentResult", ...] = ()

    @property
    def data_source(self) -> str:
        return self.provider_used

    @classmethod
    def failure(cls, provider: str, error: str, retryable: bool) -> "EnrichmentResult":
        return cls(success=False, provider_used=provider, error=error, retryable=retryable)
