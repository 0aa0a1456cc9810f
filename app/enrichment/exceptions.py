class EnrichmentProviderError(Exception):
    """Raised inside a provider when a request to its backend fails."""

    def __init__(self, message: str, *, retryable: bool = True) -> None:
        super().__init__(message)
        self.retryable = retryable


class ProviderExhaustedError(Exception):
    """Raised when every real provider in the chain has failed.

    Only the fallback chain raises and handles it; callers never see it.
    """

    def __init__(self, message: str, attempts: tuple[object, ...] = ()) -> None:
        super().__init__(message)
        self.attempts = attempts
