class IngestionError(Exception):
    """Base exception for all ingestion errors.

    Subclasses declare whether the same operation may succeed when attempted
    again without changing the input.
    """

    retryable: bool = False

    def __init__(self, message: str, *, retryable: bool | None = None) -> None:
        super().__init__(message)
        if retryable is not None:
            self.retryable = retryable


class ValidationError(IngestionError):
    """Raised when the input itself is unacceptable; the caller must change it."""

    retryable = False


class AuthError(IngestionError):
    """Raised on missing tokens or permission failures."""

    retryable = False


class TransportError(IngestionError):
    """Raised when a network or storage call fails transiently."""

    retryable = True


class TransportTimeoutError(TransportError):
    """Raised when a collaborator call exceeds its timeout."""


class ProcessingError(IngestionError):
    """Raised when extraction or analysis fails for a persisted record."""

    retryable = True

    def __init__(
        self,
        message: str,
        *,
        stage: str = "",
        retryable: bool | None = None,
    ) -> None:
        super().__init__(message, retryable=retryable)
        self.stage = stage


class ProcessingCancelledError(ProcessingError):
    """Raised when a background run is stopped before it finished."""


class SourceNotFoundError(IngestionError):
    """Raised when a source record cannot be found in the store."""

    retryable = False
