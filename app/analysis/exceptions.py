class AnalysisError(Exception):
    """Raised when AI analysis fails."""

    retryable = True


class AnalysisValidationError(AnalysisError):
    """Raised when the analysis result fails structural validation."""


class AnalysisNetworkError(AnalysisError):
    """Raised when the AI provider call fails due to network/infrastructure issues."""


class AnalysisConfigurationError(AnalysisError):
    """Raised when the analysis backend is missing or misconfigured.

    Retrying cannot help until an operator fixes the configuration.
    """

    retryable = False
