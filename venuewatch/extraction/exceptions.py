class ExtractionError(Exception):
    """Raised when extraction fails."""


class ExtractionValidationError(ExtractionError):
    """Raised when the extraction result fails domain validation."""


class ExtractionNetworkError(ExtractionError):
    """Raised when the AI provider call fails due to network/infrastructure issues."""


class ExtractionRateLimitError(ExtractionNetworkError):
    """Raised when the AI provider rejects a call for exceeding its rate limit."""
