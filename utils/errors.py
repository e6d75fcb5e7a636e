"""Exception taxonomy shared by ingestion and generation."""


class PipelineError(Exception):
    """Base class for all pipeline errors."""
    pass


class InvalidInputError(PipelineError, ValueError):
    """Raised when text or a chunk sequence is empty or missing."""
    pass


class GenerationValidationError(PipelineError):
    """Raised when a model response does not match its content type's schema."""

    def __init__(self, content_type: str, reason: str):
        self.content_type = content_type
        self.reason = reason
        super().__init__(f"Invalid {content_type} response: {reason}")


class ModelClientError(PipelineError):
    """Raised by a model client when a call fails for an unclassified reason."""
    kind = "unknown"


class TransportError(ModelClientError):
    """Network, timeout or transient server failure."""
    kind = "transport"


class RateLimitError(TransportError):
    """The provider rejected the call because of rate limits or overload."""
    kind = "rate_limit"


class ContentPolicyError(ModelClientError):
    """The provider refused the content. Never retried."""
    kind = "content_policy"

    DEFAULT_USER_MESSAGE = (
        "The content was blocked by the model provider's safety filters. "
        "Check that the manuscript follows the usage guidelines and does not "
        "contain sensitive or inappropriate material."
    )

    def __init__(self, message: str, user_message: str = DEFAULT_USER_MESSAGE):
        self.user_message = user_message
        super().__init__(message)
