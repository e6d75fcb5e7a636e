"""Model client boundary: transport only, no parsing."""
import abc
from typing import Optional

import anthropic
import httpx
from anthropic import AsyncAnthropic
from pydantic import BaseModel

from utils.errors import (
    ContentPolicyError,
    ModelClientError,
    RateLimitError,
    TransportError,
)
from utils.logger import setup_logger
import config

logger = setup_logger(__name__)

CONTENT_POLICY_HINTS = ("content policy", "content_policy", "safety", "harmful")


class ModelRequest(BaseModel):
    system_instructions: str
    context_text: str
    max_tokens: int = config.LLM_MAX_TOKENS
    temperature: float = 0.7


class ModelResponse(BaseModel):
    raw_response_text: str
    input_tokens: int = 0
    output_tokens: int = 0


class ModelClient(abc.ABC):
    @abc.abstractmethod
    async def complete(self, request: ModelRequest) -> ModelResponse:
        """Send instructions and context, return the raw response text.

        Raises a ModelClientError subclass on failure.
        """
        pass


def classify_error(error: Exception) -> ModelClientError:
    """Map an SDK or transport exception onto the pipeline's error taxonomy."""
    if isinstance(error, ModelClientError):
        return error

    if isinstance(error, anthropic.RateLimitError):
        return RateLimitError(str(error))

    if isinstance(error, anthropic.APIStatusError):
        status = error.status_code
        message = str(error)
        if status == 529 or "overloaded_error" in message:
            return RateLimitError(message)
        if status == 400 and any(hint in message.lower() for hint in CONTENT_POLICY_HINTS):
            return ContentPolicyError(message)
        if status >= 500:
            return TransportError(message)
        return ModelClientError(message)

    # Connection and timeout errors (APITimeoutError subclasses APIConnectionError)
    if isinstance(error, (anthropic.APIConnectionError, httpx.TransportError)):
        return TransportError(str(error))

    return ModelClientError(str(error))


class AnthropicModelClient(ModelClient):
    """Model client backed by the Anthropic Messages API."""

    def __init__(
        self,
        client: Optional[AsyncAnthropic] = None,
        model: str = config.ANTHROPIC_MODEL
    ):
        """Initialize client.

        Args:
            client: Async Anthropic client, created from ANTHROPIC_API_KEY if omitted
            model: Model name to use
        """
        self.client = client or AsyncAnthropic(api_key=config.ANTHROPIC_API_KEY)
        self.model = model

        logger.info(f"AnthropicModelClient initialized with model: {model}")

    async def complete(self, request: ModelRequest) -> ModelResponse:
        try:
            message = await self.client.messages.create(
                model=self.model,
                max_tokens=request.max_tokens,
                temperature=request.temperature,
                system=request.system_instructions,
                messages=[
                    {"role": "user", "content": request.context_text}
                ]
            )
        except (anthropic.AnthropicError, httpx.HTTPError) as e:
            raise classify_error(e) from e

        if message.stop_reason == "refusal":
            raise ContentPolicyError("Model refused to generate content")

        text = "".join(block.text for block in message.content if block.type == "text")
        return ModelResponse(
            raw_response_text=text,
            input_tokens=message.usage.input_tokens,
            output_tokens=message.usage.output_tokens
        )
