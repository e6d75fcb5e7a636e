"""Test the Anthropic model client and error classification."""
import asyncio
from types import SimpleNamespace

import anthropic
import httpx
import pytest

from generation.model_client import AnthropicModelClient, ModelRequest, classify_error
from utils.errors import ContentPolicyError, ModelClientError, RateLimitError, TransportError

REQUEST = httpx.Request("POST", "https://api.anthropic.com/v1/messages")


def _status_error(cls, status, message):
    response = httpx.Response(status, request=REQUEST)
    return cls(message, response=response, body=None)


def test_rate_limit_classified():
    """Test that 429 maps to RateLimitError."""
    error = _status_error(anthropic.RateLimitError, 429, "rate_limit_error")

    assert isinstance(classify_error(error), RateLimitError)


def test_overloaded_classified_as_rate_limit():
    """Test that 529 overload backs off like a rate limit."""
    error = _status_error(anthropic.APIStatusError, 529, "overloaded_error")

    assert isinstance(classify_error(error), RateLimitError)


def test_content_policy_classified():
    """Test that a 400 about content policy is not retryable."""
    error = _status_error(anthropic.BadRequestError, 400, "Request blocked by content policy")

    classified = classify_error(error)

    assert isinstance(classified, ContentPolicyError)
    assert classified.user_message


def test_server_and_connection_errors_are_transport():
    """Test 5xx and connection failures map to TransportError."""
    assert isinstance(classify_error(_status_error(anthropic.InternalServerError, 500, "oops")), TransportError)
    assert isinstance(classify_error(anthropic.APIConnectionError(request=REQUEST)), TransportError)
    assert isinstance(classify_error(anthropic.APITimeoutError(request=REQUEST)), TransportError)
    assert isinstance(classify_error(httpx.ConnectError("refused")), TransportError)


def test_other_errors_unknown():
    """Test that unrecognised failures keep the generic kind."""
    classified = classify_error(_status_error(anthropic.BadRequestError, 400, "max_tokens too large"))

    assert type(classified) is ModelClientError
    assert classified.kind == "unknown"


class FakeMessages:
    def __init__(self, result):
        self.result = result
        self.kwargs = None

    async def create(self, **kwargs):
        self.kwargs = kwargs
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


def _message(text, stop_reason="end_turn"):
    return SimpleNamespace(
        content=[SimpleNamespace(type="text", text=text)],
        stop_reason=stop_reason,
        usage=SimpleNamespace(input_tokens=12, output_tokens=3),
    )


def _client(result):
    messages = FakeMessages(result)
    return AnthropicModelClient(client=SimpleNamespace(messages=messages), model="test-model"), messages


def test_complete_sends_system_and_context():
    """Test the request shape and response mapping."""
    client, messages = _client(_message('{"synopsis": "..."}'))
    request = ModelRequest(system_instructions="Be brief.", context_text="BOOK", max_tokens=50, temperature=0.2)

    response = asyncio.run(client.complete(request))

    assert response.raw_response_text == '{"synopsis": "..."}'
    assert response.input_tokens == 12
    assert messages.kwargs["system"] == "Be brief."
    assert messages.kwargs["messages"] == [{"role": "user", "content": "BOOK"}]
    assert messages.kwargs["model"] == "test-model"


def test_refusal_raises_content_policy():
    """Test that a refusal stop reason is a content-policy failure."""
    client, _ = _client(_message("", stop_reason="refusal"))

    with pytest.raises(ContentPolicyError):
        asyncio.run(client.complete(ModelRequest(system_instructions="s", context_text="c")))


def test_sdk_errors_are_classified():
    """Test SDK exceptions surface as pipeline errors."""
    client, _ = _client(_status_error(anthropic.RateLimitError, 429, "slow down"))

    with pytest.raises(RateLimitError):
        asyncio.run(client.complete(ModelRequest(system_instructions="s", context_text="c")))
