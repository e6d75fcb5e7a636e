"""Shared fixtures: offline tokenizers and a scripted model client."""
import json
from typing import Callable, List, Union

import pytest

from ingestion.tokens import TokenEstimator
from generation.model_client import ModelClient, ModelRequest, ModelResponse


class CharEncoding:
    """One token per character; stands in for tiktoken without network access."""

    def encode(self, text, **kwargs):
        return [ord(c) for c in text]

    def decode(self, tokens):
        return "".join(chr(t) for t in tokens)


class FakeModelClient(ModelClient):
    """Returns scripted responses and records every request.

    A responder is either a list consumed in order (items may be strings,
    dicts serialised to JSON, or exceptions to raise) or a callable taking
    the request.
    """

    def __init__(self, responder: Union[List, Callable[[ModelRequest], object]]):
        self.responder = responder
        self.requests: List[ModelRequest] = []

    async def complete(self, request: ModelRequest) -> ModelResponse:
        self.requests.append(request)
        if callable(self.responder):
            item = self.responder(request)
        else:
            item = self.responder.pop(0)
        if isinstance(item, Exception):
            raise item
        if not isinstance(item, str):
            item = json.dumps(item)
        return ModelResponse(raw_response_text=item, input_tokens=10, output_tokens=5)


@pytest.fixture
def ratio_estimator():
    """Estimator that never touches tiktoken: ceil(len / 4)."""
    return TokenEstimator(use_tokenizer=False)


@pytest.fixture
def char_estimator():
    """Estimator with an exact one-token-per-character tokenizer."""
    return TokenEstimator(encoding_loader=CharEncoding)


@pytest.fixture
def fake_client():
    """Factory for scripted model clients."""
    return FakeModelClient


@pytest.fixture
def recorded_sleeps():
    """Awaitable sleep that records delays instead of waiting."""
    delays = []

    async def _sleep(delay):
        delays.append(delay)

    _sleep.delays = delays
    return _sleep
