"""Test token estimation, truncation and the truncation cache."""
import pytest

from ingestion.tokens import TokenEstimator, new_truncation_cache


class CharEncoding:
    def encode(self, text, **kwargs):
        return [ord(c) for c in text]

    def decode(self, tokens):
        return "".join(chr(t) for t in tokens)


class CountingEncoding(CharEncoding):
    def __init__(self):
        self.encode_calls = 0

    def encode(self, text, **kwargs):
        self.encode_calls += 1
        return super().encode(text)


class BrokenEncoding:
    def encode(self, text, **kwargs):
        raise ValueError("boom")

    def decode(self, tokens):
        raise ValueError("boom")


def _failing_loader():
    raise OSError("cannot download encoding")


def test_ratio_estimate_rounds_up(ratio_estimator):
    """Test the characters-per-token fallback formula."""
    assert ratio_estimator.estimate("abcde") == 2
    assert ratio_estimator.estimate("abcd") == 1
    assert ratio_estimator.estimate("") == 0


def test_tokenizer_used_when_available(char_estimator):
    """Test that the encoding's count is used."""
    assert char_estimator.estimate("abcdefgh") == 8


def test_fallback_when_tokenizer_cannot_load():
    """Test that a loader failure falls back to the ratio without raising."""
    estimator = TokenEstimator(encoding_loader=_failing_loader)

    assert estimator.estimate("a" * 10) == 3
    # second call does not retry the broken loader
    assert estimator.estimate("a" * 8) == 2


def test_fallback_when_encode_fails():
    """Test that an encode failure falls back to the ratio without raising."""
    estimator = TokenEstimator(encoding_loader=BrokenEncoding)

    assert estimator.estimate("a" * 9) == 3


def test_fit_prefix_length(char_estimator):
    """Test longest prefix within a budget."""
    assert char_estimator.fit_prefix_length("abcdefghij", 4) == 4
    assert char_estimator.fit_prefix_length("abc", 4) == 3


def test_truncate_with_tokenizer(char_estimator):
    """Test token-accurate truncation."""
    assert char_estimator.truncate("abcdefghij", 4, "synopsis") == "abcd"
    assert char_estimator.truncate("abc", 4, "synopsis") == "abc"


def test_truncate_fallback_uses_characters():
    """Test truncation falls back to max_tokens * chars_per_token characters."""
    estimator = TokenEstimator(encoding_loader=_failing_loader, cache=new_truncation_cache())

    assert estimator.truncate("x" * 100, 5, "keywords") == "x" * 20
    assert len(estimator.cache) == 0


def test_truncate_cache_hit():
    """Test repeated truncations are served from the cache."""
    encoding = CountingEncoding()
    estimator = TokenEstimator(encoding_loader=lambda: encoding, cache=new_truncation_cache())

    first = estimator.truncate("hello world", 5, "scenes")
    second = estimator.truncate("hello world", 5, "scenes")

    assert first == second == "hello"
    assert encoding.encode_calls == 1


def test_cache_distinguishes_texts_of_equal_length(char_estimator):
    """Test that two different texts with the same length do not collide."""
    char_estimator.cache = new_truncation_cache()

    assert char_estimator.truncate("aaaaaa", 3, "preface") == "aaa"
    assert char_estimator.truncate("bbbbbb", 3, "preface") == "bbb"


def test_cache_evicts_oldest():
    """Test the cache stays bounded and drops the oldest entry."""
    cache = new_truncation_cache(maxsize=2)
    estimator = TokenEstimator(encoding_loader=CharEncoding, cache=cache)

    for text in ("one", "two", "three"):
        estimator.truncate(text, 10, "synopsis")

    assert len(cache) == 2
    assert estimator._cache_key("one", 10, "synopsis") not in cache
    assert estimator._cache_key("three", 10, "synopsis") in cache


def test_caches_are_isolated():
    """Test separate estimators do not share cache state."""
    a = TokenEstimator(encoding_loader=CharEncoding, cache=new_truncation_cache())
    b = TokenEstimator(encoding_loader=CharEncoding, cache=new_truncation_cache())

    a.truncate("shared text", 4, "synopsis")

    assert len(a.cache) == 1
    assert len(b.cache) == 0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
