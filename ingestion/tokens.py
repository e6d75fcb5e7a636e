"""Token estimation and token-bounded truncation.

Token counts here are advisory: they size chunks and prompts but nothing
depends on them being exact. When the tiktoken encoding cannot be loaded or
fails on some input, counts fall back to a fixed characters-per-token ratio.
"""
import hashlib
import math
from contextlib import contextmanager
from typing import Callable, Hashable, Iterator, MutableMapping, Optional, Tuple

import tiktoken
from cachetools import FIFOCache

from utils.logger import setup_logger
import config

logger = setup_logger(__name__)

EncodingLoader = Callable[[], "tiktoken.Encoding"]


def new_truncation_cache(maxsize: int = config.TRUNCATION_CACHE_SIZE) -> FIFOCache:
    """Create a bounded cache for truncation results (oldest entry evicted first)."""
    return FIFOCache(maxsize=maxsize)


class TokenEstimator:
    """Maps text to an approximate token count."""

    def __init__(
        self,
        encoding_name: str = config.TOKENIZER_ENCODING,
        chars_per_token: int = config.CHARS_PER_TOKEN_FALLBACK,
        use_tokenizer: bool = True,
        encoding_loader: Optional[EncodingLoader] = None,
        cache: Optional[MutableMapping[Hashable, str]] = None,
    ):
        """Initialize estimator.

        Args:
            encoding_name: tiktoken encoding to use (cl100k_base as approximation)
            chars_per_token: Ratio used when no tokenizer is available
            use_tokenizer: Set False to always use the ratio
            encoding_loader: Override how the encoding is obtained
            cache: Bounded mapping used to memoise truncate(); None disables it
        """
        self.encoding_name = encoding_name
        self.chars_per_token = chars_per_token
        self.use_tokenizer = use_tokenizer
        self.cache = cache
        self._encoding_loader = encoding_loader or (lambda: tiktoken.get_encoding(encoding_name))
        self._encoding = None
        self._load_failed = False

    @contextmanager
    def tokenizer(self) -> Iterator["tiktoken.Encoding"]:
        """Scoped access to the encoding.

        Raises whatever the loader raises; callers decide how to fall back.
        tiktoken encodings hold no per-call resources, so the scope only
        guarantees the encoding is loaded once and that a failed load is
        remembered.
        """
        if self._load_failed:
            raise RuntimeError(f"Tokenizer {self.encoding_name} unavailable")
        if self._encoding is None:
            try:
                self._encoding = self._encoding_loader()
            except Exception:
                self._load_failed = True
                raise
        yield self._encoding

    def estimate(self, text: str) -> int:
        """Count tokens in text. Never raises."""
        if not text:
            return 0
        if self.use_tokenizer and not self._load_failed:
            try:
                with self.tokenizer() as encoding:
                    return len(encoding.encode(text, disallowed_special=()))
            except Exception as e:
                logger.warning(f"Tokenizer failed, estimating from length: {e}")
        return self.estimate_by_ratio(text)

    def estimate_by_ratio(self, text: str) -> int:
        """Estimate tokens as ceil(len(text) / chars_per_token)."""
        return math.ceil(len(text) / self.chars_per_token)

    def fit_prefix_length(self, text: str, max_tokens: int) -> int:
        """Return the length of the longest prefix of text within max_tokens.

        Binary search over prefix lengths; used only when the whole text does
        not fit, so the common case costs a single count.
        """
        if self.estimate(text) <= max_tokens:
            return len(text)
        low, high = 0, len(text)
        while low < high:
            mid = (low + high + 1) // 2
            if self.estimate(text[:mid]) <= max_tokens:
                low = mid
            else:
                high = mid - 1
        return low

    def truncate(self, text: str, max_tokens: int, content_type: str = "unknown") -> str:
        """Cut text down to max_tokens tokens.

        Results from the tokenizer are memoised in the injected cache, keyed
        by text length, budget, content type and a digest of the text. On
        tokenizer failure the text is cut at max_tokens * chars_per_token
        characters and nothing is cached.
        """
        key = self._cache_key(text, max_tokens, content_type)
        if self.cache is not None and key in self.cache:
            logger.debug(f"[{content_type.upper()}] Using cached truncation")
            return self.cache[key]

        if self.use_tokenizer and not self._load_failed:
            try:
                with self.tokenizer() as encoding:
                    tokens = encoding.encode(text, disallowed_special=())
                    if len(tokens) <= max_tokens:
                        result = text
                    else:
                        result = encoding.decode(tokens[:max_tokens])
                        logger.info(
                            f"[{content_type.upper()}] Truncated {len(tokens)} tokens to {max_tokens}"
                        )
            except Exception as e:
                logger.warning(f"[{content_type.upper()}] Tokenizer failed during truncation: {e}")
            else:
                if self.cache is not None:
                    self.cache[key] = result
                return result

        return text[:max_tokens * self.chars_per_token]

    @staticmethod
    def _cache_key(text: str, max_tokens: int, content_type: str) -> Tuple[int, int, str, str]:
        digest = hashlib.sha1(text.encode("utf-8")).hexdigest()
        return (len(text), max_tokens, content_type, digest)
