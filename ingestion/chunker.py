"""Manuscript text chunking module."""
from typing import List, Optional

from utils.logger import setup_logger
from utils.errors import InvalidInputError
from ingestion.models import Chunk, StructureDescriptor, StructureMatch
from ingestion.tokens import TokenEstimator
import config

logger = setup_logger(__name__)


class ChunkBuilder:
    """Splits document text into model-sized chunks, preferring structural boundaries."""

    def __init__(
        self,
        max_tokens: int = config.MAX_TOKENS_PER_CHUNK,
        overlap: int = config.OVERLAP_TOKENS,
        min_tokens: int = config.MIN_TOKENS_PER_CHUNK,
        chars_per_token: int = config.CHARS_PER_TOKEN_FALLBACK,
        estimator: Optional[TokenEstimator] = None
    ):
        """Initialize chunker.

        Args:
            max_tokens: Hard ceiling on tokens per chunk
            overlap: Sliding-window overlap in tokens
            min_tokens: Advisory lower bound, only logged
            chars_per_token: Ratio used to size sliding windows in characters
            estimator: Token estimator for exact counts
        """
        if overlap >= max_tokens:
            raise ValueError("overlap must be smaller than max_tokens")

        self.max_tokens = max_tokens
        self.overlap = overlap
        self.min_tokens = min_tokens
        self.chars_per_token = chars_per_token
        self.estimator = estimator or TokenEstimator()

        self.window_chars = max_tokens * chars_per_token
        self.stride_chars = (max_tokens - overlap) * chars_per_token

        logger.debug(f"Chunker initialized: {max_tokens} tokens, {overlap} overlap")

    def build(self, text: str, structure: StructureDescriptor) -> List[Chunk]:
        """Chunk text using the structure detected on that same text.

        Args:
            text: Full document text
            structure: Descriptor computed from text

        Returns:
            Chunks in document order
        """
        if not text:
            raise InvalidInputError("Text is required for chunking")

        if structure.has_chapters:
            chunks = self._split_structural(text, structure.chapter_matches, "chapter_title")
            mode = "chapter"
        elif structure.has_sections:
            chunks = self._split_structural(text, structure.section_matches, "section_title")
            mode = "section"
        else:
            chunks = self._split_sliding_window(text)
            mode = "sliding-window"

        logger.info(f"Created {len(chunks)} {mode} chunks from {len(text)} characters")
        return chunks

    def _split_structural(
        self,
        text: str,
        matches: List[StructureMatch],
        title_field: str
    ) -> List[Chunk]:
        """Create one chunk per marker, subdividing oversized segments.

        Args:
            text: Full document text
            matches: Chapter or section markers
            title_field: Chunk field that receives the marker title

        Returns:
            List of chunks
        """
        chunks = []

        # Keep anything before the first marker (title page, dedication...)
        first = matches[0].offset
        if text[:first].strip():
            chunks.extend(self._segment_chunks(text, 0, first, None, title_field))

        for i, match in enumerate(matches):
            end = matches[i + 1].offset if i + 1 < len(matches) else len(text)
            chunks.extend(self._segment_chunks(text, match.offset, end, match.title, title_field))

        return chunks

    def _segment_chunks(
        self,
        text: str,
        start: int,
        end: int,
        title: Optional[str],
        title_field: str
    ) -> List[Chunk]:
        segment = text[start:end]
        token_count = self.estimator.estimate(segment)

        if token_count <= self.max_tokens:
            if token_count < self.min_tokens:
                logger.debug(f"Segment '{title}' is below the advisory minimum ({token_count} tokens)")
            return [
                Chunk(
                    text=segment,
                    token_count=token_count,
                    start_offset=start,
                    end_offset=end,
                    **{title_field: title}
                )
            ]

        # Segment is too large, split it with the sliding window
        logger.debug(f"Segment '{title}' has {token_count} tokens, subdividing")
        return [
            sub_chunk.model_copy(update={
                title_field: title,
                "is_sub_chunk": True,
                "sub_chunk_index": index,
            })
            for index, sub_chunk in enumerate(self._split_sliding_window(segment, base_offset=start))
        ]

    def _split_sliding_window(self, text: str, base_offset: int = 0) -> List[Chunk]:
        """Split text into overlapping fixed-size windows.

        Windows are sized in characters from the token budget. A window whose
        counted tokens still exceed the ceiling is shortened to fit, and the
        next one starts before the shortened end by the overlap's share of
        that window, so dense text keeps the same proportional stride.

        Args:
            text: Text to split
            base_offset: Offset of text within the full document

        Returns:
            List of chunks
        """
        chunks = []
        position = 0

        while position < len(text):
            window = text[position:position + self.window_chars]
            token_count = self.estimator.estimate(window)

            shortened = token_count > self.max_tokens
            if shortened:
                window = window[:max(self.estimator.fit_prefix_length(window, self.max_tokens), 1)]
                token_count = self.estimator.estimate(window)

            end = position + len(window)
            chunks.append(
                Chunk(
                    text=window,
                    token_count=token_count,
                    start_offset=base_offset + position,
                    end_offset=base_offset + end
                )
            )

            if end >= len(text):
                break

            if shortened:
                position = max(end - len(window) * self.overlap // self.max_tokens, position + 1)
            else:
                position += self.stride_chars

        return chunks


def build_chunks(
    text: str,
    structure: StructureDescriptor,
    estimator: Optional[TokenEstimator] = None
) -> List[Chunk]:
    """Chunk text with the configured defaults."""
    return ChunkBuilder(estimator=estimator).build(text, structure)


def limit_chunks(chunks: List[Chunk], max_tokens: int = config.MAX_TOKENS_FOR_REQUEST) -> List[Chunk]:
    """Return the longest leading run of chunks whose token counts fit max_tokens."""
    limited = []
    total = 0

    for chunk in chunks:
        if total + chunk.token_count > max_tokens:
            logger.info(f"Reached token limit, keeping {len(limited)} of {len(chunks)} chunks ({total} tokens)")
            break
        limited.append(chunk)
        total += chunk.token_count

    return limited
