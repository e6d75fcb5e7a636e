"""Rolling summary built from a document's chunks."""
from typing import Optional, Sequence

from utils.logger import setup_logger
from utils.errors import InvalidInputError
from ingestion.models import Chunk, RollingSummary
from ingestion.tokens import TokenEstimator
import config

logger = setup_logger(__name__)

CHUNK_SEPARATOR = "\n\n"
ELISION_MARKER = "\n...[intermediate content omitted]...\n"


class RollingSummarizer:
    """Reduces an ordered chunk sequence to one bounded-length digest.

    The digest keeps the beginning and the end of the document, which for
    most narrative and expository books carry the setup and the resolution.
    """

    def __init__(
        self,
        max_length: int = config.SUMMARY_MAX_LENGTH,
        estimator: Optional[TokenEstimator] = None
    ):
        if max_length < 3 * len(ELISION_MARKER):
            raise ValueError("max_length must leave room for the elision marker")
        self.max_length = max_length
        self.estimator = estimator or TokenEstimator()

    def summarize(self, chunks: Sequence[Chunk]) -> RollingSummary:
        """Build the rolling summary.

        Args:
            chunks: Chunks in document order

        Returns:
            RollingSummary no longer than max_length characters

        Raises:
            InvalidInputError: If chunks is empty
        """
        if not chunks:
            raise InvalidInputError("Chunks are required for the rolling summary")

        full_text = CHUNK_SEPARATOR.join(chunk.text for chunk in chunks)
        summary_text = full_text

        if len(full_text) > self.max_length:
            part_length = self.max_length // 3
            summary_text = (
                _head(full_text, part_length)
                + ELISION_MARKER
                + _tail(full_text, part_length)
            )

        logger.info(
            f"Rolling summary: {len(chunks)} chunks, "
            f"{len(full_text)} -> {len(summary_text)} characters"
        )

        return RollingSummary(
            summary_text=summary_text,
            processed_chunk_count=len(chunks),
            estimated_token_count=self.estimator.estimate(summary_text)
        )


def _head(text: str, length: int) -> str:
    head = text[:length]
    # Back off to the last whitespace when the cut lands inside a word
    if not text[length].isspace():
        cut = max(head.rfind(" "), head.rfind("\n"))
        if cut > 0:
            head = head[:cut]
    return head.rstrip() or text[:length]


def _tail(text: str, length: int) -> str:
    start = len(text) - length
    tail = text[start:]
    if not text[start - 1].isspace():
        cuts = [i for i in (tail.find(" "), tail.find("\n")) if i != -1]
        if cuts and min(cuts) + 1 < len(tail):
            tail = tail[min(cuts) + 1:]
    return tail.lstrip() or text[start:]


def summarize(chunks: Sequence[Chunk], estimator: Optional[TokenEstimator] = None) -> RollingSummary:
    """Summarize chunks with the configured defaults."""
    return RollingSummarizer(estimator=estimator).summarize(chunks)
