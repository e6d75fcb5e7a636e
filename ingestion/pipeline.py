"""Upload-time preparation: structure, chunks and rolling summary for one document."""
from typing import Optional

from utils.logger import setup_logger
from ingestion.chunker import ChunkBuilder
from ingestion.models import PreparedDocument
from ingestion.structure import detect_structure
from ingestion.summarizer import RollingSummarizer
from ingestion.tokens import TokenEstimator

logger = setup_logger(__name__)


def prepare_document(
    text: str,
    chunk_builder: Optional[ChunkBuilder] = None,
    summarizer: Optional[RollingSummarizer] = None,
    estimator: Optional[TokenEstimator] = None
) -> PreparedDocument:
    """Run structure detection, chunking and summarization on extracted text.

    The result is returned for the caller to persist; nothing is stored here.
    """
    estimator = estimator or TokenEstimator()
    chunk_builder = chunk_builder or ChunkBuilder(estimator=estimator)
    summarizer = summarizer or RollingSummarizer(estimator=estimator)

    structure = detect_structure(text)
    chunks = chunk_builder.build(text, structure)
    summary = summarizer.summarize(chunks)

    logger.info(
        f"Prepared document: {len(chunks)} chunks, "
        f"summary of {summary.estimated_token_count} tokens"
    )
    return PreparedDocument(structure=structure, chunks=chunks, summary=summary)
