"""Book metadata generation from chunks and rolling summary."""
import asyncio
from typing import Callable, List, Optional, Sequence, Union

from utils.logger import setup_logger
from ingestion.models import Chunk, RollingSummary
from ingestion.tokens import TokenEstimator, new_truncation_cache
from generation import prompts
from generation.aggregation import aggregate_categories, aggregate_keywords
from generation.model_client import ModelClient, ModelRequest
from generation.models import (
    BackCoverResult,
    CategoriesResult,
    ContentType,
    GenerationResult,
    KeywordsResult,
    PrefaceResult,
    ScenesResult,
    StoreDescriptionResult,
    SynopsisResult,
    validate_result,
)
from generation.response_parsing import parse_json_response
from generation.retry import with_retry
from utils.errors import InvalidInputError
import config

logger = setup_logger(__name__)


class MetadataGenerator:
    """Generates book metadata with a model client.

    Whole-book outputs (scenes, back cover, preface, store description,
    synopsis) use one call on the rolling summary. Categories and keywords
    use one call per chunk and a frequency vote over the answers.
    """

    def __init__(
        self,
        client: ModelClient,
        estimator: Optional[TokenEstimator] = None,
        prompt_token_limit: int = config.PROMPT_TOKEN_LIMIT,
        max_concurrency: int = config.MAX_CONCURRENT_CHUNK_CALLS,
        max_attempts: int = config.MAX_RETRY_ATTEMPTS,
        initial_delay: float = config.INITIAL_RETRY_DELAY_MS / 1000,
        sleep: Callable = asyncio.sleep
    ):
        """Initialize generator.

        Args:
            client: Model client used for every call
            estimator: Token estimator used to bound prompt context
            prompt_token_limit: Token budget for the context of one call
            max_concurrency: Per-chunk calls allowed in flight at once
            max_attempts: Attempts per model call
            initial_delay: Seconds before the first retry
            sleep: Awaitable sleep used between retries
        """
        self.client = client
        self.estimator = estimator or TokenEstimator(cache=new_truncation_cache())
        self.prompt_token_limit = prompt_token_limit
        self.max_concurrency = max_concurrency
        self.max_attempts = max_attempts
        self.initial_delay = initial_delay
        self.sleep = sleep
        self.total_tokens_used = 0

    async def generate(
        self,
        content_type: Union[ContentType, str],
        chunks: Sequence[Chunk],
        summary: RollingSummary
    ) -> GenerationResult:
        """Generate and validate one content type."""
        content_type = ContentType(content_type)
        if not summary.summary_text:
            raise InvalidInputError("Rolling summary is empty; prepare the document first")

        logger.info(f"Generating {content_type.value}...")
        if content_type.is_per_chunk:
            if content_type is ContentType.CATEGORIES:
                return await self.generate_categories(chunks, summary)
            return await self.generate_keywords(chunks, summary)
        return await self._generate_from_summary(content_type, summary)

    async def generate_categories(self, chunks: Sequence[Chunk], summary: RollingSummary) -> CategoriesResult:
        results = await self._generate_per_chunk(ContentType.CATEGORIES, chunks, summary)
        final = aggregate_categories(results)
        logger.info(f"Categories: {final.main_category} / {', '.join(final.secondary_categories)}")
        return final

    async def generate_keywords(self, chunks: Sequence[Chunk], summary: RollingSummary) -> KeywordsResult:
        results = await self._generate_per_chunk(ContentType.KEYWORDS, chunks, summary)
        final = aggregate_keywords(results)
        logger.info(f"Keywords: {', '.join(final.keywords)}")
        return final

    async def generate_scenes(self, chunks: Sequence[Chunk], summary: RollingSummary) -> ScenesResult:
        return await self._generate_from_summary(ContentType.SCENES, summary)

    async def generate_back_cover(self, chunks: Sequence[Chunk], summary: RollingSummary) -> BackCoverResult:
        return await self._generate_from_summary(ContentType.BACK_COVER, summary)

    async def generate_preface(self, chunks: Sequence[Chunk], summary: RollingSummary) -> PrefaceResult:
        return await self._generate_from_summary(ContentType.PREFACE, summary)

    async def generate_store_description(
        self,
        chunks: Sequence[Chunk],
        summary: RollingSummary
    ) -> StoreDescriptionResult:
        return await self._generate_from_summary(ContentType.STORE_DESCRIPTION, summary)

    async def generate_synopsis(self, chunks: Sequence[Chunk], summary: RollingSummary) -> SynopsisResult:
        return await self._generate_from_summary(ContentType.SYNOPSIS, summary)

    async def _generate_from_summary(
        self,
        content_type: ContentType,
        summary: RollingSummary
    ) -> GenerationResult:
        """One call with the rolling summary as the only context."""
        context = self.estimator.truncate(
            summary.summary_text, self.prompt_token_limit, content_type.value
        )
        return await self._call_and_validate(content_type, prompts.summary_context(context))

    async def _generate_per_chunk(
        self,
        content_type: ContentType,
        chunks: Sequence[Chunk],
        summary: RollingSummary
    ) -> List[GenerationResult]:
        """One call per chunk, bounded concurrency, results in chunk order."""
        if not chunks:
            raise InvalidInputError(f"Chunks are required to generate {content_type.value}")

        semaphore = asyncio.Semaphore(self.max_concurrency)
        total = len(chunks)

        async def _worker(index: int, chunk: Chunk) -> GenerationResult:
            context = self.estimator.truncate(
                prompts.chunk_context(summary.summary_text, chunk.text, index, total),
                self.prompt_token_limit,
                content_type.value
            )
            async with semaphore:
                result = await self._call_and_validate(content_type, context)
            logger.debug(f"[{content_type.value}] chunk {index + 1}/{total} done")
            return result

        # gather keeps input order, so aggregation sees results in chunk order
        return list(await asyncio.gather(*(_worker(i, c) for i, c in enumerate(chunks))))

    async def _call_and_validate(self, content_type: ContentType, context_text: str) -> GenerationResult:
        temperature, max_tokens = prompts.GENERATION_PARAMS[content_type]
        request = ModelRequest(
            system_instructions=prompts.SYSTEM_PROMPTS[content_type](),
            context_text=context_text,
            max_tokens=max_tokens,
            temperature=temperature
        )

        response = await with_retry(
            lambda: self.client.complete(request),
            max_attempts=self.max_attempts,
            initial_delay=self.initial_delay,
            sleep=self.sleep
        )
        self.total_tokens_used += response.input_tokens + response.output_tokens

        data = parse_json_response(response.raw_response_text, content_type.value)
        return validate_result(content_type, data)
