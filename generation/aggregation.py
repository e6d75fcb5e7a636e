"""Combining per-chunk answers into one final result.

Both tallies rely on Counter keeping insertion order: most_common() lists
equal counts in the order first encountered, so feeding results in chunk
order breaks ties by chunk index regardless of which call finished first.
"""
from collections import Counter
from typing import List, Sequence

from generation.models import CategoriesResult, ContentType, KeywordsResult
from utils.errors import GenerationValidationError

MAIN_CATEGORY_WEIGHT = 2
SECONDARY_CATEGORY_WEIGHT = 1
KEYWORD_COUNT = 7


def aggregate_categories(results: Sequence[CategoriesResult]) -> CategoriesResult:
    """Pick main and secondary categories by weighted vote.

    A chunk's main category counts twice, each secondary once.

    Args:
        results: Per-chunk categories, in chunk order

    Returns:
        Top-weighted category as main, next two as secondaries

    Raises:
        GenerationValidationError: If fewer than three distinct categories were proposed
    """
    weights: Counter = Counter()
    for result in results:
        weights[result.main_category] += MAIN_CATEGORY_WEIGHT
        for category in result.secondary_categories:
            weights[category] += SECONDARY_CATEGORY_WEIGHT

    ranked = [category for category, _ in weights.most_common()]
    if len(ranked) < 3:
        raise GenerationValidationError(
            ContentType.CATEGORIES.value,
            f"only {len(ranked)} distinct categories across {len(results)} chunks, need 3"
        )

    return CategoriesResult(main_category=ranked[0], secondary_categories=ranked[1:3])


def aggregate_keywords(results: Sequence[KeywordsResult]) -> KeywordsResult:
    """Pick the seven most frequent keywords across chunks.

    Raises:
        GenerationValidationError: If fewer than seven distinct keywords were proposed
    """
    frequency: Counter = Counter()
    for result in results:
        frequency.update(result.keywords)

    top: List[str] = [keyword for keyword, _ in frequency.most_common(KEYWORD_COUNT)]
    if len(top) < KEYWORD_COUNT:
        raise GenerationValidationError(
            ContentType.KEYWORDS.value,
            f"only {len(top)} distinct keywords across {len(results)} chunks, need {KEYWORD_COUNT}"
        )

    return KeywordsResult(keywords=top)
