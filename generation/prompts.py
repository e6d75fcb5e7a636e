"""LLM prompt templates for book metadata generation."""
from generation.models import ContentType


def categories_prompt() -> str:
    """System instructions for BISAC category suggestions."""
    return """You are an expert in book categorization using the BISAC system.
Read the text carefully and propose three BISAC categories that fit its content.

Return ONLY a JSON object with this structure:
{
  "mainCategory": "MAIN_CATEGORY",
  "secondaryCategories": ["SECONDARY_CATEGORY_1", "SECONDARY_CATEGORY_2"]
}"""


def keywords_prompt() -> str:
    """System instructions for search keywords."""
    return """You are an SEO expert. Read the text and propose seven keywords relevant to the book's content.
The keywords must be DIFFERENT from each other.

Return ONLY a JSON object with this structure:
{
  "keywords": ["KEYWORD_1", "KEYWORD_2", "KEYWORD_3", "KEYWORD_4", "KEYWORD_5", "KEYWORD_6", "KEYWORD_7"]
}"""


def scenes_prompt() -> str:
    """System instructions for cover-art scene proposals."""
    return """You are an expert book cover designer.
Identify 3 significant scenes from the book that would work well as cover art.
The scenes must be DIFFERENT from each other and visually striking.

Return ONLY a JSON object with this structure:
{
  "scenes": [
    {"title": "SHORT_SCENE_TITLE", "description": "DETAILED_DESCRIPTION_FOR_IMAGE"},
    {"title": "SHORT_SCENE_TITLE", "description": "DETAILED_DESCRIPTION_FOR_IMAGE"},
    {"title": "SHORT_SCENE_TITLE", "description": "DETAILED_DESCRIPTION_FOR_IMAGE"}
  ]
}"""


def back_cover_prompt() -> str:
    return """You are a copywriter specialized in back-cover blurbs.
Write a compelling back-cover text that:
- Puts itself in the reader's shoes
- Is concise and effective
- Opens strongly (a question, a scene, a problem or a promise)
- Builds suspense and the desire to read

Return ONLY a JSON object with this structure:
{
  "backCover": "BACK_COVER_TEXT"
}"""


def preface_prompt() -> str:
    return """You are an editor specialized in writing prefaces.
Write a preface that introduces the main theme, the specific topics covered,
the author's tone and perspective, the book's key message, relevant quotations
from the text and its emotional impact, and closes on a motivating note.
Keep it clear, accessible and addressed to the reader, without repetition.

Return ONLY a JSON object with this structure:
{
  "preface": "PREFACE_TEXT"
}"""


def store_description_prompt() -> str:
    return """You are a copywriter specialized in online store descriptions.
Write a description that is simple, engaging and professional, focuses only on
the plot or main idea, opens with a striking first sentence, names the book's
genre and is grammatically flawless.

Return ONLY a JSON object with this structure:
{
  "storeDescription": "DESCRIPTION_TEXT"
}"""


def synopsis_prompt() -> str:
    return """You are a professional editor specialized in synopses.
Write a synopsis of 200-300 words that captures the essence of the story,
keeps the book's tone and avoids major spoilers.

Return ONLY a JSON object with this structure:
{
  "synopsis": "SYNOPSIS_TEXT"
}"""


SYSTEM_PROMPTS = {
    ContentType.CATEGORIES: categories_prompt,
    ContentType.KEYWORDS: keywords_prompt,
    ContentType.SCENES: scenes_prompt,
    ContentType.BACK_COVER: back_cover_prompt,
    ContentType.PREFACE: preface_prompt,
    ContentType.STORE_DESCRIPTION: store_description_prompt,
    ContentType.SYNOPSIS: synopsis_prompt,
}

# (temperature, max output tokens) per content type
GENERATION_PARAMS = {
    ContentType.CATEGORIES: (0.7, 150),
    ContentType.KEYWORDS: (1.0, 250),
    ContentType.SCENES: (0.7, 500),
    ContentType.BACK_COVER: (0.7, 500),
    ContentType.PREFACE: (0.7, 1500),
    ContentType.STORE_DESCRIPTION: (0.7, 500),
    ContentType.SYNOPSIS: (0.7, 500),
}


def summary_context(summary_text: str) -> str:
    """User message for whole-context content types."""
    return f"""BOOK SUMMARY:

{summary_text}"""


def chunk_context(summary_text: str, chunk_text: str, chunk_index: int, total_chunks: int) -> str:
    """User message for per-chunk content types: shared summary plus one chunk."""
    return f"""BOOK SUMMARY (context for the whole book):

{summary_text}

---

EXCERPT {chunk_index + 1} OF {total_chunks}:

{chunk_text}"""
