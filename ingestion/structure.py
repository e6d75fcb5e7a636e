"""Detection of chapters, sections and paragraph breaks in raw text."""
import re
from typing import List

from ingestion.models import StructureDescriptor, StructureMatch
from utils.errors import InvalidInputError
from utils.logger import setup_logger

logger = setup_logger(__name__)

CHAPTER_PATTERN = re.compile(r"Chapter \d+|Capitolo \d+", re.IGNORECASE)
# Section markers only count at the start of a line; group 1 is the marker itself
SECTION_PATTERN = re.compile(r"\n[ \t]*(§[ \t]*\d+|(?:Section|Sezione)[ \t]+\d+)", re.IGNORECASE)
PARAGRAPH_PATTERN = re.compile(r"\n\s*\n")


def detect_structure(text: str) -> StructureDescriptor:
    """Scan text for chapter markers, section markers and paragraph breaks.

    Args:
        text: Full extracted document text

    Returns:
        StructureDescriptor with match offsets in document order

    Raises:
        InvalidInputError: If text is empty
    """
    if not text:
        raise InvalidInputError("Text is required for structure detection")

    chapters = [
        StructureMatch(offset=m.start(), title=m.group(0))
        for m in CHAPTER_PATTERN.finditer(text)
    ]
    sections = _find_sections(text)
    total_paragraphs = sum(1 for _ in PARAGRAPH_PATTERN.finditer(text))

    logger.debug(
        f"Structure: {len(chapters)} chapters, {len(sections)} sections, "
        f"{total_paragraphs} paragraph breaks"
    )

    return StructureDescriptor(
        has_chapters=bool(chapters),
        has_sections=bool(sections),
        total_paragraphs=total_paragraphs,
        chapter_matches=chapters,
        section_matches=sections,
    )


def _find_sections(text: str) -> List[StructureMatch]:
    # A leading newline lets a marker on the very first line match too
    padded = "\n" + text
    return [
        StructureMatch(offset=m.start(1) - 1, title=m.group(1))
        for m in SECTION_PATTERN.finditer(padded)
    ]
