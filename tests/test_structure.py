"""Test structure detection."""
import pytest
from pydantic import ValidationError

from ingestion.models import StructureDescriptor, StructureMatch
from ingestion.structure import detect_structure
from utils.errors import InvalidInputError


def _text_with_chapters(length, offsets):
    chars = list("x" * length)
    for i, offset in enumerate(offsets, start=1):
        marker = f"Chapter {i}"
        chars[offset:offset + len(marker)] = marker
    return "".join(chars)


def test_empty_text_rejected():
    """Test that empty text raises InvalidInputError."""
    with pytest.raises(InvalidInputError):
        detect_structure("")


def test_chapters_at_exact_offsets():
    """Test the 50k-character scenario with three chapter markers."""
    text = _text_with_chapters(50000, [0, 15000, 35000])

    structure = detect_structure(text)

    assert structure.has_chapters
    assert [m.offset for m in structure.chapter_matches] == [0, 15000, 35000]
    assert [m.title for m in structure.chapter_matches] == ["Chapter 1", "Chapter 2", "Chapter 3"]


def test_italian_chapters_case_insensitive():
    """Test that Capitolo markers are found regardless of case."""
    text = "CAPITOLO 1\nC'era una volta.\n\ncapitolo 2\nFine."

    structure = detect_structure(text)

    assert structure.has_chapters
    assert [m.title for m in structure.chapter_matches] == ["CAPITOLO 1", "capitolo 2"]


def test_sections_at_line_start():
    """Test section markers, including one on the first line."""
    text = "§ 1\nIntro text.\n  Sezione 2\nMore text.\nSection 3 body"

    structure = detect_structure(text)

    assert not structure.has_chapters
    assert structure.has_sections
    assert [m.title for m in structure.section_matches] == ["§ 1", "Sezione 2", "Section 3"]
    assert structure.section_matches[0].offset == 0
    for match in structure.section_matches:
        assert text[match.offset:].startswith(match.title)


def test_section_marker_mid_line_ignored():
    """Test that a section sign inside a sentence is not a boundary."""
    structure = detect_structure("See § 4 of the contract for details.")

    assert not structure.has_sections


def test_paragraph_count():
    """Test counting of blank-line paragraph breaks."""
    structure = detect_structure("One.\n\nTwo.\n   \nThree.\nStill three.")

    assert structure.total_paragraphs == 2


def test_plain_text_has_no_structure():
    """Test that text without markers reports nothing."""
    structure = detect_structure("Just a single paragraph of prose.")

    assert not structure.has_chapters
    assert not structure.has_sections
    assert structure.chapter_matches == []


def test_deterministic():
    """Test identical input gives identical output."""
    text = _text_with_chapters(2000, [0, 700, 1500])

    assert detect_structure(text) == detect_structure(text)


def test_descriptor_rejects_unordered_offsets():
    """Test the strictly-increasing offset invariant."""
    with pytest.raises(ValidationError):
        StructureDescriptor(
            has_chapters=True,
            chapter_matches=[StructureMatch(offset=10, title="a"), StructureMatch(offset=10, title="b")]
        )
