"""Pydantic models for ingestion module."""
from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import List, Optional


class StructureMatch(BaseModel):
    """A structural marker found in the source text."""
    model_config = ConfigDict(frozen=True)

    offset: int = Field(ge=0)
    title: str


class StructureDescriptor(BaseModel):
    """Natural boundaries detected in a document's text.

    Only valid together with the exact text it was computed from.
    """
    model_config = ConfigDict(frozen=True)

    has_chapters: bool = False
    has_sections: bool = False
    total_paragraphs: int = 0
    chapter_matches: List[StructureMatch] = Field(default_factory=list)
    section_matches: List[StructureMatch] = Field(default_factory=list)

    @model_validator(mode="after")
    def _offsets_strictly_increasing(self) -> "StructureDescriptor":
        for name in ("chapter_matches", "section_matches"):
            offsets = [m.offset for m in getattr(self, name)]
            if any(b <= a for a, b in zip(offsets, offsets[1:])):
                raise ValueError(f"{name} offsets must be strictly increasing")
        return self


class Chunk(BaseModel):
    """A bounded-size segment of a document, in document order."""
    model_config = ConfigDict(frozen=True)

    text: str = Field(min_length=1)
    token_count: int = Field(ge=0)
    chapter_title: Optional[str] = None
    section_title: Optional[str] = None
    start_offset: Optional[int] = None
    end_offset: Optional[int] = None
    is_sub_chunk: bool = False
    sub_chunk_index: Optional[int] = None


class RollingSummary(BaseModel):
    """Length-bounded digest of all chunks, used as shared model context."""
    model_config = ConfigDict(frozen=True)

    summary_text: str
    processed_chunk_count: int
    estimated_token_count: int


class PreparedDocument(BaseModel):
    """Everything the caller stores for a document after upload."""
    structure: StructureDescriptor
    chunks: List[Chunk]
    summary: RollingSummary
