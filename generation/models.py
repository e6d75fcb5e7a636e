"""Pydantic models for generated book metadata."""
from enum import Enum
from typing import List, Type

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from utils.errors import GenerationValidationError

SYNOPSIS_MIN_LENGTH = 100


class ContentType(str, Enum):
    """Kinds of metadata the generator produces."""
    CATEGORIES = "categories"
    KEYWORDS = "keywords"
    SCENES = "scenes"
    BACK_COVER = "backCover"
    PREFACE = "preface"
    STORE_DESCRIPTION = "storeDescription"
    SYNOPSIS = "synopsis"

    @property
    def is_per_chunk(self) -> bool:
        return self in (ContentType.CATEGORIES, ContentType.KEYWORDS)


def _non_empty(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("must not be empty")
    return value


class GenerationResult(BaseModel):
    """Base for all results; accepts the camelCase keys models reply with."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class CategoriesResult(GenerationResult):
    """BISAC-style category labels."""
    main_category: str = Field(alias="mainCategory")
    secondary_categories: List[str] = Field(alias="secondaryCategories", min_length=2, max_length=2)

    @field_validator("main_category")
    @classmethod
    def _check_main(cls, value: str) -> str:
        return _non_empty(value)

    @field_validator("secondary_categories")
    @classmethod
    def _check_secondary(cls, value: List[str]) -> List[str]:
        return [_non_empty(v) for v in value]


class KeywordsResult(GenerationResult):
    """Seven search keywords."""
    keywords: List[str] = Field(min_length=7, max_length=7)

    @field_validator("keywords")
    @classmethod
    def _check_keywords(cls, value: List[str]) -> List[str]:
        return [_non_empty(v) for v in value]


class Scene(GenerationResult):
    """A cover-art scene proposal."""
    title: str
    description: str

    @field_validator("title", "description")
    @classmethod
    def _check_text(cls, value: str) -> str:
        return _non_empty(value)


class ScenesResult(GenerationResult):
    scenes: List[Scene] = Field(min_length=3, max_length=3)


class BackCoverResult(GenerationResult):
    back_cover: str = Field(alias="backCover")

    @field_validator("back_cover")
    @classmethod
    def _check_text(cls, value: str) -> str:
        return _non_empty(value)


class PrefaceResult(GenerationResult):
    preface: str

    @field_validator("preface")
    @classmethod
    def _check_text(cls, value: str) -> str:
        return _non_empty(value)


class StoreDescriptionResult(GenerationResult):
    store_description: str = Field(alias="storeDescription")

    @field_validator("store_description")
    @classmethod
    def _check_text(cls, value: str) -> str:
        return _non_empty(value)


class SynopsisResult(GenerationResult):
    synopsis: str = Field(min_length=SYNOPSIS_MIN_LENGTH)


RESULT_MODELS = {
    ContentType.CATEGORIES: CategoriesResult,
    ContentType.KEYWORDS: KeywordsResult,
    ContentType.SCENES: ScenesResult,
    ContentType.BACK_COVER: BackCoverResult,
    ContentType.PREFACE: PrefaceResult,
    ContentType.STORE_DESCRIPTION: StoreDescriptionResult,
    ContentType.SYNOPSIS: SynopsisResult,
}


def validate_result(content_type: ContentType, data: object) -> GenerationResult:
    """Validate parsed JSON against the content type's schema.

    Raises:
        GenerationValidationError: If the shape does not match
    """
    model: Type[GenerationResult] = RESULT_MODELS[content_type]
    if not isinstance(data, dict):
        raise GenerationValidationError(content_type.value, f"expected a JSON object, got {type(data).__name__}")
    try:
        return model.model_validate(data)
    except ValidationError as e:
        errors = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise GenerationValidationError(content_type.value, errors) from e
