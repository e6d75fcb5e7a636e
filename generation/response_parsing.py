"""Parsing of raw model responses into JSON."""
import json
import re
from typing import Any

from utils.errors import GenerationValidationError
from utils.logger import setup_logger

logger = setup_logger(__name__)

CODE_FENCE_PATTERN = re.compile(r"^\s*```(?:json)?\s*|\s*```\s*$", re.IGNORECASE)


def strip_code_fences(response_text: str) -> str:
    """Remove a leading and a trailing markdown code fence around a JSON payload."""
    return CODE_FENCE_PATTERN.sub("", response_text).strip()


def parse_json_response(response_text: str, content_type: str) -> Any:
    """Parse a model response as JSON.

    Tries the fence-stripped text first, then the outermost {...} span in
    case the model wrapped the payload in prose.

    Raises:
        GenerationValidationError: If no valid JSON can be extracted
    """
    cleaned = strip_code_fences(response_text)
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as e:
        error = e

    start = cleaned.find("{")
    end = cleaned.rfind("}")
    if start != -1 and end > start:
        try:
            return json.loads(cleaned[start:end + 1])
        except json.JSONDecodeError:
            pass

    logger.error(f"Could not extract valid JSON from {content_type} response. First 500 chars: {response_text[:500]}")
    raise GenerationValidationError(content_type, f"response is not valid JSON ({error.msg})")
