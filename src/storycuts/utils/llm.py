"""
LLM client interface and JSON response helpers.

BaseLLMClient is the seam between the generation client and a concrete
provider (see providers/gemini.py). Providers return raw response text;
parse_json_response() turns that text into a JSON object.
"""

import json
import logging
import re
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

_JSON_OBJECT_PATTERN = re.compile(r'\{[\s\S]*\}')


class BaseLLMClient(ABC):
    """Provider-agnostic interface for schema-constrained JSON generation."""

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Name of the model used for generation."""

    @abstractmethod
    def generate_json(
        self,
        prompt: str,
        response_schema: Dict[str, Any],
        temperature: Optional[float] = None,
        top_p: Optional[float] = None,
        timeout: Optional[float] = None,
    ) -> str:
        """
        Generate a JSON document conforming to ``response_schema``.

        Args:
            prompt: Full prompt text
            response_schema: Declared response shape (Gemini OpenAPI subset)
            temperature: Sampling temperature
            top_p: Nucleus sampling cutoff (provider default if None)
            timeout: Request timeout in seconds

        Returns:
            Raw response text (expected to be JSON)
        """

    @abstractmethod
    def check_availability(self) -> bool:
        """Check if the backend is reachable and the model is usable."""


def parse_json_response(text: Optional[str]) -> Dict[str, Any]:
    """
    Parse a JSON object from model output.

    The text is parsed as-is first. If that fails (for example the model
    wrapped the JSON in a markdown code block), the outermost ``{...}`` block
    is extracted and parsed once more.

    Args:
        text: Raw response text

    Returns:
        Parsed JSON object

    Raises:
        ValueError: If no JSON object can be parsed from the text
    """
    if not text or not text.strip():
        raise ValueError("Empty response text")

    stripped = text.strip()
    try:
        parsed = json.loads(stripped)
    except json.JSONDecodeError:
        json_match = _JSON_OBJECT_PATTERN.search(stripped)
        if not json_match:
            raise ValueError("Response is not valid JSON")
        try:
            parsed = json.loads(json_match.group(0))
        except json.JSONDecodeError as e:
            raise ValueError(f"Response is not valid JSON: {e}")
        logger.debug("Recovered JSON object from wrapped response text")

    if not isinstance(parsed, dict):
        raise ValueError(f"Expected a JSON object, got {type(parsed).__name__}")
    return parsed
