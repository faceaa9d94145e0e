"""
Google Gemini LLM Provider implementation.

This module provides the GeminiProvider class for schema-constrained JSON
generation with Google's Generative AI models. All Gemini-specific code is
isolated here.
"""

import os
import logging
import time
from typing import Any, Dict, List, Optional

import google.generativeai as genai  # type: ignore
from google.generativeai.types import GenerationConfig  # type: ignore

from ..utils.llm import BaseLLMClient
from ..utils.llm_constants import DEFAULT_GEMINI_MODEL, JSON_MIME_TYPE

logger = logging.getLogger(__name__)

# Models known to support response_schema; used when the model list
# cannot be fetched during an availability check.
FALLBACK_ALLOWED_MODELS: List[str] = [
    "gemini-2.5-flash",
    "gemini-2.5-pro",
    "gemini-2.0-flash",
    "gemini-1.5-pro",
    "gemini-1.5-flash",
]


def _normalize_model_name(model_name: str) -> str:
    """
    Normalize a Gemini model name to the 'models/...' form.

    Raises:
        ValueError: If the model name is empty
    """
    base_name = (model_name or "").strip().replace("models/", "")
    if not base_name:
        raise ValueError("Gemini model name must not be empty")
    return f"models/{base_name}"


class GeminiProvider(BaseLLMClient):
    """
    Provider for interacting with Google Gemini API.

    Every call asks for ``application/json`` output constrained by a response
    schema. The provider does no retrying; a failed or timed out request is
    logged and re-raised for the caller to classify.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model_name: str = DEFAULT_GEMINI_MODEL,
        temperature: float = 0.7
    ):
        """
        Initialize Gemini provider.

        Args:
            api_key: Google API key (if None, uses GOOGLE_API_KEY or API_KEY env var)
            model_name: Model name (default: gemini-2.5-flash)
            temperature: Default generation temperature

        Raises:
            ValueError: If no API key is configured or the model name is empty
        """
        self.api_key = api_key or os.getenv("GOOGLE_API_KEY") or os.getenv("API_KEY")
        if not self.api_key:
            raise ValueError("GOOGLE_API_KEY environment variable is required")

        genai.configure(api_key=self.api_key)  # type: ignore[attr-defined]
        self._genai = genai

        self._model_name = _normalize_model_name(model_name)
        self.temperature = temperature

        logger.info(f"Initialized GeminiProvider with model: {self._model_name}")

    @property
    def model_name(self) -> str:
        """Get the model name being used by this provider."""
        return self._model_name

    def generate_json(
        self,
        prompt: str,
        response_schema: Dict[str, Any],
        temperature: Optional[float] = None,
        top_p: Optional[float] = None,
        timeout: Optional[float] = None,
    ) -> str:
        """
        Generate a JSON document with the configured Gemini model.

        Args:
            prompt: Full prompt text
            response_schema: Response schema passed as GenerationConfig.response_schema
            temperature: Generation temperature (overrides instance default)
            top_p: Nucleus sampling cutoff
            timeout: Request timeout in seconds

        Returns:
            Response text, or "" if the model returned no text

        Raises:
            Exception: If the request fails (re-raised unchanged)
        """
        start_time = time.time()
        try:
            model = self._genai.GenerativeModel(self.model_name)  # type: ignore
            config_kwargs: Dict[str, Any] = {
                "temperature": temperature if temperature is not None else self.temperature,
                "response_mime_type": JSON_MIME_TYPE,
                "response_schema": response_schema,
            }
            if top_p is not None:
                config_kwargs["top_p"] = top_p
            generation_config = GenerationConfig(**config_kwargs)  # type: ignore

            request_options = {"timeout": timeout} if timeout else None
            response = model.generate_content(  # type: ignore
                prompt,
                generation_config=generation_config,
                request_options=request_options,
            )

            text = self._extract_text(response)
            duration = time.time() - start_time
            if not text:
                finish_reason = 'UNKNOWN'
                if getattr(response, 'candidates', None):
                    finish_reason = getattr(response.candidates[0], 'finish_reason', 'UNKNOWN')
                logger.warning(f"Gemini generation finished with reason: {finish_reason}. No text returned.")
                return ""

            logger.debug(f"Gemini JSON generation took {duration:.2f}s ({len(text)} chars)")
            return text.strip()

        except (ConnectionError, TimeoutError, OSError) as e:
            logger.error(f"Network error generating content with Gemini: {e}", exc_info=True)
            raise
        except (ValueError, TypeError, AttributeError) as e:
            logger.error(f"Configuration error generating content with Gemini: {e}", exc_info=True)
            raise
        except Exception as e:
            # Google API exceptions (DeadlineExceeded, ResourceExhausted, ...)
            logger.error(f"Error generating content with Gemini: {e}", exc_info=True)
            raise

    @staticmethod
    def _extract_text(response: Any) -> str:
        """Return the response text, joining candidate parts when .text is unavailable."""
        try:
            if response.text:
                return response.text
        except ValueError:
            # .text raises when the candidate has no parts (e.g. blocked output)
            pass

        content = ""
        for candidate in getattr(response, 'candidates', None) or []:
            parts = getattr(getattr(candidate, 'content', None), 'parts', None) or []
            for part in parts:
                if getattr(part, 'text', None):
                    content += part.text
        return content

    def check_availability(self) -> bool:
        """
        Check if the Gemini API is available and configured correctly.

        Returns:
            True if the configured model is listed by the API, False otherwise
        """
        base_model = self.model_name.replace("models/", "")
        try:
            available_models = [
                m.name.replace("models/", "")
                for m in self._genai.list_models()  # type: ignore
                if getattr(m, 'name', None)
            ]
        except (ConnectionError, TimeoutError, OSError) as e:
            logger.error(f"Network error checking Gemini API availability: {e}", exc_info=True)
            return False
        except Exception as e:
            logger.error(
                f"Failed to list Gemini models, checking against fallback list: {e}",
                exc_info=True
            )
            available_models = FALLBACK_ALLOWED_MODELS.copy()

        is_available = base_model in available_models
        if not is_available:
            logger.warning(f"Configured Gemini model '{base_model}' not found in available models")
        return is_available
