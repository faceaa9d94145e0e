"""
GenerationClient - translates pipeline requests into Gemini calls and back.

Each operation is a single request/response round trip: build the prompt,
declare the response schema, call the provider once, then decode and validate
the JSON against a pydantic model. There is no retry and no caching here;
every failure is normalised to GenerationError (or GenerationTimeoutError)
carrying the stage that made the call.
"""

import logging
from typing import Callable, List, Optional, Type, TypeVar

from google.api_core import exceptions as google_exceptions  # type: ignore
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from .models import CutsResponse, Stage, StoryResponse, StructuredStory, SynopsesResponse
from .sections import is_section_key
from .utils.errors import GenerationError, GenerationTimeoutError, ValidationError
from .utils.llm import BaseLLMClient, parse_json_response
from .utils.llm_constants import SYNOPSIS_COUNT
from .utils.story_prompt_builder import (
    GenerationRequest,
    build_cuts_request,
    build_story_request,
    build_structure_request,
    build_synopses_request,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

_TIMEOUT_ERRORS = (TimeoutError, google_exceptions.DeadlineExceeded)


class GenerationClient:
    """
    Client for the four generation stages.

    The provider is resolved lazily so the web app can start (and serve the
    idle page) before GOOGLE_API_KEY is configured.
    """

    def __init__(
        self,
        provider: Optional[BaseLLMClient] = None,
        provider_factory: Optional[Callable[[], BaseLLMClient]] = None,
        timeout: Optional[float] = None,
    ):
        """
        Initialize the generation client.

        Args:
            provider: LLM provider instance (created on first use if None)
            provider_factory: Factory used when provider is None
                (default: providers.get_default_provider)
            timeout: Request timeout in seconds (default: LLM_TIMEOUT_SECONDS or 60)
        """
        self._provider = provider
        self._provider_factory = provider_factory
        self._timeout = timeout

    @property
    def provider(self) -> BaseLLMClient:
        """Get the LLM provider, creating the default one on first access."""
        if self._provider is None:
            if self._provider_factory is None:
                from .providers.factory import get_default_provider
                self._provider_factory = get_default_provider
            self._provider = self._provider_factory()
        return self._provider

    @property
    def timeout(self) -> float:
        if self._timeout is None:
            from .providers.factory import get_request_timeout
            self._timeout = get_request_timeout()
        return self._timeout

    def request_synopses(self, idea: str) -> List[str]:
        """
        Generate candidate synopses for an idea.

        Args:
            idea: Non-empty story idea

        Returns:
            Exactly SYNOPSIS_COUNT synopsis strings

        Raises:
            GenerationError: If the call fails or the response has fewer than
                SYNOPSIS_COUNT non-blank synopses
        """
        request = build_synopses_request(idea)
        result = self._call(request, SynopsesResponse)
        if len(result.synopses) < SYNOPSIS_COUNT:
            logger.error(
                f"Gemini returned {len(result.synopses)} synopses, expected {SYNOPSIS_COUNT}"
            )
            raise GenerationError(
                Stage.SYNOPSES.value,
                f"Expected {SYNOPSIS_COUNT} synopses, received {len(result.synopses)}."
            )
        if len(result.synopses) > SYNOPSIS_COUNT:
            logger.warning(
                f"Gemini returned {len(result.synopses)} synopses, keeping the first {SYNOPSIS_COUNT}"
            )
        return result.synopses[:SYNOPSIS_COUNT]

    def request_story(self, synopsis: str) -> str:
        """
        Expand one synopsis into a short story.

        Raises:
            GenerationError: If the call fails or the story field is missing or blank
        """
        request = build_story_request(synopsis)
        return self._call(request, StoryResponse).story

    def request_structure(self, story: str) -> StructuredStory:
        """
        Split a story into introduction, development, turn and conclusion.

        Raises:
            GenerationError: If the call fails or any of the four sections is missing
        """
        request = build_structure_request(story)
        return self._call(request, StructuredStory)

    def request_cuts(self, section_key: str, section_content: str, full_story: str) -> List[str]:
        """
        Break one section into storyboard cuts.

        The pacing guideline for ``section_key`` is embedded in the prompt.

        Args:
            section_key: One of introduction, development, turn, conclusion
            section_content: Text of that section
            full_story: The whole story, for context

        Returns:
            Ordered list of cut descriptions (may be empty)

        Raises:
            ValidationError: If section_key is unknown (no call is made)
            GenerationError: If the call fails or cuts is missing or not an array
        """
        if not is_section_key(section_key):
            raise ValidationError(
                f"Unknown section: '{section_key}'",
                details={"field": "section", "value": section_key}
            )
        request = build_cuts_request(section_key, section_content, full_story)
        return self._call(request, CutsResponse).cuts

    def _call(self, request: GenerationRequest, response_model: Type[ModelT]) -> ModelT:
        """Run one provider call and validate the response against response_model."""
        stage = request.stage
        try:
            text = self.provider.generate_json(
                prompt=request.prompt,
                response_schema=request.response_schema,
                temperature=request.temperature,
                top_p=request.top_p,
                timeout=self.timeout,
            )
        except _TIMEOUT_ERRORS as e:
            logger.error(f"Gemini request for '{stage}' timed out: {e}")
            raise GenerationTimeoutError(stage, self.timeout) from e
        except Exception as e:
            logger.error(f"Error calling Gemini API for '{stage}': {e}", exc_info=True)
            raise GenerationError(stage, f"Failed to generate {stage} from API.") from e

        try:
            data = parse_json_response(text)
            result = response_model.model_validate(data)
        except (ValueError, PydanticValidationError) as e:
            logger.error(f"Invalid JSON structure for '{stage}' received from API: {e}")
            raise GenerationError(stage, f"Invalid JSON structure for {stage} received from API.") from e

        logger.info(f"Generated '{stage}' with {self.provider.model_name}")
        return result
