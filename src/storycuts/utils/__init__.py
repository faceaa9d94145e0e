"""
Utility modules for Naeily Story Cuts.

Modules:
- errors: API error hierarchy and Flask error handlers
- llm: LLM client interface and JSON response parsing
- llm_constants: Model defaults, timeouts and sampling parameters
- story_prompt_builder: Prompts and response schemas for each stage
"""

from .errors import (
    APIError,
    ValidationError,
    NotFoundError,
    RateLimitError,
    MethodNotAllowedError,
    GenerationError,
    GenerationTimeoutError,
    register_error_handlers,
)
from .llm import BaseLLMClient, parse_json_response

__all__ = [
    "APIError",
    "ValidationError",
    "NotFoundError",
    "RateLimitError",
    "MethodNotAllowedError",
    "GenerationError",
    "GenerationTimeoutError",
    "register_error_handlers",
    "BaseLLMClient",
    "parse_json_response",
]
