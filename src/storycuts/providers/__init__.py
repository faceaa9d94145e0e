"""
LLM Provider implementations.

This module provides concrete implementations of LLM providers.
Currently supports Google Gemini API via GeminiProvider.
"""

from .gemini import GeminiProvider
from .factory import create_provider, get_default_provider, reset_default_provider, get_request_timeout

__all__ = [
    "GeminiProvider",
    "create_provider",
    "get_default_provider",
    "reset_default_provider",
    "get_request_timeout",
]
