"""
LLM Provider Factory.

This module provides factory functions for creating and managing LLM providers.
It handles provider selection based on environment configuration and provides
a default provider instance.
"""

import os
import logging
from typing import Optional

from .gemini import GeminiProvider
from ..utils.llm import BaseLLMClient
from ..utils.llm_constants import (
    DEFAULT_GEMINI_MODEL,
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
    MAX_REQUEST_TIMEOUT_SECONDS,
)

logger = logging.getLogger(__name__)

_default_provider: Optional[BaseLLMClient] = None


def create_provider(provider_name: Optional[str] = None, **kwargs) -> BaseLLMClient:
    """
    Create an LLM provider instance.

    Args:
        provider_name: Name of provider to create ('gemini' or None for auto-detect)
        **kwargs: Provider-specific configuration (api_key, model_name, temperature)

    Returns:
        BaseLLMClient instance

    Raises:
        ValueError: If provider_name is invalid or provider cannot be created
    """
    if provider_name is None:
        provider_name = os.getenv("LLM_PROVIDER", "gemini").lower()

    if provider_name == "gemini":
        return GeminiProvider(
            api_key=kwargs.get("api_key"),
            model_name=kwargs.get("model_name", os.getenv("LLM_MODEL", DEFAULT_GEMINI_MODEL)),
            temperature=kwargs.get("temperature", 0.7),
        )

    raise ValueError(
        f"Unknown LLM provider: {provider_name}. "
        f"Supported providers: gemini"
    )


def get_default_provider() -> BaseLLMClient:
    """
    Get or create the default LLM provider.

    Uses environment variables for configuration:
    - LLM_PROVIDER: Provider name (default: 'gemini')
    - GOOGLE_API_KEY (or API_KEY): Google API key (required for gemini)
    - LLM_MODEL: Model name (default: gemini-2.5-flash)

    Returns:
        BaseLLMClient instance
    """
    global _default_provider

    if _default_provider is None:
        _default_provider = create_provider()
        logger.info(f"Created default LLM provider: {type(_default_provider).__name__}")

    return _default_provider


def reset_default_provider() -> None:
    """
    Reset the default provider instance.

    This is useful for testing or when configuration changes.
    """
    global _default_provider
    _default_provider = None
    logger.info("Reset default LLM provider")


def get_request_timeout() -> float:
    """
    Get the Gemini request timeout from LLM_TIMEOUT_SECONDS.

    Returns:
        Timeout in seconds

    Raises:
        ValueError: If the value is not a positive number up to the maximum
    """
    value = os.getenv("LLM_TIMEOUT_SECONDS")
    if value is None or not value.strip():
        return DEFAULT_REQUEST_TIMEOUT_SECONDS
    try:
        timeout = float(value)
    except ValueError:
        raise ValueError(f"LLM_TIMEOUT_SECONDS must be a number, got '{value}'")
    if timeout <= 0 or timeout > MAX_REQUEST_TIMEOUT_SECONDS:
        raise ValueError(
            f"LLM_TIMEOUT_SECONDS must be between 0 and {MAX_REQUEST_TIMEOUT_SECONDS:g}, got {timeout:g}"
        )
    return timeout
