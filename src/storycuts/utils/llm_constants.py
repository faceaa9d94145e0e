"""
Constants for Gemini story generation.

This module centralizes the model defaults, sampling parameters and request
limits used by the generation client and the Gemini provider.
"""

# Model
DEFAULT_GEMINI_MODEL = "gemini-2.5-flash"

# Response format requested from Gemini for every stage
JSON_MIME_TYPE = "application/json"

# Request timeout in seconds (override with LLM_TIMEOUT_SECONDS).
# There is no retry: a timed out request surfaces as GenerationTimeoutError.
DEFAULT_REQUEST_TIMEOUT_SECONDS = 60.0
MAX_REQUEST_TIMEOUT_SECONDS = 600.0

# Number of synopses generated per idea
SYNOPSIS_COUNT = 3

# Total running time of the short video every story is written for
TARGET_VIDEO_SECONDS = 60

# Sampling parameters per stage.
# Brainstorming stages run hotter; structuring and cutting favour determinism
# once the author has committed to a story.
SAMPLING_PARAMS = {
    "synopses": {"temperature": 0.9, "top_p": 0.95},
    "story": {"temperature": 0.8, "top_p": 0.95},
    "structure": {"temperature": 0.5, "top_p": None},
    "cuts": {"temperature": 0.6, "top_p": None},
}
