"""
Naeily Story Cuts

A four-stage pipeline that turns a one-line travel idea for the penguin
'내일이' into synopses, a short story, a 기승전결 structure and storyboard
cuts for a 60 second video.
"""

from .sections import (
    SECTION_KEYS,
    SECTION_CONFIGS,
    get_section_config,
    get_section_keys,
    get_section_label,
    get_pacing_guideline,
)
from .models import ActionOutcome, PipelinePhase, PipelineSnapshot, StructuredStory
from .generation_client import GenerationClient
from .pipeline import StoryPipeline

__version__ = "0.1.0"

__all__ = [
    "SECTION_KEYS",
    "SECTION_CONFIGS",
    "get_section_config",
    "get_section_keys",
    "get_section_label",
    "get_pacing_guideline",
    "ActionOutcome",
    "PipelinePhase",
    "PipelineSnapshot",
    "StructuredStory",
    "GenerationClient",
    "StoryPipeline",
]
