"""
Data models for the story pipeline.

Pydantic models for the JSON shapes Gemini is asked to return, for the
four-act structured story, and for read-only snapshots of pipeline state.
Response models are the single decode-and-validate step at the generation
client boundary: anything that does not fit them is a GenerationError.
"""

from enum import Enum
from typing import Dict, List, Optional, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .sections import SECTION_KEYS


class Stage(str, Enum):
    """Pipeline stage that owns a Gemini call."""
    SYNOPSES = "synopses"
    STORY = "story"
    STRUCTURE = "structure"
    CUTS = "cuts"


class PipelinePhase(str, Enum):
    """Where the user is in the idea → synopses → story → structure → cuts chain."""
    IDLE = "idle"
    SYNOPSES = "synopses"
    STORY = "story"
    STRUCTURED = "structured"
    CUTS = "cuts"


class ActionOutcome(str, Enum):
    """Result of a pipeline action."""
    APPLIED = "applied"
    SKIPPED = "skipped"
    REJECTED = "rejected"
    FAILED = "failed"
    STALE_DISCARDED = "stale_discarded"
    DISPATCHED = "dispatched"


def _require_text(value: str) -> str:
    if not value or not value.strip():
        raise ValueError("must not be blank")
    return value.strip()


class SynopsesResponse(BaseModel):
    """Gemini response for the synopsis brainstorm."""
    synopses: List[str] = Field(..., min_length=1)

    @field_validator("synopses")
    @classmethod
    def validate_items(cls, v):
        return [_require_text(item) for item in v]


class StoryResponse(BaseModel):
    """Gemini response for story expansion."""
    story: str

    @field_validator("story")
    @classmethod
    def validate_story(cls, v):
        return _require_text(v)


class StructuredStory(BaseModel):
    """A story split into the four acts of 기승전결."""
    model_config = ConfigDict(frozen=True, extra="ignore")

    introduction: str = Field(..., description="기: setting, characters, first hint of the event")
    development: str = Field(..., description="승: the event unfolds and conflict rises")
    turn: str = Field(..., description="전: turning point and climax")
    conclusion: str = Field(..., description="결: resolution")

    @field_validator("introduction", "development", "turn", "conclusion")
    @classmethod
    def validate_section(cls, v):
        return _require_text(v)

    def section(self, section_key: str) -> str:
        """Return the text of one section."""
        if section_key not in SECTION_KEYS:
            raise KeyError(section_key)
        return getattr(self, section_key)

    def sections(self) -> List[tuple]:
        """Return (key, text) pairs in story order."""
        return [(key, getattr(self, key)) for key in SECTION_KEYS]


class CutsResponse(BaseModel):
    """Gemini response for a section's storyboard cuts."""
    cuts: List[str]


class ErrorInfo(BaseModel):
    """The last user-visible failure."""
    model_config = ConfigDict(frozen=True)

    message: str
    error_code: str
    stage: Optional[str] = None
    section: Optional[str] = None


class BusyFlags(BaseModel):
    """Which stage calls are outstanding."""
    synopses: bool = False
    story: bool = False
    structure: bool = False
    cuts: Dict[str, bool] = Field(default_factory=lambda: {key: False for key in SECTION_KEYS})

    def any(self) -> bool:
        return self.synopses or self.story or self.structure or any(self.cuts.values())


class PipelineSnapshot(BaseModel):
    """Immutable view of pipeline state handed to the presentation layer."""
    model_config = ConfigDict(frozen=True)

    epoch: int = 0
    phase: PipelinePhase = PipelinePhase.IDLE
    synopses: Optional[List[str]] = None
    story: Optional[str] = None
    structured_story: Optional[StructuredStory] = None
    story_cuts: Dict[str, List[str]] = Field(default_factory=dict)
    busy: BusyFlags = Field(default_factory=BusyFlags)
    last_error: Optional[ErrorInfo] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert snapshot to a JSON-ready dictionary."""
        return self.model_dump(mode="json")
