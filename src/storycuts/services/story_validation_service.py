"""
Story validation service.

Handles input validation for pipeline actions, including:
- Idea and synopsis text validation
- Story text validation
- Section key validation
"""

import logging
from typing import Any, Optional

from src.storycuts.sections import get_section_config, get_section_keys
from src.storycuts.utils.errors import ValidationError

logger = logging.getLogger(__name__)

IDEA_REQUIRED_MESSAGE = "스토리 아이디어를 입력해주세요."
SYNOPSIS_REQUIRED_MESSAGE = "선택된 시놉시스 내용이 비어있습니다."
STORY_REQUIRED_MESSAGE = "구조를 분석할 스토리가 없습니다. 먼저 스토리를 생성해주세요."
SECTION_CONTENT_REQUIRED_MESSAGE = "컷을 나눌 섹션 내용이 없습니다. 먼저 스토리 구조를 분석해주세요."
SYNOPSES_PENDING_MESSAGE = "시놉시스를 생성하는 중입니다. 생성이 끝난 뒤 시놉시스를 선택해주세요."


class StoryValidationService:
    """Service for validating pipeline action input."""

    MAX_IDEA_LENGTH = 2000
    MAX_SYNOPSIS_LENGTH = 4000
    MAX_STORY_LENGTH = 20000

    def _validate_text(self, value: Any, field: str, required_message: str, max_length: int) -> str:
        if value is None or not isinstance(value, str):
            raise ValidationError(required_message, details={"field": field})

        value = value.strip()
        if not value:
            raise ValidationError(required_message, details={"field": field})

        if len(value) > max_length:
            raise ValidationError(
                f"입력이 너무 깁니다 (최대 {max_length}자).",
                details={"field": field, "length": len(value), "max_length": max_length}
            )
        return value

    def validate_idea(self, idea: Any) -> str:
        """
        Validate a story idea.

        Returns:
            The stripped idea

        Raises:
            ValidationError: If the idea is missing, blank or too long
        """
        return self._validate_text(idea, "idea", IDEA_REQUIRED_MESSAGE, self.MAX_IDEA_LENGTH)

    def validate_synopsis(self, synopsis: Any) -> str:
        """Validate a (possibly edited) synopsis chosen for story generation."""
        return self._validate_text(synopsis, "synopsis", SYNOPSIS_REQUIRED_MESSAGE, self.MAX_SYNOPSIS_LENGTH)

    def validate_story(self, story: Any) -> str:
        """Validate story text submitted for structuring or used as cut context."""
        return self._validate_text(story, "story", STORY_REQUIRED_MESSAGE, self.MAX_STORY_LENGTH)

    def validate_section_content(self, content: Any) -> str:
        """Validate the text of one structured section."""
        return self._validate_text(content, "section_content", SECTION_CONTENT_REQUIRED_MESSAGE, self.MAX_STORY_LENGTH)

    def validate_section_key(self, section_key: Optional[str]) -> str:
        """
        Validate and normalize a section key.

        Returns:
            The lower-case section key

        Raises:
            ValidationError: If the key is not one of the four fixed section keys
        """
        if not get_section_config(section_key):
            raise ValidationError(
                f"알 수 없는 섹션입니다: '{section_key}'",
                details={
                    "field": "section",
                    "value": section_key,
                    "allowed": get_section_keys(),
                }
            )
        return section_key.strip().lower()
