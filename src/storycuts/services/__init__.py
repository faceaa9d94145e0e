"""
Service layer for Naeily Story Cuts.

Services hold logic that is independent of the HTTP layer and can be used by
route handlers, the pipeline and tests alike.
"""

from .story_validation_service import StoryValidationService

__all__ = [
    'StoryValidationService',
]
