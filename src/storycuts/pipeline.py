"""
StoryPipeline - owns the idea → synopses → story → structure → cuts chain.

Stages:
1. Synopses   (submit_idea)
2. Story      (select_synopsis)
3. Structure  (confirm_story)
4. Cuts       (request_section_cuts, once per section)

The pipeline is the single writer of all story state. Each action follows the
same sequence: validate input, then (under the lock) invalidate downstream
state, clear the last error, set the stage's busy flag and capture the
current epoch; call the generation client outside the lock; then (under the
lock again) commit the result only if the epoch has not moved on.

Flask serves requests on several threads, so a newer action can start while
an older one is still waiting on Gemini. Submitting a new idea or choosing a
new synopsis advances the epoch; any response that arrives for an older epoch
is dropped instead of overwriting newer state.

Actions normally return once the call has been committed. With
``background=True`` the busy flag is set and the call runs on a daemon thread,
so a page can render the busy state while Gemini is still working.
"""

import logging
import threading
from typing import Any, Callable, Dict, List, Optional

from .generation_client import GenerationClient
from .models import (
    ActionOutcome,
    BusyFlags,
    ErrorInfo,
    PipelinePhase,
    PipelineSnapshot,
    Stage,
    StructuredStory,
)
from .sections import SECTION_KEYS, get_section_label
from .services.story_validation_service import (
    SECTION_CONTENT_REQUIRED_MESSAGE,
    STORY_REQUIRED_MESSAGE,
    SYNOPSES_PENDING_MESSAGE,
    StoryValidationService,
)
from .utils.errors import GenerationError, GenerationTimeoutError, ValidationError

logger = logging.getLogger(__name__)

STAGE_ACTIVITY = {
    Stage.SYNOPSES: "시놉시스 생성",
    Stage.STORY: "스토리 생성",
    Stage.STRUCTURE: "스토리 구조 분석",
}


def _failure_message(stage: Stage, error: GenerationError, section: Optional[str] = None) -> str:
    """Build the stage-qualified message shown to the user for a failed call."""
    if stage == Stage.CUTS:
        activity = f"'{get_section_label(section)}' 컷 생성"
    else:
        activity = STAGE_ACTIVITY[stage]

    if isinstance(error, GenerationTimeoutError):
        return f"{activity} 요청 시간이 초과되었습니다. 잠시 후 다시 시도해주세요."
    if stage == Stage.CUTS:
        return f"{activity} 중 오류가 발생했습니다."
    return f"{activity} 중 오류가 발생했습니다. 잠시 후 다시 시도해주세요."


class StoryPipeline:
    """
    State store for the four-stage generation pipeline.

    Holds the synopsis set, the chosen story, its four-act structure and the
    per-section cuts, plus busy flags for every outstanding call and the last
    user-visible error. Read state through snapshot(); change it only through
    the action methods.
    """

    def __init__(
        self,
        client: Optional[GenerationClient] = None,
        validation_service: Optional[StoryValidationService] = None,
    ):
        """
        Initialize the pipeline.

        Args:
            client: Generation client (default: GenerationClient with the default provider)
            validation_service: Input validator (default: StoryValidationService)
        """
        self.client = client or GenerationClient()
        self.validator = validation_service or StoryValidationService()
        self._lock = threading.RLock()

        self._epoch = 0
        self._synopses: Optional[List[str]] = None
        self._story: Optional[str] = None
        self._structured_story: Optional[StructuredStory] = None
        self._story_cuts: Dict[str, List[str]] = {}
        self._busy = {Stage.SYNOPSES: False, Stage.STORY: False, Stage.STRUCTURE: False}
        self._busy_cuts = {key: False for key in SECTION_KEYS}
        self._last_error: Optional[ErrorInfo] = None

    @property
    def epoch(self) -> int:
        """Current generation cycle; advances whenever the story chain is invalidated."""
        with self._lock:
            return self._epoch

    def snapshot(self) -> PipelineSnapshot:
        """Return an immutable copy of the current state."""
        with self._lock:
            return PipelineSnapshot(
                epoch=self._epoch,
                phase=self._phase(),
                synopses=list(self._synopses) if self._synopses is not None else None,
                story=self._story,
                structured_story=self._structured_story,
                story_cuts={key: list(cuts) for key, cuts in self._story_cuts.items()},
                busy=BusyFlags(
                    synopses=self._busy[Stage.SYNOPSES],
                    story=self._busy[Stage.STORY],
                    structure=self._busy[Stage.STRUCTURE],
                    cuts=dict(self._busy_cuts),
                ),
                last_error=self._last_error,
            )

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def submit_idea(self, text: Any, background: bool = False) -> ActionOutcome:
        """
        Stage 1: generate synopses for a new idea.

        A blank idea only sets the validation error. Otherwise the whole chain
        is discarded before the call is made.
        """
        try:
            idea = self.validator.validate_idea(text)
        except ValidationError as e:
            return self.reject(e, Stage.SYNOPSES)

        with self._lock:
            epoch = self._advance_epoch()
            self._synopses = None
            self._invalidate_story()
            self._busy[Stage.SYNOPSES] = True

        logger.info(f"Generating synopses (epoch {epoch})")
        return self._start(
            epoch,
            Stage.SYNOPSES,
            lambda: self.client.request_synopses(idea),
            self._commit_synopses,
            background=background,
        )

    def select_synopsis(self, text: Any, background: bool = False) -> ActionOutcome:
        """
        Stage 2: generate a story from one (possibly edited) synopsis.

        The synopsis set is kept so the user can pick another one later;
        the previous story and everything below it is discarded. Rejected
        while synopses for a new idea are still being generated.
        """
        try:
            synopsis = self.validator.validate_synopsis(text)
        except ValidationError as e:
            return self.reject(e, Stage.STORY)

        with self._lock:
            if self._busy[Stage.SYNOPSES]:
                return self.reject(
                    ValidationError(SYNOPSES_PENDING_MESSAGE, details={"field": "synopsis"}),
                    Stage.STORY,
                )
            epoch = self._advance_epoch()
            self._invalidate_story()
            self._busy[Stage.STORY] = True

        logger.info(f"Generating story from selected synopsis (epoch {epoch})")
        return self._start(
            epoch,
            Stage.STORY,
            lambda: self.client.request_story(synopsis),
            self._commit_story,
            background=background,
        )

    def confirm_story(self, story: Optional[str] = None, background: bool = False) -> ActionOutcome:
        """
        Stage 3: split the current story into 기승전결.

        Args:
            story: Story text to structure (default: the current story)
            background: Make the call on a worker thread and return DISPATCHED

        Returns:
            SKIPPED if the story is already structured or being structured,
            STALE_DISCARDED if the story was replaced while the request was
            being validated
        """
        with self._lock:
            epoch = self._epoch
            current_story = self._story
        try:
            if current_story is None:
                raise ValidationError(STORY_REQUIRED_MESSAGE, details={"field": "story"})
            text = self.validator.validate_story(story if story is not None else current_story)
        except ValidationError as e:
            return self.reject(e, Stage.STRUCTURE)

        with self._lock:
            if epoch != self._epoch:
                logger.debug(f"Story replaced during structure request (epoch {epoch}, now {self._epoch})")
                return ActionOutcome.STALE_DISCARDED
            if self._structured_story is not None or self._busy[Stage.STRUCTURE]:
                logger.debug("Story already structured, skipping")
                return ActionOutcome.SKIPPED
            self._last_error = None
            self._busy[Stage.STRUCTURE] = True

        logger.info(f"Structuring story (epoch {epoch})")
        return self._start(
            epoch,
            Stage.STRUCTURE,
            lambda: self.client.request_structure(text),
            self._commit_structure,
            background=background,
        )

    def request_section_cuts(
        self,
        section_key: Any,
        section_content: Optional[str] = None,
        full_story: Optional[str] = None,
        background: bool = False,
    ) -> ActionOutcome:
        """
        Stage 4: break one section into storyboard cuts.

        Cuts are generated at most once per section per story. A request for a
        section that already has cuts, or whose cuts are being generated, is
        SKIPPED without calling Gemini.

        Args:
            section_key: introduction, development, turn or conclusion
            section_content: Section text (default: from the structured story)
            full_story: Whole story for context (default: the current story)
            background: Make the call on a worker thread and return DISPATCHED
        """
        try:
            key = self.validator.validate_section_key(section_key)
        except ValidationError as e:
            return self.reject(e, Stage.CUTS)

        with self._lock:
            if self._cuts_present_or_pending(key):
                logger.debug(f"Cuts for '{key}' already present, skipping")
                return ActionOutcome.SKIPPED
            epoch = self._epoch
            structured = self._structured_story
            current_story = self._story

        try:
            if structured is None:
                raise ValidationError(SECTION_CONTENT_REQUIRED_MESSAGE, details={"field": "section_content"})
            content = self.validator.validate_section_content(
                section_content if section_content is not None else structured.section(key)
            )
            story = self.validator.validate_story(full_story if full_story is not None else current_story)
        except ValidationError as e:
            return self.reject(e, Stage.CUTS, section=key)

        with self._lock:
            if epoch != self._epoch:
                logger.debug(f"Story replaced during '{key}' cut request (epoch {epoch}, now {self._epoch})")
                return ActionOutcome.STALE_DISCARDED
            if self._cuts_present_or_pending(key):
                return ActionOutcome.SKIPPED
            self._last_error = None
            self._busy_cuts[key] = True

        logger.info(f"Generating cuts for '{key}' (epoch {epoch})")
        return self._start(
            epoch,
            Stage.CUTS,
            lambda: self.client.request_cuts(key, content, story),
            lambda cuts: self._commit_cuts(key, cuts),
            section=key,
            background=background,
        )

    def reject(self, error: ValidationError, stage: Stage, section: Optional[str] = None) -> ActionOutcome:
        """
        Record a validation failure as the last error without touching story state.

        Returns:
            REJECTED
        """
        with self._lock:
            self._last_error = ErrorInfo(
                message=error.message,
                error_code=error.error_code,
                stage=stage.value,
                section=section,
            )
        logger.info(f"Rejected '{stage.value}' action: {error.message}")
        return ActionOutcome.REJECTED

    # ------------------------------------------------------------------
    # Internals (callers hold self._lock unless noted)
    # ------------------------------------------------------------------

    def _start(
        self,
        epoch: int,
        stage: Stage,
        call: Callable[[], Any],
        commit: Callable[[Any], None],
        section: Optional[str] = None,
        background: bool = False,
    ) -> ActionOutcome:
        """Run the client call inline, or on a daemon thread when ``background`` is set. No lock."""
        if not background:
            return self._run(epoch, stage, call, commit, section)

        worker = threading.Thread(
            target=self._run,
            args=(epoch, stage, call, commit, section),
            name=f"storycuts-{stage.value}-{epoch}",
            daemon=True,
        )
        worker.start()
        return ActionOutcome.DISPATCHED

    def _run(
        self,
        epoch: int,
        stage: Stage,
        call: Callable[[], Any],
        commit: Callable[[Any], None],
        section: Optional[str] = None,
    ) -> ActionOutcome:
        """Make the client call without the lock, then commit or record the failure."""
        error: Optional[GenerationError] = None
        result = None
        try:
            result = call()
        except GenerationError as e:
            error = e
        except Exception as e:
            logger.exception(f"Unexpected error during '{stage.value}' generation: {e}")
            error = GenerationError(stage.value)

        with self._lock:
            if epoch != self._epoch:
                logger.debug(
                    f"Discarding stale '{stage.value}' response from epoch {epoch} "
                    f"(current epoch {self._epoch})"
                )
                return ActionOutcome.STALE_DISCARDED

            self._clear_busy(stage, section)
            if error is not None:
                self._last_error = ErrorInfo(
                    message=_failure_message(stage, error, section),
                    error_code=error.error_code,
                    stage=stage.value,
                    section=section,
                )
                logger.warning(f"'{stage.value}' generation failed: {error.message}")
                return ActionOutcome.FAILED

            commit(result)
            return ActionOutcome.APPLIED

    def _advance_epoch(self) -> int:
        self._epoch += 1
        self._last_error = None
        # Calls from the previous epoch can no longer clear their own flags
        for stage in self._busy:
            self._busy[stage] = False
        for key in self._busy_cuts:
            self._busy_cuts[key] = False
        return self._epoch

    def _invalidate_story(self):
        self._story = None
        self._structured_story = None
        self._story_cuts = {}

    def _clear_busy(self, stage: Stage, section: Optional[str] = None):
        if stage == Stage.CUTS:
            self._busy_cuts[section] = False
        else:
            self._busy[stage] = False

    def _cuts_present_or_pending(self, key: str) -> bool:
        return key in self._story_cuts or self._busy_cuts[key]

    def _commit_synopses(self, synopses: List[str]):
        self._synopses = list(synopses)

    def _commit_story(self, story: str):
        self._story = story

    def _commit_structure(self, structured: StructuredStory):
        self._structured_story = structured

    def _commit_cuts(self, key: str, cuts: List[str]):
        self._story_cuts[key] = list(cuts)

    def _phase(self) -> PipelinePhase:
        if self._structured_story is not None:
            return PipelinePhase.CUTS if self._story_cuts else PipelinePhase.STRUCTURED
        if self._story is not None:
            return PipelinePhase.STORY
        if self._synopses is not None:
            return PipelinePhase.SYNOPSES
        return PipelinePhase.IDLE
