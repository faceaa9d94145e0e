"""
Flask route handlers for Naeily Story Cuts.

Two surfaces share the same StoryPipeline:
- HTML pages using POST-redirect-GET (form posts start the action, then
  redirect back to the index page, which renders a snapshot and refreshes
  itself while a call is outstanding)
- a JSON API returning the action outcome and the state snapshot
"""

import logging
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from flask import Flask
    from flask_limiter import Limiter

from flask import current_app, jsonify, redirect, render_template, request, url_for

from src.storycuts.api.helpers import (
    build_action_response,
    get_json_body,
    get_pipeline,
    load_view_preferences,
    save_view_preferences,
)
from src.storycuts.models import ActionOutcome, Stage
from src.storycuts.sections import SECTION_CONFIGS, get_section_keys
from src.storycuts.services import StoryValidationService
from src.storycuts.utils.errors import ValidationError
from src.storycuts.views import build_page_context

logger = logging.getLogger(__name__)

GENERATION_LIMIT = "10 per minute"

_validation_service = StoryValidationService()


def _generation_limit() -> str:
    """Rate limit for generation endpoints (GENERATE_RATE_LIMIT config, default 10 per minute)."""
    return current_app.config.get('GENERATE_RATE_LIMIT', GENERATION_LIMIT)


def _in_background() -> bool:
    """Whether form posts hand the generation call to a worker thread (BACKGROUND_GENERATION)."""
    return current_app.config.get('BACKGROUND_GENERATION', True)


def _form_section_key(section_key: str) -> Optional[str]:
    """
    Validate a section key from a form URL.

    An unknown key is recorded as the pipeline's last error so the page can
    show it after the redirect.

    Returns:
        The normalized key, or None if it was rejected
    """
    try:
        return _validation_service.validate_section_key(section_key)
    except ValidationError as e:
        get_pipeline().reject(e, Stage.CUTS)
        return None


def _synopsis_at(index: int) -> Optional[str]:
    """Return the stored synopsis at ``index``, or None if there is none."""
    synopses = get_pipeline().snapshot().synopses or []
    if 0 <= index < len(synopses):
        return synopses[index]
    return None


def register_routes(flask_app: 'Flask', limiter_instance: 'Limiter') -> None:
    """
    Register all application routes.

    Args:
        flask_app: Flask application instance
        limiter_instance: Limiter instance for rate limiting
    """

    # ------------------------------------------------------------------
    # HTML pages
    # ------------------------------------------------------------------

    @flask_app.route('/')
    def index():
        """Render the main page from the current pipeline snapshot."""
        snapshot = get_pipeline().snapshot()
        prefs = load_view_preferences(snapshot.epoch)
        save_view_preferences(prefs)
        return render_template('index.html', page=build_page_context(snapshot, prefs))

    @flask_app.route('/ideas', methods=['POST'])
    @limiter_instance.limit(_generation_limit)
    def submit_idea_form():
        get_pipeline().submit_idea(request.form.get('idea', ''), background=_in_background())
        return redirect(url_for('index'))

    @flask_app.route('/synopses/<int:index>/story', methods=['POST'])
    @limiter_instance.limit(_generation_limit)
    def select_synopsis_form(index):
        """Generate a story from the (possibly edited) synopsis card at ``index``."""
        synopsis = request.form.get('synopsis')
        if synopsis is None:
            synopsis = _synopsis_at(index)
        get_pipeline().select_synopsis(synopsis, background=_in_background())
        return redirect(url_for('index'))

    @flask_app.route('/story/confirm', methods=['POST'])
    @limiter_instance.limit(_generation_limit)
    def confirm_story_form():
        get_pipeline().confirm_story(background=_in_background())
        return redirect(url_for('index'))

    @flask_app.route('/sections/<section_key>/cuts', methods=['POST'])
    @limiter_instance.limit(_generation_limit)
    def view_section_cuts(section_key):
        """
        Flip a section card to its cut list.

        Cuts are requested only when the section has none yet; the pipeline
        skips the call otherwise.
        """
        key = _form_section_key(section_key)
        if key is None:
            return redirect(url_for('index'))
        pipeline = get_pipeline()

        prefs = load_view_preferences(pipeline.epoch)
        prefs.flip_to_cuts(key)
        save_view_preferences(prefs)

        pipeline.request_section_cuts(key, background=_in_background())
        return redirect(url_for('index'))

    @flask_app.route('/sections/<section_key>/front', methods=['POST'])
    def view_section_front(section_key):
        key = _form_section_key(section_key)
        if key is not None:
            prefs = load_view_preferences(get_pipeline().epoch)
            prefs.flip_to_front(key)
            save_view_preferences(prefs)
        return redirect(url_for('index'))

    @flask_app.route('/sections/<section_key>/expand', methods=['POST'])
    def expand_section(section_key):
        key = _form_section_key(section_key)
        if key is not None:
            prefs = load_view_preferences(get_pipeline().epoch)
            prefs.expand(key)
            save_view_preferences(prefs)
        return redirect(url_for('index'))

    @flask_app.route('/view/collapse', methods=['POST'])
    def collapse_section():
        prefs = load_view_preferences(get_pipeline().epoch)
        prefs.collapse()
        save_view_preferences(prefs)
        return redirect(url_for('index'))

    # ------------------------------------------------------------------
    # JSON API
    # ------------------------------------------------------------------

    @flask_app.route('/api/health')
    def health():
        """
        Health check endpoint.

        Returns:
            JSON response with status "ok" indicating the service is running
        """
        return jsonify({"status": "ok"})

    @flask_app.route('/api/sections', methods=['GET'])
    def get_sections():
        """List the four 기승전결 sections with their pacing guidelines."""
        return jsonify({
            "sections": [
                {"key": key, **SECTION_CONFIGS[key]}
                for key in get_section_keys()
            ]
        })

    @flask_app.route('/api/state', methods=['GET'])
    def get_state():
        return jsonify(get_pipeline().snapshot().to_dict())

    @flask_app.route('/api/ideas', methods=['POST'])
    @limiter_instance.limit(_generation_limit)
    def submit_idea():
        """
        Generate three synopses for an idea.

        Request body:
            {"idea": "부산에서 돼지국밥 맛집 찾기"}

        Returns:
            {"outcome": ..., "state": {...}}; 400 on blank idea, 502/504 on
            generation failure
        """
        data = get_json_body()
        outcome = get_pipeline().submit_idea(data.get('idea'))
        return build_action_response(outcome)

    @flask_app.route('/api/synopses/select', methods=['POST'])
    @limiter_instance.limit(_generation_limit)
    def select_synopsis():
        """
        Generate a story from a synopsis.

        Request body:
            {"synopsis": "..."} with the (possibly edited) text, or
            {"index": 0} to use a stored synopsis unchanged
        """
        data = get_json_body()
        synopsis = data.get('synopsis')
        if synopsis is None and 'index' in data:
            index = data.get('index')
            if not isinstance(index, int) or isinstance(index, bool):
                raise ValidationError(
                    "index must be an integer.",
                    details={"field": "index", "value": index}
                )
            synopsis = _synopsis_at(index)
            if synopsis is None:
                raise ValidationError(
                    f"No synopsis at index {index}.",
                    details={"field": "index", "value": index}
                )
        outcome = get_pipeline().select_synopsis(synopsis)
        return build_action_response(outcome)

    @flask_app.route('/api/story/confirm', methods=['POST'])
    @limiter_instance.limit(_generation_limit)
    def confirm_story():
        """Split the current story into 기승전결. Body may carry {"story": "..."}."""
        data = get_json_body()
        outcome = get_pipeline().confirm_story(data.get('story'))
        return build_action_response(outcome)

    @flask_app.route('/api/sections/<section_key>/cuts', methods=['POST'])
    @limiter_instance.limit(_generation_limit)
    def request_section_cuts(section_key):
        """
        Generate storyboard cuts for one section.

        Request body (optional):
            {"section_content": "...", "full_story": "..."}

        Returns 200 with outcome "skipped" when the section already has cuts.
        """
        data = get_json_body()
        outcome = get_pipeline().request_section_cuts(
            section_key,
            data.get('section_content'),
            data.get('full_story'),
        )
        if outcome == ActionOutcome.SKIPPED:
            logger.debug(f"Cut request for '{section_key}' skipped")
        return build_action_response(outcome)
