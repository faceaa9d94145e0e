"""
Helper functions shared by the route handlers.
"""

import logging
from typing import Any, Dict, Optional, Tuple

from flask import current_app, jsonify, request, session

from src.storycuts.models import ActionOutcome, PipelineSnapshot
from src.storycuts.pipeline import StoryPipeline
from src.storycuts.views import ViewPreferences

logger = logging.getLogger(__name__)

PIPELINE_EXTENSION = "storycuts.pipeline"
VIEW_SESSION_KEY = "view"


def get_pipeline() -> StoryPipeline:
    """
    Get the pipeline registered on the current app.

    Returns:
        The process-wide StoryPipeline instance
    """
    return current_app.extensions[PIPELINE_EXTENSION]


def load_view_preferences(epoch: int) -> ViewPreferences:
    """Load the visitor's card preferences for the given pipeline epoch."""
    return ViewPreferences.from_session(session.get(VIEW_SESSION_KEY), epoch)


def save_view_preferences(prefs: ViewPreferences):
    session[VIEW_SESSION_KEY] = prefs.to_session()


def outcome_status(outcome: ActionOutcome, snapshot: PipelineSnapshot) -> int:
    """
    Map an action outcome to an HTTP status code.

    Rejected input is a 400; a failed generation uses the status of the error
    kind (502, or 504 for timeouts); everything else is a 200.
    """
    if outcome == ActionOutcome.REJECTED:
        return 400
    if outcome == ActionOutcome.FAILED:
        error = snapshot.last_error
        if error is not None and error.error_code == "GENERATION_TIMEOUT":
            return 504
        return 502
    return 200


def build_action_response(outcome: ActionOutcome, snapshot: Optional[PipelineSnapshot] = None) -> Tuple[Any, int]:
    """
    Build the JSON response for a pipeline action.

    Args:
        outcome: Result of the action
        snapshot: Pipeline state after the action (default: taken now)

    Returns:
        Tuple of (json_response, status_code)
    """
    if snapshot is None:
        snapshot = get_pipeline().snapshot()
    status = outcome_status(outcome, snapshot)
    body: Dict[str, Any] = {
        "outcome": outcome.value,
        "state": snapshot.to_dict(),
    }
    if status != 200 and snapshot.last_error is not None:
        body["error"] = snapshot.last_error.message
        body["error_code"] = snapshot.last_error.error_code
    return jsonify(body), status


def get_json_body() -> Dict[str, Any]:
    """Get the request JSON body as a dict ({} when absent or not an object)."""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}
