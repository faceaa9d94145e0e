"""
Shared pytest fixtures for test suite.

This module provides common fixtures used across multiple test files,
reducing duplication and ensuring consistency.
"""

import os
import threading
import time
from typing import Any, Dict, List, Optional, Tuple

import pytest
from unittest.mock import patch, MagicMock

from app import create_app
from src.storycuts.generation_client import GenerationClient
from src.storycuts.models import ActionOutcome
from src.storycuts.pipeline import StoryPipeline
from src.storycuts.providers.gemini import GeminiProvider
from src.storycuts.utils.llm import BaseLLMClient
from tests.test_constants import CUTS_JSON, STORY_JSON, STRUCTURE_JSON, SYNOPSES_JSON


def stage_of(response_schema: Dict[str, Any]) -> str:
    """Identify the generation stage from the response schema a call declares."""
    required = response_schema.get("required", [])
    if "synopses" in required:
        return "synopses"
    if "story" in required:
        return "story"
    if "cuts" in required:
        return "cuts"
    return "structure"


class FakeProvider(BaseLLMClient):
    """
    Scripted stand-in for GeminiProvider.

    Each stage answers from ``responses``: a string is returned as the
    response text, an exception instance is raised, and a list is consumed
    one item per call. Every call is recorded in ``calls``.

    hold(stage) makes the next call for that stage block until released, so
    tests can act while a request is still outstanding.
    """

    def __init__(self, responses: Optional[Dict[str, Any]] = None):
        self.responses: Dict[str, Any] = {
            "synopses": SYNOPSES_JSON,
            "story": STORY_JSON,
            "structure": STRUCTURE_JSON,
            "cuts": CUTS_JSON,
        }
        if responses:
            self.responses.update(responses)
        self.calls: List[Dict[str, Any]] = []
        self._holds: Dict[str, List[Tuple[threading.Event, threading.Event]]] = {}
        self._lock = threading.Lock()

    @property
    def model_name(self) -> str:
        return "models/fake-gemini"

    def hold(self, stage: str) -> Tuple[threading.Event, threading.Event]:
        """
        Block the next call for ``stage``.

        Returns:
            (started, release): started is set once the call is in flight;
            set release to let it return
        """
        started, release = threading.Event(), threading.Event()
        with self._lock:
            self._holds.setdefault(stage, []).append((started, release))
        return started, release

    def count(self, stage: str) -> int:
        return sum(1 for call in self.calls if call["stage"] == stage)

    def generate_json(self, prompt, response_schema, temperature=None, top_p=None, timeout=None):
        stage = stage_of(response_schema)
        with self._lock:
            self.calls.append({
                "stage": stage,
                "prompt": prompt,
                "response_schema": response_schema,
                "temperature": temperature,
                "top_p": top_p,
                "timeout": timeout,
            })
            scripted = self.responses[stage]
            response = scripted.pop(0) if isinstance(scripted, list) else scripted
            hold = self._holds[stage].pop(0) if self._holds.get(stage) else None

        if hold is not None:
            started, release = hold
            started.set()
            assert release.wait(timeout=5), f"held '{stage}' call was never released"

        if isinstance(response, Exception):
            raise response
        return response

    def check_availability(self) -> bool:
        return True


def run_in_thread(target, *args) -> Tuple[threading.Thread, Dict[str, Any]]:
    """Run ``target(*args)`` on a thread; the result lands in the returned dict."""
    result: Dict[str, Any] = {}

    def runner():
        result["outcome"] = target(*args)

    thread = threading.Thread(target=runner, daemon=True)
    thread.start()
    return thread, result


def wait_for(predicate, timeout: float = 5.0) -> bool:
    """Poll ``predicate`` until it returns True or ``timeout`` seconds pass."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


@pytest.fixture
def fake_provider():
    """Scripted provider answering every stage with the sample payloads."""
    return FakeProvider()


@pytest.fixture
def generation_client(fake_provider):
    """GenerationClient wired to the fake provider."""
    return GenerationClient(provider=fake_provider, timeout=5)


@pytest.fixture
def pipeline(generation_client):
    """Fresh StoryPipeline at the idle stage."""
    return StoryPipeline(client=generation_client)


@pytest.fixture
def pipeline_with_synopses(pipeline):
    """Pipeline holding three synopses."""
    assert pipeline.submit_idea("부산에서 돼지국밥 맛집 찾기") == ActionOutcome.APPLIED
    return pipeline


@pytest.fixture
def pipeline_with_story(pipeline_with_synopses):
    """Pipeline holding synopses and a generated story."""
    synopsis = pipeline_with_synopses.snapshot().synopses[0]
    assert pipeline_with_synopses.select_synopsis(synopsis) == ActionOutcome.APPLIED
    return pipeline_with_synopses


@pytest.fixture
def structured_pipeline(pipeline_with_story):
    """Pipeline holding a story split into 기승전결."""
    assert pipeline_with_story.confirm_story() == ActionOutcome.APPLIED
    return pipeline_with_story


@pytest.fixture
def app(pipeline):
    """
    Flask app serving the test pipeline, rate limiting disabled.

    Form posts run their generation call before redirecting so page
    assertions see the committed result.
    """
    flask_app = create_app(
        config={
            "TESTING": True,
            "SECRET_KEY": "test-secret",
            "RATELIMIT_ENABLED": False,
            "BACKGROUND_GENERATION": False,
        },
        pipeline=pipeline,
    )
    return flask_app


@pytest.fixture
def client(app):
    """Flask test client."""
    with app.test_client() as test_client:
        yield test_client


# ============================================================================
# Gemini mocking
# ============================================================================

@pytest.fixture
def mock_llm_client():
    """
    GeminiProvider with google.generativeai patched out.

    The mocked model answers every generate_content call with a response whose
    ``text`` is the sample synopses JSON. The mocks are attached to the
    provider as ``_mock_model`` and ``_mock_model_class`` for assertions.

    Usage:
        def test_something(mock_llm_client):
            text = mock_llm_client.generate_json("prompt", {"type": "OBJECT"})
    """
    with patch.dict(os.environ, {"GOOGLE_API_KEY": "test_key"}):
        with patch('google.generativeai.configure'):
            with patch('google.generativeai.GenerativeModel') as mock_model_class:
                mock_model = MagicMock()
                mock_response = MagicMock()
                mock_response.text = SYNOPSES_JSON
                mock_model.generate_content.return_value = mock_response
                mock_model_class.return_value = mock_model

                client = GeminiProvider(api_key="test_key")
                client._mock_model = mock_model
                client._mock_model_class = mock_model_class
                yield client
