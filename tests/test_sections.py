"""
Tests for the 기승전결 section configuration and the data models built on it.
"""

import pytest
from pydantic import ValidationError as PydanticValidationError

from src.storycuts.models import BusyFlags, PipelineSnapshot, StructuredStory, SynopsesResponse
from src.storycuts.sections import (
    SECTION_CONFIGS,
    SECTION_KEYS,
    get_pacing_guideline,
    get_section_config,
    get_section_keys,
    get_section_label,
    is_section_key,
)
from tests.test_constants import INVALID_SECTION, SAMPLE_STRUCTURE


class TestSectionRetrieval:
    """Test section configuration retrieval."""

    def test_section_keys_in_story_order(self):
        """Test that sections come in 기, 승, 전, 결 order."""
        assert get_section_keys() == ["introduction", "development", "turn", "conclusion"]

    def test_every_key_has_a_config(self):
        assert set(SECTION_KEYS) == set(SECTION_CONFIGS)
        for key in SECTION_KEYS:
            config = get_section_config(key)
            assert {"label", "short_label", "duration", "cuts", "role"} <= set(config)

    def test_get_section_config_case_insensitive(self):
        assert get_section_config("TURN") == get_section_config(" turn ") == SECTION_CONFIGS["turn"]

    @pytest.mark.parametrize("key", [INVALID_SECTION, "", None, 3])
    def test_get_section_config_unknown(self, key):
        assert get_section_config(key) is None

    def test_is_section_key_is_exact(self):
        assert is_section_key("development") is True
        assert is_section_key("Development") is False
        assert is_section_key(INVALID_SECTION) is False


class TestPacingGuidelines:
    """Test the per-section share of the 60 second video."""

    @pytest.mark.parametrize("key,label,duration,cuts", [
        ("introduction", "기 (도입)", "10-15초", "3-5개"),
        ("development", "승 (전개)", "약 20초", "7-10개"),
        ("turn", "전 (위기/절정)", "15-20초", "6-8개"),
        ("conclusion", "결 (결말)", "5-10초", "4-6개"),
    ])
    def test_guideline_table(self, key, label, duration, cuts):
        assert get_section_label(key) == label
        assert get_pacing_guideline(key) == (duration, cuts)

    def test_unknown_section_has_no_guideline(self):
        assert get_pacing_guideline(INVALID_SECTION) is None
        assert get_section_label(INVALID_SECTION) is None


class TestStructuredStory:
    """Test the four-act StructuredStory model."""

    def test_valid_structure(self):
        story = StructuredStory.model_validate(SAMPLE_STRUCTURE)
        assert story.sections() == [(key, SAMPLE_STRUCTURE[key]) for key in SECTION_KEYS]
        assert story.section("turn") == SAMPLE_STRUCTURE["turn"]

    def test_unknown_section_lookup(self):
        story = StructuredStory.model_validate(SAMPLE_STRUCTURE)
        with pytest.raises(KeyError):
            story.section(INVALID_SECTION)

    def test_blank_section_rejected(self):
        with pytest.raises(PydanticValidationError):
            StructuredStory.model_validate({**SAMPLE_STRUCTURE, "turn": "  "})

    def test_structure_is_immutable(self):
        story = StructuredStory.model_validate(SAMPLE_STRUCTURE)
        with pytest.raises(PydanticValidationError):
            story.turn = "다른 이야기"


def test_synopses_response_requires_items():
    with pytest.raises(PydanticValidationError):
        SynopsesResponse.model_validate({"synopses": []})


def test_busy_flags_cover_every_section():
    flags = BusyFlags()
    assert set(flags.cuts) == set(SECTION_KEYS)
    assert flags.any() is False
    flags.cuts["conclusion"] = True
    assert flags.any() is True


def test_snapshot_to_dict_is_json_ready():
    snapshot = PipelineSnapshot(
        structured_story=StructuredStory.model_validate(SAMPLE_STRUCTURE),
        story_cuts={"introduction": ["컷 1"]},
    )
    data = snapshot.to_dict()
    assert data["phase"] == "idle"
    assert data["structured_story"] == SAMPLE_STRUCTURE
    assert data["story_cuts"] == {"introduction": ["컷 1"]}
    assert data["busy"]["cuts"]["turn"] is False
