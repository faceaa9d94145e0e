"""
Tests for the HTTP layer: JSON API endpoints and the HTML POST-redirect-GET
pages, served by a Flask test client over the fake-provider pipeline.
"""

import pytest

from app import create_app
from src.storycuts.models import ActionOutcome
from src.storycuts.views import CUTS_LOADER_MESSAGE
from tests.conftest import wait_for
from tests.test_constants import (
    HTTP_BAD_GATEWAY,
    HTTP_BAD_REQUEST,
    HTTP_FOUND,
    HTTP_GATEWAY_TIMEOUT,
    HTTP_METHOD_NOT_ALLOWED,
    HTTP_NOT_FOUND,
    HTTP_OK,
    INVALID_SECTION,
    SAMPLE_CUTS,
    SAMPLE_IDEA,
    SAMPLE_STORY,
    SAMPLE_STRUCTURE,
    SAMPLE_SYNOPSES,
)


class TestInfoEndpoints:
    """Test read-only endpoints."""

    def test_health(self, client):
        response = client.get('/api/health')
        assert response.status_code == HTTP_OK
        assert response.get_json() == {"status": "ok"}

    def test_sections(self, client):
        data = client.get('/api/sections').get_json()
        assert [section["key"] for section in data["sections"]] == [
            "introduction", "development", "turn", "conclusion"
        ]
        assert data["sections"][1]["cuts"] == "7-10개"

    def test_state_starts_idle(self, client):
        data = client.get('/api/state').get_json()
        assert data["phase"] == "idle"
        assert data["synopses"] is None

    def test_unknown_route_is_json_404(self, client):
        response = client.get('/api/nothing-here')
        assert response.status_code == HTTP_NOT_FOUND
        assert response.get_json()["error_code"] == "NOT_FOUND"
        assert response.get_json()["details"] == {"path": "/api/nothing-here"}

    def test_wrong_method(self, client):
        response = client.get('/api/ideas')
        assert response.status_code == HTTP_METHOD_NOT_ALLOWED
        data = response.get_json()
        assert data["error_code"] == "METHOD_NOT_ALLOWED"
        assert data["details"] == {"method": "GET", "path": "/api/ideas"}


class TestJsonPipeline:
    """Test the JSON action endpoints end to end."""

    def test_full_flow(self, client, fake_provider):
        """Test idea → synopses → story → structure → cuts through the API."""
        response = client.post('/api/ideas', json={"idea": SAMPLE_IDEA})
        assert response.status_code == HTTP_OK
        data = response.get_json()
        assert data["outcome"] == "applied"
        assert data["state"]["synopses"] == SAMPLE_SYNOPSES

        response = client.post('/api/synopses/select', json={"index": 1})
        assert response.status_code == HTTP_OK
        assert response.get_json()["state"]["story"] == SAMPLE_STORY
        assert SAMPLE_SYNOPSES[1] in fake_provider.calls[-1]["prompt"]

        response = client.post('/api/story/confirm', json={})
        assert response.status_code == HTTP_OK
        assert response.get_json()["state"]["structured_story"] == SAMPLE_STRUCTURE

        response = client.post('/api/sections/turn/cuts')
        data = response.get_json()
        assert response.status_code == HTTP_OK
        assert data["state"]["story_cuts"] == {"turn": SAMPLE_CUTS}
        assert data["state"]["phase"] == "cuts"

        response = client.post('/api/sections/turn/cuts')
        assert response.get_json()["outcome"] == "skipped"
        assert fake_provider.count("cuts") == 1

    def test_blank_idea_is_400(self, client, fake_provider):
        response = client.post('/api/ideas', json={"idea": "   "})

        assert response.status_code == HTTP_BAD_REQUEST
        data = response.get_json()
        assert data["outcome"] == "rejected"
        assert data["error"] == "스토리 아이디어를 입력해주세요."
        assert data["error_code"] == "VALIDATION_ERROR"
        assert fake_provider.calls == []

    def test_missing_body_is_400(self, client):
        response = client.post('/api/ideas', data="not json", content_type="text/plain")
        assert response.status_code == HTTP_BAD_REQUEST

    def test_edited_synopsis_text(self, client, pipeline_with_synopses, fake_provider):
        response = client.post('/api/synopses/select', json={"synopsis": "내일이가 부산 바다에서 서핑을 배운다."})
        assert response.status_code == HTTP_OK
        assert "서핑" in fake_provider.calls[-1]["prompt"]

    @pytest.mark.parametrize("payload", [{"index": 7}, {"index": "0"}, {"index": True}])
    def test_bad_synopsis_index(self, client, pipeline_with_synopses, payload):
        response = client.post('/api/synopses/select', json=payload)
        assert response.status_code == HTTP_BAD_REQUEST
        assert response.get_json()["error_code"] == "VALIDATION_ERROR"

    def test_generation_failure_is_502(self, client, pipeline_with_synopses, fake_provider):
        fake_provider.responses["story"] = "I cannot do that"

        response = client.post('/api/synopses/select', json={"index": 0})

        assert response.status_code == HTTP_BAD_GATEWAY
        data = response.get_json()
        assert data["outcome"] == "failed"
        assert data["error"] == "스토리 생성 중 오류가 발생했습니다. 잠시 후 다시 시도해주세요."

    def test_generation_timeout_is_504(self, client, pipeline_with_story, fake_provider):
        fake_provider.responses["structure"] = TimeoutError("deadline")

        response = client.post('/api/story/confirm')

        assert response.status_code == HTTP_GATEWAY_TIMEOUT
        assert response.get_json()["error_code"] == "GENERATION_TIMEOUT"

    def test_unknown_section_is_400(self, client, structured_pipeline, fake_provider):
        response = client.post(f'/api/sections/{INVALID_SECTION}/cuts')
        assert response.status_code == HTTP_BAD_REQUEST
        assert fake_provider.count("cuts") == 0


class TestHtmlPages:
    """Test the server-rendered page and its form posts."""

    def test_index_renders_idle_page(self, client):
        response = client.get('/')
        assert response.status_code == HTTP_OK
        html = response.get_data(as_text=True)
        assert "내일이의 모험 스토리" in html
        assert "시놉시스 생성하기" in html

    def test_submit_idea_redirects_to_synopses(self, client):
        response = client.post('/ideas', data={"idea": SAMPLE_IDEA})
        assert response.status_code == HTTP_FOUND

        html = client.get('/').get_data(as_text=True)
        assert "3가지 시놉시스 제안" in html
        assert "시놉시스 #3" in html
        assert SAMPLE_SYNOPSES[0] in html

    def test_blank_idea_shows_error(self, client):
        client.post('/ideas', data={"idea": ""})
        html = client.get('/').get_data(as_text=True)
        assert "스토리 아이디어를 입력해주세요." in html

    def test_select_edited_synopsis(self, client, pipeline_with_synopses, fake_provider):
        client.post('/synopses/2/story', data={"synopsis": "편집된 시놉시스"})

        assert "편집된 시놉시스" in fake_provider.calls[-1]["prompt"]
        html = client.get('/').get_data(as_text=True)
        assert "생성된 스토리" in html
        assert "스토리 구조 분석하기" in html

    def test_confirm_and_flip_card(self, client, pipeline_with_story, fake_provider):
        client.post('/story/confirm')
        html = client.get('/').get_data(as_text=True)
        assert "스토리 구조 분석 (기승전결)" in html
        assert "컷별로 보기" in html

        client.post('/sections/introduction/cuts')
        html = client.get('/').get_data(as_text=True)
        assert "기 (도입) - 컷 분할" in html
        assert SAMPLE_CUTS[0] in html
        assert "뒤로가기" in html

        client.post('/sections/introduction/front')
        html = client.get('/').get_data(as_text=True)
        assert "기 (도입) - 컷 분할" not in html

        client.post('/sections/introduction/cuts')
        assert fake_provider.count("cuts") == 1

    def test_expand_and_collapse(self, client, structured_pipeline):
        client.post('/sections/turn/expand')
        html = client.get('/').get_data(as_text=True)
        assert 'class="modal-backdrop"' in html

        client.post('/view/collapse')
        html = client.get('/').get_data(as_text=True)
        assert 'class="modal-backdrop"' not in html

    def test_flipped_cards_reset_on_new_synopsis(self, client, structured_pipeline):
        client.post('/sections/introduction/cuts')
        assert structured_pipeline.select_synopsis(SAMPLE_SYNOPSES[1]) == ActionOutcome.APPLIED
        structured_pipeline.confirm_story()

        html = client.get('/').get_data(as_text=True)
        assert "컷 분할" not in html

    @pytest.mark.parametrize("action", ["cuts", "front", "expand"])
    def test_invalid_section_form_post_shows_error(self, client, structured_pipeline, fake_provider, action):
        response = client.post(f'/sections/{INVALID_SECTION}/{action}')
        assert response.status_code == HTTP_FOUND

        html = client.get('/').get_data(as_text=True)
        assert "알 수 없는 섹션입니다" in html
        assert 'class="modal-backdrop"' not in html
        assert structured_pipeline.snapshot().last_error.error_code == "VALIDATION_ERROR"
        assert fake_provider.count("cuts") == 0


class TestBackgroundFormPosts:
    """Form posts return before Gemini answers and the page shows the busy state."""

    @pytest.fixture
    def background_client(self, pipeline):
        flask_app = create_app(
            config={"TESTING": True, "SECRET_KEY": "test-secret", "RATELIMIT_ENABLED": False},
            pipeline=pipeline,
        )
        with flask_app.test_client() as test_client:
            yield test_client

    def test_index_shows_loader_while_synopses_generate(self, background_client, pipeline, fake_provider):
        started, release = fake_provider.hold("synopses")

        response = background_client.post('/ideas', data={"idea": SAMPLE_IDEA})
        assert response.status_code == HTTP_FOUND
        assert started.wait(timeout=5)

        html = background_client.get('/').get_data(as_text=True)
        assert "새로운 모험을 구상하고 있습니다" in html
        assert 'http-equiv="refresh"' in html
        assert "생성 중..." in html
        assert SAMPLE_SYNOPSES[0] not in html

        release.set()
        assert wait_for(lambda: not pipeline.snapshot().busy.any())

        html = background_client.get('/').get_data(as_text=True)
        assert "새로운 모험을 구상하고 있습니다" not in html
        assert 'http-equiv="refresh"' not in html
        assert SAMPLE_SYNOPSES[0] in html

    def test_flipped_card_shows_cut_loader(self, background_client, structured_pipeline, fake_provider):
        started, release = fake_provider.hold("cuts")

        background_client.post('/sections/turn/cuts')
        assert started.wait(timeout=5)

        html = background_client.get('/').get_data(as_text=True)
        assert "전 (위기/절정) - 컷 분할" in html
        assert CUTS_LOADER_MESSAGE in html
        assert 'http-equiv="refresh"' in html

        release.set()
        assert wait_for(lambda: "turn" in structured_pipeline.snapshot().story_cuts)
        assert SAMPLE_CUTS[0] in background_client.get('/').get_data(as_text=True)
