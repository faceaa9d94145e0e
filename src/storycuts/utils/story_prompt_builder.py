"""
Prompt builder for the Naeily story pipeline.

This module builds the prompt text, the declared response schema and the
sampling parameters for each Gemini call. Every prompt starts with the same
world-building block (WORLDVIEW_CONTEXT) so that all stages write about the
same character in the same world.

Key Components:
- WORLDVIEW_CONTEXT: fixed character profile and world setting (Korean)
- *_SCHEMA: response schemas in the Gemini OpenAPI subset
- GenerationRequest: parameter object handed to the provider
- build_*_request(): one builder per pipeline stage
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from .llm_constants import SAMPLING_PARAMS, SYNOPSIS_COUNT, TARGET_VIDEO_SECONDS
from ..sections import SECTION_CONFIGS, SECTION_KEYS, get_pacing_guideline, get_section_label


WORLDVIEW_CONTEXT = """
아래의 캐릭터와 세계관 설정을 기반으로 스토리를 생성해줘.

### 1. 캐릭터 프로필: 내일이
내일이는 즉흥적인 여행과 미식을 통해 삶의 즐거움을 찾는 캐릭터이다. 그의 모든 여정은 예측 불가능한 상황의 연속이지만, 특유의 긍정적인 성격으로 이를 헤쳐나간다.

- **이름**: 내일이 (Naeily)
- **종족**: 아델리 펭귄 수인(獸人)
- **직업**: 여행 크리에이터 (유튜브 채널 '내일은 어디 갈까?' 운영)
- **성격**: 낙천적이고 즉흥적이다. 계획보다 직감을 믿는다. 호기심이 많고 먹는 것에 진심이다. 다소 허술한 면이 있어 종종 곤경에 처하지만, 이내 맛있는 음식으로 극복한다. (ENFP 유형)
- **좌우명**: "일단 떠나면 어떻게든 되겠지! 그리고 맛있는 게 있겠지!"
- **특기**: 어떤 식재료든 최상의 맛을 내는 식당을 찾아내는 '맛집 탐지 능력'
- **약점**: 방향치. 복잡한 골목이나 대중교통 환승에 매우 취약하다.

### 2. 내일이의 세계관: 공존의 시대
내일이가 사는 세상은 인간과 다양한 동물 수인(獸人)이 함께 사회를 이루며 살아가는 현대 지구이다. 100년 전 '대이동 시대'를 거쳐 안정적인 공존 체제를 확립했다. 내일이는 한국의 펭귄 수인 집성촌 '남극마을' 출신이며, 미지의 맛을 찾아 전 세계를 여행한다.

### 3. 주요 주변 인물
- **라이벌, 박사막 (사막여우 수인)**: 빅데이터 기반의 초정밀 여행 플래너. 내일이의 즉흥성을 비판하지만 그의 맛집 탐지 능력은 인정한다.
- **멘토, 거선생 (바다거북 수인)**: '남극마을'의 원로. 내일이에게 수수께끼 같은 조언을 던져주며 여행의 힌트를 준다.

### 4. 세계관의 핵심 주제: 좌충우돌 미식 유랑
핵심은 '예측 불가능성에서 오는 즐거움'이다. 계획대로 되지 않는 여행 속에서 숨은 맛집을 발견하고 새로운 인연을 만나며 진짜 여행의 의미를 찾아 나가는 미식 유랑기이다.
---
"""


SYNOPSES_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "synopses": {
            "type": "ARRAY",
            "description": (
                f"{SYNOPSIS_COUNT} distinct and compelling synopses about Naeily's adventure, "
                "each 3-4 sentences long, in Korean."
            ),
            "items": {"type": "STRING"},
        },
    },
    "required": ["synopses"],
}

STORY_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "story": {
            "type": "STRING",
            "description": (
                "A short story about Naeily based on the provided synopsis, "
                "about 3-5 paragraphs long. This should be in Korean."
            ),
        },
    },
    "required": ["story"],
}

STRUCTURED_STORY_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "introduction": {
            "type": "STRING",
            "description": (
                "The 'Gi' (기, introduction) part of Naeily's story. "
                "Sets the scene and introduces characters. This should be in Korean."
            ),
        },
        "development": {
            "type": "STRING",
            "description": (
                "The 'Seung' (승, development) part of Naeily's story. "
                "The plot develops and conflict begins. This should be in Korean."
            ),
        },
        "turn": {
            "type": "STRING",
            "description": (
                "The 'Jeon' (전, turn/climax) part of Naeily's story. "
                "The turning point or climax of the plot. This should be in Korean."
            ),
        },
        "conclusion": {
            "type": "STRING",
            "description": (
                "The 'Gyeol' (결, conclusion) part of Naeily's story. "
                "The resolution of the conflict. This should be in Korean."
            ),
        },
    },
    "required": list(SECTION_KEYS),
}

STORY_CUTS_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "cuts": {
            "type": "ARRAY",
            "description": (
                "A list of strings, where each string is a detailed scene-by-scene 'cut' "
                "for a webtoon or storyboard, in Korean."
            ),
            "items": {"type": "STRING"},
        },
    },
    "required": ["cuts"],
}


@dataclass(frozen=True)
class GenerationRequest:
    """Everything the provider needs for one schema-constrained call."""
    stage: str
    prompt: str
    response_schema: Dict[str, Any]
    temperature: float
    top_p: Optional[float] = None


def _request(stage: str, prompt: str, schema: Dict[str, Any]) -> GenerationRequest:
    params = SAMPLING_PARAMS[stage]
    return GenerationRequest(
        stage=stage,
        prompt=prompt,
        response_schema=schema,
        temperature=params["temperature"],
        top_p=params.get("top_p"),
    )


def build_synopses_request(idea: str) -> GenerationRequest:
    """Build the stage 1 request: three synopses for an idea."""
    prompt = f"""
{WORLDVIEW_CONTEXT}

위의 설정을 바탕으로, 아래 아이디어에 대한 **약 {TARGET_VIDEO_SECONDS}초 분량의 짧은 영상 콘텐츠로 만들기에 적합한** 흥미로운 시놉시스 {SYNOPSIS_COUNT}개를 한국어로 생성해주세요. 각 시놉시스는 '내일이'의 성격과 특징이 잘 드러나도록 서로 다른 관점이나 전개를 가져야 합니다.

아이디어: "{idea}"

결과는 반드시 {SYNOPSIS_COUNT}개의 시놉시스를 포함하는 JSON 배열 형식으로 응답해야 합니다.
"""
    return _request("synopses", prompt, SYNOPSES_SCHEMA)


def build_story_request(synopsis: str) -> GenerationRequest:
    """Build the stage 2 request: a short story from one synopsis."""
    prompt = f"""
{WORLDVIEW_CONTEXT}

위의 설정을 바탕으로, 주어진 시놉시스를 **약 {TARGET_VIDEO_SECONDS}초 분량의 짧은 애니메이션 영상으로 만들기에 적합한** 흥미로운 단편 스토리로 만들어주세요. 전체 스토리는 간결하면서도 기승전결이 느껴져야 합니다. '내일이'의 성격과 말투, 행동이 잘 드러나게 한국어로 서술해야 합니다.

시놉시스: "{synopsis}"

결과는 반드시 지정된 JSON 형식으로 응답해야 합니다.
"""
    return _request("story", prompt, STORY_SCHEMA)


def _structure_guide() -> str:
    lines = []
    for key in SECTION_KEYS:
        config = SECTION_CONFIGS[key]
        lines.append(f"- {config['short_label']} ({key.capitalize()}): {config['role']}. (분량: {config['duration']})")
    return "\n".join(lines)


def build_structure_request(story: str) -> GenerationRequest:
    """Build the stage 3 request: split a story into 기승전결."""
    prompt = f"""
{WORLDVIEW_CONTEXT}

위의 '내일이' 세계관 설정을 참고하여, 주어진 스토리를 한국의 전통적인 4단 구성인 '기승전결' 구조로 분석하고 나눠주세요. **이 스토리는 약 {TARGET_VIDEO_SECONDS}초 분량의 영상 콘텐츠를 위한 것이므로, 각 부분의 분량 배분도 이를 고려해야 합니다.**

{_structure_guide()}

스토리: "{story}"

결과는 반드시 지정된 JSON 형식으로 각 부분에 해당하는 내용을 담아 응답해야 합니다.
"""
    return _request("structure", prompt, STRUCTURED_STORY_SCHEMA)


def build_cuts_request(section_key: str, section_content: str, full_story: str) -> GenerationRequest:
    """
    Build the stage 4 request: storyboard cuts for one section.

    The pacing guideline (share of the video and target cut count) is looked
    up by section key and written into the prompt.

    Raises:
        KeyError: If section_key is not one of the four fixed keys
    """
    guideline = get_pacing_guideline(section_key)
    if guideline is None:
        raise KeyError(section_key)
    duration, cuts = guideline
    label = get_section_label(section_key)
    prompt = f"""
{WORLDVIEW_CONTEXT}

위의 '내일이' 세계관 설정을 참고하여, 아래 전체 스토리의 맥락 안에서 주어진 특정 섹션 내용을 웹툰이나 스토리보드에 사용될 수 있도록 상세한 컷(Cut) 또는 장면(Scene) 단위로 나눠주세요.

**중요: 이 스토리는 전체 약 {TARGET_VIDEO_SECONDS}초 분량의 영상 콘텐츠를 위한 것입니다.** 각 컷은 이 시간 분량에 맞춰 속도감을 조절하여 구체적인 행동이나 장면 묘사를 담아야 합니다.

특히, 이 [{label}] 섹션은 전체 {TARGET_VIDEO_SECONDS}초 중 **{duration}** 정도를 차지합니다. 따라서, **{cuts}** 정도의 컷으로 나누는 것이 가장 적절합니다. 이 가이드라인을 엄격하게 지켜주세요.

### 전체 스토리 (참고용):
"{full_story}"

### 분석할 섹션: [{label}]
"{section_content}"

결과는 반드시 지정된 JSON 형식으로 각 컷의 내용을 담은 문자열 배열로 응답해야 합니다.
"""
    return _request("cuts", prompt, STORY_CUTS_SCHEMA)
