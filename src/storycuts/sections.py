"""
Section configurations for the four-act (기승전결) story structure.

Each section defines its display label and the pacing guideline used when the
section is broken into storyboard cuts. Durations are shares of the 60 second
video every story is written for.
"""

SECTION_KEYS = ("introduction", "development", "turn", "conclusion")

SECTION_CONFIGS = {
    "introduction": {
        "label": "기 (도입)",
        "short_label": "기",
        "duration": "10-15초",
        "cuts": "3-5개",
        "role": "이야기의 배경과 인물을 소개하고 사건의 실마리를 제시하는 부분",
    },
    "development": {
        "label": "승 (전개)",
        "short_label": "승",
        "duration": "약 20초",
        "cuts": "7-10개",
        "role": "사건이 본격적으로 전개되고 갈등이 고조되는 부분",
    },
    "turn": {
        "label": "전 (위기/절정)",
        "short_label": "전",
        "duration": "15-20초",
        "cuts": "6-8개",
        "role": "사건의 흐름이 바뀌는 전환점이자 갈등이 최고조에 이르는 부분",
    },
    "conclusion": {
        "label": "결 (결말)",
        "short_label": "결",
        "duration": "5-10초",
        "cuts": "4-6개",
        "role": "모든 갈등이 해소되고 이야기가 마무리되는 부분",
    },
}


def is_section_key(section_key):
    """Return True if ``section_key`` is one of the four fixed section keys."""
    return section_key in SECTION_CONFIGS


def get_section_config(section_key):
    """
    Get the configuration for a section.

    Args:
        section_key: One of SECTION_KEYS (case-insensitive)

    Returns:
        Dict with label, duration, cuts and role, or None if not found
    """
    if not isinstance(section_key, str):
        return None
    return SECTION_CONFIGS.get(section_key.strip().lower())


def get_section_keys():
    """
    Get the section keys in story order.

    Returns:
        List of section keys
    """
    return list(SECTION_KEYS)


def get_section_label(section_key):
    """Get the display label for a section."""
    config = get_section_config(section_key)
    return config.get("label") if config else None


def get_pacing_guideline(section_key):
    """Get the (duration, cuts) pacing guideline for a section."""
    config = get_section_config(section_key)
    if not config:
        return None
    return config["duration"], config["cuts"]
