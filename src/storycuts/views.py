"""
Page view model for the story cuts UI.

build_page_context() turns a PipelineSnapshot plus the visitor's view
preferences into the plain dict rendered by templates/index.html. Nothing
here mutates pipeline state; flipping a card or opening the expanded view
only changes ViewPreferences, which live in the Flask session.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .models import PipelineSnapshot
from .sections import SECTION_KEYS, get_section_config

SYNOPSES_LOADER_MESSAGE = "AI가 '내일이'의 새로운 모험을 구상하고 있습니다..."
STORY_LOADER_MESSAGE = "선택된 시놉시스로 '내일이'의 스토리를 만들고 있습니다..."
CUTS_LOADER_MESSAGE = "AI가 컷을 나누고 있습니다..."

VIEW_CUTS_LABEL = "컷별로 보기"
GENERATING_LABEL = "분석 중..."
BACK_LABEL = "뒤로가기"


@dataclass
class ViewPreferences:
    """
    Per-visitor display state for the section cards.

    Preferences belong to one pipeline epoch. When the epoch moves (new idea
    or new synopsis) the cards they refer to no longer exist, so they reset.
    """
    epoch: int = 0
    flipped: List[str] = field(default_factory=list)
    expanded: Optional[str] = None

    @classmethod
    def from_session(cls, data: Optional[Dict[str, Any]], epoch: int) -> "ViewPreferences":
        """Load preferences from session data, discarding ones from an older epoch."""
        if not isinstance(data, dict) or data.get("epoch") != epoch:
            return cls(epoch=epoch)
        flipped = [key for key in data.get("flipped", []) if key in SECTION_KEYS]
        expanded = data.get("expanded")
        if expanded not in SECTION_KEYS:
            expanded = None
        return cls(epoch=epoch, flipped=flipped, expanded=expanded)

    def to_session(self) -> Dict[str, Any]:
        return {"epoch": self.epoch, "flipped": list(self.flipped), "expanded": self.expanded}

    def flip_to_cuts(self, section_key: str):
        if section_key not in self.flipped:
            self.flipped.append(section_key)

    def flip_to_front(self, section_key: str):
        if section_key in self.flipped:
            self.flipped.remove(section_key)

    def expand(self, section_key: str):
        self.expanded = section_key

    def collapse(self):
        self.expanded = None


def split_paragraphs(story: str) -> List[str]:
    """Split story text into display paragraphs, one per line."""
    return story.split("\n")


def build_section_card(
    section_key: str,
    content: str,
    cuts: Optional[List[str]],
    is_generating: bool,
    is_flipped: bool,
) -> Dict[str, Any]:
    """
    Build the display data for one 기승전결 section card.

    The front face shows the section text and a button that flips to the cut
    list; the back face shows the cuts (or a loader while they are generated)
    and a button back to the front.
    """
    config = get_section_config(section_key)
    return {
        "key": section_key,
        "label": config["label"],
        "content": content,
        "cuts": cuts,
        "has_cuts": cuts is not None,
        "is_generating": is_generating,
        "is_flipped": is_flipped,
        "front_button_label": GENERATING_LABEL if is_generating else VIEW_CUTS_LABEL,
        "back_button_label": BACK_LABEL,
        "back_title": f"{config['label']} - 컷 분할",
        "show_cuts_loader": is_generating and cuts is None,
        "cuts_loader_message": CUTS_LOADER_MESSAGE,
    }


def build_page_context(snapshot: PipelineSnapshot, prefs: Optional[ViewPreferences] = None) -> Dict[str, Any]:
    """
    Project a pipeline snapshot into template context.

    Args:
        snapshot: Current pipeline state
        prefs: Visitor view preferences (default: nothing flipped or expanded)

    Returns:
        Dict with loader, error, synopses, story and section card data
    """
    if prefs is None or prefs.epoch != snapshot.epoch:
        prefs = ViewPreferences(epoch=snapshot.epoch)

    busy = snapshot.busy
    is_loading = busy.synopses or busy.story

    loader_message = None
    if busy.synopses:
        loader_message = SYNOPSES_LOADER_MESSAGE
    elif busy.story:
        loader_message = STORY_LOADER_MESSAGE

    # Output is hidden while synopses or the story are being generated
    show_output = not is_loading and (snapshot.synopses is not None or snapshot.story is not None)

    synopsis_cards = []
    if show_output and snapshot.story is None and snapshot.synopses:
        synopsis_cards = [
            {"index": index, "title": f"시놉시스 #{index + 1}", "text": text}
            for index, text in enumerate(snapshot.synopses)
        ]

    story = None
    if show_output and snapshot.story is not None:
        structured = snapshot.structured_story
        sections = []
        if structured is not None:
            sections = [
                build_section_card(
                    key,
                    content,
                    snapshot.story_cuts.get(key),
                    busy.cuts.get(key, False),
                    key in prefs.flipped,
                )
                for key, content in structured.sections()
            ]
        story = {
            "paragraphs": split_paragraphs(snapshot.story),
            "show_confirm": structured is None,
            "is_structuring": busy.structure,
            "confirm_label": GENERATING_LABEL if busy.structure else "스토리 구조 분석하기",
            "sections": sections,
        }

    expanded_card = None
    if story and prefs.expanded:
        expanded_card = next(
            (card for card in story["sections"] if card["key"] == prefs.expanded),
            None,
        )

    return {
        "phase": snapshot.phase.value,
        "is_loading": is_loading,
        "loader_message": loader_message,
        "submit_label": "생성 중..." if is_loading else "시놉시스 생성하기",
        "error": snapshot.last_error.message if snapshot.last_error else None,
        "synopsis_cards": synopsis_cards,
        "story": story,
        "expanded_card": expanded_card,
        "auto_refresh": busy.any(),
    }
