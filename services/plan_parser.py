"""Plan parser — extracts item descriptions from generated plan text.

Plans are markdown written by the content generator.  Recognized item
headers (English or Ukrainian):

    ## Slide 2: Where volcanoes live
    ### Слайд 2: Де живуть вулкани
    **Slide 2: Where volcanoes live**

When nothing recognizable is found a generic four-item structure is used so
approval never produces an empty batch.
"""

from __future__ import annotations

import logging
import re

from models.generation import ItemDescription, ItemKind

logger = logging.getLogger(__name__)

_HEADER_PATTERNS = (
    re.compile(
        r"^\s*#{2,4}\s*(?:slide|слайд)\s+(\d+)\s*[:.\-–—]?\s*(.*?)\s*$",
        re.IGNORECASE | re.MULTILINE,
    ),
    re.compile(
        r"^\s*\*\*(?:slide|слайд)\s+(\d+)\s*[:.\-–—]?\s*(.*?)\*\*\s*$",
        re.IGNORECASE | re.MULTILINE,
    ),
)
_GOAL_LINE = re.compile(
    r"^\s*[-*•]?\s*\**(?:goal|objective|мета)\**\s*:\s*\**\s*(.+)$",
    re.IGNORECASE | re.MULTILINE,
)

_MIN_CONTENT_CHARS = 20

_WELCOME_WORDS = ("welcome", "intro", "greeting", "вітання", "вступ", "знайомство")
_ACTIVITY_WORDS = ("game", "activity", "exercise", "task", "practice", "гра", "завдання", "вправа")
_SUMMARY_WORDS = ("summary", "conclusion", "recap", "review", "підсумок", "висновок")


def extract_item_descriptions(plan_text: str) -> list[ItemDescription]:
    """Split *plan_text* into ordered item descriptions."""
    for pattern in _HEADER_PATTERNS:
        items = _extract_with(pattern, plan_text)
        if items:
            logger.info("Extracted %d item descriptions from plan", len(items))
            return items

    logger.warning("No item headers found in plan, using default structure")
    return default_item_structure(plan_text)


def _extract_with(pattern: re.Pattern[str], plan_text: str) -> list[ItemDescription]:
    matches = list(pattern.finditer(plan_text))
    items: dict[int, ItemDescription] = {}

    for pos, match in enumerate(matches):
        index = int(match.group(1))
        if index < 1 or index in items:
            continue

        end = matches[pos + 1].start() if pos + 1 < len(matches) else len(plan_text)
        body = plan_text[match.end():end].strip()
        if len(body) < _MIN_CONTENT_CHARS:
            continue

        title = match.group(2).strip(" *#:") or f"Slide {index}"
        goal_match = _GOAL_LINE.search(body)
        items[index] = ItemDescription(
            index=index,
            title=title,
            kind=determine_kind(title, body, index),
            goal=goal_match.group(1).strip(" *") if goal_match else "",
            content=body,
        )

    return [items[i] for i in sorted(items)]


def determine_kind(title: str, content: str, index: int) -> ItemKind:
    """Classify an item by its position and wording."""
    title_lower = title.lower()
    content_lower = content.lower()

    if index == 1 or any(w in title_lower for w in _WELCOME_WORDS):
        return "welcome"
    if any(w in title_lower for w in _SUMMARY_WORDS):
        return "summary"
    if any(w in title_lower for w in _ACTIVITY_WORDS) or "activity" in content_lower:
        return "activity"
    return "content"


def default_item_structure(plan_text: str) -> list[ItemDescription]:
    """Generic welcome / content / activity / summary items seeded by the plan."""
    seed = " ".join(plan_text.split("\n")[:5])[:300].strip()
    skeleton: list[tuple[str, ItemKind, str]] = [
        ("Welcome and introduction", "welcome", "Introduce the lesson topic."),
        ("Main material", "content", "Present the core learning material."),
        ("Practice activity", "activity", "An interactive task to reinforce learning."),
        ("Lesson summary", "summary", "Wrap up what was learned."),
    ]
    return [
        ItemDescription(
            index=i,
            title=title,
            kind=kind,
            goal=goal,
            content=f"{goal} {seed}".strip(),
        )
        for i, (title, kind, goal) in enumerate(skeleton, start=1)
    ]


def render_description(item: ItemDescription) -> str:
    """Flatten an item description into the text sent to the generator."""
    lines = [f"Slide {item.index}: {item.title}", f"Type: {item.kind}"]
    if item.goal:
        lines.append(f"Goal: {item.goal}")
    if item.content:
        lines.append(item.content)
    return "\n".join(lines)
