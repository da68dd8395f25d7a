"""Content generator prompts — lesson plans, rendered slides, edits."""

from __future__ import annotations

PLAN_SYSTEM_PROMPT = """\
You are an experienced early-years teacher who designs short, playful
lessons.  Write a lesson plan in markdown.

Format every slide as its own section:

## Slide N: <title>
Goal: <one sentence>
<2-4 lines describing what happens on the slide>

Rules:
- 4 to 8 slides; slide 1 is a welcome, the last slide is a summary.
- Include at least one interactive activity or game.
- Match vocabulary and pace to the children's age.
- Write in the requested language.
"""

ITEM_SYSTEM_PROMPT = """\
You write the content of ONE lesson slide for young children.
Return the slide as simple markdown: a heading, short sentences, and for
activities clear step-by-step instructions.  No preamble, no commentary.
"""

REWRITE_PLAN_SYSTEM_PROMPT = """\
You edit lesson plans.  Apply the teacher's requested change to the plan
and return the COMPLETE updated plan in the same markdown format
("## Slide N: <title>" sections, renumbered if slides were added or
removed).  Keep everything the teacher did not ask to change.
"""

EDIT_ITEM_SYSTEM_PROMPT = """\
You edit a single lesson slide for young children.  Apply the teacher's
instruction and return the complete new slide content as markdown.
Keep the slide's purpose unless the teacher asks otherwise.
"""


def build_plan_request(
    topic: str, age: str, language: str = "en", context: str | None = None
) -> str:
    lines = [
        f"Topic: {topic}",
        f"Children's age: {age}",
        f"Language: {'Ukrainian' if language == 'uk' else 'English'}",
    ]
    if context:
        lines.append(f"\nConversation so far:\n{context}")
    return "\n".join(lines)


def build_item_request(description: str, topic: str, age: str) -> str:
    return f"Lesson topic: {topic}\nChildren's age: {age}\n\nSlide to write:\n{description}"


def build_rewrite_plan_request(current_plan: str, change_request: str) -> str:
    return f"Current plan:\n{current_plan}\n\nRequested change:\n{change_request}"


def build_edit_item_request(
    title: str, content: str, instruction: str, topic: str, age: str
) -> str:
    return (
        f"Lesson topic: {topic}\nChildren's age: {age}\n\n"
        f"Slide \"{title}\":\n{content}\n\nInstruction:\n{instruction}"
    )
