"""Text rewriter prompts — clarifications, softened failures, summaries."""

from __future__ import annotations

from models.clarification import (
    ClarificationContext,
    ClarificationScenario,
    FailureContext,
)

CLARIFY_SYSTEM_PROMPT = """\
You are a warm assistant helping a teacher build a lesson.  The request
cannot be carried out yet; write a short friendly message (2-4 sentences)
that explains what is needed and suggests a concrete next step.
- Never mention errors, validation, or anything technical.
- If slide titles are given, list them as a numbered list.
- Reply in the teacher's language.
"""

SOFTEN_SYSTEM_PROMPT = """\
You are a warm assistant helping a teacher build a lesson.  Something did
not work out behind the scenes.  Write 1-3 short sentences that keep the
conversation moving: suggest what the teacher can try next.
- Never say that something failed, broke, or errored.
- No technical terms, codes, or apologies longer than a few words.
- Reply in the teacher's language.
"""

SUMMARIZE_SYSTEM_PROMPT = """\
Summarize the conversation between a teacher and a lesson-building
assistant.  Keep the lesson topic, children's age, decisions already made,
and open requests.  Drop greetings and repetition.  Never add facts.
"""

_SCENARIO_HINTS = {
    ClarificationScenario.MISSING_LESSON_CONTEXT: (
        "The teacher wants to work with slides but no lesson exists yet. "
        "Invite them to create a lesson first and give an example request."
    ),
    ClarificationScenario.UNCLEAR_SELECTION: (
        "The teacher did not say which slide to change. "
        "List the slides and ask which one."
    ),
    ClarificationScenario.INVALID_INDEX: (
        "The teacher asked for a slide number that does not exist. "
        "Say how many slides there are, list them and ask which one they meant."
    ),
}


def build_clarify_request(
    scenario: ClarificationScenario, context: ClarificationContext
) -> str:
    lines = [
        f"Situation: {_SCENARIO_HINTS[scenario]}",
        f"Teacher's message: {context.user_message or '-'}",
        f"Operation: {context.operation}",
        f"Language: {context.language}",
    ]
    if context.lesson_topic:
        lines.append(f"Lesson topic: {context.lesson_topic}")
    if context.requested_index is not None:
        lines.append(f"Requested slide: {context.requested_index}")
    if context.item_titles:
        lines.append(f"Slides ({context.available_items}):")
        lines.extend(context.numbered_titles())
    return "\n".join(lines)


def build_soften_request(failure: str, context: FailureContext) -> str:
    lines = [
        f"What went wrong internally (do not repeat it): {failure[:500]}",
        f"Teacher's message: {context.user_message or '-'}",
        f"Language: {context.language}",
    ]
    if context.operation:
        lines.append(f"The teacher was trying to: {context.operation}")
    if context.lesson_title:
        lines.append(f"Lesson: {context.lesson_title} ({context.item_count} slides)")
    return "\n".join(lines)


def build_summarize_request(context: str, target_tokens: int) -> str:
    return f"Stay within {target_tokens} tokens.\n\nConversation:\n{context}"
