"""Static, language-matched copy used when no AI collaborator is involved.

Covers the help text, the catch-all "didn't understand" reply, fallback
clarifications, and action labels.  English is the fallback language;
Ukrainian is supported because the original audience writes in it.
"""

from __future__ import annotations

import re

SUPPORTED_LANGUAGES = ("en", "uk")

_CYRILLIC = re.compile(r"[а-яіїєґ]", re.IGNORECASE)


def resolve_language(language: str | None, text: str = "") -> str:
    """Pick a supported language from a hint, falling back to script detection."""
    if language:
        short = language.split("-")[0].lower()
        if short in SUPPORTED_LANGUAGES:
            return short
    if text and _CYRILLIC.search(text):
        return "uk"
    return "en"


def pick(table: dict[str, str], language: str | None, text: str = "") -> str:
    """Return the entry of *table* for the resolved language."""
    return table.get(resolve_language(language, text), table["en"])


HELP_MESSAGE = {
    "en": (
        "Here's what I can do:\n"
        "• Create a lesson — e.g. \"Create a lesson about dinosaurs for 6 year olds\"\n"
        "• Change the plan — press \"Edit plan\" and describe the change\n"
        "• Generate all slides — press \"Approve plan\"\n"
        "• Edit a slide — e.g. \"Make slide 2 more playful\""
    ),
    "uk": (
        "Ось що я вмію:\n"
        "• Створити урок — наприклад, \"Створи урок про динозаврів для дітей 6 років\"\n"
        "• Змінити план — натисніть \"Змінити план\" і опишіть зміни\n"
        "• Згенерувати всі слайди — натисніть \"Схвалити план\"\n"
        "• Відредагувати слайд — наприклад, \"Зроби слайд 2 веселішим\""
    ),
}

NOT_UNDERSTOOD_MESSAGE = {
    "en": (
        "I'm not sure I understood that yet. Could you tell me a bit more? "
        "For example: \"Create a lesson about the solar system for 8 year olds\"."
    ),
    "uk": (
        "Я поки не зовсім зрозумів запит. Можете розповісти трохи більше? "
        "Наприклад: \"Створи урок про Сонячну систему для дітей 8 років\"."
    ),
}

MISSING_SLOTS_QUESTION = {
    "en": "Tell me a little more so I can build the lesson: what topic, and how old are the children?",
    "uk": "Розкажіть трохи більше, щоб я міг створити урок: яка тема і скільки років дітям?",
}

START_OVER_MESSAGE = {
    "en": (
        "Let's start fresh. Describe the lesson in one message, for example: "
        "\"Create a lesson about volcanoes for 7 year olds\"."
    ),
    "uk": (
        "Почнімо спочатку. Опишіть урок одним повідомленням, наприклад: "
        "\"Створи урок про вулкани для дітей 7 років\"."
    ),
}

EDIT_PLAN_INSTRUCTIONS = {
    "en": (
        "Tell me what to change in the plan. For example:\n"
        "- \"Add a slide about flying dinosaurs\"\n"
        "- \"Make the lesson shorter, 4 slides\"\n"
        "- \"Add more games\""
    ),
    "uk": (
        "Напишіть, що змінити в плані. Наприклад:\n"
        "- \"Додай слайд про літаючих динозаврів\"\n"
        "- \"Зроби урок коротшим, 4 слайди\"\n"
        "- \"Додай більше ігор\""
    ),
}

TRY_AGAIN_MESSAGE = {
    "en": "Let's give that another go in a moment. You can also rephrase the request or ask for help.",
    "uk": "Спробуймо ще раз трохи згодом. Можна також переформулювати запит або попросити допомоги.",
}

PLAN_MISSING_MESSAGE = {
    "en": "There is no lesson plan yet. Tell me the topic and the children's age, and I'll draft one.",
    "uk": "Плану уроку ще немає. Напишіть тему і вік дітей, і я його складу.",
}

PLAN_UPDATED_PREFIX = {
    "en": "Here's the updated plan:",
    "uk": "Ось оновлений план:",
}

ITEM_UPDATED_MESSAGE = {
    "en": "Slide {index} \"{title}\" is updated.",
    "uk": "Слайд {index} \"{title}\" оновлено.",
}

ITEM_REGENERATED_MESSAGE = {
    "en": "Slide {index} \"{title}\" is regenerated.",
    "uk": "Слайд {index} \"{title}\" згенеровано заново.",
}

BATCH_SUMMARY_MESSAGE = {
    "en": "{completed} of {total} slides are ready.",
    "uk": "Готово {completed} з {total} слайдів.",
}

BATCH_PARTIAL_SUFFIX = {
    "en": " These slides still need another try: {titles}.",
    "uk": " Ці слайди варто спробувати ще раз: {titles}.",
}

# Fallback clarifications, keyed by scenario then language
CLARIFICATION_TEMPLATES: dict[str, dict[str, str]] = {
    "missing-lesson-context": {
        "en": (
            "Looks like you want to work with slides! Let's create a lesson first. "
            "What topic would you like? For example: \"Create a lesson about dinosaurs for 6-8 year olds\"."
        ),
        "uk": (
            "Схоже, ви хочете працювати зі слайдами! Давайте спочатку створимо урок. "
            "Про що він буде? Наприклад: \"Створи урок про динозаврів для дітей 6-8 років\"."
        ),
    },
    "unclear-selection": {
        "en": (
            "I understand you want to {operation} a slide. Your lesson has {available} slides:\n"
            "{titles}\n\nWhich one should I change? For example: \"{operation} slide 2\"."
        ),
        "uk": (
            "Розумію, ви хочете змінити слайд. У вашому уроці {available} слайдів:\n"
            "{titles}\n\nЯкий саме змінити? Наприклад: \"зміни слайд 2\"."
        ),
    },
    "invalid-index": {
        "en": (
            "I see you want to {operation} slide {requested}, but your lesson has {available} slides "
            "(1-{available}):\n{titles}\n\nWhich one did you mean?"
        ),
        "uk": (
            "Бачу, ви хочете змінити слайд {requested}, але в уроці {available} слайдів "
            "(1-{available}):\n{titles}\n\nЯкий саме ви мали на увазі?"
        ),
    },
}

ACTION_LABELS: dict[str, dict[str, tuple[str, str]]] = {
    "approve_plan": {
        "en": ("Approve plan", "Approve the plan and generate all slides"),
        "uk": ("Схвалити план", "Схвалити план і згенерувати всі слайди"),
    },
    "edit_plan": {
        "en": ("Edit plan", "Describe changes to the lesson plan"),
        "uk": ("Змінити план", "Внести правки до плану уроку"),
    },
    "regenerate_plan": {
        "en": ("New plan", "Generate an alternative plan"),
        "uk": ("Новий план", "Згенерувати альтернативний план"),
    },
    "regenerate_item": {
        "en": ("Regenerate slide", "Generate a fresh version of one slide"),
        "uk": ("Перегенерувати слайд", "Згенерувати нову версію слайда"),
    },
    "help": {
        "en": ("Help", "See what I can do"),
        "uk": ("Допомога", "Що я вмію"),
    },
}

MISSING_AGE_QUESTION = {
    "en": "Great topic! How old are the children the lesson about {topic} is for?",
    "uk": "Чудова тема! Для дітей якого віку урок про {topic}?",
}

MISSING_TOPIC_QUESTION = {
    "en": "Happy to help! What should the lesson be about?",
    "uk": "Залюбки допоможу! Про що має бути урок?",
}


def missing_slots_question(
    missing_slots: list[str], topic: str | None, language: str | None, text: str = ""
) -> str:
    """Static follow-up question asking for whatever slots are still missing."""
    if missing_slots == ["targetAge"] and topic:
        return pick(MISSING_AGE_QUESTION, language, text).format(topic=topic)
    if missing_slots == ["topic"]:
        return pick(MISSING_TOPIC_QUESTION, language, text)
    return pick(MISSING_SLOTS_QUESTION, language, text)
