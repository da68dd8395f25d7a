"""Tests for services/plan_parser.py — plan text → item descriptions."""

from services.plan_parser import (
    default_item_structure,
    determine_kind,
    extract_item_descriptions,
    render_description,
)
from tests.fakes import SAMPLE_PLAN


def test_extracts_markdown_headers():
    items = extract_item_descriptions(SAMPLE_PLAN)

    assert [i.index for i in items] == [1, 2, 3, 4, 5]
    assert items[1].title == "What is a volcano"
    assert items[1].goal == "Explain what a volcano is."
    assert [i.kind for i in items] == ["welcome", "content", "content", "activity", "summary"]


def test_extracts_ukrainian_headers():
    plan = (
        "### Слайд 1: Вітання\nМета: привітатися з дітьми і познайомитись.\n\n"
        "### Слайд 2: Що таке вулкан\nМета: пояснити, що таке вулкан, на малюнках.\n"
    )
    items = extract_item_descriptions(plan)

    assert [i.title for i in items] == ["Вітання", "Що таке вулкан"]
    assert items[0].kind == "welcome"
    assert items[1].goal.startswith("пояснити")


def test_extracts_bold_headers():
    plan = (
        "**Slide 1: Hello friends**\nA warm greeting with a song for everyone.\n"
        "**Slide 2: Counting game**\nChildren count apples and jump each time.\n"
    )
    items = extract_item_descriptions(plan)

    assert [i.kind for i in items] == ["welcome", "activity"]


def test_short_sections_are_skipped():
    plan = "## Slide 1: Welcome\nHi\n\n## Slide 2: Main part\nA long enough description of the slide.\n"
    items = extract_item_descriptions(plan)

    assert [i.index for i in items] == [2]


def test_unrecognized_plan_uses_default_structure():
    items = extract_item_descriptions("Just some free text about volcanoes.")

    assert len(items) == 4
    assert items == default_item_structure("Just some free text about volcanoes.")
    assert [i.kind for i in items] == ["welcome", "content", "activity", "summary"]
    assert "volcanoes" in items[1].content


def test_determine_kind_by_title():
    assert determine_kind("Final recap", "", 6) == "summary"
    assert determine_kind("Practice time", "", 3) == "activity"
    assert determine_kind("Lava", "", 2) == "content"


def test_render_description_includes_goal_and_body():
    item = extract_item_descriptions(SAMPLE_PLAN)[2]
    text = render_description(item)

    assert text.startswith("Slide 3: Why volcanoes erupt")
    assert "Goal: Show how magma pushes up." in text
