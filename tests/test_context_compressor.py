"""Tests for services/context_compressor.py — budget, summarization, fallback."""

import pytest

from services.context_compressor import (
    OMISSION_MARKER,
    SEGMENT_SEPARATOR,
    ContextCompressor,
    join_segments,
)
from tests.fakes import FakeSummarizer


def _context(n: int, size: int = 100) -> str:
    return SEGMENT_SEPARATOR.join(f"seg{i}:" + "x" * size for i in range(n))


def _compressor(summarizer=None, **kw) -> ContextCompressor:
    kw.setdefault("max_tokens", 100)
    kw.setdefault("chars_per_token", 4)
    kw.setdefault("summary_target_tokens", 30)
    kw.setdefault("keep_recent", 3)
    return ContextCompressor(summarizer, **kw)


# ── Estimation ───────────────────────────────────────────────


def test_estimate_tokens_rounds_up():
    c = _compressor()
    assert c.estimate_tokens("") == 0
    assert c.estimate_tokens("abcd") == 1
    assert c.estimate_tokens("abcde") == 2


def test_join_segments_skips_empty_parts():
    assert join_segments(None, "a", "", "b") == "a | b"


# ── Pass-through ─────────────────────────────────────────────


@pytest.mark.asyncio
async def test_under_budget_unchanged():
    summarizer = FakeSummarizer()
    c = _compressor(summarizer)
    text = "x" * 400  # exactly 100 tokens

    prepared, compressed = await c.prepare(text)

    assert prepared == text
    assert compressed is False
    assert summarizer.calls == []


# ── Summarization ────────────────────────────────────────────


@pytest.mark.asyncio
async def test_over_budget_summarizes_older_and_keeps_recent():
    summarizer = FakeSummarizer("short summary")
    c = _compressor(summarizer)
    raw = _context(8, size=60)
    assert c.should_compress(raw)

    prepared, compressed = await c.prepare(raw)

    assert compressed is True
    segments = prepared.split(SEGMENT_SEPARATOR)
    assert segments[0] == "short summary"
    assert segments[1:] == raw.split(SEGMENT_SEPARATOR)[-3:]
    summarized_text, target = summarizer.calls[0]
    assert target == 30
    assert "seg0:" in summarized_text and "seg7:" not in summarized_text


# ── Deterministic fallback ───────────────────────────────────


@pytest.mark.asyncio
async def test_failing_summarizer_truncates_to_bound():
    c = _compressor(FakeSummarizer(fail=True))
    raw = _context(12, size=60)

    prepared, compressed = await c.prepare(raw)

    assert compressed is True
    assert len(prepared) <= c.max_chars
    assert prepared.startswith("seg0:")
    assert prepared.endswith(raw.split(SEGMENT_SEPARATOR)[-1])
    assert OMISSION_MARKER in prepared


@pytest.mark.asyncio
async def test_oversized_summary_falls_back():
    c = _compressor(FakeSummarizer("y" * 1000))
    raw = _context(12, size=60)

    prepared, _ = await c.prepare(raw)

    assert "y" * 50 not in prepared
    assert prepared.startswith("seg0:")
    assert len(prepared) <= c.max_chars


@pytest.mark.asyncio
async def test_empty_summary_falls_back():
    c = _compressor(FakeSummarizer(""))
    prepared, compressed = await c.prepare(_context(12, size=60))

    assert compressed is True
    assert prepared.startswith("seg0:")


@pytest.mark.asyncio
async def test_no_summarizer_truncates():
    c = _compressor()
    raw = _context(12, size=60)

    prepared, compressed = await c.prepare(raw)

    assert compressed is True
    assert len(prepared) <= c.max_chars


@pytest.mark.asyncio
async def test_huge_segments_keep_head_and_tail():
    c = _compressor(FakeSummarizer(fail=True))
    raw = SEGMENT_SEPARATOR.join(["ANCHOR" + "a" * 1000, "b" * 1000, "c" * 999 + "END"])

    prepared, _ = await c.prepare(raw)

    assert len(prepared) <= c.max_chars
    assert prepared.startswith("ANCHOR")
    assert prepared.endswith("END")


@pytest.mark.asyncio
async def test_single_giant_segment_is_capped():
    c = _compressor()
    prepared, compressed = await c.prepare("z" * 5000)

    assert compressed is True
    assert len(prepared) == c.max_chars
