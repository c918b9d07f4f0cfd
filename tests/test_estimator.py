"""Tests for token estimation."""

from tiergc.compaction import estimator
from tiergc.compaction.estimator import (
    estimate_context_tokens,
    estimate_message_tokens,
    estimate_parts_tokens,
    estimate_tokens,
    part_text,
)


class FakeEncoding:
    def encode(self, text: str) -> list[int]:
        return list(range(len(text.split())))


class TestEstimateTokens:
    def test_empty(self):
        assert estimate_tokens("") == 0

    def test_rounds_up(self):
        assert estimate_tokens("a") == 1
        assert estimate_tokens("abcd") == 1
        assert estimate_tokens("abcde") == 2
        assert estimate_tokens("x" * 500) == 125


class TestPartText:
    def test_priority(self):
        assert part_text({"text": "t", "thinking": "k"}) == "t"
        assert part_text({"thinking": "k"}) == "k"
        assert part_text({"state": {"output": "o", "input": "i"}}) == "o"
        assert part_text({"state": {"input": "i"}, "tool": "bash"}) == "i"
        assert part_text({"tool": "bash"}) == "bash"
        assert part_text({"type": "file"}) == ""


class TestMessageTokens:
    def test_estimate_message_tokens_counts_tool_names(self):
        parts = [{"type": "text", "text": "x" * 8}, {"type": "tool", "tool": "bash"}]
        assert estimate_message_tokens(parts) == 3

    def test_estimate_parts_tokens_ignores_inputs(self):
        parts = [
            {"type": "text", "text": "x" * 8},
            {"type": "tool", "tool": "bash", "state": {"input": "y" * 40}},
            {"type": "tool", "tool": "bash", "state": {"output": "z" * 4}},
            {"type": "thinking", "thinking": "w" * 12},
        ]
        assert estimate_parts_tokens(parts) == 2 + 1 + 3


class TestEstimateContextTokens:
    def test_heuristic(self):
        messages = [
            {"info": {"role": "user"}, "parts": [{"type": "text", "text": "x" * 40}]},
            {"info": {"role": "assistant"}, "parts": [{"type": "text", "text": "y" * 4}]},
        ]
        assert estimate_context_tokens(messages) == 11

    def test_tiktoken(self, monkeypatch):
        monkeypatch.setattr(estimator, "_encoder", FakeEncoding())
        messages = [{"info": {"role": "user"}, "parts": [{"type": "text", "text": "one two three"}]}]
        assert estimate_context_tokens(messages, "tiktoken") == 3
        assert estimator.count_tokens("") == 0
