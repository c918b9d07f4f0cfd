"""Tests for a single compression cycle."""

import math

import pytest

from tiergc.compaction.cache import CompressionCache
from tiergc.compaction.orchestrator import compress_messages
from tiergc.compaction.pruning import remove_messages, select_safe_removals
from tiergc.compaction.store import BrainIdStore
from tiergc.compaction.types import CompressStats, TierClassification
from tiergc.config.schema import ContextGCConfig


def message(msg_id: str, role: str, parts: list[dict], session: str = "ses_1") -> dict:
    return {"info": {"id": msg_id, "sessionID": session, "role": role}, "parts": parts}


def text(msg_id: str, role: str, value: str = "text") -> dict:
    return message(msg_id, role, [{"type": "text", "text": value}])


def tool_part(call_id: str, output: str = "ok", tool: str = "bash") -> dict:
    return {"type": "tool", "callID": call_id, "tool": tool, "state": {"status": "completed", "output": output}}


def classify(*tiers: str) -> list[TierClassification]:
    return [
        TierClassification(tier=tier, message_index=i, turn_age=0, estimated_tokens=0)
        for i, tier in enumerate(tiers)
    ]


def roles(messages: list[dict]) -> list[str]:
    return [m["info"]["role"] for m in messages]


def ids(messages: list[dict]) -> list[str]:
    return [m["info"]["id"] for m in messages]


# ── Compression ─────────────────────────────────────────────────────


class TestCompression:
    def test_hot_untouched(self):
        messages = [message("msg_hot", "assistant", [
            {"type": "text", "text": "keep this"},
            {"type": "thinking", "text": "internal"},
            {"type": "tool", "tool": "bash", "state": {"status": "completed", "output": "line1\nline2\nline3"}},
        ])]

        stats = compress_messages(messages, classify("hot"), None, math.inf)

        assert messages[0]["parts"][2]["state"]["output"] == "line1\nline2\nline3"
        assert len(messages[0]["parts"]) == 3
        assert stats == CompressStats()

    def test_warm_assistant(self):
        messages = [message("msg_warm", "assistant", [
            {"type": "text", "text": "retain this text"},
            tool_part("call_1", "\n".join(["ok", "FAIL happened", "x" * 40, "y" * 40])),
        ])]

        stats = compress_messages(messages, classify("warm"))

        assert messages[0]["parts"][0]["text"] == "retain this text"
        output = messages[0]["parts"][1]["state"]["output"]
        assert "FAIL happened" in output
        assert "... [3 more lines]" in output
        assert stats.tool_outputs_compressed == 1
        assert stats.thinking_blocks_removed == 0

    def test_cold_assistant(self):
        messages = [message("msg_cold", "assistant", [
            {"type": "tool", "tool": "grep", "state": {"status": "completed", "output": "x" * 300}},
            {"type": "thinking", "text": "remove me"},
            {"type": "text", "text": "visible short text"},
        ])]

        stats = compress_messages(messages, classify("cold"))

        assert [p["type"] for p in messages[0]["parts"]] == ["tool", "text"]
        assert messages[0]["parts"][0]["state"]["output"].startswith("[compressed:")
        assert stats.tool_outputs_compressed == 1
        assert stats.thinking_blocks_removed == 1

    def test_brain_id_used_in_markers(self):
        store = BrainIdStore()
        store.store("ses_1", "msg_cold", 33)
        messages = [message("msg_cold", "assistant", [
            {"type": "tool", "tool": "grep", "state": {"output": "x" * 300}},
            {"type": "text", "text": "a" * 500},
        ])]

        compress_messages(messages, classify("cold"), brain_ids=store)

        assert messages[0]["parts"][0]["state"]["output"] == "[brain#33: grep (1 lines, 300 chars)]"
        assert messages[0]["parts"][1]["text"].endswith("[brain#33: full response]")

    def test_empty_sized_lookup_still_consulted(self):
        class Lookup:
            def __len__(self):
                return 0

            def get(self, session_id, message_id):
                return 8

        messages = [message("m", "assistant", [{"type": "tool", "tool": "grep", "state": {"output": "x" * 300}}])]

        compress_messages(messages, classify("cold"), brain_ids=Lookup())

        assert messages[0]["parts"][0]["state"]["output"] == "[brain#8: grep (1 lines, 300 chars)]"

    def test_mixed_stats(self):
        messages = [
            message("msg_1", "assistant", [
                {"type": "tool", "tool": "bash", "state": {"status": "completed", "output": "FAIL warm\n" + "line2 " * 20}},
            ]),
            message("msg_2", "assistant", [
                {"type": "tool", "tool": "grep", "state": {"status": "completed", "output": "x" * 500}},
                {"type": "thinking", "text": "remove me"},
                {"type": "text", "text": "b" * 500},
            ]),
            message("msg_3", "user", [
                {"type": "tool", "tool": "webfetch", "state": {"status": "completed", "output": "x" * 500}},
                {"type": "text", "text": "c" * 1000, "synthetic": True},
            ]),
        ]

        stats = compress_messages(messages, classify("warm", "cold", "cold"))

        assert stats.to_dict() == {
            "tool_outputs_compressed": 3,
            "thinking_blocks_removed": 1,
            "text_parts_compressed": 1,
            "system_parts_removed": 1,
            "messages_removed": 0,
        }

    def test_other_roles_untouched(self):
        messages = [message("sys", "system", [{"type": "text", "text": "a" * 1000, "synthetic": True}])]
        stats = compress_messages(messages, classify("cold"))
        assert stats == CompressStats()
        assert len(messages[0]["parts"]) == 1

    def test_tool_without_output_skipped(self):
        messages = [message("m", "assistant", [
            {"type": "tool", "tool": "bash", "state": {"status": "running"}},
            {"type": "tool", "tool": "bash"},
        ])]
        assert compress_messages(messages, classify("cold")).tool_outputs_compressed == 0

    def test_unknown_tool_name(self):
        messages = [message("m", "assistant", [{"type": "tool", "state": {"output": "y" * 200}}])]
        compress_messages(messages, classify("cold"))
        assert messages[0]["parts"][0]["state"]["output"] == "[compressed: unknown-tool (1 lines, 200 chars)]"


class TestBudget:
    def test_exhausted_budget_skips_compression(self):
        messages = [
            message("m1", "assistant", [tool_part("c1", "x" * 400)]),
            message("m2", "assistant", [tool_part("c2", "y" * 400)]),
        ]

        stats = compress_messages(messages, classify("cold", "cold"), None, 10)

        assert stats.tool_outputs_compressed == 1
        assert messages[1]["parts"][0]["state"]["output"] == "y" * 400

    def test_zero_budget_still_removes_gone(self):
        messages = [text("m1", "user"), text("m2", "assistant"), text("m3", "user")]

        stats = compress_messages(messages, classify("cold", "gone", "hot"), None, 0)

        assert stats.messages_removed == 1
        assert ids(messages) == ["m1", "m3"]


class TestIdempotence:
    def test_second_cycle_is_noop(self):
        cache = CompressionCache()
        messages = [message("m1", "assistant", [
            tool_part("c1", "\n".join(f"ERROR {i}" for i in range(20))),
            {"type": "thinking", "text": "hidden"},
        ])]

        first = compress_messages(messages, classify("warm"), cache=cache)
        snapshot = messages[0]["parts"][0]["state"]["output"]
        second = compress_messages(messages, classify("warm"), cache=cache)

        assert first.tool_outputs_compressed == 1
        assert first.thinking_blocks_removed == 1
        assert second == CompressStats()
        assert messages[0]["parts"][0]["state"]["output"] == snapshot
        assert cache.get_tier("ses_1", "m1") == "warm"

    def test_deeper_tier_still_applies(self):
        cache = CompressionCache()
        long_lines = "\n".join(f"ERROR {i} " + "x" * 100 for i in range(20))
        messages = [message("m1", "assistant", [tool_part("c1", long_lines)])]

        compress_messages(messages, classify("warm"), cache=cache)
        stats = compress_messages(messages, classify("cold"), cache=cache)

        assert stats.tool_outputs_compressed == 1
        assert messages[0]["parts"][0]["state"]["output"].startswith("[compressed: bash")
        assert cache.get_tier("ses_1", "m1") == "cold"

    def test_output_that_would_grow_is_left_alone(self):
        cache = CompressionCache()
        messages = [message("m1", "assistant", [tool_part("c1", "a\nb\nc\nd")])]

        first = compress_messages(messages, classify("warm"), cache=cache)
        second = compress_messages(messages, classify("warm"), cache=cache)

        assert first == CompressStats()
        assert second == CompressStats()
        assert messages[0]["parts"][0]["state"]["output"] == "a\nb\nc\nd"

    def test_nothing_freed_not_cached(self):
        cache = CompressionCache()
        messages = [text("m1", "assistant", "short")]
        compress_messages(messages, classify("cold"), cache=cache)
        assert cache.get_tier("ses_1", "m1") is None

    def test_missing_ids_bypass_cache(self):
        cache = CompressionCache()
        messages = [{"info": {"role": "assistant"}, "parts": [{"type": "thinking", "text": "x" * 40}]}]
        compress_messages(messages, classify("warm"), cache=cache)
        assert len(cache) == 0


# ── Removal ─────────────────────────────────────────────────────────


class TestGoneRemoval:
    def test_removes_gone_before_hot(self):
        messages = [
            text("msg_1", "assistant", "should be removed"),
            text("msg_2", "user", "user message"),
            text("msg_3", "assistant", "should stay"),
        ]

        stats = compress_messages(messages, classify("gone", "gone", "hot"))

        assert ids(messages) == ["msg_3"]
        assert stats.messages_removed == 2

    def test_never_exposes_trailing_assistant(self):
        messages = [
            text("msg_1", "assistant"),
            text("msg_2", "user"),
            text("msg_3", "assistant"),
            text("msg_4", "user"),
        ]

        stats = compress_messages(messages, classify("gone", "gone", "gone", "hot"))

        assert roles(messages)[-1] != "assistant"
        assert stats.messages_removed > 0

    def test_trims_newest_candidates(self):
        messages = [text("m1", "user"), text("m2", "assistant"), text("m3", "user")]

        stats = compress_messages(messages, classify("gone", "hot", "gone"))

        # removing m3 would leave m2 (assistant) last, so only m1 goes
        assert ids(messages) == ["m2", "m3"]
        assert stats.messages_removed == 1

    def test_tool_pair_removed_together(self):
        messages = [
            message("m1", "assistant", [tool_part("call_1")]),
            text("m2", "user"),
            message("m3", "user", [tool_part("call_1")]),
            text("m4", "assistant"),
        ]

        stats = compress_messages(messages, classify("gone", "hot", "hot", "hot"))

        assert ids(messages) == ["m2", "m4"]
        assert stats.messages_removed == 2

    def test_cap_per_cycle(self):
        messages = [text(f"m{i}", "user") for i in range(8)]
        config = ContextGCConfig(max_gone_per_cycle=3)

        stats = compress_messages(messages, classify(*["gone"] * 7, "hot"), config)

        assert stats.messages_removed == 3
        assert ids(messages) == ["m3", "m4", "m5", "m6", "m7"]


class TestSelectSafeRemovals:
    def test_empty(self):
        assert select_safe_removals([], [0]) == []
        assert select_safe_removals([text("m", "user")], []) == []

    def test_cap_does_not_split_pair(self):
        messages = [
            text("m0", "user"),
            message("m1", "assistant", [tool_part("c")]),
            message("m2", "user", [tool_part("c")]),
            text("m3", "user"),
        ]
        assert select_safe_removals(messages, [0, 1], max_gone=2) == [0]

    def test_original_assistant_end_keeps_all(self):
        messages = [text("m0", "user"), text("m1", "assistant"), text("m2", "user"), text("m3", "assistant")]
        assert select_safe_removals(messages, [2, 3]) == [2, 3]

    @pytest.mark.parametrize("candidates", [[0], [1], [0, 1], [1, 2], [0, 1, 2], [2]])
    def test_last_role_invariant(self, candidates):
        messages = [text("m0", "assistant"), text("m1", "user"), text("m2", "assistant"), text("m3", "user")]
        selected = set(select_safe_removals(messages, candidates))
        survivors = [m for i, m in enumerate(messages) if i not in selected]
        assert not survivors or survivors[-1]["info"]["role"] != "assistant"


class TestRemoveMessages:
    def test_descending_removal(self):
        messages = [text(f"m{i}", "user") for i in range(5)]
        assert remove_messages(messages, [3, 0, 1]) == 3
        assert ids(messages) == ["m2", "m4"]
