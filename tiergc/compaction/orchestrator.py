"""One GC cycle: apply tier compressors and remove gone messages."""

import math

from loguru import logger

from tiergc.compaction.cache import CompressionCache
from tiergc.compaction.compressors import (
    compress_tool_output,
    compute_assistant_edits,
    compute_system_edits,
)
from tiergc.compaction.estimator import estimate_parts_tokens, estimate_tokens
from tiergc.compaction.pruning import remove_messages, select_safe_removals
from tiergc.compaction.types import (
    UNKNOWN_TOOL,
    BrainIdLookup,
    CompressStats,
    Message,
    Part,
    PartEdit,
    Tier,
    TierClassification,
    message_ids,
    message_parts,
    message_role,
)
from tiergc.config.schema import ContextGCConfig


def compress_messages(
    messages: list[Message],
    classifications: list[TierClassification],
    config: ContextGCConfig | None = None,
    tokens_to_free: float = math.inf,
    *,
    cache: CompressionCache | None = None,
    brain_ids: BrainIdLookup | None = None,
) -> CompressStats:
    """
    Compress and prune a conversation according to its classifications.

    Messages are visited in order. Hot messages are never touched. Warm and
    cold messages are compressed until ``tokens_to_free`` is used up; gone
    messages are always queued and removed together at the end, keeping tool
    pairs intact and never leaving an assistant message last when the
    conversation did not already end on one. A tool output is only rewritten
    when the result is smaller.

    Args:
        messages: The conversation (mutated in place).
        classifications: Output of classify_messages for these messages.
        config: GC configuration, defaults when None.
        tokens_to_free: Token budget for compression; gone removals ignore it.
        cache: Compression memo; repeated cycles skip work already done.
        brain_ids: Lookup for long-term memory ids used in markers.

    Returns:
        Counters describing what changed.
    """
    config = config or ContextGCConfig()
    stats = CompressStats()
    budget_remaining = tokens_to_free
    gone_indices: list[int] = []

    for classification in classifications:
        tier = classification.tier
        if tier == "hot":
            continue

        if tier == "gone":
            gone_indices.append(classification.message_index)
            continue

        if budget_remaining <= 0:
            continue

        message = messages[classification.message_index]
        session_id, message_id = message_ids(message)
        has_ids = bool(session_id and message_id)

        if has_ids and cache is not None and cache.is_compressed_at(session_id, message_id, tier):
            continue

        brain_id = brain_ids.get(session_id, message_id) if has_ids and brain_ids is not None else None
        parts = message_parts(message)
        tokens_before = estimate_parts_tokens(parts)

        role = message_role(message)
        if role == "assistant":
            _compress_tool_outputs(parts, tier, brain_id, stats)
            _apply_edits(parts, compute_assistant_edits(parts, tier, brain_id), stats, "assistant")
        elif role == "user":
            _compress_tool_outputs(parts, tier, brain_id, stats)
            _apply_edits(parts, compute_system_edits(parts, tier), stats, "system")

        tokens_freed = tokens_before - estimate_parts_tokens(parts)
        budget_remaining -= max(0, tokens_freed)

        if tokens_freed > 0 and has_ids and cache is not None:
            cache.set_tier(session_id, message_id, tier)

    if gone_indices:
        safe = select_safe_removals(messages, gone_indices, config.max_gone_per_cycle)
        stats.messages_removed = remove_messages(messages, safe)
        if stats.messages_removed:
            logger.info(
                f"Context GC removed {stats.messages_removed} of "
                f"{len(gone_indices)} gone message(s)"
            )

    logger.debug(f"Context GC cycle stats: {stats.to_dict()}")
    return stats


def _compress_tool_outputs(
    parts: list[Part],
    tier: Tier,
    brain_id: int | None,
    stats: CompressStats,
) -> None:
    for part in reversed(parts):
        if part.get("type") != "tool":
            continue
        state = part.get("state")
        if not isinstance(state, dict):
            continue
        output = state.get("output")
        if not isinstance(output, str) or not output:
            continue

        result = compress_tool_output(output, part.get("tool") or UNKNOWN_TOOL, tier, brain_id)
        # Rewrites that do not shrink the output are dropped
        if result is not None and estimate_tokens(result.compressed) < estimate_tokens(output):
            state["output"] = result.compressed
            stats.tool_outputs_compressed += 1


def _apply_edits(
    parts: list[Part],
    edits: list[PartEdit],
    stats: CompressStats,
    kind: str,
) -> None:
    # Highest index first so earlier removals do not shift later ones
    for edit in sorted(edits, key=lambda e: e.part_index, reverse=True):
        if edit.action == "remove":
            del parts[edit.part_index]
            if kind == "assistant":
                stats.thinking_blocks_removed += 1
            else:
                stats.system_parts_removed += 1
        elif edit.action == "replace" and edit.new_text is not None:
            parts[edit.part_index]["text"] = edit.new_text
            stats.text_parts_compressed += 1
