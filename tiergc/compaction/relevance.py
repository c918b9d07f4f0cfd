"""Promote old messages that recent turns still reference."""

from tiergc.compaction.markers import parse_markers
from tiergc.compaction.types import (
    BrainIdLookup,
    Message,
    TierClassification,
    message_ids,
    message_parts,
)

PROMOTABLE_TIERS = frozenset({"cold", "gone"})


def apply_relevance_promotions(
    messages: list[Message],
    classifications: list[TierClassification],
    brain_ids: BrainIdLookup | None = None,
) -> None:
    """
    Promote cold/gone messages to warm if a hot message references them.

    References detected:
    1. Brain markers: a hot message contains [brain#N: ...] where N maps to an older message
    2. Tool call ids: a hot message has a tool callID that also appears in an older message

    Classifications are updated in place. Promotion never reaches hot and
    never demotes.

    Args:
        messages: The conversation.
        classifications: One classification per message.
        brain_ids: Lookup resolving brain ids; marker references are ignored without it.
    """
    hot_indices = {c.message_index for c in classifications if c.tier == "hot"}
    if not hot_indices:
        return

    referenced: set[int] = set()
    if brain_ids is not None:
        referenced |= _brain_marker_references(messages, hot_indices, brain_ids)
    referenced |= _tool_call_references(messages, hot_indices)

    for c in classifications:
        if c.message_index in referenced and c.tier in PROMOTABLE_TIERS:
            c.tier = "warm"


def _brain_id_index(messages: list[Message], brain_ids: BrainIdLookup) -> dict[int, int]:
    index: dict[int, int] = {}
    for i, message in enumerate(messages):
        session_id, message_id = message_ids(message)
        if not session_id or not message_id:
            continue
        brain_id = brain_ids.get(session_id, message_id)
        if brain_id is not None:
            index[brain_id] = i
    return index


def _brain_marker_references(
    messages: list[Message],
    hot_indices: set[int],
    brain_ids: BrainIdLookup,
) -> set[int]:
    brain_index = _brain_id_index(messages, brain_ids)
    if not brain_index:
        return set()

    referenced: set[int] = set()
    for idx in hot_indices:
        for part in message_parts(messages[idx]):
            text = part.get("text")
            if text is None:
                text = (part.get("state") or {}).get("output")
            if not isinstance(text, str) or not text:
                continue

            for marker in parse_markers(text):
                target = brain_index.get(marker.brain_id)
                if target is not None and target not in hot_indices:
                    referenced.add(target)

    return referenced


def _tool_call_references(messages: list[Message], hot_indices: set[int]) -> set[int]:
    hot_call_ids = {
        part["callID"]
        for idx in hot_indices
        for part in message_parts(messages[idx])
        if part.get("type") == "tool" and part.get("callID")
    }
    if not hot_call_ids:
        return set()

    referenced: set[int] = set()
    for i, message in enumerate(messages):
        if i in hot_indices:
            continue
        for part in message_parts(message):
            if part.get("type") == "tool" and part.get("callID") in hot_call_ids:
                referenced.add(i)
                break

    return referenced
