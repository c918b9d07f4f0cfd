"""Selection and removal of gone-tier messages."""

from tiergc.compaction.pairing import build_tool_call_map, enforce_tool_pair_atomic
from tiergc.compaction.types import DEFAULT_MAX_GONE_PER_CYCLE, Message, message_role


def _last_surviving_role(messages: list[Message], removed: set[int]) -> str | None:
    for i in range(len(messages) - 1, -1, -1):
        if i not in removed:
            return message_role(messages[i])
    return None


def _without_split_pairs(selected: list[int], groups: list[set[int]]) -> list[int]:
    """Drop indices whose tool pair is only partly selected."""
    chosen = set(selected)
    changed = True
    while changed:
        changed = False
        for members in groups:
            if members & chosen and not members <= chosen:
                chosen -= members
                changed = True
    return [idx for idx in selected if idx in chosen]


def select_safe_removals(
    messages: list[Message],
    candidates: list[int],
    max_gone: int = DEFAULT_MAX_GONE_PER_CYCLE,
) -> list[int]:
    """
    Decide which gone-tier messages can be removed this cycle.

    Tool pairs are expanded so both halves go together, the oldest
    ``max_gone`` indices are kept, and if the conversation does not already
    end on an assistant message, the newest candidates are dropped until
    removal would not leave an assistant message last. A pair cut in half by
    the cap or by that trimming is kept whole instead.

    Args:
        messages: The conversation before removal.
        candidates: Indices classified gone.
        max_gone: Maximum number of messages removed per cycle.

    Returns:
        Indices to remove, ascending.
    """
    if not candidates or not messages:
        return []

    call_map = build_tool_call_map(messages)
    groups = [
        {loc.message_index for loc in locations}
        for locations in call_map.values()
        if len(locations) >= 2
    ]

    expanded = enforce_tool_pair_atomic(set(candidates), call_map)
    selected = _without_split_pairs(sorted(expanded)[:max_gone], groups)

    # Removals cannot make a conversation that already ends on assistant any worse
    if message_role(messages[-1]) == "assistant":
        return selected

    while selected and _last_surviving_role(messages, set(selected)) == "assistant":
        selected.pop()
        selected = _without_split_pairs(selected, groups)

    return selected


def remove_messages(messages: list[Message], indices: list[int]) -> int:
    """
    Delete messages in place, highest index first.

    Args:
        messages: The conversation (mutated).
        indices: Indices to delete.

    Returns:
        Number of messages removed.
    """
    removed = 0
    for idx in sorted(set(indices), reverse=True):
        del messages[idx]
        removed += 1
    return removed
