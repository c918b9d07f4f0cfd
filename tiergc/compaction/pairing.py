"""Tool call pairing: keep tool_use/tool_result halves together."""

from tiergc.compaction.types import Message, ToolLocation, message_parts

ToolCallMap = dict[str, list[ToolLocation]]


def build_tool_call_map(messages: list[Message]) -> ToolCallMap:
    """
    Map every tool call id to the places it appears.

    Parts without a callID are not paired.

    Args:
        messages: Messages to scan.

    Returns:
        Dict of callID -> locations in message/part order.
    """
    call_map: ToolCallMap = {}

    for mi, message in enumerate(messages):
        for pi, part in enumerate(message_parts(message)):
            if part.get("type") != "tool":
                continue
            call_id = part.get("callID")
            if not call_id:
                continue
            call_map.setdefault(call_id, []).append(ToolLocation(mi, pi))

    return call_map


def enforce_tool_pair_atomic(
    indices: set[int],
    call_map: ToolCallMap,
) -> set[int]:
    """
    Expand a set of message indices so tool pairs are never split.

    If one location of a call id with two or more locations is selected,
    every message holding that call id is selected too.

    Args:
        indices: Message indices selected for compression or removal.
        call_map: Output of build_tool_call_map.

    Returns:
        A new, expanded set of indices.
    """
    expanded = set(indices)
    groups = [locations for locations in call_map.values() if len(locations) >= 2]

    # Repeat until stable so chains of pairs sharing a message are closed
    changed = True
    while changed:
        changed = False
        for locations in groups:
            members = {loc.message_index for loc in locations}
            if members & expanded and not members <= expanded:
                expanded |= members
                changed = True

    return expanded
