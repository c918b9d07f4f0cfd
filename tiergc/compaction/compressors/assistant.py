"""Compression policy for assistant responses."""

from tiergc.compaction.estimator import estimate_tokens
from tiergc.compaction.markers import create_marker
from tiergc.compaction.types import (
    ASSISTANT_TEXT_TOKEN_THRESHOLD,
    COLD_TEXT_MAX_CHARS,
    THINKING_TYPES,
    PartEdit,
    Part,
    Tier,
)


def truncate_text(text: str, max_chars: int, brain_id: int | None) -> str:
    if len(text) <= max_chars:
        return text
    brain_ref = f" {create_marker(brain_id, 'full response')}" if brain_id is not None else ""
    return f"{text[:max_chars]}...{brain_ref}"


def compute_assistant_edits(
    parts: list[Part],
    tier: Tier,
    brain_id: int | None,
) -> list[PartEdit]:
    """
    Plan edits for the parts of an assistant message.

    Warm and colder tiers drop hidden reasoning. Cold additionally truncates
    long text parts, pointing at the full response in long-term memory when
    a brain id is known.

    Args:
        parts: The message parts (not modified).
        tier: Target tier.
        brain_id: Long-term memory id for the message, if any.

    Returns:
        Edits in ascending part order.
    """
    if tier == "hot":
        return []

    edits: list[PartEdit] = []

    for i, part in enumerate(parts):
        part_type = part.get("type")

        if part_type in THINKING_TYPES:
            edits.append(PartEdit(part_index=i, action="remove"))
            continue

        if part_type != "text" or tier != "cold":
            continue

        text = part.get("text") or part.get("thinking") or ""
        if estimate_tokens(text) < ASSISTANT_TEXT_TOKEN_THRESHOLD:
            continue

        edits.append(PartEdit(
            part_index=i,
            action="replace",
            new_text=truncate_text(text, COLD_TEXT_MAX_CHARS, brain_id),
        ))

    return edits
