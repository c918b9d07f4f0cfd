"""Token estimation for message parts."""

import math
from typing import Any, Literal

import tiktoken

from tiergc.compaction.types import Message, Part, message_parts

CHARS_PER_TOKEN_ESTIMATE = 4

# Cache the encoder
_encoder: tiktoken.Encoding | None = None


def _get_encoder() -> tiktoken.Encoding:
    """Get or create the tiktoken encoder."""
    global _encoder
    if _encoder is None:
        _encoder = tiktoken.get_encoding("cl100k_base")
    return _encoder


def estimate_tokens(text: str) -> int:
    """
    Estimate the number of tokens in a text string.

    Uses a fixed characters-per-token ratio so that every threshold in the
    compressors is reproducible across runs and platforms.

    Args:
        text: The text to estimate tokens for.

    Returns:
        Estimated token count.
    """
    if not text:
        return 0
    return math.ceil(len(text) / CHARS_PER_TOKEN_ESTIMATE)


def count_tokens(text: str) -> int:
    """
    Count tokens exactly with the cl100k_base encoding.

    Args:
        text: The text to count.

    Returns:
        Token count.
    """
    if not text:
        return 0
    return len(_get_encoder().encode(text))


def _state(part: Part) -> dict[str, Any]:
    state = part.get("state")
    return state if isinstance(state, dict) else {}


def part_text(part: Part) -> str:
    """Return the text a part contributes to the context."""
    for value in (
        part.get("text"),
        part.get("thinking"),
        _state(part).get("output"),
        _state(part).get("input"),
        part.get("tool"),
    ):
        if isinstance(value, str):
            return value
    return ""


def estimate_message_tokens(parts: list[Part]) -> int:
    """Estimate tokens for every part of a message."""
    return sum(estimate_tokens(part_text(part)) for part in parts)


def estimate_parts_tokens(parts: list[Part]) -> int:
    """
    Estimate the compressible payload of a message.

    Only text, tool output and thinking content count here; tool inputs and
    names are never rewritten, so they are left out of the freed-token math.
    """
    total = 0
    for part in parts:
        text = part.get("text")
        output = _state(part).get("output")
        thinking = part.get("thinking")
        if isinstance(text, str):
            total += estimate_tokens(text)
        elif isinstance(output, str):
            total += estimate_tokens(output)
        elif isinstance(thinking, str):
            total += estimate_tokens(thinking)
    return total


def estimate_context_tokens(
    messages: list[Message],
    estimator: Literal["heuristic", "tiktoken"] = "heuristic",
) -> int:
    """
    Estimate the total context size of a conversation.

    Args:
        messages: Messages in the conversation.
        estimator: "heuristic" for the character ratio, "tiktoken" for exact counts.

    Returns:
        Total token count.
    """
    if estimator == "tiktoken":
        return sum(
            count_tokens(part_text(part))
            for message in messages
            for part in message_parts(message)
        )
    return sum(estimate_message_tokens(message_parts(message)) for message in messages)
