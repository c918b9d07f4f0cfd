"""Compression policy for synthetic system text carried in user messages."""

import re

from tiergc.compaction.estimator import estimate_tokens
from tiergc.compaction.types import SYSTEM_TEXT_TOKEN_THRESHOLD, PartEdit, Part, Tier

KEEP_PATTERNS = (
    re.compile(r"constraint", re.IGNORECASE),
    re.compile(r"NEVER\b"),
    re.compile(r"MUST\b"),
    re.compile(r"CRITICAL", re.IGNORECASE),
    re.compile(r"bootstrap", re.IGNORECASE),
    re.compile(r"identity", re.IGNORECASE),
)


def is_protected_text(text: str) -> bool:
    """True if text carries constraints, bootstrap or identity instructions."""
    return any(pattern.search(text) for pattern in KEEP_PATTERNS)


def compute_system_edits(parts: list[Part], tier: Tier) -> list[PartEdit]:
    """Plan removals of large synthetic text parts at the cold tier."""
    if tier != "cold":
        return []

    edits: list[PartEdit] = []

    for i, part in enumerate(parts):
        if part.get("type") != "text":
            continue

        text = part.get("text") or ""
        if is_protected_text(text):
            continue

        if part.get("synthetic") is True and estimate_tokens(text) > SYSTEM_TEXT_TOKEN_THRESHOLD:
            edits.append(PartEdit(part_index=i, action="remove"))

    return edits
