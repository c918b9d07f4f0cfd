"""Keyword matching between the latest user question and brain markers."""

import re
from dataclasses import dataclass

from tiergc.compaction.hints import DEFAULT_RECALL_COMMAND, find_last_user_index
from tiergc.compaction.markers import Marker, parse_markers
from tiergc.compaction.types import Message, message_parts

STOP_WORDS = frozenset({
    "the", "a", "an", "is", "are", "was", "were", "be", "been", "being",
    "have", "has", "had", "do", "does", "did", "will", "would", "shall",
    "should", "can", "could", "may", "might", "must", "and", "or", "but",
    "not", "no", "for", "from", "with", "this", "that", "these", "those",
    "it", "its", "of", "in", "on", "at", "to", "by", "as", "if", "so",
    "than", "too", "very", "just", "here", "there", "how", "what", "when",
    "where", "who", "which", "why", "all", "each", "every", "some", "any",
    "few", "more", "most", "other", "into", "through", "about", "me", "my",
    "you", "your", "we", "our", "they", "them", "their", "i", "he", "she",
    "his", "her", "up", "out", "also", "then", "now", "get", "got", "let",
    "use", "used", "using", "see", "look", "tell", "show",
})

MIN_WORD_LENGTH = 3
MIN_SCORE = 0.4
MAX_CANDIDATES = 5
PREFETCH_HEADER = "[context-gc] Relevant brain entries for your current question:"

_NON_WORD = re.compile(r"[^a-z0-9\s_-]")


@dataclass
class PrefetchCandidate:
    brain_id: int
    description: str
    score: float


def extract_keywords(text: str) -> list[str]:
    """Lowercased content words of text, unique, in order of appearance."""
    words = _NON_WORD.sub(" ", text.lower()).split()
    keywords = [w for w in words if len(w) >= MIN_WORD_LENGTH and w not in STOP_WORDS]
    return list(dict.fromkeys(keywords))


def score_description(description_keywords: list[str], query_keywords: list[str]) -> float:
    """Fraction of query keywords that overlap some description keyword."""
    if not query_keywords or not description_keywords:
        return 0.0

    matches = sum(
        1
        for qk in query_keywords
        if any(dk in qk or qk in dk for dk in description_keywords)
    )
    return matches / len(query_keywords)


def _collect_markers(messages: list[Message]) -> list[Marker]:
    seen: set[int] = set()
    markers: list[Marker] = []
    for message in messages:
        for part in message_parts(message):
            for text in (part.get("text"), (part.get("state") or {}).get("output")):
                if not isinstance(text, str) or not text:
                    continue
                for marker in parse_markers(text):
                    if marker.brain_id not in seen:
                        seen.add(marker.brain_id)
                        markers.append(marker)
    return markers


def find_relevant_brain_entries(messages: list[Message]) -> list[PrefetchCandidate]:
    """
    Rank brain markers in the conversation against the latest user message.

    Returns at most five candidates scoring at least MIN_SCORE, best first.
    """
    user_idx = find_last_user_index(messages)
    if user_idx == -1:
        return []

    user_text = " ".join(
        part["text"]
        for part in message_parts(messages[user_idx])
        if part.get("type") == "text" and part.get("text")
    )
    query = extract_keywords(user_text)
    if not query:
        return []

    candidates = []
    for marker in _collect_markers(messages):
        score = score_description(extract_keywords(marker.description), query)
        if score >= MIN_SCORE:
            candidates.append(PrefetchCandidate(marker.brain_id, marker.description, score))

    candidates.sort(key=lambda c: c.score, reverse=True)
    return candidates[:MAX_CANDIDATES]


def build_prefetch_hint(
    candidates: list[PrefetchCandidate],
    recall_command: str = DEFAULT_RECALL_COMMAND,
) -> str:
    if not candidates:
        return ""

    lines = [PREFETCH_HEADER]
    lines.extend(f"  - brain#{c.brain_id}: {c.description}" for c in candidates)
    lines.append(f"Recall with: {recall_command} <ID>")
    return "\n".join(lines)


def inject_prefetch_hint(messages: list[Message]) -> bool:
    """Append a prefetch hint to the latest user message, once."""
    candidates = find_relevant_brain_entries(messages)
    if not candidates:
        return False

    parts = messages[find_last_user_index(messages)].setdefault("parts", [])
    if any(
        part.get("type") == "text" and PREFETCH_HEADER in (part.get("text") or "")
        for part in parts
    ):
        return False

    parts.append({"type": "text", "text": build_prefetch_hint(candidates)})
    return True
