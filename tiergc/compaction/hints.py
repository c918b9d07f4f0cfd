"""Recall hint telling the model how to fetch externalized content."""

from tiergc.compaction.markers import parse_markers
from tiergc.compaction.types import Message, Part, message_parts, message_role

HINT_TAG = "[context-gc]"
DEFAULT_RECALL_COMMAND = "nous-memory get"


def build_recall_hint(recall_command: str = DEFAULT_RECALL_COMMAND) -> str:
    return "\n".join([
        f"{HINT_TAG} Some earlier messages were compressed. "
        "Data replaced with [brain#ID: description] markers.",
        f"To recall the full content of any marker, run: {recall_command} <ID>",
        f"Example: {recall_command} 42",
    ])


RECALL_HINT = build_recall_hint()


def _part_marker_texts(part: Part) -> list[str]:
    texts = []
    if part.get("type") == "tool":
        output = (part.get("state") or {}).get("output")
        if isinstance(output, str) and output:
            texts.append(output)
    if part.get("type") == "text":
        text = part.get("text")
        if isinstance(text, str) and text:
            texts.append(text)
    return texts


def collect_brain_ids(messages: list[Message]) -> list[int]:
    """Unique brain ids referenced anywhere in the conversation, first seen first."""
    ids: dict[int, None] = {}
    for message in messages:
        for part in message_parts(message):
            for text in _part_marker_texts(part):
                for marker in parse_markers(text):
                    ids.setdefault(marker.brain_id, None)
    return list(ids)


def find_last_user_index(messages: list[Message]) -> int:
    for i in range(len(messages) - 1, -1, -1):
        if message_role(messages[i]) == "user":
            return i
    return -1


class RecallHintInjector:
    """
    Appends a one-time recall hint to the latest user message.

    The hint is only added once markers exist in the conversation, at most
    once per session, and never twice to the same message.
    """

    def __init__(self, recall_command: str = DEFAULT_RECALL_COMMAND):
        self.hint = build_recall_hint(recall_command)
        self._injected_sessions: set[str] = set()

    def should_inject(self, messages: list[Message]) -> bool:
        return bool(collect_brain_ids(messages))

    def inject(self, messages: list[Message], session_id: str | None = None) -> bool:
        """
        Add the recall hint if the conversation needs one.

        Args:
            messages: The conversation (mutated in place).
            session_id: Session used for the once-per-session guard.

        Returns:
            True if a hint part was appended.
        """
        if not self.should_inject(messages):
            return False

        if session_id:
            if session_id in self._injected_sessions:
                return False
            self._injected_sessions.add(session_id)

        user_idx = find_last_user_index(messages)
        if user_idx == -1:
            return False

        parts = messages[user_idx].setdefault("parts", [])
        if any(
            part.get("type") == "text" and HINT_TAG in (part.get("text") or "")
            for part in parts
        ):
            return False

        parts.append({"type": "text", "text": self.hint})
        return True

    def clear_session(self, session_id: str) -> None:
        self._injected_sessions.discard(session_id)
