"""Session-scoped memo of compression work already done."""

from tiergc.compaction.types import TIER_DEPTH, Tier


class CompressionCache:
    """
    Remembers the deepest tier applied to each message.

    Entries are keyed by session and never regress: recording ``warm`` for a
    message already compressed at ``cold`` keeps ``cold``.
    """

    def __init__(self) -> None:
        self._tiers: dict[str, dict[str, Tier]] = {}

    def get_tier(self, session_id: str, message_id: str) -> Tier | None:
        return self._tiers.get(session_id, {}).get(message_id)

    def set_tier(self, session_id: str, message_id: str, tier: Tier) -> None:
        session = self._tiers.setdefault(session_id, {})
        current = session.get(message_id)
        if current is not None and TIER_DEPTH[current] >= TIER_DEPTH[tier]:
            return
        session[message_id] = tier

    def is_compressed_at(self, session_id: str, message_id: str, tier: Tier) -> bool:
        """True if the message was already compressed at ``tier`` or deeper."""
        cached = self.get_tier(session_id, message_id)
        if cached is None:
            return False
        return TIER_DEPTH[cached] >= TIER_DEPTH[tier]

    def clear_session(self, session_id: str) -> None:
        self._tiers.pop(session_id, None)

    def __len__(self) -> int:
        return sum(len(tiers) for tiers in self._tiers.values())


class ProcessedSet:
    """Message ids already handled by the write-through step, per session."""

    def __init__(self) -> None:
        self._processed: dict[str, set[str]] = {}

    def is_processed(self, session_id: str, message_id: str) -> bool:
        return message_id in self._processed.get(session_id, ())

    def mark_processed(self, session_id: str, message_id: str) -> None:
        self._processed.setdefault(session_id, set()).add(message_id)

    def clear_session(self, session_id: str) -> None:
        self._processed.pop(session_id, None)
