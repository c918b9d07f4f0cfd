"""In-memory map from conversation messages to long-term memory ids."""


class BrainIdStore:
    """
    Maps (session, message) to the id of the memory entry holding its content.

    Populated by the write-through step that copies large outputs to long-term
    memory; read by the compressors so they can emit ``[brain#N: ...]``
    markers and by relevance promotion to resolve those markers.
    """

    def __init__(self) -> None:
        self._ids: dict[str, dict[str, int]] = {}

    def store(self, session_id: str, message_id: str, brain_id: int) -> None:
        self._ids.setdefault(session_id, {})[message_id] = brain_id

    def get(self, session_id: str, message_id: str) -> int | None:
        return self._ids.get(session_id, {}).get(message_id)

    def has(self, session_id: str, message_id: str) -> bool:
        return message_id in self._ids.get(session_id, {})

    def clear_session(self, session_id: str) -> None:
        self._ids.pop(session_id, None)

    def __len__(self) -> int:
        return sum(len(ids) for ids in self._ids.values())
