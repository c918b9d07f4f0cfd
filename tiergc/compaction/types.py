"""Types for the tiered compaction system."""

from dataclasses import asdict, dataclass, field
from typing import Any, Literal, Protocol

Tier = Literal["hot", "warm", "cold", "gone"]
PressureZone = Literal["low", "normal", "elevated", "high", "extreme"]

# Larger depth means more information has been given up
TIER_DEPTH: dict[str, int] = {
    "hot": 0,
    "warm": 1,
    "cold": 2,
    "gone": 3,
}

THINKING_TYPES = frozenset({"thinking", "redacted_thinking", "reasoning"})


@dataclass
class TierClassification:
    """Tier assigned to one message for a single GC cycle."""

    tier: Tier
    message_index: int
    turn_age: int
    estimated_tokens: int


@dataclass(frozen=True)
class Budget:
    """Turn-count boundaries separating the tiers."""

    hot_turns: int
    warm_turns: int
    cold_turns: int
    gone_turns: int


@dataclass(frozen=True)
class ToolLocation:
    """Position of a tool part within a message list."""

    message_index: int
    part_index: int


@dataclass(frozen=True)
class PartEdit:
    """Part-level edit produced by a compressor."""

    part_index: int
    action: Literal["remove", "replace"]
    new_text: str | None = None


@dataclass
class CompressedToolOutput:
    """Result of compressing a single tool output."""

    compressed: str
    original_length: int
    extracted_lines: int


@dataclass
class CompressStats:
    """Counters for one compression cycle."""

    tool_outputs_compressed: int = 0
    thinking_blocks_removed: int = 0
    text_parts_compressed: int = 0
    system_parts_removed: int = 0
    messages_removed: int = 0

    @property
    def total(self) -> int:
        return sum(asdict(self).values())

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


@dataclass
class CycleResult:
    """Outcome of a full classify + compress cycle."""

    budget: Budget
    classifications: list[TierClassification]
    stats: CompressStats
    tokens_before: int
    tokens_after: int
    hint_injected: bool = False
    tier_counts: dict[str, int] = field(default_factory=dict)


class BrainIdLookup(Protocol):
    """Maps (session, message) to the id of its long-term memory copy."""

    def get(self, session_id: str, message_id: str) -> int | None: ...


Message = dict[str, Any]
Part = dict[str, Any]


def message_info(message: Message) -> dict[str, Any]:
    """Return the metadata mapping of a message.

    Host messages keep metadata under ``info``; flat messages carry it inline.
    """
    info = message.get("info")
    if isinstance(info, dict):
        return info
    return message


def message_role(message: Message) -> str:
    return message_info(message).get("role") or "unknown"


def message_ids(message: Message) -> tuple[str, str]:
    """Return (session_id, message_id), empty strings when missing."""
    info = message_info(message)
    return info.get("sessionID") or "", info.get("id") or ""


def message_parts(message: Message) -> list[Part]:
    return message.get("parts") or []


# Compressor constants
MAX_WARM_LINES = 5
FALLBACK_WARM_LINES = 3
MAX_COLD_SUMMARY_CHARS = 120
COLD_TEXT_MAX_CHARS = 200
ASSISTANT_TEXT_TOKEN_THRESHOLD = 100
SYSTEM_TEXT_TOKEN_THRESHOLD = 200
UNKNOWN_TOOL = "unknown-tool"

DEFAULT_MAX_GONE_PER_CYCLE = 5
