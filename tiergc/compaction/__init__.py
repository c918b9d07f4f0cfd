"""Tiered context GC for agent conversations."""

from tiergc.compaction.estimator import (
    count_tokens,
    estimate_context_tokens,
    estimate_message_tokens,
    estimate_parts_tokens,
    estimate_tokens,
)
from tiergc.compaction.markers import Marker, create_marker, has_markers, parse_markers
from tiergc.compaction.pairing import build_tool_call_map, enforce_tool_pair_atomic
from tiergc.compaction.budget import compute_dynamic_budget, get_pressure_zone
from tiergc.compaction.relevance import apply_relevance_promotions
from tiergc.compaction.classifier import classify_messages
from tiergc.compaction.cache import CompressionCache, ProcessedSet
from tiergc.compaction.store import BrainIdStore
from tiergc.compaction.orchestrator import compress_messages
from tiergc.compaction.hints import RecallHintInjector, collect_brain_ids
from tiergc.compaction.prefetch import find_relevant_brain_entries, inject_prefetch_hint
from tiergc.compaction.service import ContextGCService
from tiergc.compaction.types import (
    Budget,
    CompressStats,
    CycleResult,
    Tier,
    TierClassification,
)

__all__ = [
    # Estimator
    "estimate_tokens",
    "estimate_message_tokens",
    "estimate_parts_tokens",
    "estimate_context_tokens",
    "count_tokens",
    # Markers
    "Marker",
    "create_marker",
    "parse_markers",
    "has_markers",
    # Pairing
    "build_tool_call_map",
    "enforce_tool_pair_atomic",
    # Tiering
    "compute_dynamic_budget",
    "get_pressure_zone",
    "classify_messages",
    "apply_relevance_promotions",
    # Compression
    "compress_messages",
    "CompressionCache",
    "ProcessedSet",
    "BrainIdStore",
    # Hints
    "RecallHintInjector",
    "collect_brain_ids",
    "find_relevant_brain_entries",
    "inject_prefetch_hint",
    # Service
    "ContextGCService",
    # Types
    "Budget",
    "CompressStats",
    "CycleResult",
    "Tier",
    "TierClassification",
]
