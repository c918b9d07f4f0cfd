"""Context GC service driving classification and compression cycles."""

import math
import time
from collections import Counter

from loguru import logger

from tiergc.compaction.budget import compute_dynamic_budget, static_budget
from tiergc.compaction.cache import CompressionCache, ProcessedSet
from tiergc.compaction.classifier import classify_messages
from tiergc.compaction.estimator import estimate_context_tokens
from tiergc.compaction.hints import RecallHintInjector
from tiergc.compaction.orchestrator import compress_messages
from tiergc.compaction.prefetch import inject_prefetch_hint
from tiergc.compaction.store import BrainIdStore
from tiergc.compaction.types import BrainIdLookup, CycleResult, Message
from tiergc.config.schema import ContextGCConfig


class ContextGCService:
    """
    Service for running tiered context GC over agent conversations.

    Handles:
    - Deciding when a cycle should run (trigger threshold and cooldown)
    - Pressure-adaptive tier boundaries
    - Classification, compression and removal of old messages
    - One-time recall hint once content has been externalized
    - Session-scoped state and its teardown
    """

    def __init__(
        self,
        config: ContextGCConfig | None = None,
        brain_ids: BrainIdLookup | None = None,
        cache: CompressionCache | None = None,
    ):
        """
        Initialize the GC service.

        Args:
            config: GC configuration.
            brain_ids: Lookup for long-term memory ids. A fresh BrainIdStore when omitted.
            cache: Compression memo shared across cycles.
        """
        self.config = config or ContextGCConfig()
        self.brain_ids = brain_ids if brain_ids is not None else BrainIdStore()
        self.cache = cache if cache is not None else CompressionCache()
        self.processed = ProcessedSet()
        self.hints = RecallHintInjector()
        self._last_cycle_ms: dict[str, float] = {}
        self._cycle_count = 0

    def context_tokens(self, messages: list[Message]) -> int:
        return estimate_context_tokens(messages, self.config.token_estimator)

    def usage_ratio(self, messages: list[Message]) -> float:
        """Fraction of the context window the conversation currently fills."""
        return self.context_tokens(messages) / self.config.context_window

    def tokens_to_free(self, messages: list[Message]) -> int:
        """Tokens above the GC target share of the context window."""
        target = int(self.config.context_window * self.config.gc_target_pct)
        return max(0, self.context_tokens(messages) - target)

    def should_collect(
        self,
        usage_ratio: float,
        session_id: str | None = None,
        now_ms: float | None = None,
    ) -> bool:
        """
        Check if a GC cycle should run.

        Args:
            usage_ratio: Current context usage ratio.
            session_id: Session the cooldown applies to.
            now_ms: Current time in milliseconds, wall clock when omitted.

        Returns:
            True if a cycle is due.
        """
        if self.config.disable_preemptive_compaction:
            return False

        if usage_ratio < self.config.gc_trigger_pct:
            return False

        if session_id is not None:
            last = self._last_cycle_ms.get(session_id)
            now = now_ms if now_ms is not None else time.time() * 1000
            if last is not None and now - last < self.config.gc_cooldown_ms:
                logger.debug(f"Context GC for {session_id} still cooling down")
                return False

        return True

    def run_cycle(
        self,
        messages: list[Message],
        usage_ratio: float | None = None,
        session_id: str | None = None,
        tokens_to_free: float | None = None,
        force: bool = False,
        now_ms: float | None = None,
    ) -> CycleResult | None:
        """
        Run one classify + compress cycle if one is due.

        Args:
            messages: The conversation (mutated in place).
            usage_ratio: Context usage ratio; measured from messages when omitted.
            session_id: Session owning the conversation, for cooldown and hints.
            tokens_to_free: Compression budget; derived from gc_target_pct when omitted.
            force: Run even if below the trigger or within the cooldown.
            now_ms: Current time in milliseconds, wall clock when omitted.

        Returns:
            CycleResult, or None if no cycle was due.
        """
        ratio = usage_ratio if usage_ratio is not None else self.usage_ratio(messages)

        if not force and not self.should_collect(ratio, session_id, now_ms):
            return None

        if self.config.dynamic_budget:
            budget = compute_dynamic_budget(self.config, ratio)
        else:
            budget = static_budget(self.config)

        cycle_config = self.config.with_budget(budget)
        if tokens_to_free is None:
            tokens_to_free = math.inf if force else self.tokens_to_free(messages)

        logger.info(
            f"Context GC cycle: {len(messages)} messages, usage {ratio:.0%}, "
            f"budget {budget.hot_turns}/{budget.warm_turns}/{budget.cold_turns}/{budget.gone_turns}"
        )

        tokens_before = self.context_tokens(messages)
        classifications = classify_messages(messages, cycle_config, self.brain_ids)
        tier_counts = dict(Counter(c.tier for c in classifications))

        stats = compress_messages(
            messages,
            classifications,
            cycle_config,
            tokens_to_free,
            cache=self.cache,
            brain_ids=self.brain_ids,
        )

        hint_injected = self.hints.inject(messages, session_id)
        tokens_after = self.context_tokens(messages)

        if session_id is not None:
            self._last_cycle_ms[session_id] = now_ms if now_ms is not None else time.time() * 1000
        self._cycle_count += 1

        return CycleResult(
            budget=budget,
            classifications=classifications,
            stats=stats,
            tokens_before=tokens_before,
            tokens_after=tokens_after,
            hint_injected=hint_injected,
            tier_counts=tier_counts,
        )

    def prefetch(self, messages: list[Message]) -> bool:
        """Point the model at brain entries matching the latest user question."""
        injected = inject_prefetch_hint(messages)
        if injected:
            logger.debug("Injected brain prefetch hint")
        return injected

    def record_externalized(self, session_id: str, message_id: str, brain_id: int) -> None:
        """
        Record that a message was copied to long-term memory.

        Called by the write-through step once the memory store returns an id.
        """
        self.processed.mark_processed(session_id, message_id)
        if isinstance(self.brain_ids, BrainIdStore):
            self.brain_ids.store(session_id, message_id, brain_id)

    def is_externalized(self, session_id: str, message_id: str) -> bool:
        return self.processed.is_processed(session_id, message_id)

    def clear_session(self, session_id: str) -> None:
        """Drop every piece of state kept for a session."""
        self.cache.clear_session(session_id)
        self.processed.clear_session(session_id)
        self.hints.clear_session(session_id)
        self._last_cycle_ms.pop(session_id, None)
        clear = getattr(self.brain_ids, "clear_session", None)
        if clear is not None:
            clear(session_id)

    @property
    def cycle_count(self) -> int:
        """Get the number of cycles performed."""
        return self._cycle_count
