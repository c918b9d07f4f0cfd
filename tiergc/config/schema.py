"""Configuration schema using Pydantic."""

from typing import TYPE_CHECKING, Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

if TYPE_CHECKING:
    from tiergc.compaction.types import Budget


class ContextGCConfig(BaseModel):
    """Tiered context GC configuration."""
    # Tool outputs above this size are written through to long-term memory
    tool_output_token_threshold: int = Field(default=500, ge=0)

    # Turn-age boundaries between tiers
    hot_turns: int = Field(default=3, ge=1)
    warm_turns: int = Field(default=10, ge=1)
    cold_turns: int = Field(default=25, ge=1)
    gone_turns: int = Field(default=40, ge=1)
    min_hot_turns: int = Field(default=3, ge=1)
    max_gone_per_cycle: int = Field(default=5, ge=0)

    # When to run a cycle and how far to shrink (fractions of context_window)
    gc_trigger_pct: float = Field(default=0.70, ge=0.0, le=1.0)
    gc_target_pct: float = Field(default=0.50, ge=0.0, le=1.0)
    gc_cooldown_ms: int = Field(default=30_000, ge=0)

    brain_write_through: bool = True
    disable_preemptive_compaction: bool = False
    dynamic_budget: bool = True  # scale boundaries by context pressure
    token_estimator: Literal["heuristic", "tiktoken"] = "heuristic"
    context_window: int = Field(default=128_000, ge=1)

    def with_budget(self, budget: "Budget") -> "ContextGCConfig":
        """Return a copy whose turn boundaries are replaced by a computed budget."""
        return self.model_copy(update={
            "hot_turns": budget.hot_turns,
            "warm_turns": budget.warm_turns,
            "cold_turns": budget.cold_turns,
            "gone_turns": budget.gone_turns,
        })


class Config(BaseSettings):
    """Root configuration for tiergc."""
    model_config = SettingsConfigDict(env_prefix="TIERGC_", env_nested_delimiter="__")

    gc: ContextGCConfig = Field(default_factory=ContextGCConfig)
