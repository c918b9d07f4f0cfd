"""Turn-age based tier classification."""

from tiergc.compaction.budget import static_budget
from tiergc.compaction.estimator import estimate_parts_tokens
from tiergc.compaction.relevance import apply_relevance_promotions
from tiergc.compaction.types import (
    BrainIdLookup,
    Budget,
    Message,
    Tier,
    TierClassification,
    message_parts,
    message_role,
)
from tiergc.config.schema import ContextGCConfig


def count_assistant_turns(messages: list[Message]) -> int:
    return sum(1 for message in messages if message_role(message) == "assistant")


def tier_for_turn_age(turn_age: int, budget: Budget) -> Tier:
    """Bucket a turn age against the tier boundaries."""
    if turn_age < budget.hot_turns:
        return "hot"
    if turn_age < budget.warm_turns:
        return "warm"
    # [warm, cold) and [cold, gone) are both cold
    if turn_age < budget.gone_turns:
        return "cold"
    return "gone"


def classify_messages(
    messages: list[Message],
    config: ContextGCConfig | None = None,
    brain_ids: BrainIdLookup | None = None,
) -> list[TierClassification]:
    """
    Assign a tier and turn age to every message.

    The list is scanned from the last message to the first while counting
    assistant messages. An assistant message's turn age is the number of
    assistant turns not yet seen; other messages share the age of the
    nearest assistant message already scanned, or the total when none has
    been seen. Relevance promotion runs on the result before it is returned.

    Args:
        messages: The conversation, oldest first.
        config: Tier boundaries, defaults when None.
        brain_ids: Lookup used to resolve brain markers during promotion.

    Returns:
        One classification per message, in message order.
    """
    budget = static_budget(config)
    total = count_assistant_turns(messages)

    results: list[TierClassification] = []
    seen = 0

    for i in range(len(messages) - 1, -1, -1):
        message = messages[i]
        if message_role(message) == "assistant":
            seen += 1

        turn_age = total - seen if seen > 0 else total

        results.append(TierClassification(
            tier=tier_for_turn_age(turn_age, budget),
            message_index=i,
            turn_age=turn_age,
            estimated_tokens=estimate_parts_tokens(message_parts(message)),
        ))

    results.reverse()
    apply_relevance_promotions(messages, results, brain_ids)
    return results
