# vocacore/scheduler.py

"""
Orders catalog indices into the next review pass.

Cards that are due come first, most overdue first. Cards that are not yet due
follow, lowest easiness first, so spare review time goes to the weakest items.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from .clock import Clock, system_clock
from .models import CardMemoryState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Ranked:
    index: int
    state: CardMemoryState
    overdue: int
    is_due: bool


def _rank(states: Sequence[CardMemoryState], now: int) -> List[_Ranked]:
    return [
        _Ranked(
            index=index,
            state=state,
            overdue=state.overdue_ms(now),
            is_due=state.is_due(now),
        )
        for index, state in enumerate(states)
    ]


def schedule(states: Sequence[CardMemoryState], now: int) -> List[int]:
    """
    Build a review queue covering every index of `states` exactly once.

    Args:
        states: Card states, positionally aligned with the catalog.
        now: Current time in milliseconds since epoch.

    Returns:
        Due indices sorted by decreasing overdue time, followed by pending
        indices sorted by increasing easiness. Both sorts are stable, so ties
        keep catalog order.
    """
    ranked = _rank(states, now)
    due_items = sorted(
        (r for r in ranked if r.is_due), key=lambda r: r.overdue, reverse=True
    )
    pending_items = sorted(
        (r for r in ranked if not r.is_due), key=lambda r: r.state.easiness
    )
    # sorted(reverse=True) keeps equal keys in their original order.
    queue = [r.index for r in due_items] + [r.index for r in pending_items]
    logger.debug(
        f"Scheduled {len(queue)} cards: {len(due_items)} due, "
        f"{len(pending_items)} pending"
    )
    return queue


def count_due(states: Sequence[CardMemoryState], now: int) -> int:
    """Number of cards that are due at `now`."""
    return sum(1 for state in states if state.is_due(now))


class Scheduler:
    """
    Binds the queue ordering to a clock so callers don't pass "now" around.
    """

    def __init__(self, clock: Optional[Clock] = None):
        self.clock = clock or system_clock

    def build_queue(self, states: Sequence[CardMemoryState]) -> List[int]:
        return schedule(states, self.clock())

    def count_due(self, states: Sequence[CardMemoryState]) -> int:
        return count_due(states, self.clock())
