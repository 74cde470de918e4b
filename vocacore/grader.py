# vocacore/grader.py

"""
Defines the BaseGrader abstract class and the SM2Grader, the graduated-interval
transition function that maps (memory state, grade) to the next memory state.
"""

import logging
import math
from abc import ABC, abstractmethod
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Tuple

from pydantic import BaseModel, Field

from .constants import (
    AGAIN_EASINESS_DELTA,
    EASY_BONUS,
    EASY_EASINESS_DELTA,
    GRADUATION_INTERVALS,
    HARD_EASINESS_DELTA,
    HARD_INTERVAL_MULTIPLIER,
    MIN_EASINESS,
)
from .models import CardMemoryState, Grade

logger = logging.getLogger(__name__)


def round_easiness(value: float) -> float:
    """Round to 2 decimal places, halves away from zero."""
    return float(
        Decimal(repr(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    )


def round_interval(value: float) -> int:
    """Round a non-negative day count half-up to an int."""
    return int(math.floor(value + 0.5))


class BaseGrader(ABC):
    """
    Abstract base class for all graders in vocacore.
    """

    @abstractmethod
    def compute_next_state(
        self, state: CardMemoryState, grade: Grade, now: int
    ) -> CardMemoryState:
        """
        Computes the next memory state of a card after a review.

        Args:
            state: The card's current memory state.
            grade: The recall quality for this review.
            now: Review timestamp in milliseconds since epoch.

        Returns:
            A new CardMemoryState; the input is never modified.
        """
        pass


class GraderConfig(BaseModel):
    """Configuration for the SM2Grader."""

    min_easiness: float = MIN_EASINESS
    again_delta: float = AGAIN_EASINESS_DELTA
    hard_delta: float = HARD_EASINESS_DELTA
    easy_delta: float = EASY_EASINESS_DELTA
    graduation_intervals: Tuple[int, ...] = Field(
        default_factory=lambda: tuple(GRADUATION_INTERVALS)
    )
    hard_multiplier: float = HARD_INTERVAL_MULTIPLIER
    easy_bonus: float = EASY_BONUS


class SM2Grader(BaseGrader):
    """
    Graduated-interval grader.

    The first successes after a reset land on fixed checkpoints (1 day, then
    6 days). After that the interval grows by the easiness factor, by a fixed
    1.2 for "hard", and by easiness times a 1.3 bonus for "easy". "Again"
    resets the streak and the interval.
    """

    def __init__(self, config: Optional[GraderConfig] = None):
        if config is None:
            config = GraderConfig()
        self.config = config

    def _lower_easiness(self, easiness: float, delta: float) -> float:
        return max(self.config.min_easiness, round_easiness(easiness + delta))

    def _next_interval(self, repetitions: int, grown: float) -> int:
        checkpoints = self.config.graduation_intervals
        if repetitions <= len(checkpoints):
            return checkpoints[repetitions - 1]
        return round_interval(grown)

    def compute_next_state(
        self, state: CardMemoryState, grade: Grade, now: int
    ) -> CardMemoryState:
        easiness = state.easiness
        repetitions = state.repetitions
        interval = state.interval

        if grade == Grade.Again:
            easiness = self._lower_easiness(easiness, self.config.again_delta)
            repetitions = 0
            interval = 0
        elif grade == Grade.Hard:
            easiness = self._lower_easiness(easiness, self.config.hard_delta)
            repetitions += 1
            interval = self._next_interval(
                repetitions, interval * self.config.hard_multiplier
            )
        elif grade == Grade.Good:
            repetitions += 1
            interval = self._next_interval(repetitions, interval * easiness)
        else:
            # The bonus applies to the already raised easiness.
            easiness = round_easiness(easiness + self.config.easy_delta)
            repetitions += 1
            interval = self._next_interval(
                repetitions, interval * easiness * self.config.easy_bonus
            )

        logger.debug(
            f"Graded {grade.label}: N {state.repetitions}->{repetitions}, "
            f"EF {state.easiness}->{easiness}, I {state.interval}->{interval}"
        )
        return CardMemoryState(
            repetitions=repetitions,
            easiness=easiness,
            interval=interval,
            last_reviewed=now,
        )


_default_grader = SM2Grader()


def grade(state: CardMemoryState, g: Grade, now: int) -> CardMemoryState:
    """Apply `g` to `state` at `now` using the default grader configuration."""
    return _default_grader.compute_next_state(state, g, now)
