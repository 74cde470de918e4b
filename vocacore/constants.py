"""
Scheduling constants.

This module contains the static parameters of the graduated-interval
(SM-2 style) memory model used by vocacore.
No runtime configuration or path defaults - pure constants only.
"""
from typing import Tuple

# Persisted storage key for the full card state array.
DEFAULT_STORAGE_KEY: str = "VOCA_CARD_STATES_V1"

DAY_MS: int = 24 * 60 * 60 * 1000

# Memory model defaults for a card that has never been reviewed.
DEFAULT_EASINESS: float = 2.5
MIN_EASINESS: float = 1.3

# Easiness adjustments applied per grade.
AGAIN_EASINESS_DELTA: float = -0.20
HARD_EASINESS_DELTA: float = -0.15
EASY_EASINESS_DELTA: float = 0.15

# Fixed intervals (days) for the first and second success after a reset.
GRADUATION_INTERVALS: Tuple[int, ...] = (1, 6)

HARD_INTERVAL_MULTIPLIER: float = 1.2
EASY_BONUS: float = 1.3

# Number of wrong options shown next to the correct meaning.
DISTRACTOR_COUNT: int = 3
