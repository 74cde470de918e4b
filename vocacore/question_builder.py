"""
Turns a scheduled catalog index into a multiple-choice question.
"""

import logging
import random
from typing import List, Optional, Sequence

from .constants import DISTRACTOR_COUNT
from .models import CatalogEntry, QuestionInstance

logger = logging.getLogger(__name__)


def pick_distractors(
    catalog: Sequence[CatalogEntry],
    exclude_index: int,
    count: int = DISTRACTOR_COUNT,
    rng: Optional[random.Random] = None,
) -> List[str]:
    """
    Draw `count` meanings from every entry except `exclude_index`.

    Meanings are not deduplicated: if two different words share the same
    meaning text, that text can appear twice among the distractors, or match
    the answer's text.
    """
    rng = rng or random.Random()
    pool = [
        entry.meaning
        for idx, entry in enumerate(catalog)
        if idx != exclude_index
    ]
    rng.shuffle(pool)
    return pool[:count]


def build(
    active_index: int,
    catalog: Sequence[CatalogEntry],
    rng: Optional[random.Random] = None,
) -> QuestionInstance:
    """
    Build the question for `active_index`.

    Args:
        active_index: Catalog index of the word being asked.
        catalog: The full vocabulary catalog (at least 4 entries expected).
        rng: Random source for distractor sampling and option order.

    Returns:
        A QuestionInstance whose options are the correct meaning plus the
        distractors, shuffled once more so the answer's position is random.
    """
    rng = rng or random.Random()
    entry = catalog[active_index]
    distractors = pick_distractors(catalog, active_index, rng=rng)
    options = [entry.meaning, *distractors]
    rng.shuffle(options)
    if len(options) < DISTRACTOR_COUNT + 1:
        logger.warning(
            f"Catalog has only {len(catalog)} entries; question for "
            f"'{entry.word}' has {len(options)} options"
        )
    return QuestionInstance(
        index=active_index,
        word=entry.word,
        answer=entry.meaning,
        options=tuple(options),
    )
