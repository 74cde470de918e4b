"""
Pydantic models for the vocabulary catalog, per-card memory state,
multiple-choice questions and review session tracking.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import IntEnum
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .constants import DAY_MS, DEFAULT_EASINESS, MIN_EASINESS


class Grade(IntEnum):
    """
    Represents the learner's recall quality for a single review.
    """

    Again = 1
    Hard = 2
    Good = 3
    Easy = 4

    @property
    def label(self) -> str:
        return self.name.lower()

    @classmethod
    def from_label(cls, label: str) -> "Grade":
        """Parse a grade from its lowercase label ("again", "hard", ...)."""
        try:
            return cls[label.strip().title()]
        except KeyError:
            raise ValueError(
                f"Invalid grade: '{label}'. "
                f"Must be one of: {', '.join(g.label for g in cls)}."
            ) from None


# Grades a learner may pick after answering correctly. Again is only ever
# applied automatically for a wrong answer or a skip.
LEARNER_GRADES: Tuple[Grade, ...] = (Grade.Hard, Grade.Good, Grade.Easy)


class CatalogEntry(BaseModel):
    """
    A single vocabulary item. Identified only by its position in the catalog.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    word: str = Field(..., description="The word shown as the question.")
    meaning: str = Field(..., description="The meaning to be recognised.")

    @field_validator("word", "meaning")
    @classmethod
    def strip_and_require_text(cls, value: str) -> str:
        """Reject empty or whitespace-only text."""
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value


class CardMemoryState(BaseModel):
    """
    Memory model of a single catalog item.

    Field aliases are the keys used in the persisted JSON array so that stored
    progress stays compatible with existing installs.
    """

    model_config = ConfigDict(
        frozen=True, extra="forbid", populate_by_name=True
    )

    repetitions: int = Field(
        default=0,
        ge=0,
        alias="N",
        description="Consecutive successful reviews since the last reset.",
    )
    easiness: float = Field(
        default=DEFAULT_EASINESS,
        ge=MIN_EASINESS,
        alias="EF",
        description="Easiness factor; never below the 1.3 floor.",
    )
    interval: int = Field(
        default=0,
        ge=0,
        alias="I",
        description="Days until the next due date, relative to last_reviewed.",
    )
    last_reviewed: Optional[int] = Field(
        default=None,
        alias="lastReviewed",
        description="Milliseconds since epoch of the last review (None if new).",
    )

    def due_at(self) -> Optional[int]:
        """Due timestamp in ms, or None for a card that was never reviewed."""
        if self.last_reviewed is None:
            return None
        return self.last_reviewed + self.interval * DAY_MS

    def is_due(self, now: int) -> bool:
        due_at = self.due_at()
        return due_at is None or now >= due_at

    def overdue_ms(self, now: int) -> int:
        """
        How far past its due date the card is at `now`.

        A never-reviewed card counts as due since the epoch, which ranks it
        ahead of every reviewed card that is due.
        """
        due_at = self.due_at()
        return now - (due_at if due_at is not None else 0)

    def to_storage(self) -> dict:
        return self.model_dump(by_alias=True)


class QuestionInstance(BaseModel):
    """
    A multiple-choice question for one catalog index: the correct meaning
    plus distractors, in a fixed display order.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    index: int = Field(..., ge=0, description="Catalog index being asked.")
    word: str
    answer: str
    options: Tuple[str, ...] = Field(
        ..., description="Shuffled options, including the answer."
    )

    def is_correct(self, selection: Optional[str]) -> bool:
        """A skip (None or empty selection) is never correct."""
        if not selection:
            return False
        return selection == self.answer


class SessionStats(BaseModel):
    """
    Running counters for a review session.
    """

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    started_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="UTC timestamp when the session started.",
    )
    cards_reviewed: int = Field(
        default=0, ge=0, description="Graded reviews in this session."
    )
    correct_answers: int = Field(default=0, ge=0)
    incorrect_answers: int = Field(
        default=0, ge=0, description="Wrong selections, skips excluded."
    )
    skipped: int = Field(default=0, ge=0)
    passes_completed: int = Field(
        default=0, ge=0, description="Number of exhausted review queues."
    )

    def record_answer(self, correct: bool, skipped: bool = False) -> None:
        if correct:
            self.correct_answers += 1
        elif skipped:
            self.skipped += 1
        else:
            self.incorrect_answers += 1

    def record_review(self) -> None:
        self.cards_reviewed += 1

    def record_pass(self) -> None:
        self.passes_completed += 1

    @property
    def answered(self) -> int:
        return self.correct_answers + self.incorrect_answers + self.skipped

    @property
    def accuracy_percentage(self) -> Optional[float]:
        """Share of correct answers, or None before the first answer."""
        if self.answered == 0:
            return None
        return self.correct_answers / self.answered * 100
