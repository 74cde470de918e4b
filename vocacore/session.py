"""
This module defines the ReviewSession class, which drives the review loop: it
takes the head of the scheduled queue, asks it as a multiple-choice question,
grades the answer into the card state store, and starts a new pass whenever the
queue runs out.
"""

import logging
import random
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, List, Optional, Sequence, Union

from .clock import Clock, system_clock
from .exceptions import SessionStateError
from .grader import BaseGrader, SM2Grader
from .models import (
    LEARNER_GRADES,
    CatalogEntry,
    Grade,
    QuestionInstance,
    SessionStats,
)
from .question_builder import build
from .scheduler import schedule
from .store import CardStateStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NoContent:
    """The catalog is empty; there is never an active question."""


@dataclass(frozen=True)
class AwaitingAnswer:
    question: QuestionInstance

    @property
    def active_index(self) -> int:
        return self.question.index


@dataclass(frozen=True)
class Answered:
    question: QuestionInstance
    selection: Optional[str]
    correct: bool

    @property
    def active_index(self) -> int:
        return self.question.index


SessionState = Union[NoContent, AwaitingAnswer, Answered]


@dataclass(frozen=True)
class PassCompleted:
    """Emitted each time the queue is exhausted and a new pass begins."""

    pass_number: int
    queue_length: int


PassListener = Callable[[PassCompleted], None]


class ReviewSession:
    """
    Manages an unbounded multiple-choice review session.

    State machine:
        AwaitingAnswer --select(wrong)/skip--> Answered(correct=False)  [graded Again]
        AwaitingAnswer --select(right)------> Answered(correct=True)   [not graded yet]
        Answered(False) --advance()---------> AwaitingAnswer (next card)
        Answered(True)  --rate(hard|good|easy)--> AwaitingAnswer (next card)

    There is no terminal state. When the queue runs out it is rebuilt from the
    current card states and a PassCompleted event is emitted.
    """

    def __init__(
        self,
        catalog: Sequence[CatalogEntry],
        store: CardStateStore,
        grader: Optional[BaseGrader] = None,
        clock: Optional[Clock] = None,
        rng: Optional[random.Random] = None,
    ):
        if len(store) != len(catalog):
            raise ValueError(
                f"Card state store has {len(store)} entries but the catalog "
                f"has {len(catalog)}."
            )
        self.catalog = catalog
        self.store = store
        self.grader = grader or SM2Grader()
        self.clock = clock or system_clock
        self.rng = rng or random.Random()
        self.stats = SessionStats(
            started_at=datetime.fromtimestamp(self.clock() / 1000, tz=timezone.utc)
        )
        self._queue: List[int] = []
        self._state: Optional[SessionState] = None
        self._listeners: List[PassListener] = []

    # --- Observers ---

    def on_pass_complete(self, listener: PassListener) -> None:
        """Register a callback invoked at every queue exhaustion."""
        self._listeners.append(listener)

    def _notify_pass_complete(self, event: PassCompleted) -> None:
        for listener in self._listeners:
            listener(event)

    # --- Read-only views ---

    @property
    def state(self) -> SessionState:
        if self._state is None:
            raise SessionStateError("Session has not been started.")
        return self._state

    @property
    def question(self) -> Optional[QuestionInstance]:
        state = self.state
        return None if isinstance(state, NoContent) else state.question

    @property
    def active_index(self) -> Optional[int]:
        return self._queue[0] if self._queue else None

    @property
    def queue(self) -> List[int]:
        return list(self._queue)

    @property
    def remaining(self) -> int:
        """Cards left in the current pass, including the active one."""
        return len(self._queue)

    # --- Transitions ---

    def start(self) -> SessionState:
        """Schedule the first pass and show its first question."""
        if self._state is not None:
            raise SessionStateError("Session has already been started.")
        self._queue = schedule(self.store.snapshot(), self.clock())
        logger.info(
            f"Starting review session with {len(self._queue)} cards."
        )
        self._state = self._enter_head()
        return self._state

    def select(self, option: Optional[str]) -> SessionState:
        """
        Answer the current question. None or an empty string is a skip.

        A wrong answer or a skip is graded Again immediately and the card
        stays on screen with the answer revealed. A correct answer waits for
        rate().
        """
        state = self.state
        if isinstance(state, NoContent):
            logger.debug("select() ignored: no content to review.")
            return state
        if not isinstance(state, AwaitingAnswer):
            raise SessionStateError("The current question was already answered.")

        question = state.question
        correct = question.is_correct(option)
        self.stats.record_answer(correct, skipped=not option)
        if not correct:
            self._apply_grade(question.index, Grade.Again)
        self._state = Answered(question=question, selection=option, correct=correct)
        return self._state

    def skip(self) -> SessionState:
        return self.select(None)

    def advance(self) -> Optional[PassCompleted]:
        """Move on after a wrong answer or skip."""
        state = self.state
        if isinstance(state, NoContent):
            logger.debug("advance() ignored: no content to review.")
            return None
        if not isinstance(state, Answered) or state.correct:
            raise SessionStateError(
                "advance() is only allowed after a wrong answer or a skip."
            )
        return self._next_card()

    def rate(self, grade: Grade) -> Optional[PassCompleted]:
        """Grade a correctly answered card as hard, good or easy and move on."""
        state = self.state
        if isinstance(state, NoContent):
            logger.debug("rate() ignored: no content to review.")
            return None
        if grade not in LEARNER_GRADES:
            raise SessionStateError(
                f"Grade '{Grade(grade).label}' cannot be chosen by the learner."
            )
        if not isinstance(state, Answered) or not state.correct:
            raise SessionStateError(
                "rate() is only allowed after a correct answer."
            )
        self._apply_grade(state.active_index, grade)
        return self._next_card()

    # --- Internals ---

    def _apply_grade(self, index: int, grade: Grade) -> None:
        new_state = self.grader.compute_next_state(
            self.store[index], grade, self.clock()
        )
        self.store.apply(index, new_state)
        self.stats.record_review()
        logger.debug(
            f"Card {index} ('{self.catalog[index].word}') graded {grade.label}; "
            f"next interval {new_state.interval} days"
        )

    def _enter_head(self) -> SessionState:
        if not self._queue:
            return NoContent()
        question = build(self._queue[0], self.catalog, rng=self.rng)
        return AwaitingAnswer(question=question)

    def _next_card(self) -> Optional[PassCompleted]:
        self._queue.pop(0)
        event = None
        if not self._queue:
            self._queue = schedule(self.store.snapshot(), self.clock())
            self.stats.record_pass()
            event = PassCompleted(
                pass_number=self.stats.passes_completed,
                queue_length=len(self._queue),
            )
            logger.info(
                f"Review pass {event.pass_number} complete; "
                f"rescheduled {event.queue_length} cards."
            )
            self._notify_pass_complete(event)
        self._state = self._enter_head()
        return event
