"""Vocacore - multiple-choice vocabulary review with spaced repetition."""

from .models import CardMemoryState, CatalogEntry, Grade, QuestionInstance
from .constants import DEFAULT_STORAGE_KEY
from .catalog import load_bundled_catalog, load_catalog
from .db import KeyValueDatabase
from .grader import SM2Grader, grade
from .question_builder import build
from .scheduler import schedule
from .session import PassCompleted, ReviewSession
from .store import CardStateStore

__all__ = [
    "CardMemoryState",
    "CatalogEntry",
    "Grade",
    "QuestionInstance",
    "DEFAULT_STORAGE_KEY",
    "load_bundled_catalog",
    "load_catalog",
    "KeyValueDatabase",
    "SM2Grader",
    "grade",
    "build",
    "schedule",
    "PassCompleted",
    "ReviewSession",
    "CardStateStore",
]
