"""
Question Storage
================
Thread-safe in-memory question bank, flashcard deck and score.

Identifiers come from per-instance sequences, so separate storages (one
per app, one per test) never share counters.
"""

from __future__ import annotations

import itertools
import logging
import threading
from typing import Iterable, Optional

from .models import (
    Difficulty,
    Flashcard,
    FlashcardCreate,
    FlashcardUpdate,
    QuestionFilter,
    QuestionRecord,
    StoredQuestion,
    Subject,
)

logger = logging.getLogger(__name__)


class FlashcardNotFoundError(KeyError):
    """Raised when updating a flashcard that does not exist."""


NULLABLE_FLASHCARD_FIELDS = {"last_reviewed", "notes"}


SEED_QUESTIONS = [
    QuestionRecord(
        text=(
            "This mathematician, born in 1887 in Erode, India, had almost no "
            "formal training but made substantial contributions to mathematical "
            "analysis, number theory, infinite series, and continued fractions. "
            "He collaborated with G.H. Hardy at Cambridge University. Who is "
            "this mathematician?"
        ),
        answer="Srinivasa Ramanujan",
        difficulty=Difficulty.STATE,
        subject=Subject.MATH,
        year="2023",
    ),
    QuestionRecord(
        text=(
            "This value is defined as the ratio of a circle's circumference to "
            "its diameter. What is this mathematical constant?"
        ),
        answer="Pi (π)",
        difficulty=Difficulty.DISTRICT,
        subject=Subject.MATH,
        year="2022",
    ),
    QuestionRecord(
        text=(
            "This fundamental force is responsible for the attraction between "
            "masses and is described by Einstein's theory of general "
            "relativity. What is this force?"
        ),
        answer="Gravity",
        difficulty=Difficulty.REGIONAL,
        subject=Subject.SCIENCE,
        year="2022",
    ),
    QuestionRecord(
        text=(
            "This scientist formulated the three laws of motion that laid the "
            "foundation for classical mechanics. Who is this scientist?"
        ),
        answer="Sir Isaac Newton",
        difficulty=Difficulty.REGIONAL,
        subject=Subject.SCIENCE,
        year="2021",
    ),
    QuestionRecord(
        text=(
            "This painting by Leonardo da Vinci is one of the most famous works "
            "in the world and is housed in the Louvre Museum in Paris. What is "
            "the name of this painting?"
        ),
        answer="Mona Lisa",
        difficulty=Difficulty.DISTRICT,
        subject=Subject.ARTS,
        year="2023",
    ),
    QuestionRecord(
        text=(
            "This document, written in 1776, announced that the thirteen "
            "American colonies regarded themselves as independent sovereign "
            "states. What is this document?"
        ),
        answer="The Declaration of Independence",
        difficulty=Difficulty.DISTRICT,
        subject=Subject.SOCIAL,
        year="2020",
    ),
    QuestionRecord(
        text=(
            "This author wrote 'Romeo and Juliet', 'Hamlet', and 'Macbeth'. "
            "Who is this playwright?"
        ),
        answer="William Shakespeare",
        difficulty=Difficulty.DISTRICT,
        subject=Subject.LANGUAGE,
        year="2019",
    ),
]


class QuestionStorage:
    """In-memory question bank. All public methods are thread-safe."""

    def __init__(self, seed: bool = False):
        self._lock = threading.Lock()
        self._questions: dict[int, StoredQuestion] = {}
        self._flashcards: dict[int, Flashcard] = {}
        self._question_ids = itertools.count(1)
        self._flashcard_ids = itertools.count(1)
        self._score = 0.0

        if seed:
            self.seed_questions()

    # ─── Questions ────────────────────────────────────────────────────────

    def get_questions(self) -> list[StoredQuestion]:
        with self._lock:
            return list(self._questions.values())

    def get_questions_by_filter(
        self,
        question_filter: QuestionFilter,
    ) -> list[StoredQuestion]:
        """Questions passing every dimension of the filter, in id order."""
        with self._lock:
            questions = list(self._questions.values())
        return [q for q in questions if question_filter.matches(q)]

    def get_question(self, question_id: int) -> Optional[StoredQuestion]:
        with self._lock:
            return self._questions.get(question_id)

    def create_question(self, record: QuestionRecord) -> StoredQuestion:
        with self._lock:
            question_id = next(self._question_ids)
            question = StoredQuestion(id=question_id, **record.model_dump())
            self._questions[question_id] = question
        logger.debug(f"Stored question {question_id}")
        return question

    def import_questions(
        self,
        records: Iterable[QuestionRecord],
    ) -> list[StoredQuestion]:
        """Store records in order and return them with their ids."""
        imported = [self.create_question(record) for record in records]
        logger.info(f"Imported {len(imported)} questions")
        return imported

    def delete_question(self, question_id: int) -> bool:
        with self._lock:
            deleted = self._questions.pop(question_id, None) is not None
        if deleted:
            logger.info(f"Deleted question {question_id}")
        return deleted

    def seed_questions(self):
        """Load the built-in sample questions."""
        self.import_questions(SEED_QUESTIONS)

    # ─── Score ────────────────────────────────────────────────────────────

    def update_score(self, score: float) -> float:
        with self._lock:
            self._score = score
            return self._score

    def get_score(self) -> float:
        with self._lock:
            return self._score

    # ─── Flashcards ───────────────────────────────────────────────────────

    def get_flashcards(self) -> list[Flashcard]:
        with self._lock:
            return list(self._flashcards.values())

    def get_flashcard(self, flashcard_id: int) -> Optional[Flashcard]:
        with self._lock:
            return self._flashcards.get(flashcard_id)

    def create_flashcard(self, data: FlashcardCreate) -> Flashcard:
        with self._lock:
            flashcard_id = next(self._flashcard_ids)
            flashcard = Flashcard(id=flashcard_id, **data.model_dump())
            self._flashcards[flashcard_id] = flashcard
        logger.debug(f"Stored flashcard {flashcard_id}")
        return flashcard

    def update_flashcard(
        self,
        flashcard_id: int,
        changes: FlashcardUpdate,
    ) -> Flashcard:
        """
        Apply the fields that were set on ``changes``.

        Raises:
            FlashcardNotFoundError: If no flashcard has this id.
        """
        with self._lock:
            flashcard = self._flashcards.get(flashcard_id)
            if flashcard is None:
                raise FlashcardNotFoundError(
                    f"Flashcard with id {flashcard_id} not found"
                )
            update = {
                key: value
                for key, value in changes.model_dump(exclude_unset=True).items()
                if value is not None or key in NULLABLE_FLASHCARD_FIELDS
            }
            updated = flashcard.model_copy(update=update)
            self._flashcards[flashcard_id] = updated
        return updated

    def delete_flashcard(self, flashcard_id: int) -> bool:
        with self._lock:
            return self._flashcards.pop(flashcard_id, None) is not None
