"""
Question Extractor
==================
Deterministic line-oriented state machine that turns loosely structured
text (pasted, or decoded from TXT / DOCX / PDF uploads) into question
records, based on question markers, answer markers and metadata directives.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .models import (
    NO_ANSWER_PLACEHOLDER,
    Difficulty,
    QuestionDefaults,
    QuestionRecord,
    Subject,
)

logger = logging.getLogger(__name__)

# ─── Line Patterns ────────────────────────────────────────────────────────────

# Matches "Q:", "Question:", "1.", "1)", "(1)", "#1" at start of line
QUESTION_PATTERN = re.compile(
    r"^(?:Q:|Question:|[0-9]+[.)]|\([0-9]+\)|#[0-9]+)(.*)$", re.IGNORECASE
)

# Matches "A:", "Answer:", "ANSWER:", "ANS:", "Ans:"
ANSWER_PATTERN = re.compile(r"^(?:A|Answer|Ans):(.*)$", re.IGNORECASE)

# Matches "Difficulty: state", "Level: regional", "Tier: district"
DIFFICULTY_PATTERN = re.compile(
    r"^(?:Difficulty|Level|Tier):\s*(district|regional|state)", re.IGNORECASE
)

# Matches "Subject: science", "Category: arts", "Topic: social"
SUBJECT_PATTERN = re.compile(
    r"^(?:Subject|Category|Topic):\s*(math|science|arts|social|language)",
    re.IGNORECASE,
)

# Matches "Year: 2021", "Date: 2019"
YEAR_PATTERN = re.compile(r"^(?:Year|Date):\s*([0-9]{4})", re.IGNORECASE)


class ExtractorState(Enum):
    """Where the extractor is relative to the current question."""
    SEEKING_QUESTION = "SEEKING_QUESTION"
    QUESTION_BODY = "QUESTION_BODY"
    ANSWERED = "ANSWERED"


@dataclass
class _QuestionDraft:
    text: str
    difficulty: Difficulty
    subject: Subject
    year: str
    answer: str = ""


class QuestionExtractor:
    """
    Finite state machine over text lines.

    Each call to ``extract`` starts from a clean state, so one instance
    never leaks questions or counters between runs. Use one instance per
    thread, or the ``extract_questions`` helper.
    """

    def __init__(self, defaults: Optional[QuestionDefaults] = None):
        self.defaults = defaults or QuestionDefaults()
        self.state = ExtractorState.SEEKING_QUESTION
        self.current_question: Optional[_QuestionDraft] = None
        self.questions: list[QuestionRecord] = []

    def extract(self, text: str) -> list[QuestionRecord]:
        """
        Parse text into question records, in source order.

        Never raises on string input; content without any marker becomes a
        single question carrying the placeholder answer.
        """
        # Lone surrogates cannot be stored in a record
        text = text.encode("utf-8", errors="replace").decode("utf-8")

        self.state = ExtractorState.SEEKING_QUESTION
        self.current_question = None
        self.questions = []

        for line in text.splitlines():
            self._process_line(line)

        if self.current_question:
            self._finalize_question()

        logger.debug(f"Extracted {len(self.questions)} questions")
        return self.questions

    def _process_line(self, line: str):
        line_str = line.strip()
        if not line_str:
            return

        q_match = QUESTION_PATTERN.match(line_str)
        if q_match:
            self._start_new_question(q_match.group(1).strip())
            return

        # Text before any marker opens the first question
        if not self.current_question:
            self._start_new_question(line_str)
            return

        q = self.current_question

        ans_match = ANSWER_PATTERN.match(line_str)
        if ans_match:
            q.answer = ans_match.group(1).strip()
            self.state = (
                ExtractorState.ANSWERED if q.answer
                else ExtractorState.QUESTION_BODY
            )
            return

        diff_match = DIFFICULTY_PATTERN.match(line_str)
        if diff_match:
            q.difficulty = Difficulty(diff_match.group(1).lower())
            return

        subj_match = SUBJECT_PATTERN.match(line_str)
        if subj_match:
            q.subject = Subject(subj_match.group(1).lower())
            return

        year_match = YEAR_PATTERN.match(line_str)
        if year_match:
            q.year = year_match.group(1)
            return

        if self.state == ExtractorState.QUESTION_BODY:
            self._append_text(line_str)
        else:
            logger.debug(f"Dropping line after answer: {line_str[:40]!r}")

    def _start_new_question(self, text: str):
        """Finalize previous and start fresh state."""
        if self.current_question:
            self._finalize_question()

        self.current_question = _QuestionDraft(
            text=text,
            difficulty=self.defaults.difficulty,
            subject=self.defaults.subject,
            year=self.defaults.year,
        )
        self.state = ExtractorState.QUESTION_BODY

    def _append_text(self, text: str):
        q = self.current_question
        if q.text:
            q.text += " " + text
        else:
            q.text = text

    def _finalize_question(self):
        q = self.current_question
        self.current_question = None
        self.state = ExtractorState.SEEKING_QUESTION

        if not q.text:
            logger.debug("Discarding question marker with no text")
            return

        record = QuestionRecord(
            text=q.text,
            answer=q.answer or NO_ANSWER_PLACEHOLDER,
            difficulty=q.difficulty,
            subject=q.subject,
            year=q.year,
        )
        logger.debug(
            f"Detected question {len(self.questions) + 1}: "
            f"{record.subject.value}/{record.difficulty.value}/{record.year}"
        )
        self.questions.append(record)


def extract_questions(
    text: str,
    defaults: Optional[QuestionDefaults] = None,
) -> list[QuestionRecord]:
    """Extract question records from text with a fresh state machine."""
    return QuestionExtractor(defaults).extract(text)
