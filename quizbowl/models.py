"""
Data Models
===========
Pydantic models for question records, filters, flashcards and parsed
documents. Wire (JSON) names are camelCase; Python attributes are snake_case.
"""

from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

NO_ANSWER_PLACEHOLDER = "[No answer provided]"


def current_year() -> str:
    """Current calendar year as a 4-digit string."""
    return str(date.today().year)


# ─── Enums ────────────────────────────────────────────────────────────────────


class Difficulty(str, Enum):
    """Competition level a question was written for."""
    DISTRICT = "district"
    REGIONAL = "regional"
    STATE = "state"


class Subject(str, Enum):
    """Subject area of a question."""
    MATH = "math"
    SCIENCE = "science"
    ARTS = "arts"
    SOCIAL = "social"
    LANGUAGE = "language"


class DocumentType(str, Enum):
    """Source formats accepted for question import."""
    DOCX = "docx"
    PDF = "pdf"
    TXT = "txt"


class MatchRule(str, Enum):
    """Answer matcher step that accepted a candidate answer."""
    EXACT = "exact"
    CONTAINMENT = "containment"
    PUNCTUATION_INSENSITIVE = "punctuation_insensitive"
    WORD_OVERLAP = "word_overlap"


class WireModel(BaseModel):
    """Base for models exchanged with HTTP clients (camelCase on the wire)."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


# ─── Question Models ─────────────────────────────────────────────────────────


class QuestionDefaults(BaseModel):
    """
    Metadata applied to every extracted question until a directive
    overrides it. Accepts ``defaultDifficulty`` / ``defaultSubject`` /
    ``defaultYear`` as well as the field names; blank values fall back.
    """
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    difficulty: Difficulty = Field(
        default=Difficulty.DISTRICT, alias="defaultDifficulty"
    )
    subject: Subject = Field(default=Subject.MATH, alias="defaultSubject")
    year: str = Field(
        default_factory=current_year,
        alias="defaultYear",
        pattern=r"^[0-9]{4}$",
    )

    @model_validator(mode="before")
    @classmethod
    def _drop_blank_values(cls, data):
        if isinstance(data, dict):
            return {
                k: v for k, v in data.items()
                if v is not None and not (isinstance(v, str) and not v.strip())
            }
        return data


class QuestionRecord(WireModel):
    """
    A structured question, as produced by the extractor or submitted by a
    client. Immutable once built.
    """
    model_config = ConfigDict(frozen=True)

    text: str = Field(min_length=1)
    answer: str = Field(min_length=1)
    difficulty: Difficulty
    subject: Subject
    year: str = Field(pattern=r"^[0-9]{4}$")


class StoredQuestion(QuestionRecord):
    """A question record with its storage-assigned identifier."""
    id: int


class QuestionFilter(WireModel):
    """
    Multi-select filter over the question bank.

    A dimension passes when its ``all_*`` flag is set, when its list is
    empty, or when the question's value is listed.
    """
    difficulties: list[Difficulty] = Field(default_factory=list)
    subjects: list[Subject] = Field(default_factory=list)
    years: list[str] = Field(default_factory=list)
    all_difficulties: bool = True
    all_subjects: bool = True
    all_years: bool = True

    def matches(self, question: QuestionRecord) -> bool:
        difficulty_ok = (
            self.all_difficulties
            or not self.difficulties
            or question.difficulty in self.difficulties
        )
        subject_ok = (
            self.all_subjects
            or not self.subjects
            or question.subject in self.subjects
        )
        year_ok = self.all_years or not self.years or question.year in self.years
        return difficulty_ok and subject_ok and year_ok


# ─── Flashcard Models ─────────────────────────────────────────────────────────


class FlashcardCreate(WireModel):
    """A question saved for later review."""
    question_id: int
    date_added: str
    last_reviewed: Optional[str] = None
    times_reviewed: int = Field(default=0, ge=0)
    notes: Optional[str] = None


class Flashcard(FlashcardCreate):
    id: int


class FlashcardUpdate(WireModel):
    """Partial flashcard update; only fields that were sent are applied."""
    question_id: Optional[int] = None
    date_added: Optional[str] = None
    last_reviewed: Optional[str] = None
    times_reviewed: Optional[int] = Field(default=None, ge=0)
    notes: Optional[str] = None


# ─── Document / Request Models ───────────────────────────────────────────────


class ParsedDocument(WireModel):
    """
    Questions extracted from an uploaded document, returned to the client
    for review before they are imported.
    """
    questions: list[QuestionRecord] = Field(default_factory=list)
    file_type: DocumentType
    filename: str


class AnswerCheck(WireModel):
    """A candidate answer to judge against a canonical answer."""
    candidate: str
    canonical: str
