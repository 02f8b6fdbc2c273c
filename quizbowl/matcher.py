"""
Answer Matcher
==============
Decides whether a typed answer should count as the canonical answer,
using a cascade of progressively looser comparisons:

    exact → containment → punctuation-insensitive → word overlap

All checks are plain string operations (case-folding only, no Unicode
normalization, no edit distance).
"""

from __future__ import annotations

import re
from typing import Optional

from .models import MatchRule

# Characters ignored by the punctuation-insensitive comparison
PUNCTUATION_PATTERN = re.compile(r"[.,/#!$%^&*;:{}=\-_`~()]")
MULTI_SPACE_PATTERN = re.compile(r"\s{2,}")

MIN_TOKEN_LENGTH = 3
COVERAGE_THRESHOLD = 0.75


def _strip_punctuation(value: str) -> str:
    return MULTI_SPACE_PATTERN.sub(" ", PUNCTUATION_PATTERN.sub("", value))


def _tokens(value: str) -> list[str]:
    return [w for w in value.split(" ") if len(w) >= MIN_TOKEN_LENGTH]


def word_coverage(candidate: str, canonical: str) -> Optional[float]:
    """
    Fraction of the longer token list matched by the other list.

    Returns None unless both strings have more than one significant token.
    Repeated candidate tokens each count when present in the canonical list.
    """
    user_words = _tokens(candidate)
    correct_words = _tokens(canonical)
    if len(user_words) <= 1 or len(correct_words) <= 1:
        return None

    matching = sum(1 for word in user_words if word in correct_words)
    return matching / max(len(user_words), len(correct_words))


def match_answer(candidate: str, canonical: str) -> Optional[MatchRule]:
    """Return the first rule that accepts ``candidate``, or None."""
    user_clean = candidate.lower().strip()
    correct_clean = canonical.lower().strip()

    if user_clean == correct_clean:
        return MatchRule.EXACT

    # "" and one-letter answers are contained in almost anything
    if user_clean in correct_clean or correct_clean in user_clean:
        return MatchRule.CONTAINMENT

    user_no_punct = _strip_punctuation(user_clean)
    correct_no_punct = _strip_punctuation(correct_clean)
    if user_no_punct == correct_no_punct:
        return MatchRule.PUNCTUATION_INSENSITIVE

    coverage = word_coverage(user_no_punct, correct_no_punct)
    if coverage is not None and coverage >= COVERAGE_THRESHOLD:
        return MatchRule.WORD_OVERLAP

    return None


def is_match(candidate: str, canonical: str) -> bool:
    """True when the candidate answer should be judged correct."""
    return match_answer(candidate, canonical) is not None
