"""
Quiz Bowl Practice Core
=======================
Question bank, text-to-question extraction and fuzzy answer judging
for quiz-bowl practice sessions.

Architecture:
    - Document Decoder: Turns uploaded PDF / DOCX / TXT bytes into plain text
    - Question Extractor: Line-oriented state machine producing question records
    - Answer Matcher: Cascade of progressively looser string comparisons
    - Question Storage: Thread-safe in-memory bank with filtering and flashcards
    - HTTP Service: Flask API in front of storage, extractor and matcher

Version: 1.0.0
"""

__version__ = "1.0.0"
