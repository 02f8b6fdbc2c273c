"""
Import Engine
=============
Orchestrates document decoding and question extraction into a single
import pipeline, and owns the package's logging configuration.

Usage:
    engine = ImportEngine(config)
    document = engine.parse_file("path/to/packet.pdf")
    # document is a ParsedDocument ready for review / import

Architecture:
    bytes → decode_document → text → QuestionExtractor →
    QuestionRecords → ParsedDocument (JSON)
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .documents import DocumentError, decode_document
from .extractor import extract_questions
from .models import (
    Difficulty,
    ParsedDocument,
    QuestionDefaults,
    QuestionRecord,
    Subject,
)

logger = logging.getLogger(__name__)

LOG_FORMAT = "[%(asctime)s] %(levelname)-8s %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

DEFAULT_MAX_UPLOAD_BYTES = 10 * 1024 * 1024  # 10MB

# Override keys accepted by ImportEngine.defaults, wire name or field name
DEFAULT_OVERRIDE_FIELDS = {
    "defaultDifficulty": "difficulty",
    "defaultSubject": "subject",
    "defaultYear": "year",
    "difficulty": "difficulty",
    "subject": "subject",
    "year": "year",
}


class DocumentTooLargeError(DocumentError):
    """Raised when an upload exceeds the configured size cap."""


@dataclass
class ImportConfig:
    """Configuration for the import engine."""

    # Metadata for questions without directives
    default_difficulty: Difficulty = Difficulty.DISTRICT
    default_subject: Subject = Subject.MATH
    default_year: Optional[str] = None  # None = current year

    # Upload cap
    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = None

    @classmethod
    def from_env(cls) -> "ImportConfig":
        """Build a config from QUIZBOWL_* environment variables."""
        config = cls()
        config.log_level = os.environ.get("QUIZBOWL_LOG_LEVEL", config.log_level)
        config.log_file = os.environ.get("QUIZBOWL_LOG_FILE") or None
        max_mb = os.environ.get("QUIZBOWL_MAX_UPLOAD_MB")
        if max_mb:
            config.max_upload_bytes = int(float(max_mb) * 1024 * 1024)
        return config


class ImportEngine:
    """
    Question import pipeline.

    Stateless between calls: every parse builds a fresh extractor, so one
    engine can serve concurrent requests.
    """

    def __init__(self, config: Optional[ImportConfig] = None):
        self.config = config or ImportConfig()
        self._setup_logging()

    def _setup_logging(self):
        """Configure logging based on config."""
        log_level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        # Configure root logger for the quizbowl package
        package_logger = logging.getLogger("quizbowl")
        package_logger.setLevel(log_level)

        formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

        # Console handler, unless the application configured the root logger
        if not package_logger.handlers and not logging.getLogger().handlers:
            console = logging.StreamHandler()
            console.setLevel(log_level)
            console.setFormatter(formatter)
            package_logger.addHandler(console)

        # File handler
        if self.config.log_file:
            log_path = Path(self.config.log_file).resolve()
            already_attached = any(
                isinstance(h, logging.FileHandler)
                and Path(h.baseFilename) == log_path
                for h in package_logger.handlers
            )
            if not already_attached:
                log_path.parent.mkdir(parents=True, exist_ok=True)
                file_handler = logging.FileHandler(log_path, encoding="utf-8")
                file_handler.setLevel(log_level)
                file_handler.setFormatter(formatter)
                package_logger.addHandler(file_handler)

    def defaults(self, overrides: Optional[dict] = None) -> QuestionDefaults:
        """
        Config defaults merged with per-call overrides.

        Overrides may use wire names (``defaultSubject``) or field names
        (``subject``); blank values are ignored.

        Raises:
            ValueError: If an override key is not a known field.
            pydantic.ValidationError: If an override is not a valid value.
        """
        data = {
            "difficulty": self.config.default_difficulty,
            "subject": self.config.default_subject,
            "year": self.config.default_year,
        }
        for key, value in (overrides or {}).items():
            field = DEFAULT_OVERRIDE_FIELDS.get(key)
            if field is None:
                raise ValueError(f"Unknown default field: {key!r}")
            if value is None or (isinstance(value, str) and not value.strip()):
                continue
            data[field] = value
        return QuestionDefaults(**data)

    def parse_text(
        self,
        text: str,
        defaults: Optional[QuestionDefaults] = None,
    ) -> list[QuestionRecord]:
        """Extract questions from already-decoded text."""
        start_time = time.time()
        questions = extract_questions(text, defaults or self.defaults())
        elapsed = time.time() - start_time
        logger.info(
            f"Extracted {len(questions)} questions from "
            f"{len(text)} characters in {elapsed:.3f}s"
        )
        return questions

    def parse_document(
        self,
        content: bytes,
        filename: str,
        defaults: Optional[QuestionDefaults] = None,
    ) -> ParsedDocument:
        """
        Decode an uploaded document and extract its questions.

        Raises:
            DocumentTooLargeError: If content exceeds max_upload_bytes.
            DocumentError: If the document cannot be decoded.
        """
        if len(content) > self.config.max_upload_bytes:
            raise DocumentTooLargeError(
                f"{filename or 'Upload'} is {len(content)} bytes; "
                f"limit is {self.config.max_upload_bytes}"
            )

        text, file_type = decode_document(content, filename)
        questions = self.parse_text(text, defaults)

        return ParsedDocument(
            questions=questions,
            file_type=file_type,
            filename=filename,
        )

    def parse_file(
        self,
        path: str,
        defaults: Optional[QuestionDefaults] = None,
    ) -> ParsedDocument:
        """
        Parse a document from disk.

        Raises:
            FileNotFoundError: If the file doesn't exist.
            DocumentError: If the document cannot be decoded.
        """
        path = os.path.abspath(path)
        if not os.path.exists(path):
            raise FileNotFoundError(f"File not found: {path}")

        logger.info(f"Starting parse of: {path}")
        with open(path, "rb") as f:
            content = f.read()

        return self.parse_document(content, os.path.basename(path), defaults)
