"""
Document Decoder
================
Turns uploaded document bytes into plain text for the question extractor.
PDF text comes from PyMuPDF (fitz), DOCX paragraphs from python-docx;
anything else is read as UTF-8 text.
"""

from __future__ import annotations

import io
import logging
import zipfile

import fitz  # PyMuPDF
from docx import Document

from .models import DocumentType

logger = logging.getLogger(__name__)

PDF_MAGIC = b"%PDF"
DOCX_MAIN_PART = "word/document.xml"


class DocumentError(RuntimeError):
    """Raised when a document cannot be decoded into text."""


def detect_document_type(content: bytes) -> DocumentType:
    """
    Detect the document type from its content, not its filename.
    Unknown content is treated as plain text.
    """
    if content.startswith(PDF_MAGIC):
        return DocumentType.PDF

    buffer = io.BytesIO(content)
    if zipfile.is_zipfile(buffer):
        with zipfile.ZipFile(buffer) as archive:
            if DOCX_MAIN_PART in archive.namelist():
                return DocumentType.DOCX

    return DocumentType.TXT


def extract_pdf_text(content: bytes) -> str:
    """Text of every page, pages separated by newlines."""
    try:
        with fitz.open(stream=content, filetype="pdf") as doc:
            pages = [page.get_text("text") for page in doc]
    except Exception as e:
        raise DocumentError(f"Cannot read PDF: {e}") from e

    logger.info(f"Read {len(pages)} PDF pages")
    return "\n".join(pages)


def extract_docx_text(content: bytes) -> str:
    """Paragraph texts of a word-processor document, one per line."""
    try:
        doc = Document(io.BytesIO(content))
    except Exception as e:
        raise DocumentError(f"Cannot read DOCX: {e}") from e

    paragraphs = [p.text for p in doc.paragraphs]
    logger.info(f"Read {len(paragraphs)} DOCX paragraphs")
    return "\n".join(paragraphs)


def extract_plain_text(content: bytes) -> str:
    return content.decode("utf-8-sig", errors="replace")


def decode_document(
    content: bytes,
    filename: str = "",
) -> tuple[str, DocumentType]:
    """
    Decode an uploaded document into text.

    Args:
        content: Raw file bytes.
        filename: Original filename, used for logging only.

    Returns:
        (text, detected document type)

    Raises:
        DocumentError: If a PDF or DOCX cannot be opened.
    """
    doc_type = detect_document_type(content)
    logger.info(
        f"Decoding {filename or '<upload>'} as {doc_type.value} "
        f"({len(content)} bytes)"
    )

    if doc_type == DocumentType.PDF:
        text = extract_pdf_text(content)
    elif doc_type == DocumentType.DOCX:
        text = extract_docx_text(content)
    else:
        text = extract_plain_text(content)

    return text, doc_type
