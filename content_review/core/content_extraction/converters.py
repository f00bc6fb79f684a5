"""
Format converters.

Each converter takes raw bytes and returns unnormalised text. Library
failures on corrupt input are wrapped in ExtractionError.

Dependencies: pypdf, python-docx
System role: Document-format text extraction
"""

import io
import logging

from docx import Document
from pypdf import PdfReader

from content_review.core.exceptions import ExtractionError

logger = logging.getLogger(__name__)

PDF = "application/pdf"
DOCX = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
LEGACY_DOC = "application/msword"


def decode_text(data: bytes) -> str:
    """Decode plain text as UTF-8, replacing invalid bytes."""
    text = data.decode("utf-8", errors="replace")
    # Strip a UTF-8 byte order mark if present
    return text.removeprefix("\ufeff")


def extract_pdf(data: bytes) -> str:
    """
    Extract text from every page of a PDF.

    Args:
        data: Raw PDF bytes

    Returns:
        str: Page texts joined by blank lines

    Raises:
        ExtractionError: If the document cannot be read
    """
    try:
        reader = PdfReader(io.BytesIO(data))
        pages: list[str] = []
        for page_num, page in enumerate(reader.pages):
            page_text = page.extract_text() or ""
            if page_text.strip():
                pages.append(page_text)
            else:
                logger.debug(f"{__name__}:extract_pdf - Page {page_num} has no text layer")
        return "\n\n".join(pages)
    except Exception as e:
        logger.error("%s:extract_pdf - %s: %s", __name__, type(e).__name__, e)
        raise ExtractionError(f"Failed to read PDF: {type(e).__name__}", content_type=PDF) from e


def extract_docx(data: bytes) -> str:
    """
    Extract paragraph and table text from a .docx document.

    Args:
        data: Raw DOCX bytes

    Returns:
        str: Paragraphs then table rows, joined by blank lines

    Raises:
        ExtractionError: If the document cannot be read
    """
    try:
        document = Document(io.BytesIO(data))
        parts = [paragraph.text for paragraph in document.paragraphs if paragraph.text.strip()]
        for table in document.tables:
            for row in table.rows:
                row_text = " | ".join(cell.text.strip() for cell in row.cells)
                if row_text.strip(" |"):
                    parts.append(row_text)
        return "\n\n".join(parts)
    except Exception as e:
        logger.error("%s:extract_docx - %s: %s", __name__, type(e).__name__, e)
        raise ExtractionError(f"Failed to read DOCX: {type(e).__name__}", content_type=DOCX) from e
