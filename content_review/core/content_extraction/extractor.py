"""
Content extractor.

Dispatches raw content to a converter chosen by content type and
normalises the result so PII patterns see consistent input. Converters
are pluggable through register().

Dependencies: content_review.core.content_extraction.converters
System role: First stage of the review pipeline
"""

import logging
import re
from collections.abc import Callable

from content_review.core.content_extraction.converters import (
    DOCX,
    LEGACY_DOC,
    PDF,
    decode_text,
    extract_docx,
    extract_pdf,
)
from content_review.core.exceptions import ExtractionError, UnsupportedFormatError

logger = logging.getLogger(__name__)

Converter = Callable[[bytes], str]

_HORIZONTAL_WS = re.compile(r"[ \t]+")
_TRAILING_WS = re.compile(r" +\n")
_EXCESS_NEWLINES = re.compile(r"\n{3,}")
_WORD = re.compile(r"\S+")


def normalize_content_type(content_type: str | None) -> str:
    """Lower-case a content type and drop parameters such as charset."""
    if not content_type:
        return ""
    return content_type.split(";", 1)[0].strip().lower()


def normalize_text(text: str) -> str:
    """
    Normalise line endings and whitespace.

    CRLF/CR become LF, runs of spaces and tabs collapse to one space,
    trailing spaces are removed, 3+ newlines collapse to 2, and the
    result is trimmed.
    """
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = _HORIZONTAL_WS.sub(" ", text)
    text = _TRAILING_WS.sub("\n", text)
    text = _EXCESS_NEWLINES.sub("\n\n", text)
    return text.strip()


def count_words(text: str) -> int:
    return len(_WORD.findall(text or ""))


def text_statistics(text: str) -> dict[str, int]:
    """Character, word, line and paragraph counts for logging."""
    text = text or ""
    return {
        "characters": len(text),
        "words": count_words(text),
        "lines": text.count("\n") + 1 if text else 0,
        "paragraphs": len([block for block in text.split("\n\n") if block.strip()]),
    }


class ContentExtractor:
    """Converts uploaded content into normalised plain text."""

    def __init__(self) -> None:
        self._converters: dict[str, Converter] = {
            "text/plain": decode_text,
            "text/markdown": decode_text,
            "text/csv": decode_text,
            PDF: extract_pdf,
            DOCX: extract_docx,
        }

    @property
    def supported_types(self) -> list[str]:
        return sorted(self._converters)

    def register(self, content_type: str, converter: Converter) -> None:
        """
        Register or replace the converter for a content type.

        Args:
            content_type: MIME type handled by the converter
            converter: Callable turning raw bytes into text
        """
        key = normalize_content_type(content_type)
        if not key:
            raise ValueError("content_type is required")
        self._converters[key] = converter
        logger.info(f"{__name__}:register - Registered converter for {key}")

    def is_supported(self, content_type: str | None) -> bool:
        return normalize_content_type(content_type) in self._converters

    def extract(self, data: bytes, content_type: str | None) -> str:
        """
        Extract normalised text from raw content.

        Args:
            data: Raw content bytes
            content_type: MIME type of the content

        Returns:
            str: Normalised, non-empty text

        Raises:
            UnsupportedFormatError: No converter for the content type
            ExtractionError: Converter failed or produced no text
        """
        key = normalize_content_type(content_type)
        if key == LEGACY_DOC:
            raise UnsupportedFormatError(
                "Legacy .doc format is not supported, please convert to .docx",
                content_type=key,
            )
        converter = self._converters.get(key)
        if converter is None:
            raise UnsupportedFormatError(
                f"Unsupported content type: {key or 'unknown'}",
                content_type=key or None,
                details={"supported_types": self.supported_types},
            )

        raw = converter(data)
        text = normalize_text(raw)
        if not text:
            raise ExtractionError("No text content could be extracted", content_type=key)

        logger.info(
            "%s:extract - Extracted text",
            __name__,
            extra={"content_type": key, "bytes": len(data), **text_statistics(text)},
        )
        return text
