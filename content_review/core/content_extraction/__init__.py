"""
Content extraction.

Exports: ContentExtractor, normalize_text, count_words, text_statistics
"""

from .extractor import (
    ContentExtractor,
    count_words,
    normalize_content_type,
    normalize_text,
    text_statistics,
)

__all__ = [
    "ContentExtractor",
    "count_words",
    "normalize_content_type",
    "normalize_text",
    "text_statistics",
]
