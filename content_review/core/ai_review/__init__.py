"""
AI review.

Exports: AIReviewerClient, PromptProvider, parse_review
"""

from .prompt_provider import DEFAULT_SYSTEM_PROMPT, PromptProvider
from .review_parser import parse_review
from .reviewer_client import AIReviewerClient, build_safety_verdict

__all__ = [
    "AIReviewerClient",
    "DEFAULT_SYSTEM_PROMPT",
    "PromptProvider",
    "build_safety_verdict",
    "parse_review",
]
