"""
AI review data contracts.

Covers the raw reviewer outcome (text, usage, safety verdict) and the
structured review parsed from the model's response.

Dependencies: pydantic
System role: Data contract between reviewer client, parser and job store
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from content_review.models.pii import GuardrailEntity, PIIReport


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TokenUsage(_CamelModel):
    """Token accounting reported by the provider."""

    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0


class SafetyVerdict(_CamelModel):
    """Guardrail outcome attached to a review."""

    action: str | None = Field(default=None, description="Guardrail action, e.g. NONE or GUARDRAIL_INTERVENED")
    blocked: bool = False
    assessments: list[dict[str, Any]] = Field(default_factory=list)
    flagged_entities: list[GuardrailEntity] = Field(default_factory=list)


class ReviewOutcome(_CamelModel):
    """Result of one AI reviewer call; a block is a normal outcome, not an error."""

    success: bool
    blocked: bool = False
    content: str = ""
    usage: TokenUsage = Field(default_factory=TokenUsage)
    safety_verdict: SafetyVerdict = Field(default_factory=SafetyVerdict)
    stop_reason: str | None = None


class ScoreEntry(_CamelModel):
    score: int = Field(..., ge=0)
    max_score: int = 5
    note: str = ""


class ContentIssue(_CamelModel):
    """Issue marked inline in the reviewed content."""

    category: str
    text: str
    start: int = Field(..., ge=0, description="Offset of the issue in plain_text")
    end: int = Field(..., ge=0)


class ReviewedContent(_CamelModel):
    plain_text: str = ""
    issues: list[ContentIssue] = Field(default_factory=list)


class Improvement(_CamelModel):
    priority: str = "medium"
    category: str
    issue: str
    why: str
    current: str = ""
    suggested: str = ""


class ParsedReview(_CamelModel):
    """Structured review extracted from the model's text."""

    scores: dict[str, ScoreEntry] = Field(default_factory=dict)
    reviewed_content: ReviewedContent = Field(default_factory=ReviewedContent)
    improvements: list[Improvement] = Field(default_factory=list)


class ReviewResult(_CamelModel):
    """Full result persisted on a completed job."""

    raw_response: str = Field(..., description="Model response after outbound redaction")
    review_data: ParsedReview = Field(default_factory=ParsedReview)
    safety_verdict: SafetyVerdict = Field(default_factory=SafetyVerdict)
    stop_reason: str | None = None
    usage: TokenUsage = Field(default_factory=TokenUsage)
    input_pii: PIIReport = Field(default_factory=PIIReport)
    output_pii: PIIReport = Field(default_factory=PIIReport)
    completed_at: datetime | None = None
