"""
PII redaction data contracts.

Dependencies: pydantic
System role: Redaction results and per-direction PII reports
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class DetectedPII(BaseModel):
    """Count of redactions made by one rule."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    type: str = Field(..., description="Rule name, e.g. email")
    count: int = Field(..., ge=1, description="Number of spans redacted by this rule")


class RedactionResult(BaseModel):
    """Outcome of a single redaction pass."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    redacted_text: str
    detected_pii: list[DetectedPII] = Field(default_factory=list)
    redaction_count: int = 0
    has_pii: bool = False
    skipped_patterns: list[str] = Field(
        default_factory=list,
        description="Requested pattern names with no matching rule",
    )

    @property
    def detected_types(self) -> list[str]:
        return [item.type for item in self.detected_pii]


class GuardrailEntity(BaseModel):
    """PII entity flagged by the AI provider's guardrail (matched text is never kept)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    type: str
    action: str | None = None
    source: str = Field(default="output", description="input or output assessment")


class PIIReport(BaseModel):
    """Summary of PII handling for one direction (inbound or outbound)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    has_pii: bool = Field(default=False, alias="hasPII")
    redaction_count: int = 0
    detected_types: list[str] = Field(default_factory=list)
    original_length: int = 0
    redacted_length: int = 0
    guardrail_entities: list[GuardrailEntity] = Field(default_factory=list)
