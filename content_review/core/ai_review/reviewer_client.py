"""
AI reviewer client.

Sends redacted content to the Bedrock Converse API with the configured
guardrail and returns a ReviewOutcome. A guardrail block is a normal
outcome; transport and provider failures are raised as ReviewerError
carrying a stable ErrorCode. Provider messages are logged, never
surfaced to users.

Dependencies: boto3 (bedrock-runtime), botocore
System role: External AI invocation stage of the review pipeline
"""

import asyncio
import logging
import time
from collections.abc import Iterable, Iterator
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from content_review.configs.bedrock import BedrockSettings
from content_review.core.ai_review.prompt_provider import DEFAULT_SYSTEM_PROMPT, PromptProvider
from content_review.core.errors import classify_exception
from content_review.core.exceptions import ReviewerError
from content_review.models.errors import ErrorCode
from content_review.models.pii import GuardrailEntity
from content_review.models.review import ReviewOutcome, SafetyVerdict, TokenUsage

logger = logging.getLogger(__name__)

CONTENT_TEMPLATE = (
    "Please review the following content:\n\n---\n{text}\n---\n\n"
    "Provide a comprehensive content review following the guidelines in your system prompt."
)
ACKNOWLEDGEMENT = "Understood. I will review the content following these guidelines."
GUARDRAIL_STOP_REASON = "guardrail_intervened"


class AIReviewerClient:
    """Bedrock Converse client for content reviews."""

    def __init__(
        self,
        runtime_client: Any,
        settings: BedrockSettings,
        prompt_provider: PromptProvider | None = None,
    ) -> None:
        """
        Initialize reviewer client.

        Args:
            runtime_client: Boto3 bedrock-runtime client
            settings: Model, guardrail and inference settings
            prompt_provider: Source of the system prompt (default prompt when None)
        """
        self._client = runtime_client
        self._settings = settings
        self._prompts = prompt_provider

    def build_request(self, system_prompt: str, text: str) -> dict[str, Any]:
        """Assemble Converse arguments: context turns, then the content turn."""
        request: dict[str, Any] = {
            "modelId": self._settings.model_id,
            "messages": [
                {"role": "user", "content": [{"text": system_prompt}]},
                {"role": "assistant", "content": [{"text": ACKNOWLEDGEMENT}]},
                {"role": "user", "content": [{"text": CONTENT_TEMPLATE.format(text=text)}]},
            ],
            "inferenceConfig": {
                "maxTokens": self._settings.max_tokens,
                "temperature": self._settings.temperature,
            },
        }
        if self._settings.guardrail_id:
            request["guardrailConfig"] = {
                "guardrailIdentifier": self._settings.guardrail_id,
                "guardrailVersion": self._settings.guardrail_version,
                "trace": "enabled",
            }
        return request

    async def review(self, text: str) -> ReviewOutcome:
        """
        Review already-redacted text.

        Args:
            text: Content to review (must be redacted by the caller)

        Returns:
            ReviewOutcome: Text, usage and safety verdict; blocked=True when
            the guardrail intervened

        Raises:
            ReviewerError: Disabled reviewer, empty input or provider failure
        """
        if not self._settings.enabled:
            raise ReviewerError(ErrorCode.SERVICE_UNAVAILABLE, "AI reviewer is disabled")
        if not text or not text.strip():
            raise ReviewerError(ErrorCode.INVALID_REQUEST, "No content to review")

        system_prompt = (
            await self._prompts.get_system_prompt() if self._prompts else DEFAULT_SYSTEM_PROMPT
        )
        request = self.build_request(system_prompt, text)

        started = time.monotonic()
        try:
            response = await asyncio.to_thread(self._client.converse, **request)
        except (ClientError, BotoCoreError) as e:
            code = classify_exception(e)
            if code == ErrorCode.PROCESSING_ERROR:
                code = ErrorCode.UNKNOWN_PROVIDER_ERROR
            logger.error(
                "%s:review - %s: %s",
                __name__,
                type(e).__name__,
                e,
                extra={"error_code": code.value, "model_id": self._settings.model_id},
            )
            raise ReviewerError(code, str(e), details={"provider_error": type(e).__name__}) from e

        outcome = self.parse_response(response)
        logger.info(
            "%s:review - Review call finished",
            __name__,
            extra={
                "duration_ms": int((time.monotonic() - started) * 1000),
                "blocked": outcome.blocked,
                "stop_reason": outcome.stop_reason,
                "input_tokens": outcome.usage.input_tokens,
                "output_tokens": outcome.usage.output_tokens,
            },
        )
        if not outcome.blocked and not outcome.content.strip():
            raise ReviewerError(ErrorCode.UNKNOWN_PROVIDER_ERROR, "Reviewer returned no text")
        return outcome

    def parse_response(self, response: dict[str, Any]) -> ReviewOutcome:
        """Convert a Converse response into a ReviewOutcome."""
        message = response.get("output", {}).get("message", {})
        content = "".join(block["text"] for block in message.get("content", []) if "text" in block)

        raw_usage = response.get("usage", {})
        input_tokens = int(raw_usage.get("inputTokens", 0))
        output_tokens = int(raw_usage.get("outputTokens", 0))
        usage = TokenUsage(
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            total_tokens=int(raw_usage.get("totalTokens", input_tokens + output_tokens)),
        )

        stop_reason = response.get("stopReason")
        verdict = build_safety_verdict(response.get("trace", {}).get("guardrail", {}), stop_reason)
        return ReviewOutcome(
            success=not verdict.blocked,
            blocked=verdict.blocked,
            content=content,
            usage=usage,
            safety_verdict=verdict,
            stop_reason=stop_reason,
        )


def build_safety_verdict(guardrail_trace: dict[str, Any], stop_reason: str | None) -> SafetyVerdict:
    """
    Summarise a guardrail trace.

    A review counts as blocked when any policy reports BLOCKED, or when the
    guardrail intervened without anonymising (masking) anything.
    """
    input_assessments = list((guardrail_trace.get("inputAssessment") or {}).values())
    output_assessments = [
        assessment
        for assessments in (guardrail_trace.get("outputAssessments") or {}).values()
        for assessment in assessments
    ]

    entities = [
        *extract_guardrail_entities(input_assessments, source="input"),
        *extract_guardrail_entities(output_assessments, source="output"),
    ]
    actions = set(_walk_actions(guardrail_trace))
    trace_action = guardrail_trace.get("action")
    intervened = stop_reason == GUARDRAIL_STOP_REASON

    blocked = "BLOCKED" in actions or trace_action == "BLOCKED"
    if intervened and not blocked and "ANONYMIZED" not in actions:
        blocked = True

    action = trace_action or ("GUARDRAIL_INTERVENED" if intervened else "NONE")
    return SafetyVerdict(
        action=action,
        blocked=blocked,
        assessments=[_scrub_matches(item) for item in input_assessments + output_assessments],
        flagged_entities=entities,
    )


def extract_guardrail_entities(
    assessments: Iterable[dict[str, Any]],
    source: str,
) -> list[GuardrailEntity]:
    """Collect PII entity types flagged by the sensitive-information policy."""
    entities: list[GuardrailEntity] = []
    for assessment in assessments:
        policy = assessment.get("sensitiveInformationPolicy") or {}
        for entity in policy.get("piiEntities", []):
            entities.append(GuardrailEntity(type=entity.get("type", "UNKNOWN"), action=entity.get("action"), source=source))
        for regex in policy.get("regexes", []):
            entities.append(GuardrailEntity(type=regex.get("name", "REGEX"), action=regex.get("action"), source=source))
    return entities


def _walk_actions(node: Any) -> Iterator[str]:
    if isinstance(node, dict):
        for key, value in node.items():
            if key == "action" and isinstance(value, str):
                yield value
            else:
                yield from _walk_actions(value)
    elif isinstance(node, list):
        for item in node:
            yield from _walk_actions(item)


def _scrub_matches(node: Any) -> Any:
    """Drop matched text from assessments so no PII is persisted."""
    if isinstance(node, dict):
        return {key: _scrub_matches(value) for key, value in node.items() if key != "match"}
    if isinstance(node, list):
        return [_scrub_matches(item) for item in node]
    return node
