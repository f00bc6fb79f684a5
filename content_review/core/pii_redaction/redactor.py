"""
PII redaction engine.

Applies an ordered rule table to text. Every enabled rule is matched
against the text; spans are accepted in rule order, later spans
overlapping an accepted one are dropped, and the output is rebuilt in one
sweep. Sweeps repeat until no rule matches, so redacting the output again
changes nothing. The engine is pure and holds no state between calls.

Dependencies: content_review.core.pii_redaction.rules, content_review.models.pii
System role: Inbound and outbound PII redaction for the review pipeline
"""

import bisect
import logging
from collections.abc import Iterable, Sequence

from content_review.core.pii_redaction.rules import (
    DEFAULT_RULES,
    MODEL_OUTPUT_EXCLUDED,
    PIIRule,
)
from content_review.models.pii import DetectedPII, GuardrailEntity, PIIReport, RedactionResult

logger = logging.getLogger(__name__)


class PIIRedactor:
    """Rule-table driven redactor."""

    def __init__(self, rules: Sequence[PIIRule] = DEFAULT_RULES) -> None:
        """
        Initialize redactor.

        Args:
            rules: Ordered rule table; earlier rules win overlapping spans

        Raises:
            ValueError: If two rules share a name
        """
        names = [rule.name for rule in rules]
        if len(names) != len(set(names)):
            raise ValueError("PII rule names must be unique")
        self._rules = tuple(rules)
        self._by_name = {rule.name: rule for rule in self._rules}

    @property
    def rule_names(self) -> list[str]:
        return [rule.name for rule in self._rules]

    def redact(
        self,
        text: str,
        patterns: Iterable[str] | None = None,
        preserve_length: bool = False,
    ) -> RedactionResult:
        """
        Redact PII from text.

        Args:
            text: Input text
            patterns: Rule names to apply (default: all). Unknown names are
                reported in skipped_patterns.
            preserve_length: Replace each span with '*' of equal length
                instead of its label

        Returns:
            RedactionResult: Redacted text and per-rule counts
        """
        if not text:
            return RedactionResult(redacted_text=text or "")

        rules, skipped = self._select(patterns)
        counts: dict[str, int] = {}
        current = text
        # Labels can open a boundary next to a neighbour, e.g.
        # "jane@example.com+1 202 555 0147"; sweep until nothing matches.
        for _ in range(len(text) + 1):
            spans = self._collect_spans(current, rules)
            if not spans:
                break
            current = self._apply(current, spans, preserve_length, counts)
        else:
            logger.warning(
                "%s:redact - Redaction did not stabilise",
                __name__,
                extra={"rules": [rule.name for rule in rules]},
            )

        detected = [
            DetectedPII(type=rule.name, count=counts[rule.name])
            for rule in rules
            if rule.name in counts
        ]
        total = sum(item.count for item in detected)
        return RedactionResult(
            redacted_text=current,
            detected_pii=detected,
            redaction_count=total,
            has_pii=total > 0,
            skipped_patterns=skipped,
        )

    def redact_user_content(self, text: str) -> RedactionResult:
        """Redact inbound content with every rule."""
        return self.redact(text)

    def redact_model_output(self, text: str) -> RedactionResult:
        """Redact model output with every rule except dates."""
        names = [name for name in self.rule_names if name not in MODEL_OUTPUT_EXCLUDED]
        return self.redact(text, patterns=names)

    def validate_no_pii(self, text: str) -> bool:
        """Return True when no rule matches text."""
        return not self.redact(text).has_pii

    def _select(self, patterns: Iterable[str] | None) -> tuple[list[PIIRule], list[str]]:
        if patterns is None:
            return list(self._rules), []
        requested = set(patterns)
        skipped = sorted(requested - set(self._by_name))
        if skipped:
            logger.warning(
                "%s:redact - Unknown PII patterns ignored",
                __name__,
                extra={"patterns": skipped},
            )
        return [rule for rule in self._rules if rule.name in requested], skipped

    @staticmethod
    def _apply(
        text: str,
        spans: Sequence[tuple[int, int, PIIRule]],
        preserve_length: bool,
        counts: dict[str, int],
    ) -> str:
        pieces: list[str] = []
        cursor = 0
        for start, end, rule in spans:
            pieces.append(text[cursor:start])
            pieces.append("*" * (end - start) if preserve_length else rule.label)
            counts[rule.name] = counts.get(rule.name, 0) + 1
            cursor = end
        pieces.append(text[cursor:])
        return "".join(pieces)

    @staticmethod
    def _collect_spans(text: str, rules: Sequence[PIIRule]) -> list[tuple[int, int, PIIRule]]:
        """Accept non-overlapping spans in rule order; return them sorted by start."""
        starts: list[int] = []
        accepted: list[tuple[int, int, PIIRule]] = []
        for rule in rules:
            for match in rule.pattern.finditer(text):
                start, end = match.span()
                if start == end:
                    continue
                index = bisect.bisect_left(starts, end)
                if index > 0 and accepted[index - 1][1] > start:
                    continue
                starts.insert(index, start)
                accepted.insert(index, (start, end, rule))
        return accepted


def build_pii_report(
    original_text: str,
    result: RedactionResult,
    guardrail_entities: Iterable[GuardrailEntity] = (),
) -> PIIReport:
    """
    Summarise one redaction pass, merging guardrail findings.

    Args:
        original_text: Text before redaction
        result: Redaction result for that text
        guardrail_entities: Entities flagged by the provider's guardrail

    Returns:
        PIIReport: Report stored on the job
    """
    entities = list(guardrail_entities)
    detected_types = list(result.detected_types)
    for entity in entities:
        label = f"guardrail:{entity.type}"
        if label not in detected_types:
            detected_types.append(label)
    return PIIReport(
        has_pii=result.has_pii or bool(entities),
        redaction_count=result.redaction_count,
        detected_types=detected_types,
        original_length=len(original_text or ""),
        redacted_length=len(result.redacted_text),
        guardrail_entities=entities,
    )
