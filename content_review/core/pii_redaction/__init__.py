"""
PII redaction.

Exports: PIIRedactor, PIIRule, DEFAULT_RULES, build_pii_report
"""

from .redactor import PIIRedactor, build_pii_report
from .rules import DEFAULT_RULES, PIIRule, RULE_NAMES

__all__ = ["DEFAULT_RULES", "PIIRedactor", "PIIRule", "RULE_NAMES", "build_pii_report"]
