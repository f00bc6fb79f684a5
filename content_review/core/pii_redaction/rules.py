"""
PII rule table.

Each rule is a name, a compiled pattern and the label that replaces a
match. Order matters: when spans from two rules overlap, the earlier
rule wins. Every default rule consumes a digit, an '@' or a ':' and no
label contains one, so no rule can match a label.

Dependencies: re (stdlib)
System role: Declarative data for the PII redaction engine
"""

import re
from dataclasses import dataclass


@dataclass(frozen=True)
class PIIRule:
    """One named detection rule."""

    name: str
    pattern: re.Pattern[str]
    label: str
    description: str = ""


def _rule(name: str, regex: str, label: str, description: str, flags: int = 0) -> PIIRule:
    return PIIRule(name=name, pattern=re.compile(regex, flags), label=label, description=description)


DEFAULT_RULES: tuple[PIIRule, ...] = (
    _rule(
        "email",
        r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b",
        "[EMAIL_REDACTED]",
        "Email addresses",
    ),
    _rule(
        "ipv6",
        r"\b(?:[A-F0-9]{1,4}:){7}[A-F0-9]{1,4}\b",
        "[IP_ADDRESS_REDACTED]",
        "IPv6 addresses (full form)",
        re.IGNORECASE,
    ),
    _rule(
        "ipv4",
        r"\b(?:(?:25[0-5]|2[0-4]\d|1\d\d|[1-9]?\d)\.){3}(?:25[0-5]|2[0-4]\d|1\d\d|[1-9]?\d)\b",
        "[IP_ADDRESS_REDACTED]",
        "IPv4 addresses",
    ),
    _rule(
        "card_number",
        r"\b(?:\d{4}[-\s]?){3}\d{1,4}\b",
        "[CARD_NUMBER_REDACTED]",
        "Payment card numbers (13-16 digits)",
    ),
    _rule(
        "sort_code",
        r"\b\d{2}-\d{2}-\d{2}\b",
        "[SORT_CODE_REDACTED]",
        "UK bank sort codes",
    ),
    _rule(
        "us_ssn",
        r"\b\d{3}-\d{2}-\d{4}\b",
        "[SSN_REDACTED]",
        "US social security numbers",
    ),
    _rule(
        "date",
        r"\b(?:\d{1,2}[-/]\d{1,2}[-/]\d{2,4}|\d{4}[-/]\d{1,2}[-/]\d{1,2})\b",
        "[DATE_REDACTED]",
        "Numeric dates (possible dates of birth)",
    ),
    _rule(
        "ni_number",
        r"\b[A-CEGHJ-PR-TW-Z][A-CEGHJ-NPR-TW-Z]\s?\d{2}\s?\d{2}\s?\d{2}\s?[A-D]?\b",
        "[NI_NUMBER_REDACTED]",
        "UK National Insurance numbers",
    ),
    _rule(
        "driving_licence",
        r"\b[A-Z9]{5}\d{6}[A-Z9]{2}\d[A-Z]{2}\b",
        "[DRIVING_LICENCE_REDACTED]",
        "UK driving licence numbers",
        re.IGNORECASE,
    ),
    _rule(
        "uk_postcode",
        r"\b[A-Z]{1,2}\d{1,2}\s?\d[A-Z]{2}\b|\b[A-Z]{1,2}\d[A-Z]\s?\d[A-Z]{2}\b",
        "[POSTCODE_REDACTED]",
        "UK postcodes",
        re.IGNORECASE,
    ),
    _rule(
        "uk_phone",
        r"(?:(?<![\d+])\+44\s?|\b0)(?:\d{2}\s?\d{4}\s?\d{4}|\d{3}\s?\d{3}\s?\d{4}|\d{4}\s?\d{6}|\d{5}\s?\d{5})\b",
        "[PHONE_REDACTED]",
        "UK landline and mobile numbers",
    ),
    _rule(
        "intl_phone",
        r"(?<![\d+])\+\d{1,3}[-.\s]?\(?\d{1,4}\)?(?:[-.\s]?\d{2,4}){2,4}\b",
        "[PHONE_REDACTED]",
        "International numbers with a + country code",
    ),
    _rule(
        "passport_number",
        r"\b\d{9}\b",
        "[PASSPORT_REDACTED]",
        "UK passport numbers (9 digits)",
    ),
    _rule(
        "bank_account",
        r"\b\d{8}\b",
        "[ACCOUNT_NUMBER_REDACTED]",
        "UK bank account numbers (8 digits)",
    ),
)

RULE_NAMES: tuple[str, ...] = tuple(rule.name for rule in DEFAULT_RULES)

# Review output quotes dates legitimately
MODEL_OUTPUT_EXCLUDED: frozenset[str] = frozenset({"date"})
