"""
Review response parser.

Turns the reviewer's text into a ParsedReview. Two formats are read:

- marker format with [SCORES], [REVIEWED_CONTENT] (inline
  [ISSUE:category]...[/ISSUE] markers) and [IMPROVEMENTS] sections whose
  entries start with [PRIORITY: level]
- plain format: "Category: N/5 - note" lines anywhere, whole text kept

Parsing never raises; an unexpected failure yields an empty structure
holding the raw text.

Dependencies: re (stdlib), content_review.models.review
System role: Structured review extraction for completed jobs
"""

import logging
import re

from content_review.models.review import (
    ContentIssue,
    Improvement,
    ParsedReview,
    ReviewedContent,
    ScoreEntry,
)

logger = logging.getLogger(__name__)

SECTION_NAMES = ("SCORES", "REVIEWED_CONTENT", "IMPROVEMENTS")
_NEXT_SECTION = r"(?=\[(?:" + "|".join(SECTION_NAMES) + r")\])"

_SCORE_LINE = re.compile(
    r"^[ \t]*(?:[-*•][ \t]*)?\**([A-Za-z][A-Za-z &/'()-]*?)\**[ \t]*:[ \t]*\**(\d+)[ \t]*/[ \t]*(\d+)\**"
    r"[ \t]*(?:[-–—:][ \t]*(.*))?$",
    re.MULTILINE,
)
_ISSUE = re.compile(r"\[ISSUE:\s*([^\]]+?)\s*\](.*?)\[/ISSUE\]", re.DOTALL)
_PRIORITY = re.compile(r"\[PRIORITY:\s*([^\]]*?)\s*\]", re.IGNORECASE)
_FIELD_NAMES = ("CATEGORY", "ISSUE", "WHY", "CURRENT", "SUGGESTED")
_FIELD = re.compile(
    r"^[ \t]*(" + "|".join(_FIELD_NAMES) + r")[ \t]*:[ \t]*(.*?)"
    r"(?=^[ \t]*(?:" + "|".join(_FIELD_NAMES) + r")[ \t]*:|\Z)",
    re.MULTILINE | re.DOTALL,
)


def _section(text: str, name: str) -> str | None:
    pattern = re.compile(
        rf"\[{name}\](.*?)(?:\[/{name}\]|{_NEXT_SECTION}|\Z)",
        re.DOTALL,
    )
    match = pattern.search(text)
    return match.group(1).strip() if match else None


def has_markers(text: str) -> bool:
    return any(f"[{name}]" in text for name in SECTION_NAMES)


def parse_scores(text: str) -> dict[str, ScoreEntry]:
    """Read "Category: N/M - note" lines."""
    scores: dict[str, ScoreEntry] = {}
    for match in _SCORE_LINE.finditer(text):
        category = match.group(1).strip()
        score, max_score = int(match.group(2)), int(match.group(3))
        if max_score == 0 or score > max_score:
            continue
        scores[category] = ScoreEntry(
            score=score,
            max_score=max_score,
            note=(match.group(4) or "").strip(),
        )
    return scores


def parse_reviewed_content(section: str) -> ReviewedContent:
    """Strip issue markers, recording each issue's offsets in the plain text."""
    pieces: list[str] = []
    issues: list[ContentIssue] = []
    cursor = 0
    length = 0
    for match in _ISSUE.finditer(section):
        before = section[cursor:match.start()]
        pieces.append(before)
        length += len(before)
        issue_text = match.group(2)
        issues.append(
            ContentIssue(
                category=match.group(1).strip(),
                text=issue_text,
                start=length,
                end=length + len(issue_text),
            )
        )
        pieces.append(issue_text)
        length += len(issue_text)
        cursor = match.end()
    pieces.append(section[cursor:])
    return ReviewedContent(plain_text="".join(pieces), issues=issues)


def parse_improvements(section: str) -> list[Improvement]:
    """Read [PRIORITY: level] blocks; blocks missing category, issue or why are dropped."""
    improvements: list[Improvement] = []
    parts = _PRIORITY.split(section)
    # parts: [preamble, priority1, block1, priority2, block2, ...]
    for index in range(1, len(parts) - 1, 2):
        priority = parts[index].strip().lower() or "medium"
        fields = {name.lower(): value.strip() for name, value in _FIELD.findall(parts[index + 1])}
        if not all(fields.get(key) for key in ("category", "issue", "why")):
            logger.debug(f"{__name__}:parse_improvements - Skipping incomplete improvement block")
            continue
        improvements.append(
            Improvement(
                priority=priority,
                category=fields["category"],
                issue=fields["issue"],
                why=fields["why"],
                current=fields.get("current", ""),
                suggested=fields.get("suggested", ""),
            )
        )
    return improvements


def parse_review(text: str) -> ParsedReview:
    """
    Parse a reviewer response.

    Args:
        text: Model output (already redacted)

    Returns:
        ParsedReview: Scores, reviewed content and improvements
    """
    text = text or ""
    try:
        if not has_markers(text):
            return ParsedReview(
                scores=parse_scores(text),
                reviewed_content=ReviewedContent(plain_text=text.strip()),
            )

        scores_section = _section(text, "SCORES")
        content_section = _section(text, "REVIEWED_CONTENT")
        improvements_section = _section(text, "IMPROVEMENTS")
        return ParsedReview(
            scores=parse_scores(scores_section) if scores_section else {},
            reviewed_content=(
                parse_reviewed_content(content_section) if content_section else ReviewedContent()
            ),
            improvements=parse_improvements(improvements_section) if improvements_section else [],
        )
    except Exception as e:
        logger.error("%s:parse_review - %s: %s", __name__, type(e).__name__, e)
        return ParsedReview(reviewed_content=ReviewedContent(plain_text=text))
