"""Unit tests for the review response parser."""

from content_review.core.ai_review import parse_review

MARKED_RESPONSE = """[SCORES]
Clarity: 4/5 - Mostly clear
Accessibility: 2/5 - Long sentences
[/SCORES]
[REVIEWED_CONTENT]
Contact [EMAIL_REDACTED] for help. [ISSUE:clarity]This sentence goes on and on[/ISSUE] and ends.
[/REVIEWED_CONTENT]
[IMPROVEMENTS]
[PRIORITY: High]
CATEGORY: Clarity
ISSUE: Run-on sentence
WHY: Hard to follow
CURRENT: This sentence goes on and on
SUGGESTED: Split the sentence.
[PRIORITY: low]
CATEGORY: Tone
ISSUE: Missing why
[/IMPROVEMENTS]
"""


def test_scores_from_marker_format():
    review = parse_review(MARKED_RESPONSE)

    assert set(review.scores) == {"Clarity", "Accessibility"}
    assert review.scores["Clarity"].score == 4
    assert review.scores["Clarity"].max_score == 5
    assert review.scores["Accessibility"].note == "Long sentences"


def test_reviewed_content_issue_offsets():
    """Test issue markers are removed and offsets point into the plain text."""
    content = parse_review(MARKED_RESPONSE).reviewed_content

    assert content.plain_text == (
        "Contact [EMAIL_REDACTED] for help. This sentence goes on and on and ends."
    )
    assert len(content.issues) == 1
    issue = content.issues[0]
    assert issue.category == "clarity"
    assert content.plain_text[issue.start:issue.end] == "This sentence goes on and on"


def test_improvements_drop_incomplete_blocks():
    improvements = parse_review(MARKED_RESPONSE).improvements

    assert len(improvements) == 1
    improvement = improvements[0]
    assert improvement.priority == "high"
    assert improvement.category == "Clarity"
    assert improvement.why == "Hard to follow"
    assert improvement.suggested == "Split the sentence."


def test_plain_format():
    text = "Overall this reads well.\nClarity: 4/5 - Good\nTone: 3/5"
    review = parse_review(text)

    assert review.scores["Clarity"].score == 4
    assert review.scores["Tone"].score == 3
    assert review.reviewed_content.plain_text == text
    assert review.improvements == []


def test_out_of_range_scores_ignored():
    review = parse_review("Clarity: 7/5 - impossible\nTone: 2/0")
    assert review.scores == {}


def test_unterminated_section_stops_at_next_section():
    text = "[SCORES]\nClarity: 3/5\n[REVIEWED_CONTENT]\nBody text"
    review = parse_review(text)

    assert review.scores["Clarity"].score == 3
    assert review.reviewed_content.plain_text == "Body text"


def test_empty_response():
    review = parse_review("")

    assert review.scores == {}
    assert review.reviewed_content.plain_text == ""
    assert review.improvements == []
