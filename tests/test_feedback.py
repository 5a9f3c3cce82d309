"""
Unit tests for feedback extraction from model replies.
"""

from agent_academy.core.feedback import (
    DEFAULT_IMPROVEMENTS,
    DEFAULT_REWRITE,
    DEFAULT_SCORE,
    DEFAULT_STRENGTHS,
    Feedback,
    feedback_with_defaults,
    is_passing,
    parse_feedback,
)

FULL_REPLY = """SCORE: 85
STRENGTHS:
- Clear goal
- Specific audience

IMPROVEMENTS:
- Add an example output
- State constraints

REWRITTEN:
You are a tutor for 10-year-olds. Explain fractions with one example.

Hope this helps!"""


class TestParseFeedback:
    """Test best-effort section extraction."""

    def test_full_reply(self):
        parsed = parse_feedback(FULL_REPLY)
        assert parsed.score == 85
        assert parsed.strengths == ["Clear goal", "Specific audience"]
        assert parsed.improvements == ["Add an example output", "State constraints"]
        assert parsed.rewrite_suggestion == (
            "You are a tutor for 10-year-olds. Explain fractions with one example."
        )

    def test_unstructured_reply_returns_none(self):
        assert parse_feedback("Great prompt, nothing to add.") is None

    def test_empty_reply_returns_none(self):
        assert parse_feedback("") is None
        assert parse_feedback(None) is None

    def test_partial_reply(self):
        parsed = parse_feedback("Overall SCORE: 42 because it is vague.")
        assert parsed.score == 42
        assert parsed.strengths is None
        assert parsed.improvements is None
        assert parsed.rewrite_suggestion is None

    def test_score_clamped(self):
        assert parse_feedback("SCORE: 250").score == 100

    def test_rewrite_at_end_of_text(self):
        parsed = parse_feedback("REWRITTEN:\nAsk for three bullet points.")
        assert parsed.rewrite_suggestion == "Ask for three bullet points."


class TestFeedbackWithDefaults:
    """Test default filling for missing sections."""

    def test_defaults_for_unstructured_reply(self):
        feedback = feedback_with_defaults("no structure here")
        assert feedback == Feedback(
            score=DEFAULT_SCORE,
            strengths=list(DEFAULT_STRENGTHS),
            improvements=list(DEFAULT_IMPROVEMENTS),
            rewrite_suggestion=DEFAULT_REWRITE,
        )

    def test_found_sections_kept(self):
        feedback = feedback_with_defaults("SCORE: 90\nSTRENGTHS:\n- Concise\n")
        assert feedback.score == 90
        assert feedback.strengths == ["Concise"]
        assert feedback.improvements == list(DEFAULT_IMPROVEMENTS)

    def test_zero_score_is_not_replaced(self):
        assert feedback_with_defaults("SCORE: 0").score == 0


class TestIsPassing:

    def test_threshold(self):
        assert is_passing(Feedback(score=70))
        assert not is_passing(Feedback(score=69))
