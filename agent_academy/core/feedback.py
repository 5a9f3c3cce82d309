"""
Feedback extraction from model replies.

Model replies are free text that usually follows the requested layout:

    SCORE: 85
    STRENGTHS:
    - clear goal
    IMPROVEMENTS:
    - add context
    REWRITTEN:
    improved prompt

Parsing is best effort. A reply that matches none of the sections parses to
None; missing sections are filled with defaults by feedback_with_defaults.
"""

import re
from dataclasses import dataclass, field
from typing import List, Optional

DEFAULT_SCORE = 50
DEFAULT_STRENGTHS = ("Analysis completed",)
DEFAULT_IMPROVEMENTS = ("Continue practicing",)
DEFAULT_REWRITE = "Keep refining your approach."
PASSING_SCORE = 70

_SCORE_RE = re.compile(r"SCORE:\s*(\d+)")
_STRENGTHS_RE = re.compile(r"STRENGTHS:\s*((?:- .+\n?)+)")
_IMPROVEMENTS_RE = re.compile(r"IMPROVEMENTS:\s*((?:- .+\n?)+)")
_REWRITTEN_RE = re.compile(r"REWRITTEN:\s*([\s\S]+?)(?:\n\n|$)")


@dataclass(frozen=True)
class ParsedFeedback:
    """Sections actually found in a reply; absent ones are None."""
    score: Optional[int] = None
    strengths: Optional[List[str]] = None
    improvements: Optional[List[str]] = None
    rewrite_suggestion: Optional[str] = None


@dataclass(frozen=True)
class Feedback:
    """Complete feedback shown to a learner."""
    score: int
    strengths: List[str] = field(default_factory=list)
    improvements: List[str] = field(default_factory=list)
    rewrite_suggestion: str = ""


def _bullets(block: str) -> List[str]:
    items = []
    for line in block.split("\n"):
        line = line.strip()
        if not line:
            continue
        if line.startswith("- "):
            line = line[2:]
        items.append(line.strip())
    return items


def parse_feedback(text: Optional[str]) -> Optional[ParsedFeedback]:
    """Extract feedback sections from a model reply.

    Returns:
        ParsedFeedback with the sections found, or None if none were found
    """
    if not text:
        return None

    score_match = _SCORE_RE.search(text)
    strengths_match = _STRENGTHS_RE.search(text)
    improvements_match = _IMPROVEMENTS_RE.search(text)
    rewritten_match = _REWRITTEN_RE.search(text)

    if not any((score_match, strengths_match, improvements_match, rewritten_match)):
        return None

    score = None
    if score_match:
        score = max(0, min(100, int(score_match.group(1))))

    return ParsedFeedback(
        score=score,
        strengths=_bullets(strengths_match.group(1)) if strengths_match else None,
        improvements=_bullets(improvements_match.group(1)) if improvements_match else None,
        rewrite_suggestion=rewritten_match.group(1).strip() if rewritten_match else None,
    )


def feedback_with_defaults(text: Optional[str]) -> Feedback:
    """Parse a reply and fill every missing section with its default."""
    parsed = parse_feedback(text) or ParsedFeedback()
    return Feedback(
        score=parsed.score if parsed.score is not None else DEFAULT_SCORE,
        strengths=parsed.strengths or list(DEFAULT_STRENGTHS),
        improvements=parsed.improvements or list(DEFAULT_IMPROVEMENTS),
        rewrite_suggestion=parsed.rewrite_suggestion or DEFAULT_REWRITE,
    )


def is_passing(feedback: Feedback) -> bool:
    """Whether the score is high enough to mark an exercise completed."""
    return feedback.score >= PASSING_SCORE
