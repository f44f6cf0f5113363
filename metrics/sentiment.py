"""
Lexicon sentiment for feedback comments.
- compute_sentiment_score maps a comment to an int in [0, 100]:
  0 = only negative keywords, 100 = only positive keywords, 50 = no signal.
- Keywords match as whole words, case-insensitive, and every occurrence counts.
- Ties at .5 round up ("1 good, 7 bad" -> 12.5 -> 13).
"""
import re
from typing import Dict, Iterable, List

from config import SENTIMENT_POSITIVE_THRESHOLD, SENTIMENT_NEUTRAL_THRESHOLD

POS_WORDS = (
    "good", "great", "excellent", "amazing", "fantastic", "wonderful",
    "helpful", "informative", "clear", "engaging", "knowledgeable", "friendly",
)
NEG_WORDS = (
    "bad", "poor", "terrible", "awful", "confusing", "boring",
    "unhelpful", "unclear", "disorganized", "rushed", "disappointing",
)

NEUTRAL_SCORE = 50

# ASCII word boundaries: "goodé" still counts "good", "good_job" does not
_POS_RE = re.compile(r"\b(?:" + "|".join(POS_WORDS) + r")\b", re.ASCII)
_NEG_RE = re.compile(r"\b(?:" + "|".join(NEG_WORDS) + r")\b", re.ASCII)

CATEGORIES = ("positive", "neutral", "negative")

SENTIMENT_COLORS = {
    "positive": "#10b981",
    "neutral": "#f59e0b",
    "negative": "#ef4444",
}
FALLBACK_COLOR = "#94a3b8"


def count_keywords(comment: str | None) -> tuple[int, int]:
    """Return (positive_count, negative_count) for a comment."""
    text = (comment or "").lower()
    return len(_POS_RE.findall(text)), len(_NEG_RE.findall(text))


def compute_sentiment_score(comment: str | None) -> int:
    pos, neg = count_keywords(comment)
    if pos == neg == 0:
        return NEUTRAL_SCORE
    total = pos + neg
    # floor(100 * pos / total + 0.5) without float error
    return (200 * pos + total) // (2 * total)


def sentiment_category(score: int) -> str:
    if score >= SENTIMENT_POSITIVE_THRESHOLD:
        return "positive"
    if score >= SENTIMENT_NEUTRAL_THRESHOLD:
        return "neutral"
    return "negative"


def _score_of(item):
    if isinstance(item, dict):
        return item.get("sentiment_score")
    return getattr(item, "sentiment_score", None)


def sentiment_distribution(records: Iterable | None) -> Dict[str, int]:
    """Count feedback records per category; unscored records are skipped."""
    result = {c: 0 for c in CATEGORIES}
    for item in records or []:
        score = _score_of(item)
        if score is None:
            continue
        result[sentiment_category(score)] += 1
    return result


def sentiment_percentages(distribution: Dict[str, int]) -> Dict[str, str]:
    total = sum(distribution.get(c, 0) for c in CATEGORIES)
    if total == 0:
        return {c: "0%" for c in CATEGORIES}
    return {
        c: f"{(200 * distribution.get(c, 0) + total) // (2 * total)}%"
        for c in CATEGORIES
    }


def distribution_chart_data(distribution: Dict[str, int]) -> List[Dict]:
    """
    Rows for the sentiment pie chart. An empty distribution gets placeholder
    slices (positive=1, neutral=1, negative=0) so the chart still renders.
    """
    if all(distribution.get(c, 0) == 0 for c in CATEGORIES):
        values = {"positive": 1, "neutral": 1, "negative": 0}
    else:
        values = {c: distribution.get(c, 0) or 0 for c in CATEGORIES}
    return [
        {"name": c.capitalize(), "value": values[c], "fill": SENTIMENT_COLORS.get(c, FALLBACK_COLOR)}
        for c in CATEGORIES
    ]
