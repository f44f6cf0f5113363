"""
Rating aggregates for dashboards.
- average_rating: mean rounded to one decimal (0.0 when there is nothing to average)
- average_sentiment: mean sentiment rounded half-up to an int (50 when nothing is scored)
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, List

from metrics.sentiment import NEUTRAL_SCORE

CATEGORY_FIELDS = {
    "Knowledge": "knowledge_rating",
    "Communication": "communication_rating",
    "Materials": "materials_rating",
    "Engagement": "engagement_rating",
}

def _get(item, field):
    if isinstance(item, dict):
        return item.get(field)
    return getattr(item, field, None)

def _mean(values: List[int], places: str) -> Decimal:
    avg = Decimal(sum(values)) / Decimal(len(values))
    return avg.quantize(Decimal(places), rounding=ROUND_HALF_UP)

def average_rating(records: Iterable, field: str = "overall_rating") -> float:
    values = [v for v in (_get(r, field) for r in records or []) if v is not None]
    if not values:
        return 0.0
    return float(_mean(values, "0.1"))

def average_sentiment(records: Iterable) -> int:
    values = [v for v in (_get(r, "sentiment_score") for r in records or []) if v is not None]
    if not values:
        return NEUTRAL_SCORE
    return int(_mean(values, "1"))

def category_averages(records: Iterable) -> Dict[str, float]:
    records = list(records or [])
    return {label: average_rating(records, field) for label, field in CATEGORY_FIELDS.items()}

def rating_band(rating: int) -> str:
    if rating >= 4:
        return "high"
    if rating >= 2:
        return "medium"
    return "low"
