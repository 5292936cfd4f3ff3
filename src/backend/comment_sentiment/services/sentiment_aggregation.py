from __future__ import annotations

from collections import Counter
from typing import Iterable

from comment_sentiment.schemas.sentiment import NO_COMMENTS_SUMMARY, SENTIMENT_LABELS, SentimentBreakdown, SentimentResult

OVERWHELMING_SHARE = 0.60
DOMINANT_SHARE = 0.40


def calculate_breakdown(results: Iterable[SentimentResult]) -> SentimentBreakdown:
    """Count results per label; labels outside the known set are ignored."""
    counts = Counter(result.sentiment for result in results)
    return SentimentBreakdown(**{label: counts.get(label, 0) for label in SENTIMENT_LABELS})


def _pct(count: int, total: int) -> int:
    # Half rounds up: 12.5% displays as 13%.
    return (200 * count + total) // (2 * total)


def generate_overall_sentiment(breakdown: SentimentBreakdown) -> str:
    """Describe the distribution in one line.

    Branch order matters: a set that is 70% positive is "Overwhelmingly
    positive" even when questions also clear their threshold.
    """
    total = breakdown.total
    if total == 0:
        return NO_COMMENTS_SUMMARY

    positive = breakdown.positive / total
    negative = breakdown.negative / total
    question = breakdown.question / total
    positive_pct = _pct(breakdown.positive, total)
    negative_pct = _pct(breakdown.negative, total)
    question_pct = _pct(breakdown.question, total)

    if positive >= OVERWHELMING_SHARE:
        return f"Overwhelmingly positive ({positive_pct}% positive)"
    if negative >= OVERWHELMING_SHARE:
        return f"Overwhelmingly negative ({negative_pct}% negative)"
    if question >= DOMINANT_SHARE:
        return f"Mostly questions ({question_pct}% questions)"
    if positive > negative and positive >= DOMINANT_SHARE:
        return f"Generally positive ({positive_pct}% positive, {negative_pct}% negative)"
    if negative > positive and negative >= DOMINANT_SHARE:
        return f"Generally negative ({negative_pct}% negative, {positive_pct}% positive)"

    others = (breakdown.positive, breakdown.negative, breakdown.question, breakdown.confusion)
    if all(breakdown.neutral > count for count in others):
        return f"Mostly neutral ({_pct(breakdown.neutral, total)}% neutral)"
    return f"Mixed sentiment ({positive_pct}% positive, {negative_pct}% negative, {question_pct}% questions)"
