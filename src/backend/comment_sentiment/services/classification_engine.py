from __future__ import annotations

from comment_sentiment.schemas.sentiment import SentimentLabel, SentimentResult, SentimentScores
from comment_sentiment.utils.question_detector import QuestionDetector

BALANCE_THRESHOLD = 0.10

FALLBACK_SCORES = SentimentScores(positive=0.0, negative=0.0, neutral=1.0, mixed=0.0)


def neutral_fallback() -> SentimentResult:
    """Canonical result for an item that could not be classified."""
    return SentimentResult(sentiment="neutral", confidence=0.0, scores=FALLBACK_SCORES)


class ClassificationEngine:
    """Turns a raw four-way sentiment into one of the final comment labels.

    Rules, applied in order:

    1. ``POSITIVE``/``NEGATIVE``/``NEUTRAL`` map directly, using the matching
       score as confidence.
    2. ``MIXED`` is resolved from the three comparable scores: neutral when
       they are within :data:`BALANCE_THRESHOLD` of each other, otherwise the
       highest one (ties go positive, then negative, then neutral).
    3. Any other label becomes neutral with zero confidence.
    4. Questions override the label but keep the confidence.
    """

    def __init__(self, question_detector: QuestionDetector | None = None, balance_threshold: float = BALANCE_THRESHOLD) -> None:
        self._question_detector = question_detector or QuestionDetector()
        self._balance_threshold = balance_threshold

    def classify(self, raw_label: str | None, scores: SentimentScores, text: str) -> SentimentResult:
        label: SentimentLabel
        if raw_label == "POSITIVE":
            label, confidence = "positive", scores.positive
        elif raw_label == "NEGATIVE":
            label, confidence = "negative", scores.negative
        elif raw_label == "NEUTRAL":
            label, confidence = "neutral", scores.neutral
        elif raw_label == "MIXED":
            label, confidence = self._classify_mixed(scores)
        else:
            label, confidence = "neutral", 0.0

        if self._question_detector.is_question(text):
            label = "question"

        return SentimentResult(sentiment=label, confidence=confidence, scores=scores)

    def _classify_mixed(self, scores: SentimentScores) -> tuple[SentimentLabel, float]:
        if self._is_balanced(scores):
            return "neutral", scores.neutral

        highest = max(scores.positive, scores.negative, scores.neutral)
        if highest == scores.positive:
            return "positive", scores.positive
        if highest == scores.negative:
            return "negative", scores.negative
        return "neutral", scores.neutral

    def _is_balanced(self, scores: SentimentScores) -> bool:
        comparable = (scores.positive, scores.negative, scores.neutral)
        return (max(comparable) - min(comparable)) <= self._balance_threshold
