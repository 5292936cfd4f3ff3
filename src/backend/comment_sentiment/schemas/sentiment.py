from __future__ import annotations

from typing import Any, List, Literal

from pydantic import BaseModel, ConfigDict, Field

SentimentLabel = Literal["positive", "negative", "neutral", "question", "confusion"]
SENTIMENT_LABELS: tuple[str, ...] = ("positive", "negative", "neutral", "question", "confusion")

NO_COMMENTS_SUMMARY = "No comments to analyze"


class SentimentScores(BaseModel):
    """Four-way scores as reported by the external classifier."""

    model_config = ConfigDict(frozen=True)

    positive: float = Field(default=0.0, ge=0.0, le=1.0)
    negative: float = Field(default=0.0, ge=0.0, le=1.0)
    neutral: float = Field(default=0.0, ge=0.0, le=1.0)
    mixed: float = Field(default=0.0, ge=0.0, le=1.0)


class SentimentResult(BaseModel):
    """Final classification for a single comment."""

    model_config = ConfigDict(frozen=True)

    sentiment: SentimentLabel = Field(..., description="Final label after mixed resolution and question override.")
    confidence: float = Field(..., ge=0.0, le=1.0, description="Score backing the label; 0.0 marks a fallback.")
    scores: SentimentScores = Field(..., description="Unmodified scores from the external classifier.")


class SentimentBreakdown(BaseModel):
    """Per-label comment counts for one analysis run."""

    model_config = ConfigDict(frozen=True)

    positive: int = 0
    negative: int = 0
    neutral: int = 0
    question: int = 0
    confusion: int = 0

    @property
    def total(self) -> int:
        return self.positive + self.negative + self.neutral + self.question + self.confusion


class CommentSentiment(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str
    sentiment: str
    confidence: float


class AnalysisMetadata(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    success_count: int = Field(default=0, alias="successCount")
    failure_count: int = Field(default=0, alias="failureCount")
    total_count: int = Field(default=0, alias="totalCount")


class AnalysisResult(BaseModel):
    """Top-level output of :class:`~comment_sentiment.services.sentiment_analyzer.SentimentAnalyzer`."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    sentiment_breakdown: SentimentBreakdown = Field(alias="sentimentBreakdown")
    overall_sentiment: str = Field(alias="overallSentiment")
    comments: List[CommentSentiment] = Field(default_factory=list)
    metadata: AnalysisMetadata = Field(default_factory=AnalysisMetadata)

    @classmethod
    def empty(cls) -> "AnalysisResult":
        return cls(
            sentiment_breakdown=SentimentBreakdown(),
            overall_sentiment=NO_COMMENTS_SUMMARY,
            comments=[],
            metadata=AnalysisMetadata(),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialise with the camelCase keys consumed by the dashboard."""
        return self.model_dump(by_alias=True)
