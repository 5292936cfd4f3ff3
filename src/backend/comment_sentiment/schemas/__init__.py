from .sentiment import (  # noqa: F401
    NO_COMMENTS_SUMMARY,
    SENTIMENT_LABELS,
    AnalysisMetadata,
    AnalysisResult,
    CommentSentiment,
    SentimentBreakdown,
    SentimentLabel,
    SentimentResult,
    SentimentScores,
)
