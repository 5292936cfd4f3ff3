from __future__ import annotations

from typing import Callable, Sequence

import pytest
from botocore.exceptions import ClientError

from comment_sentiment.clients.comprehend import BatchSentimentResponse, ItemError, RawSentiment
from comment_sentiment.clients.errors import is_retryable_error
from comment_sentiment.core.config import Settings, get_settings
from comment_sentiment.schemas.sentiment import SentimentScores
from comment_sentiment.services import monitoring
from comment_sentiment.services.sentiment_analyzer import SentimentAnalyzer, build_sentiment_analyzer

POSITIVE = RawSentiment("POSITIVE", SentimentScores(positive=0.9, negative=0.05, neutral=0.05, mixed=0.0))
NEGATIVE = RawSentiment("NEGATIVE", SentimentScores(positive=0.05, negative=0.85, neutral=0.1, mixed=0.0))
NEUTRAL = RawSentiment("NEUTRAL", SentimentScores(positive=0.1, negative=0.1, neutral=0.8, mixed=0.0))


def _client_error(code: str, status: int) -> ClientError:
    return ClientError(
        {"Error": {"Code": code, "Message": code}, "ResponseMetadata": {"HTTPStatusCode": status}},
        "BatchDetectSentiment",
    )


def keyword_sentiment(text: str) -> RawSentiment:
    lowered = text.lower()
    if "love" in lowered or "great" in lowered:
        return POSITIVE
    if "hate" in lowered or "awful" in lowered:
        return NEGATIVE
    return NEUTRAL


class FakeSentimentClient:
    """In-memory stand-in for the Comprehend wrapper that records every call."""

    def __init__(
        self,
        scorer: Callable[[str], RawSentiment] = keyword_sentiment,
        batch_error: Exception | None = None,
        batch_failures: int = 0,
        single_error_for: Callable[[str], Exception | None] = lambda _text: None,
        item_errors: Callable[[str], bool] = lambda _text: False,
    ) -> None:
        self.scorer = scorer
        self.batch_error = batch_error
        self.batch_failures = batch_failures
        self.single_error_for = single_error_for
        self.item_errors = item_errors
        self.batch_calls: list[list[str]] = []
        self.single_calls: list[str] = []

    @property
    def total_calls(self) -> int:
        return len(self.batch_calls) + len(self.single_calls)

    def batch_detect_sentiment(self, texts: Sequence[str]) -> BatchSentimentResponse:
        self.batch_calls.append(list(texts))
        if self.batch_error is not None and (self.batch_failures == 0 or len(self.batch_calls) <= self.batch_failures):
            raise self.batch_error
        results = {}
        errors = {}
        for index, text in enumerate(texts):
            if self.item_errors(text):
                errors[index] = ItemError(code="INTERNAL_SERVER_ERROR", message="item failed")
            else:
                results[index] = self.scorer(text)
        return BatchSentimentResponse(results=results, errors=errors)

    def detect_sentiment(self, text: str) -> RawSentiment:
        self.single_calls.append(text)
        error = self.single_error_for(text)
        if error is not None:
            raise error
        return self.scorer(text)

    def is_retryable_error(self, exc: BaseException) -> bool:
        return is_retryable_error(exc)


@pytest.fixture()
def settings() -> Settings:
    return Settings(sentiment_batch_size=25, sentiment_max_retries=3, sentiment_retry_delay_seconds=0.01)


def _analyzer(client: FakeSentimentClient, settings: Settings, sleeps: list[float] | None = None) -> SentimentAnalyzer:
    recorded = sleeps if sleeps is not None else []
    return SentimentAnalyzer(client, settings, sleep=recorded.append)


def test_empty_input_makes_no_external_calls(settings: Settings) -> None:
    client = FakeSentimentClient()

    result = _analyzer(client, settings).analyze_comments([])

    assert client.total_calls == 0
    assert result.overall_sentiment == "No comments to analyze"
    assert result.comments == []
    assert result.sentiment_breakdown.total == 0
    assert result.metadata.total_count == 0
    assert result.to_dict() == {
        "sentimentBreakdown": {"positive": 0, "negative": 0, "neutral": 0, "question": 0, "confusion": 0},
        "overallSentiment": "No comments to analyze",
        "comments": [],
        "metadata": {"successCount": 0, "failureCount": 0, "totalCount": 0},
    }


def test_happy_path_classifies_and_aggregates(settings: Settings) -> None:
    client = FakeSentimentClient()
    comments = ["I love this!", "Great editing", "I hate the music", "How did you make the intro?", "Uploaded today"]

    result = _analyzer(client, settings).analyze_comments(comments)

    assert len(client.batch_calls) == 1
    assert client.single_calls == []
    assert [entry.text for entry in result.comments] == comments
    assert [entry.sentiment for entry in result.comments] == ["positive", "positive", "negative", "question", "neutral"]
    assert result.sentiment_breakdown.positive == 2
    assert result.sentiment_breakdown.question == 1
    assert result.metadata.success_count == 5
    assert result.metadata.failure_count == 0
    assert result.overall_sentiment == "Generally positive (40% positive, 20% negative)"


def test_comments_are_batched_in_order(settings: Settings) -> None:
    client = FakeSentimentClient()
    comments = [f"great comment {index}" for index in range(60)]

    result = _analyzer(client, settings).analyze_comments(comments)

    assert [len(batch) for batch in client.batch_calls] == [25, 25, 10]
    assert [entry.text for entry in result.comments] == comments
    assert result.sentiment_breakdown.positive == 60


def test_blank_comments_skip_the_service(settings: Settings) -> None:
    client = FakeSentimentClient()
    comments = ["   ", "great stuff", ""]

    result = _analyzer(client, settings).analyze_comments(comments)

    assert client.batch_calls == [["great stuff"]]
    assert [entry.sentiment for entry in result.comments] == ["neutral", "positive", "neutral"]
    assert [entry.confidence for entry in result.comments] == [0.0, pytest.approx(0.9), 0.0]
    assert result.metadata.success_count == 1
    assert result.metadata.failure_count == 2
    assert result.comments[0].text == "   "


def test_all_blank_batch_makes_no_call(settings: Settings) -> None:
    client = FakeSentimentClient()

    result = _analyzer(client, settings).analyze_comments(["", "  \n"])

    assert client.total_calls == 0
    assert result.sentiment_breakdown.neutral == 2
    assert result.metadata.failure_count == 2


def test_item_errors_fall_back_without_affecting_siblings(settings: Settings) -> None:
    client = FakeSentimentClient(item_errors=lambda text: "broken" in text)
    comments = ["great", "broken one", "   ", "awful", "broken two"]

    result = _analyzer(client, settings).analyze_comments(comments)

    assert client.batch_calls == [["great", "broken one", "awful", "broken two"]]
    assert client.single_calls == []
    assert [entry.sentiment for entry in result.comments] == ["positive", "neutral", "neutral", "negative", "neutral"]
    assert [entry.confidence for entry in result.comments][1] == 0.0
    assert result.metadata.success_count == 2


def test_retryable_batch_error_backs_off_then_succeeds(settings: Settings) -> None:
    sleeps: list[float] = []
    client = FakeSentimentClient(batch_error=_client_error("ThrottlingException", 400), batch_failures=2)

    result = _analyzer(client, settings, sleeps).analyze_comments(["great", "awful"])

    assert len(client.batch_calls) == 3
    assert client.single_calls == []
    assert len(sleeps) == 2
    assert [entry.sentiment for entry in result.comments] == ["positive", "negative"]


def test_non_retryable_batch_error_falls_back_to_single_calls(settings: Settings) -> None:
    sleeps: list[float] = []
    client = FakeSentimentClient(batch_error=_client_error("ValidationException", 400))
    comments = ["great", "", "awful"]

    result = _analyzer(client, settings, sleeps).analyze_comments(comments)

    assert len(client.batch_calls) == 1
    assert sleeps == []
    assert client.single_calls == ["great", "awful"]
    assert [entry.sentiment for entry in result.comments] == ["positive", "neutral", "negative"]
    assert result.metadata.success_count == 2


def test_only_failed_batch_is_retried_individually(settings: Settings) -> None:
    client = FakeSentimentClient(batch_error=_client_error("AccessDeniedException", 403), batch_failures=1)
    settings = settings.model_copy(update={"sentiment_batch_size": 2})
    comments = ["great a", "great b", "awful c", "awful d"]

    result = _analyzer(client, settings).analyze_comments(comments)

    assert client.batch_calls == [["great a", "great b"], ["awful c", "awful d"]]
    assert client.single_calls == ["great a", "great b"]
    assert [entry.sentiment for entry in result.comments] == ["positive", "positive", "negative", "negative"]


def test_total_outage_degrades_to_neutral(settings: Settings) -> None:
    sleeps: list[float] = []
    outage = _client_error("ServiceUnavailableException", 503)
    client = FakeSentimentClient(batch_error=outage, single_error_for=lambda _text: outage)
    comments = ["great", "awful", "what?"]

    result = _analyzer(client, settings, sleeps).analyze_comments(comments)

    # 3 batch attempts, then 3 attempts per comment.
    assert len(client.batch_calls) == 3
    assert len(client.single_calls) == 9
    assert len(sleeps) == 2 + 3 * 2
    assert [entry.sentiment for entry in result.comments] == ["neutral", "neutral", "neutral"]
    assert result.metadata.success_count == 0
    assert result.metadata.failure_count == 3
    assert result.metadata.total_count == 3
    assert result.overall_sentiment == "Mostly neutral (100% neutral)"


def test_long_comments_are_truncated_before_submission(settings: Settings) -> None:
    client = FakeSentimentClient()
    settings = settings.model_copy(update={"sentiment_max_text_bytes": 10})
    comment = "great " * 10

    result = _analyzer(client, settings).analyze_comments([comment])

    assert client.batch_calls == [["great grea"]]
    assert result.comments[0].text == comment


def test_batch_size_is_capped_at_service_limit(settings: Settings) -> None:
    settings = settings.model_copy(update={"sentiment_batch_size": 100})
    analyzer = SentimentAnalyzer(FakeSentimentClient(), settings)

    assert analyzer.batch_size == 25


def test_build_sentiment_analyzer_uses_injected_client(settings: Settings) -> None:
    client = FakeSentimentClient()

    analyzer = build_sentiment_analyzer(settings, client=client)

    assert analyzer.client is client
    assert analyzer.settings is settings


def test_metrics_follow_injected_settings_not_environment(monkeypatch: pytest.MonkeyPatch, settings: Settings) -> None:
    monkeypatch.setenv("STATSD_PORT", "not-a-port")
    get_settings.cache_clear()
    monitoring.reset_client()
    client = FakeSentimentClient()

    result = _analyzer(client, settings).analyze_comments(["great"])

    assert [entry.sentiment for entry in result.comments] == ["positive"]
    assert monitoring._statsd_client() is None

    monitoring.reset_client()
    get_settings.cache_clear()
