from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Protocol, Sequence

import boto3
from botocore.config import Config

from comment_sentiment.clients.errors import is_retryable_error
from comment_sentiment.core.config import COMPREHEND_BATCH_LIMIT, Settings, get_settings
from comment_sentiment.schemas.sentiment import SentimentScores

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RawSentiment:
    """Label and scores exactly as the service reported them."""

    label: str
    scores: SentimentScores


@dataclass(frozen=True)
class ItemError:
    code: str
    message: str


@dataclass(frozen=True)
class BatchSentimentResponse:
    """Batch response keyed by position in the submitted text list."""

    results: Mapping[int, RawSentiment] = field(default_factory=dict)
    errors: Mapping[int, ItemError] = field(default_factory=dict)


class SentimentClient(Protocol):
    def detect_sentiment(self, text: str) -> RawSentiment: ...

    def batch_detect_sentiment(self, texts: Sequence[str]) -> BatchSentimentResponse: ...

    def is_retryable_error(self, exc: BaseException) -> bool: ...


def _score(payload: Mapping[str, Any], key: str) -> float:
    # The service occasionally reports 1.0000001; keep scores inside [0, 1].
    return min(max(float(payload.get(key) or 0.0), 0.0), 1.0)


def _parse_scores(payload: Mapping[str, Any] | None) -> SentimentScores:
    payload = payload or {}
    return SentimentScores(
        positive=_score(payload, "Positive"),
        negative=_score(payload, "Negative"),
        neutral=_score(payload, "Neutral"),
        mixed=_score(payload, "Mixed"),
    )


def parse_detect_response(response: Mapping[str, Any]) -> RawSentiment:
    return RawSentiment(
        label=str(response.get("Sentiment") or ""),
        scores=_parse_scores(response.get("SentimentScore")),
    )


def parse_batch_response(response: Mapping[str, Any]) -> BatchSentimentResponse:
    results: dict[int, RawSentiment] = {}
    for item in response.get("ResultList") or []:
        index = item.get("Index")
        if index is None:
            logger.warning("Dropping batch result without an Index: %s", item.get("Sentiment"))
            continue
        results[int(index)] = parse_detect_response(item)

    errors: dict[int, ItemError] = {}
    for item in response.get("ErrorList") or []:
        index = item.get("Index")
        if index is None:
            continue
        errors[int(index)] = ItemError(
            code=str(item.get("ErrorCode") or "Unknown"),
            message=str(item.get("ErrorMessage") or ""),
        )
    return BatchSentimentResponse(results=results, errors=errors)


class ComprehendSentimentClient:
    """Thin wrapper over the boto3 Comprehend client returning typed results."""

    def __init__(self, settings: Settings | None = None, client: Any | None = None) -> None:
        self.settings = settings or get_settings()
        self.language_code = self.settings.comprehend_language_code
        if client is None:
            session = boto3.session.Session(
                aws_access_key_id=self.settings.aws_access_key_id or None,
                aws_secret_access_key=self.settings.aws_secret_access_key or None,
                region_name=self.settings.aws_region or None,
            )
            client = session.client(
                "comprehend",
                config=Config(
                    retries={"max_attempts": self.settings.comprehend_max_attempts, "mode": "standard"},
                    read_timeout=self.settings.comprehend_request_timeout_seconds,
                    connect_timeout=self.settings.comprehend_request_timeout_seconds,
                ),
            )
        self.client = client

    def detect_sentiment(self, text: str) -> RawSentiment:
        response = self.client.detect_sentiment(Text=text, LanguageCode=self.language_code)
        return parse_detect_response(response)

    def batch_detect_sentiment(self, texts: Sequence[str]) -> BatchSentimentResponse:
        if len(texts) > COMPREHEND_BATCH_LIMIT:
            raise ValueError(f"Batch size cannot exceed {COMPREHEND_BATCH_LIMIT} items")
        response = self.client.batch_detect_sentiment(TextList=list(texts), LanguageCode=self.language_code)
        return parse_batch_response(response)

    def is_retryable_error(self, exc: BaseException) -> bool:
        return is_retryable_error(exc)


def create_comprehend_client(settings: Settings | None = None) -> ComprehendSentimentClient:
    return ComprehendSentimentClient(settings or get_settings())
