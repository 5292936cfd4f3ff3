from __future__ import annotations

import logging
import time
from typing import Callable, Sequence

from comment_sentiment.clients.comprehend import SentimentClient, create_comprehend_client
from comment_sentiment.clients.errors import describe_error
from comment_sentiment.core.config import COMPREHEND_BATCH_LIMIT, Settings, get_settings
from comment_sentiment.schemas.sentiment import (
    AnalysisMetadata,
    AnalysisResult,
    CommentSentiment,
    SentimentResult,
)
from comment_sentiment.services import monitoring
from comment_sentiment.services.batch_manager import Batch, BatchManager
from comment_sentiment.services.classification_engine import ClassificationEngine, neutral_fallback
from comment_sentiment.services.sentiment_aggregation import calculate_breakdown, generate_overall_sentiment
from comment_sentiment.utils.retry import retry_with_backoff
from comment_sentiment.utils.text_preprocessing import is_empty, preprocess_comment

logger = logging.getLogger(__name__)


class SentimentAnalyzer:
    """Classifies a fixed batch of comments and summarises the result.

    Batches are sent one at a time. A batch whose call fails outright (after
    backoff on retryable errors) is retried item by item, and items that still
    fail are counted as zero-confidence neutral, so ``analyze_comments`` returns
    a complete result even when the service is down.
    """

    def __init__(
        self,
        client: SentimentClient,
        settings: Settings | None = None,
        *,
        batch_manager: BatchManager | None = None,
        classification_engine: ClassificationEngine | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.settings = settings or get_settings()
        self.client = client
        self.batch_manager = batch_manager or BatchManager()
        self.classification_engine = classification_engine or ClassificationEngine()
        self.batch_size = min(self.settings.sentiment_batch_size, COMPREHEND_BATCH_LIMIT)
        self._sleep = sleep
        monitoring.configure(self.settings)

    # ---- Public API -----------------------------------------------------------------

    def analyze_comments(self, comments: Sequence[str], *, analysis_id: str | None = None) -> AnalysisResult:
        if not comments:
            return AnalysisResult.empty()

        texts = [preprocess_comment(comment, self.settings.sentiment_max_text_bytes) for comment in comments]
        by_index = self._process_batches(texts, analysis_id)
        results = [by_index[index] for index in range(len(texts))]

        breakdown = calculate_breakdown(results)
        success_count = sum(1 for result in results if result.confidence > 0)
        logger.info(
            "Analyzed %d comments (analysis_id=%s) | success=%d failed=%d",
            len(results),
            analysis_id,
            success_count,
            len(results) - success_count,
        )

        return AnalysisResult(
            sentiment_breakdown=breakdown,
            overall_sentiment=generate_overall_sentiment(breakdown),
            comments=[
                CommentSentiment(text=comment, sentiment=result.sentiment, confidence=result.confidence)
                for comment, result in zip(comments, results)
            ],
            metadata=AnalysisMetadata(
                success_count=success_count,
                failure_count=len(results) - success_count,
                total_count=len(comments),
            ),
        )

    # ---- Batch flow -----------------------------------------------------------------

    def _process_batches(self, texts: Sequence[str], analysis_id: str | None) -> dict[int, SentimentResult]:
        results: dict[int, SentimentResult] = {}
        batches = self.batch_manager.create_batches(texts, self.batch_size)

        for number, batch in enumerate(batches, start=1):
            with monitoring.track_latency("sentiment.batch.latency_ms"):
                outcome = self.batch_manager.process_batch(
                    batch,
                    lambda items, batch=batch: self._classify_batch(items, batch, analysis_id),
                )

            if outcome.success:
                results.update(zip(batch.indices, outcome.results))
                continue

            logger.warning(
                "Batch %d/%d failed (analysis_id=%s); retrying %d items individually",
                number,
                len(batches),
                analysis_id,
                len(outcome.failed_indices),
            )
            retried = self.batch_manager.retry_failed_items(
                [texts[index] for index in outcome.failed_indices],
                self._classify_single,
            )
            results.update(zip(outcome.failed_indices, retried))

        return results

    def _classify_batch(self, items: Sequence[str], batch: Batch, analysis_id: str | None) -> list[SentimentResult]:
        """Classify one batch, returning a result per item in order.

        Blank items are never submitted. The service reports results and errors
        by position in the *submitted* list, which is mapped back to the batch
        position once here.
        """
        slots: list[SentimentResult | None] = [None] * len(items)
        submitted: list[int] = []
        for position, text in enumerate(items):
            if is_empty(text):
                slots[position] = neutral_fallback()
            else:
                submitted.append(position)

        if submitted:
            payload = [items[position] for position in submitted]
            response = retry_with_backoff(
                lambda: self.client.batch_detect_sentiment(payload),
                max_retries=self.settings.sentiment_max_retries,
                base_delay=self.settings.sentiment_retry_delay_seconds,
                is_retryable=self.client.is_retryable_error,
                sleep=self._sleep,
            )

            for submitted_index, position in enumerate(submitted):
                error = response.errors.get(submitted_index)
                raw = response.results.get(submitted_index)
                if error is not None or raw is None:
                    logger.warning(
                        "Comment %d failed inside batch (analysis_id=%s): %s %s",
                        batch.start_index + position,
                        analysis_id,
                        error.code if error else "MissingResult",
                        error.message if error else "",
                    )
                    monitoring.emit_counter("sentiment.item.error")
                    slots[position] = neutral_fallback()
                    continue
                slots[position] = self.classification_engine.classify(raw.label, raw.scores, items[position])

        return [slot if slot is not None else neutral_fallback() for slot in slots]

    def _classify_single(self, text: str) -> SentimentResult:
        if is_empty(text):
            return neutral_fallback()

        try:
            raw = retry_with_backoff(
                lambda: self.client.detect_sentiment(text),
                max_retries=self.settings.sentiment_max_retries,
                base_delay=self.settings.sentiment_retry_delay_seconds,
                is_retryable=self.client.is_retryable_error,
                sleep=self._sleep,
            )
        except Exception as exc:
            logger.error("Sentiment detection gave up for single comment: %s", describe_error(exc))
            raise
        return self.classification_engine.classify(raw.label, raw.scores, text)


def build_sentiment_analyzer(
    settings: Settings | None = None,
    client: SentimentClient | None = None,
) -> SentimentAnalyzer:
    """Wire an analyzer with a Comprehend client unless one is supplied."""
    settings = settings or get_settings()
    return SentimentAnalyzer(client or create_comprehend_client(settings), settings)
