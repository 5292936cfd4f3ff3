from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Sequence

from comment_sentiment.clients.errors import describe_error
from comment_sentiment.core.config import COMPREHEND_BATCH_LIMIT
from comment_sentiment.schemas.sentiment import SentimentResult
from comment_sentiment.services import monitoring
from comment_sentiment.services.classification_engine import neutral_fallback

logger = logging.getLogger(__name__)

BatchProcessor = Callable[[Sequence[str]], Sequence[SentimentResult]]
ItemProcessor = Callable[[str], SentimentResult]


@dataclass(frozen=True)
class Batch:
    items: tuple[str, ...]
    start_index: int
    end_index: int  # exclusive

    @property
    def indices(self) -> range:
        return range(self.start_index, self.end_index)


@dataclass(frozen=True)
class BatchResult:
    success: bool
    results: Sequence[SentimentResult] = field(default_factory=tuple)
    failed_indices: Sequence[int] = field(default_factory=tuple)


class BatchManager:
    """Splits texts into service-sized batches and degrades to per-item calls on failure."""

    def create_batches(self, texts: Sequence[str], batch_size: int = COMPREHEND_BATCH_LIMIT) -> list[Batch]:
        if batch_size < 1:
            raise ValueError(f"batch_size must be at least 1, got {batch_size}")

        batches: list[Batch] = []
        for start in range(0, len(texts), batch_size):
            end = min(start + batch_size, len(texts))
            batches.append(Batch(items=tuple(texts[start:end]), start_index=start, end_index=end))
        return batches

    def process_batch(self, batch: Batch, processor: BatchProcessor) -> BatchResult:
        """Run ``processor`` over the whole batch; any error fails every index in it."""
        try:
            results = processor(batch.items)
        except Exception as exc:
            logger.warning(
                "Batch [%d, %d) failed: %s",
                batch.start_index,
                batch.end_index,
                describe_error(exc),
            )
            monitoring.emit_counter("sentiment.batch.error")
            return BatchResult(success=False, results=(), failed_indices=tuple(batch.indices))

        monitoring.emit_counter("sentiment.batch.ok")
        return BatchResult(success=True, results=tuple(results), failed_indices=())

    def retry_failed_items(self, items: Sequence[str], processor: ItemProcessor) -> list[SentimentResult]:
        """Process ``items`` one at a time; failures become neutral fallbacks.

        Always returns exactly one result per item, in order.
        """
        results: list[SentimentResult] = []
        for position, item in enumerate(items):
            try:
                results.append(processor(item))
            except Exception as exc:
                logger.warning("Single item retry %d failed: %s", position, describe_error(exc))
                monitoring.emit_counter("sentiment.item.fallback")
                results.append(neutral_fallback())
        return results
