# jobmatch/services/fallback.py
"""
Batch -> sequential singles -> skip-and-log.

Each batch gets one batched provider call. If that call fails, or answers
with a different number of vectors than it was given, the batch is redone
one item at a time; an item whose own call fails too is skipped. Batches
and singles both run sequentially.
"""
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Generic, Sequence, TypeVar

import numpy as np

from jobmatch.core.errors import MatchingError

log = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class BatchOutcome(Generic[T]):
    succeeded: list[tuple[T, np.ndarray]] = field(default_factory=list)
    skipped: list[tuple[T, str]] = field(default_factory=list)
    batches: int = 0
    degraded_batches: int = 0


class BatchFallbackPolicy:
    def __init__(self, batch_size: int = 500, delay: float = 0.0, sleep: Callable[[float], None] = time.sleep):
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        self.batch_size = batch_size
        self.delay = delay
        self._sleep = sleep

    def chunks(self, items: Sequence[T]) -> list[Sequence[T]]:
        return [items[i:i + self.batch_size] for i in range(0, len(items), self.batch_size)]

    def run(
        self,
        items: Sequence[T],
        to_text: Callable[[T], str],
        embed_batch: Callable[[list[str]], list[np.ndarray]],
        embed_one: Callable[[str], np.ndarray],
        label: Callable[[T], str] = str,
    ) -> BatchOutcome[T]:
        out: BatchOutcome[T] = BatchOutcome()
        for n, chunk in enumerate(self.chunks(items)):
            if n and self.delay > 0:
                self._sleep(self.delay)
            out.batches += 1
            texts = [to_text(x) for x in chunk]

            vecs = None
            try:
                vecs = embed_batch(texts)
                if len(vecs) != len(chunk):
                    log.warning("batch %d: asked for %d embeddings, got %d; retrying one by one",
                                n, len(chunk), len(vecs))
                    vecs = None
            except MatchingError as e:
                log.warning("batch %d failed (%s); retrying one by one", n, e)

            if vecs is not None:
                out.succeeded.extend(zip(chunk, vecs))
                continue

            out.degraded_batches += 1
            for item, text in zip(chunk, texts):
                try:
                    out.succeeded.append((item, embed_one(text)))
                except MatchingError as e:
                    log.error("skipping %s: %s", label(item), e)
                    out.skipped.append((item, str(e)))
        return out
