import logging
import threading
import time
import uuid
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Dict, Mapping, Optional

from prob_quiz.errors import QuestionNotFound
from prob_quiz.services.normalizer import AnswerKey

logger = logging.getLogger(__name__)


DEFAULT_TTL_SECONDS = 30 * 60
DEFAULT_MAX_BATCHES = 1000
DEFAULT_SWEEP_INTERVAL_SECONDS = 60.0


@dataclass
class _Batch:
    items: Dict[str, AnswerKey]
    created_at: float
    touched_at: float


class QuestionStore:
    """
    An in-memory, expiring map from generation batches to their answer keys.

    Data model:
    {
        "<batch_id>": _Batch(items={"<question_id>": AnswerKey, ...}, ...),
        ...
    }

    Batches are write-once. A batch that is neither written nor read for
    `ttl_seconds` becomes unreachable and is purged on a later access. Nothing
    survives a process restart.
    """

    # PUBLIC_INTERFACE
    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        max_batches: int = DEFAULT_MAX_BATCHES,
        clock: Callable[[], float] = time.monotonic,
        sweep_interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS,
    ) -> None:
        """
        Initialize the store.

        Args:
            ttl_seconds: Idle time after which a batch expires.
            max_batches: Upper bound on live batches; the least recently used
                batch is evicted when a new one would exceed it.
            clock: Monotonic time source in seconds, injectable for tests.
            sweep_interval_seconds: Minimum time between full expiry sweeps.
        """
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        if max_batches < 1:
            raise ValueError("max_batches must be at least 1")
        self.ttl_seconds = ttl_seconds
        self.max_batches = max_batches
        self._clock = clock
        self._sweep_interval = sweep_interval_seconds
        self._batches: "OrderedDict[str, _Batch]" = OrderedDict()
        self._lock = threading.Lock()
        self._last_sweep = clock()

    # PUBLIC_INTERFACE
    def put(self, items: Mapping[str, AnswerKey]) -> str:
        """
        Store one batch of answer keys under a fresh identifier.

        Args:
            items: Mapping of question id to its answer key.

        Returns:
            str: The new batch identifier.
        """
        with self._lock:
            now = self._clock()
            self._maybe_sweep(now)
            batch_id = uuid.uuid4().hex
            while batch_id in self._batches:
                batch_id = uuid.uuid4().hex
            self._batches[batch_id] = _Batch(items=dict(items), created_at=now, touched_at=now)
            while len(self._batches) > self.max_batches:
                evicted, _ = self._batches.popitem(last=False)
                logger.info("Evicted batch %s to stay within %d batches", evicted, self.max_batches)
            return batch_id

    # PUBLIC_INTERFACE
    def get(self, batch_id: str, question_id: str) -> AnswerKey:
        """
        Look up the answer key of one question.

        Raises:
            QuestionNotFound: if the batch is unknown or expired, or the
                question is not part of it. The three cases are not told apart.
        """
        with self._lock:
            now = self._clock()
            self._maybe_sweep(now)
            batch = self._live_batch(str(batch_id), now)
            if batch is None:
                raise QuestionNotFound("question not found")
            batch.touched_at = now
            self._batches.move_to_end(str(batch_id))
            item = batch.items.get(str(question_id))
            if item is None:
                raise QuestionNotFound("question not found")
            return item

    def __len__(self) -> int:
        with self._lock:
            now = self._clock()
            return sum(1 for b in self._batches.values() if not self._expired(b, now))

    def _expired(self, batch: _Batch, now: float) -> bool:
        return now - batch.touched_at >= self.ttl_seconds

    def _live_batch(self, batch_id: str, now: float) -> Optional[_Batch]:
        batch = self._batches.get(batch_id)
        if batch is None:
            return None
        if self._expired(batch, now):
            del self._batches[batch_id]
            return None
        return batch

    def _maybe_sweep(self, now: float) -> None:
        """Drop every expired batch, at most once per sweep interval. Caller holds the lock."""
        if now - self._last_sweep < self._sweep_interval:
            return
        self._last_sweep = now
        expired = [bid for bid, batch in self._batches.items() if self._expired(batch, now)]
        for bid in expired:
            del self._batches[bid]
        if expired:
            logger.debug("Purged %d expired batches", len(expired))
