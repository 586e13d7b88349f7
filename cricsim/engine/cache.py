"""
Memoized overs, keyed by a coarse signature of the match situation.
"""
import threading
from collections import OrderedDict
from typing import Hashable

from cricsim.config import settings
from cricsim.engine.context_analyzer import SimulationContext


def context_signature(context: SimulationContext, rrr_bucket: float = None) -> tuple:
    """
    Two contexts with the same signature are treated as the same situation:
    phase, required-rate bucket, wickets in hand, who is on strike, who is
    bowling and whether it is a free hit.
    """
    bucket = rrr_bucket or settings.RRR_BUCKET
    rrr = None
    if context.required_run_rate is not None:
        rrr = int(round(context.required_run_rate / bucket))
    return (
        context.phase.value,
        rrr,
        context.wickets_in_hand,
        context.striker.id,
        context.bowler.id,
        context.is_free_hit,
    )


class OverCache:
    """
    Thread-safe LRU store shared by every match in the process.
    Entries never expire by time, only by eviction.
    """

    def __init__(self, max_size: int = None, rrr_bucket: float = None):
        self.max_size = max_size or settings.CACHE_SIZE
        self.rrr_bucket = rrr_bucket or settings.RRR_BUCKET
        self._entries: OrderedDict = OrderedDict()
        self._lock = threading.RLock()
        self.hits = 0
        self.misses = 0

    def key_for(self, context: SimulationContext) -> tuple:
        return context_signature(context, self.rrr_bucket)

    def get(self, key: Hashable):
        with self._lock:
            if key in self._entries:
                self._entries.move_to_end(key)
                self.hits += 1
                return self._entries[key]
            self.misses += 1
            return None

    def contains(self, key: Hashable) -> bool:
        """Peek without touching recency; an absent key counts as a miss"""
        with self._lock:
            if key in self._entries:
                return True
            self.misses += 1
            return False

    def put(self, key: Hashable, value) -> None:
        with self._lock:
            self._entries[key] = value
            self._entries.move_to_end(key)
            self._evict()

    def put_if_absent(self, key: Hashable, value):
        """Insert unless present. Returns whichever value ends up stored."""
        with self._lock:
            existing = self._entries.get(key)
            if existing is not None:
                return existing
            self._entries[key] = value
            self._evict()
            return value

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self.hits = 0
            self.misses = 0

    def _evict(self) -> None:
        while len(self._entries) > self.max_size:
            self._entries.popitem(last=False)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def stats(self) -> dict:
        with self._lock:
            return {
                "hits": self.hits,
                "misses": self.misses,
                "size": len(self._entries),
                "max_size": self.max_size,
            }
