from cricsim.engine.cache import OverCache
from cricsim.engine.context_analyzer import SimulationContext
from cricsim.engine.strategies.base import OverResult, OverStrategy
from cricsim.errors import CacheMissError


class CacheStrategy(OverStrategy):
    """Replays an over memoized for the same situation. Declines on a miss."""
    name = "Cache"
    cacheable = False

    def __init__(self, cache: OverCache):
        self.cache = cache

    def can_handle(self, context: SimulationContext) -> bool:
        return self.cache.contains(self.cache.key_for(context))

    def simulate_over(self, context: SimulationContext) -> OverResult:
        key = self.cache.key_for(context)
        cached = self.cache.get(key)
        if cached is None:
            # Evicted between can_handle and now
            raise CacheMissError(f"No cached over for {key}")

        return cached.replace(
            strategy=self.name,
            commentary=f"[Cached] {cached.commentary}",
            cost=0.0,
            debug={**cached.debug, "cache_key": key, "source": cached.strategy},
        )
