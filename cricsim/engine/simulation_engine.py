"""
Over simulation: a fixed chain of strategies, tried in order.

The first strategy that accepts the situation and returns a legal over wins.
Anything a strategy raises is logged and the next one is tried, so callers
only ever see a valid OverResult or ChainExhaustedError.
"""
import logging
import random
from typing import Optional, Sequence

from cricsim.config import Settings, settings
from cricsim.engine.cache import OverCache
from cricsim.engine.context_analyzer import SimulationContext
from cricsim.engine.llm_client import OverModel, create_over_model
from cricsim.engine.strategies import (
    AiStrategy,
    CacheStrategy,
    OverResult,
    OverStrategy,
    RuleBasedStrategy,
    SpecialPlayerStrategy,
    StatisticalStrategy,
    TemplateStrategy,
)
from cricsim.errors import ChainExhaustedError, InvalidInputError
from cricsim.validators.delivery_validator import OverValidator

logger = logging.getLogger(__name__)


class SimulationEngine:

    def __init__(self, strategies: Sequence[OverStrategy], cache: Optional[OverCache] = None):
        if not strategies:
            raise InvalidInputError("A simulation engine needs at least one strategy")
        self.strategies = list(strategies)
        self.cache = cache

    def simulate_over(self, context: SimulationContext) -> OverResult:
        failures = []
        for strategy in self.strategies:
            try:
                accepted = strategy.can_handle(context)
            except Exception as exc:
                logger.warning("%s.can_handle raised %s: %s, skipping", strategy.name, type(exc).__name__, exc)
                failures.append(f"{strategy.name}: can_handle raised {exc}")
                continue
            if not accepted:
                continue

            try:
                result = strategy.simulate_over(context)
            except Exception as exc:
                logger.warning("%s failed: %s: %s, falling through", strategy.name, type(exc).__name__, exc)
                failures.append(f"{strategy.name}: {exc}")
                continue

            check = OverValidator.validate(result.deliveries, context.is_free_hit, context.fielder_ids)
            if not check["valid"]:
                logger.warning("%s produced an illegal over: %s", strategy.name, "; ".join(check["errors"]))
                failures.append(f"{strategy.name}: illegal over")
                continue

            if self.cache is not None and strategy.cacheable:
                self.cache.put_if_absent(self.cache.key_for(context), result)

            logger.info(
                "%s over %d.%d simulated by %s: %s",
                context.match_id, context.innings_number, context.over + 1, strategy.name, result.display,
            )
            return result

        raise ChainExhaustedError(
            f"No strategy produced an over for {context.match_id} "
            f"(innings {context.innings_number}, over {context.over + 1}): {failures or 'all declined'}"
        )

    def close(self) -> None:
        for strategy in self.strategies:
            close = getattr(strategy, "close", None)
            if close is not None:
                close()


def build_default_strategies(
    cache: OverCache,
    model: Optional[OverModel] = None,
    rng: random.Random = None,
    config: Settings = settings,
) -> list[OverStrategy]:
    """The standard chain, highest priority first"""
    rng = rng or random.Random()
    return [
        SpecialPlayerStrategy(rng=rng),
        CacheStrategy(cache),
        AiStrategy(
            model=model,
            complexity_threshold=config.AI_COMPLEXITY_THRESHOLD,
            lookahead=config.AI_LOOKAHEAD,
            timeout=config.AI_TIMEOUT,
        ),
        StatisticalStrategy(rng=rng),
        TemplateStrategy(rng=rng),
        RuleBasedStrategy(rng=rng),
    ]


def build_default_engine(
    config: Settings = settings,
    cache: Optional[OverCache] = None,
    model: Optional[OverModel] = None,
    rng: random.Random = None,
    use_ai: bool = True,
) -> SimulationEngine:
    """
    Wire the standard chain around a shared cache. With use_ai on and no
    model passed in, one is created from the configured API key (if any).
    """
    cache = cache if cache is not None else OverCache(config.CACHE_SIZE, config.RRR_BUCKET)
    if use_ai and model is None:
        model = create_over_model(config)
    if not use_ai:
        model = None
    return SimulationEngine(build_default_strategies(cache, model, rng, config), cache=cache)
