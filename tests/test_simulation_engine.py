"""
Tests for the strategy chain.
"""
import logging
import random
from unittest.mock import MagicMock

import pytest

from cricsim.config import Settings
from cricsim.engine.cache import OverCache
from cricsim.engine.match_state import MatchStateMachine
from cricsim.engine.simulation_engine import SimulationEngine, build_default_engine
from cricsim.engine.strategies import (
    AiStrategy,
    CacheStrategy,
    OverResult,
    OverStrategy,
    RuleBasedStrategy,
    StatisticalStrategy,
    TemplateStrategy,
)
from cricsim.errors import ChainExhaustedError, InvalidInputError, StrategyError
from cricsim.models import Delivery, WicketType
from tests.factories import create_test_match, make_context


class StubStrategy(OverStrategy):
    """Configurable strategy for chain tests"""

    def __init__(self, name="Stub", handles=True, result=None, error=None, handle_error=None, cacheable=True):
        self.name = name
        self.handles = handles
        self.result = result
        self.error = error
        self.handle_error = handle_error
        self.cacheable = cacheable
        self.calls = 0

    def can_handle(self, context):
        if self.handle_error:
            raise self.handle_error
        return self.handles

    def simulate_over(self, context):
        self.calls += 1
        if self.error:
            raise self.error
        return self.result


def singles_over(strategy="Stub") -> OverResult:
    return OverResult(deliveries=tuple([Delivery.scoring(1)] * 6), strategy=strategy)


def history_context():
    match = create_test_match(with_history=True)
    MatchStateMachine().start_match(match)
    return make_context(match)


class TestChainOrder:
    """Strict priority with fall-through"""

    def test_first_accepting_strategy_wins(self):
        """Verify the first strategy that accepts produces the over."""
        first = StubStrategy("First", result=singles_over("First"))
        second = StubStrategy("Second", result=singles_over("Second"))
        result = SimulationEngine([first, second]).simulate_over(make_context())
        assert result.strategy == "First"
        assert second.calls == 0

    def test_declined_strategy_skipped(self):
        """Verify a declining strategy is never asked to simulate."""
        first = StubStrategy("First", handles=False)
        second = StubStrategy("Second", result=singles_over("Second"))
        assert SimulationEngine([first, second]).simulate_over(make_context()).strategy == "Second"
        assert first.calls == 0

    def test_failure_falls_through_to_statistical(self):
        """Verify a cache miss and a failing model hand the over to the statistical strategy."""
        context = history_context()
        cache = OverCache(max_size=10)
        model = MagicMock()
        model.generate_over.side_effect = RuntimeError("model unavailable")
        engine = SimulationEngine(
            [
                CacheStrategy(cache),
                AiStrategy(model=model, complexity_threshold=0, timeout=5),
                StatisticalStrategy(random.Random(11)),
            ],
            cache=cache,
        )
        try:
            result = engine.simulate_over(context)
        finally:
            engine.close()

        expected = StatisticalStrategy(random.Random(11)).simulate_over(context)
        assert result == expected
        assert result.strategy == "Statistical"
        model.generate_over.assert_called_once()
        assert cache.misses == 1
        assert cache.hits == 0
        assert len(cache) == 1

    def test_unexpected_exception_falls_through(self):
        """Verify any exception from a strategy falls through."""
        failing = StubStrategy("Broken", error=KeyError("boom"))
        result = SimulationEngine([failing, RuleBasedStrategy(rng=random.Random(1))]).simulate_over(make_context())
        assert result.strategy == "RuleBased"

    def test_can_handle_error_counts_as_decline(self):
        """Verify an error in can_handle counts as a decline."""
        broken = StubStrategy("Broken", handle_error=RuntimeError("bad state"), result=singles_over())
        result = SimulationEngine([broken, RuleBasedStrategy(rng=random.Random(1))]).simulate_over(make_context())
        assert result.strategy == "RuleBased"
        assert broken.calls == 0

    def test_illegal_over_rejected(self):
        """Verify a short over is discarded."""
        short = OverResult(deliveries=tuple([Delivery.dot()] * 5), strategy="Short")
        engine = SimulationEngine([StubStrategy("Short", result=short), TemplateStrategy(rng=random.Random(1))])
        assert engine.simulate_over(make_context()).strategy == "Template"

    def test_free_hit_violation_rejected(self):
        """Verify a bowled dismissal on a free hit is discarded."""
        bad = OverResult(deliveries=(Delivery.wicket(WicketType.BOWLED),) + (Delivery.dot(),) * 5, strategy="Bad")
        engine = SimulationEngine([StubStrategy("Bad", result=bad), RuleBasedStrategy(rng=random.Random(1))])
        assert engine.simulate_over(make_context(is_free_hit=True)).strategy == "RuleBased"

    def test_exhausted_chain_raises(self):
        """Verify ChainExhaustedError when nothing produces an over."""
        engine = SimulationEngine([
            StubStrategy("A", handles=False),
            StubStrategy("B", error=StrategyError("nope")),
        ])
        with pytest.raises(ChainExhaustedError):
            engine.simulate_over(make_context())

    def test_empty_chain_rejected(self):
        """Verify an engine needs at least one strategy."""
        with pytest.raises(InvalidInputError):
            SimulationEngine([])

    def test_failures_logged(self, caplog):
        """Verify fall-throughs are logged as warnings and the chosen strategy at INFO."""
        failing = StubStrategy("Flaky", error=StrategyError("timed out"))
        engine = SimulationEngine([failing, RuleBasedStrategy(rng=random.Random(1))])
        with caplog.at_level(logging.INFO, logger="cricsim.engine.simulation_engine"):
            engine.simulate_over(make_context())
        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert any("Flaky" in r.getMessage() for r in warnings)
        assert any("RuleBased" in r.getMessage() for r in caplog.records if r.levelno == logging.INFO)


class TestCaching:
    """Successful overs are memoized"""

    def test_result_cached_and_replayed(self):
        """Verify a simulated over is served from the cache next time."""
        cache = OverCache(max_size=10)
        template = TemplateStrategy(rng=random.Random(2))
        engine = SimulationEngine([CacheStrategy(cache), template], cache=cache)
        context = make_context()

        first = engine.simulate_over(context)
        second = engine.simulate_over(context)
        assert first.strategy == "Template"
        assert second.strategy == "Cache"
        assert second.deliveries == first.deliveries
        assert len(cache) == 1

    def test_non_cacheable_not_stored(self):
        """Verify non-cacheable strategies do not fill the cache."""
        cache = OverCache(max_size=10)
        engine = SimulationEngine([StubStrategy("Special", result=singles_over(), cacheable=False)], cache=cache)
        engine.simulate_over(make_context())
        assert len(cache) == 0

    def test_existing_entry_kept(self):
        """Verify a cached over is not overwritten."""
        cache = OverCache(max_size=10)
        context = make_context()
        original = singles_over("Earlier")
        cache.put(cache.key_for(context), original)

        engine = SimulationEngine([StubStrategy("Later", result=singles_over("Later"))], cache=cache)
        engine.simulate_over(context)
        assert cache.get(cache.key_for(context)) is original


class TestDefaultEngine:
    """Standard wiring"""

    def test_chain_order(self):
        """Verify the default chain order."""
        engine = build_default_engine(use_ai=False, rng=random.Random(1))
        names = [s.name for s in engine.strategies]
        assert names == ["SpecialPlayer", "Cache", "AI", "Statistical", "Template", "RuleBased"]
        assert engine.cache is not None

    def test_no_ai_without_key(self):
        """Verify the AI strategy has no model without an API key."""
        config = Settings()
        config.OPENAI_API_KEY = ""
        engine = build_default_engine(config=config, rng=random.Random(1))
        ai = engine.strategies[2]
        assert ai.model is None
        assert not ai.can_handle(make_context(complexity=10))

    def test_model_passed_in(self):
        """Verify an injected model reaches the AI strategy."""
        model = MagicMock()
        engine = build_default_engine(model=model, rng=random.Random(1))
        assert engine.strategies[2].model is model
        engine.close()

    def test_shared_cache(self):
        """Verify the engine uses the cache it is given."""
        cache = OverCache(max_size=3)
        engine = build_default_engine(cache=cache, use_ai=False)
        assert engine.cache is cache
        assert engine.strategies[1].cache is cache
