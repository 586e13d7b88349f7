from cricsim.engine.strategies.base import MAX_WICKETS_PER_OVER, OverBuilder, OverResult, OverStrategy
from cricsim.engine.strategies.special_player import SpecialPlayerStrategy
from cricsim.engine.strategies.cache_strategy import CacheStrategy
from cricsim.engine.strategies.ai import AiStrategy
from cricsim.engine.strategies.statistical import StatisticalStrategy
from cricsim.engine.strategies.template import TemplateStrategy
from cricsim.engine.strategies.rule_based import RuleBasedStrategy

__all__ = [
    "MAX_WICKETS_PER_OVER",
    "OverBuilder",
    "OverResult",
    "OverStrategy",
    "SpecialPlayerStrategy",
    "CacheStrategy",
    "AiStrategy",
    "StatisticalStrategy",
    "TemplateStrategy",
    "RuleBasedStrategy",
]
