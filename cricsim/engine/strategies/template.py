import random

from cricsim.engine.context_analyzer import Phase, SimulationContext
from cricsim.engine.patterns import OVER_PATTERNS, OverPattern, PatternVariation
from cricsim.engine.strategies.base import OverBuilder, OverResult, OverStrategy

SET_BATTER_BALLS = 20
SET_BATTER_OVERRIDE_CHANCE = 0.3


class TemplateStrategy(OverStrategy):
    """
    Picks a canned over pattern for the phase, weighted by pressure and
    momentum, then shuffles it. Used when neither the striker nor the bowler
    has any history to sample from.
    """
    name = "Template"

    def __init__(self, patterns: list[OverPattern] = None, rng: random.Random = None):
        self.patterns = patterns or OVER_PATTERNS
        self.rng = rng or random.Random()

    def can_handle(self, context: SimulationContext) -> bool:
        return not context.striker.has_history and not context.bowler.has_history

    def context_tags(self, context: SimulationContext) -> list[str]:
        tags = [context.phase.value]
        if context.rrr > 10:
            tags.append("high_rrr")
        if context.dot_ball_pressure > 3 or context.pressure_index >= 0.65:
            tags.append("pressure")
        if context.momentum.batting > 5:
            tags.append("batting_momentum")
        if context.momentum.bowling > 5:
            tags.append("bowling_momentum")
        return tags

    def applicable_patterns(self, context: SimulationContext) -> list[OverPattern]:
        patterns = [p for p in self.patterns if context.phase.value in p.tags]
        if context.phase == Phase.MIDDLE:
            patterns += [p for p in self.patterns if "normal" in p.tags and p not in patterns]
        return patterns or list(self.patterns)

    def pattern_weights(self, context: SimulationContext, patterns: list[OverPattern]) -> list[float]:
        weights = []
        for pattern in patterns:
            weight = pattern.base_weight
            if context.rrr > 10 and "pressure" in pattern.tags:
                weight *= 1.5
            if context.rrr > 12 and "death" in pattern.tags:
                weight *= 1.2
            if context.momentum.batting > 5 and "momentum-swing" in pattern.tags:
                weight *= 1.5
            if context.momentum.bowling > 5 and "pressure" in pattern.tags:
                weight *= 1.5
            if context.striker.balls_faced > SET_BATTER_BALLS and "momentum-swing" in pattern.tags:
                weight *= 1.5
            weights.append(weight)
        return weights

    def select_variation(self, pattern: OverPattern, tags: list[str]) -> PatternVariation:
        """Variation sharing the most tags with the situation; ties broken at random"""
        best = []
        best_score = -1
        for variation in pattern.variations:
            score = len(set(variation.context_tags) & set(tags))
            if score > best_score:
                best, best_score = [variation], score
            elif score == best_score:
                best.append(variation)
        return self.rng.choice(best)

    def simulate_over(self, context: SimulationContext) -> OverResult:
        tags = self.context_tags(context)

        # A set batter sometimes takes the game on regardless of the situation
        if context.striker.balls_faced > SET_BATTER_BALLS and self.rng.random() < SET_BATTER_OVERRIDE_CHANCE:
            swings = [p for p in self.patterns if "momentum-swing" in p.tags] or self.patterns
            pattern = self.rng.choice(swings)
            commentary = f"Set batsman override: {pattern.description}"
            weights = []
        else:
            patterns = self.applicable_patterns(context)
            weights = self.pattern_weights(context, patterns)
            pattern = self.rng.choices(patterns, weights=weights)[0]
            commentary = f"Template simulation: {pattern.description}"
            weights = [{"id": p.id, "weight": w} for p, w in zip(patterns, weights)]

        variation = self.select_variation(pattern, tags)
        outcomes = list(variation.outcomes)
        self.rng.shuffle(outcomes)

        builder = OverBuilder(context, self.rng)
        builder.extend(outcomes)
        return OverResult(
            deliveries=builder.build(),
            strategy=self.name,
            commentary=commentary,
            debug={"pattern": pattern.id, "weights": weights, "tags": tags},
        )
