import random

from cricsim.engine.context_analyzer import SimulationContext
from cricsim.engine.probabilities import TRANSITION_MATRICES, Outcome
from cricsim.engine.strategies.base import OverBuilder, OverResult, OverStrategy, weighted_outcome

# League-average per-ball rates the player's history is compared against
BASELINE_BOUNDARY_RATE = 0.15
BASELINE_DISMISSAL_RATE = 0.05
BASELINE_WICKET_RATE = 0.05


def _ratio(value: float, baseline: float) -> float:
    return max(0.5, min(2.0, value / baseline))


class StatisticalStrategy(OverStrategy):
    """
    Samples each ball from the phase's transition matrix, reshaped by the
    situation and by the striker's and bowler's recorded history.
    """
    name = "Statistical"

    def __init__(self, rng: random.Random = None):
        self.rng = rng or random.Random()

    def can_handle(self, context: SimulationContext) -> bool:
        return context.striker.has_history or context.bowler.has_history

    def outcome_weights(self, context: SimulationContext) -> dict:
        probs = dict(TRANSITION_MATRICES[context.phase])

        # Pressure adjustments
        if context.rrr > 12:
            probs[Outcome.FOUR] *= 1.2
            probs[Outcome.SIX] *= 1.5
            probs[Outcome.WICKET] *= 1.3
        if context.dot_ball_pressure > 3:
            probs[Outcome.WICKET] *= 1.2
            probs[Outcome.SINGLE] *= 1.1

        # Momentum adjustments
        if context.momentum.batting > 5:
            probs[Outcome.FOUR] *= 1.2
            probs[Outcome.SIX] *= 1.2
        if context.momentum.bowling > 5:
            probs[Outcome.WICKET] *= 1.2
            probs[Outcome.DOT] *= 1.1

        # Striker history
        career = context.striker.career
        if career is not None and career.has_batting:
            boundary = _ratio(career.boundary_rate, BASELINE_BOUNDARY_RATE)
            probs[Outcome.FOUR] *= boundary
            probs[Outcome.SIX] *= boundary
            probs[Outcome.WICKET] *= _ratio(career.dismissal_rate, BASELINE_DISMISSAL_RATE)
            probs[Outcome.SINGLE] *= context.striker_form
            probs[Outcome.DOUBLE] *= context.striker_form
            probs[Outcome.DOT] /= context.striker_form

        # Bowler history
        career = context.bowler.career
        if career is not None and career.has_bowling:
            probs[Outcome.WICKET] *= _ratio(career.wicket_rate, BASELINE_WICKET_RATE)
            probs[Outcome.DOT] *= context.bowler_form
            probs[Outcome.FOUR] /= context.bowler_form
            probs[Outcome.SIX] /= context.bowler_form

        # Intent: 5 is neutral
        intent = 1 + (context.effective_aggression - 5) * 0.06
        probs[Outcome.FOUR] *= intent
        probs[Outcome.SIX] *= intent
        probs[Outcome.WICKET] *= intent
        probs[Outcome.DOT] /= intent

        total = sum(probs.values())
        return {outcome: p / total for outcome, p in probs.items()}

    def simulate_over(self, context: SimulationContext) -> OverResult:
        weights = self.outcome_weights(context)
        builder = OverBuilder(context, self.rng)
        while not builder.complete:
            builder.add(weighted_outcome(self.rng, weights))

        return OverResult(
            deliveries=builder.build(),
            strategy=self.name,
            commentary="An over simulated using statistical probabilities.",
            cost=0.001,
            debug={"weights": {o.value: round(p, 4) for o, p in weights.items()}},
        )
