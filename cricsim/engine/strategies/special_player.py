import random

from cricsim.engine.context_analyzer import SimulationContext
from cricsim.engine.probabilities import SPECIAL_PROFILES, TRANSITION_MATRICES
from cricsim.engine.strategies.base import OverBuilder, OverResult, OverStrategy, weighted_outcome


class SpecialPlayerStrategy(OverStrategy):
    """
    Hand-tuned overs for known standout players.

    A special bowler shapes every ball of their over. Otherwise a special
    striker shapes the balls they face; strike is followed ball by ball, so
    once they are off strike the phase's normal distribution applies.
    """
    name = "SpecialPlayer"
    cacheable = False

    def __init__(self, profiles: dict = None, rng: random.Random = None):
        self.profiles = profiles or SPECIAL_PROFILES
        self.rng = rng or random.Random()

    def _profile(self, name):
        return self.profiles.get(name) if name else None

    def can_handle(self, context: SimulationContext) -> bool:
        return (
            self._profile(context.striker_profile) is not None
            or self._profile(context.bowler_profile) is not None
        )

    def simulate_over(self, context: SimulationContext) -> OverResult:
        builder = OverBuilder(context, self.rng)
        bowler_profile = self._profile(context.bowler_profile)
        default_weights = TRANSITION_MATRICES[context.phase]
        sources = []

        while not builder.complete:
            if bowler_profile is not None:
                weights = bowler_profile["bowling"]
                sources.append(f"bowler:{context.bowler_profile}")
            else:
                profile_name = context.special_players.get(builder.on_strike) if builder.on_strike else None
                batting_profile = self._profile(profile_name)
                if batting_profile is not None:
                    weights = batting_profile["batting"]
                    sources.append(f"striker:{profile_name}")
                else:
                    weights = default_weights
                    sources.append("phase")
            builder.add(weighted_outcome(self.rng, weights))

        who = context.bowler.name if bowler_profile is not None else context.striker.name
        return OverResult(
            deliveries=builder.build(),
            strategy=self.name,
            commentary=f"Special player simulation: {who}",
            debug={"sources": sources},
        )
