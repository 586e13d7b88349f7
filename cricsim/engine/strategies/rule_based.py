import random

from cricsim.engine.context_analyzer import SimulationContext
from cricsim.engine.probabilities import RULE_TABLE, PressureBand
from cricsim.engine.strategies.base import OverBuilder, OverResult, OverStrategy, weighted_outcome


class RuleBasedStrategy(OverStrategy):
    """
    Last resort. Looks up a fixed distribution by phase and pressure band
    and always produces a legal over.
    """
    name = "RuleBased"

    def __init__(self, table: dict = None, rng: random.Random = None):
        self.table = table or RULE_TABLE
        self.rng = rng or random.Random()

    def can_handle(self, context: SimulationContext) -> bool:
        return True

    def simulate_over(self, context: SimulationContext) -> OverResult:
        band = PressureBand.of(context.pressure_index)
        weights = self.table[(context.phase, band)]

        builder = OverBuilder(context, self.rng)
        while not builder.complete:
            builder.add(weighted_outcome(self.rng, weights))

        return OverResult(
            deliveries=builder.build(),
            strategy=self.name,
            commentary=f"Rule-based simulation: {context.phase.value} overs, {band.value} pressure",
            debug={"phase": context.phase.value, "band": band.value},
        )
