import random
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from typing import Optional, Union

from cricsim.engine.context_analyzer import SimulationContext
from cricsim.engine.probabilities import DISMISSAL_WEIGHTS, OUTCOME_RUNS, Outcome
from cricsim.models.match import Delivery, WicketType
from cricsim.schemas import OverBallSchema
from cricsim.validators.delivery_validator import BALLS_PER_OVER

MAX_WICKETS_PER_OVER = 3


@dataclass(frozen=True)
class OverResult:
    """A simulated over: six legal deliveries plus any wides and no-balls, in order"""
    deliveries: tuple[Delivery, ...]
    strategy: str
    commentary: str = ""
    cost: float = 0.0
    debug: dict = field(default_factory=dict, compare=False)

    @property
    def legal_count(self) -> int:
        return sum(1 for d in self.deliveries if d.is_legal)

    @property
    def runs(self) -> int:
        return sum(d.total_runs for d in self.deliveries)

    @property
    def wickets(self) -> int:
        return sum(1 for d in self.deliveries if d.is_wicket)

    @property
    def display(self) -> str:
        return " ".join(d.display for d in self.deliveries)

    def to_records(self) -> list[dict]:
        """Ball-shaped dicts: {event, runs, extras, wicketType?, fielderId?}"""
        return [
            OverBallSchema.model_validate(d.to_record()).model_dump(by_alias=True, exclude_none=True, mode="json")
            for d in self.deliveries
        ]

    def replace(self, **changes) -> "OverResult":
        return replace(self, **changes)


class OverStrategy(ABC):
    """
    One way of producing an over. The engine asks can_handle first and only
    then simulate_over; raising from simulate_over means "try the next one".
    """
    name: str = "base"
    # Results worth memoizing for identical situations
    cacheable: bool = True

    @abstractmethod
    def can_handle(self, context: SimulationContext) -> bool:
        pass

    @abstractmethod
    def simulate_over(self, context: SimulationContext) -> OverResult:
        pass

    def __repr__(self):
        return f"<{self.__class__.__name__}>"


class OverBuilder:
    """
    Turns sampled outcomes into deliveries that are legal in context.

    Tracks the free hit (a wicket other than a run out becomes a dot ball),
    picks fielders from the fielding side, keeps strike for strategies that
    care who is facing, and stops at six legal deliveries.
    """

    def __init__(self, context: SimulationContext, rng: random.Random):
        self.context = context
        self.rng = rng
        self.deliveries: list[Delivery] = []
        self.legal = 0
        self.wickets = 0
        self.free_hit = context.is_free_hit
        self.on_strike: Optional[int] = context.striker.id
        self.off_strike: Optional[int] = context.non_striker.id

    @property
    def complete(self) -> bool:
        return self.legal >= BALLS_PER_OVER

    def add(self, outcome: Union[Outcome, tuple], wicket_type: Optional[WicketType] = None) -> Optional[Delivery]:
        if self.complete:
            return None
        if isinstance(outcome, tuple):
            outcome, wicket_type = outcome

        delivery = self._to_delivery(outcome, wicket_type)
        self.deliveries.append(delivery)

        if delivery.is_legal:
            self.legal += 1
            self.free_hit = False
        elif outcome == Outcome.NO_BALL:
            self.free_hit = True

        if delivery.is_wicket:
            self.wickets += 1
            # the new batter is nobody we know about
            self.on_strike = None
        if delivery.running_runs % 2 == 1:
            self.on_strike, self.off_strike = self.off_strike, self.on_strike
        return delivery

    def extend(self, outcomes) -> None:
        for outcome in outcomes:
            if self.complete:
                break
            self.add(outcome)

    def fill(self, outcome: Outcome = Outcome.DOT) -> None:
        while not self.complete:
            self.add(outcome)

    def build(self) -> tuple[Delivery, ...]:
        self.fill()
        return tuple(self.deliveries)

    def _to_delivery(self, outcome: Outcome, wicket_type: Optional[WicketType]) -> Delivery:
        if outcome in OUTCOME_RUNS:
            return Delivery.scoring(OUTCOME_RUNS[outcome])
        if outcome == Outcome.WIDE:
            return Delivery.wide()
        if outcome == Outcome.NO_BALL:
            return Delivery.no_ball()
        if outcome == Outcome.BYE:
            return Delivery.bye()
        if outcome == Outcome.LEG_BYE:
            return Delivery.leg_bye()
        return self._wicket(wicket_type)

    def _wicket(self, wicket_type: Optional[WicketType]) -> Delivery:
        if self.wickets >= MAX_WICKETS_PER_OVER:
            # Batter survives a close call
            return Delivery.dot()

        if wicket_type is None:
            types = [t for t, _ in DISMISSAL_WEIGHTS]
            weights = [w for _, w in DISMISSAL_WEIGHTS]
            wicket_type = self.rng.choices(types, weights=weights)[0]

        if self.free_hit and wicket_type != WicketType.RUN_OUT:
            return Delivery.dot()

        fielder_id = None
        if wicket_type.needs_fielder:
            fielder_id = self._fielder_for(wicket_type)
            if fielder_id is None:
                if wicket_type == WicketType.RUN_OUT:
                    return Delivery.dot()
                wicket_type = WicketType.BOWLED
        return Delivery.wicket(wicket_type, fielder_id)

    def _fielder_for(self, wicket_type: WicketType) -> Optional[int]:
        context = self.context
        if wicket_type == WicketType.STUMPED and context.wicket_keeper_id is not None:
            return context.wicket_keeper_id
        if not context.fielder_ids:
            return None
        return self.rng.choice(context.fielder_ids)


def weighted_outcome(rng: random.Random, weights: dict) -> Outcome:
    outcomes = list(weights.keys())
    return rng.choices(outcomes, weights=[weights[o] for o in outcomes])[0]
