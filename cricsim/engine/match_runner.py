"""
Plays simulated overs into a match, one delivery at a time.
"""
import logging
import random
from dataclasses import dataclass, field
from typing import Optional

from cricsim.engine.context_analyzer import SpecialPlayerIds, analyze
from cricsim.engine.match_state import MatchStateMachine, select_bowler
from cricsim.engine.simulation_engine import SimulationEngine
from cricsim.engine.strategies import OverResult
from cricsim.errors import MatchStateError
from cricsim.models.match import Delivery, Match, MatchStatus

logger = logging.getLogger(__name__)


@dataclass
class PlayedOver:
    """What the engine produced for an over and how much of it was bowled"""
    innings_number: int
    over: int
    bowler_id: int
    result: OverResult
    applied: list[Delivery] = field(default_factory=list)

    @property
    def truncated(self) -> bool:
        """True when fewer deliveries were bowled than were simulated"""
        return len(self.applied) < len(self.result.deliveries)


class MatchRunner:
    """
    Drives a match with the simulation engine.

    The whole of play_over runs under the match lock, so a match is never
    simulated from a stale snapshot.
    """

    def __init__(
        self,
        engine: SimulationEngine,
        state_machine: MatchStateMachine = None,
        special_player_ids: SpecialPlayerIds = None,
        aggression: int = 5,
        rng: random.Random = None,
    ):
        self.engine = engine
        self.state_machine = state_machine or MatchStateMachine()
        self.special_player_ids = special_player_ids
        self.aggression = aggression
        self.rng = rng or random.Random()

    def play_over(self, match: Match) -> PlayedOver:
        with self.state_machine.lock_for(match):
            if match.status == MatchStatus.PENDING:
                self.state_machine.start_match(match)
            if match.status != MatchStatus.IN_PROGRESS:
                raise MatchStateError(f"Cannot play an over while the match is {match.status.value}")

            innings = match.current_innings
            if innings.current_bowler_id is None:
                self.state_machine.set_bowler(match, select_bowler(innings, self.rng).id)

            batting, bowling = innings.batting_team, innings.bowling_team
            bowler = bowling.get_player(innings.current_bowler_id)
            context = analyze(
                match,
                innings,
                batting,
                bowling,
                batting.get_player(innings.striker_id),
                batting.get_player(innings.non_striker_id),
                bowler,
                special_player_ids=self.special_player_ids,
                aggression=self.aggression,
            )
            result = self.engine.simulate_over(context)

            played = PlayedOver(innings.number, innings.overs, bowler.id, result)
            start_over = innings.overs
            for delivery in result.deliveries:
                self.state_machine.apply_ball(match, delivery)
                played.applied.append(delivery)
                # The rest of the over was simulated for a batter who is now out
                if delivery.is_wicket:
                    break
                # Stop at the end of the over (it may have started part-way
                # through), the end of the innings or the end of the match
                if match.status != MatchStatus.IN_PROGRESS or match.current_innings is not innings:
                    break
                if innings.overs != start_over:
                    break

            logger.debug(
                "%s over %d by %s: %s (%s)",
                match.id, played.over + 1, bowler.name, " ".join(d.display for d in played.applied), result.strategy,
            )
            return played

    def play_innings(self, match: Match) -> list[PlayedOver]:
        """Play overs until the current innings (or the match) ends"""
        with self.state_machine.lock_for(match):
            if match.status == MatchStatus.PENDING:
                self.state_machine.start_match(match)
            number = match.current_innings_number
            overs = []
            while match.status == MatchStatus.IN_PROGRESS and match.current_innings_number == number:
                overs.append(self.play_over(match))
            return overs

    def play_match(self, match: Match) -> Match:
        with self.state_machine.lock_for(match):
            if match.status == MatchStatus.PENDING:
                self.state_machine.start_match(match)
            while match.status == MatchStatus.IN_PROGRESS:
                self.play_over(match)
            return match
