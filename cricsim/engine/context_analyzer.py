"""
Context analysis for over simulation.

Turns the live match state into a read-only SimulationContext. Strategies
only ever see the context, never the Match or Innings themselves.
"""
import copy
import enum
import logging
from dataclasses import dataclass, field
from typing import Iterable, Mapping, Optional, Union

from cricsim.errors import InvalidInputError
from cricsim.models.match import BallEvent, Innings, Match
from cricsim.models.player import CareerStats, Player, PlayerRole
from cricsim.models.team import Team

logger = logging.getLogger(__name__)

DEFAULT_SPECIAL_PROFILE = "marquee"

# Neutral reference points for the form multipliers
PAR_STRIKE_RATE = 125.0
PAR_ECONOMY = 8.0

SpecialPlayerIds = Union[Iterable[int], Mapping[int, str], None]


class Phase(enum.Enum):
    POWERPLAY = "powerplay"
    MIDDLE = "middle"
    DEATH = "death"


@dataclass(frozen=True)
class Momentum:
    """-10 (collapse / leaking runs) to +10 (dominant)"""
    batting: float = 0.0
    bowling: float = 0.0
    over: float = 0.0


@dataclass(frozen=True)
class PlayerSnapshot:
    id: int
    name: str
    rating: Optional[int] = None
    role: Optional[PlayerRole] = None
    runs: int = 0
    balls_faced: int = 0
    balls_bowled: int = 0
    runs_conceded: int = 0
    wickets: int = 0
    career: Optional[CareerStats] = None

    @property
    def has_history(self) -> bool:
        return self.career is not None and (self.career.has_batting or self.career.has_bowling)

    @classmethod
    def of(cls, player: Player) -> "PlayerSnapshot":
        return cls(
            id=player.id,
            name=player.name,
            rating=player.rating,
            role=player.role,
            runs=player.batting.runs,
            balls_faced=player.batting.balls_faced,
            balls_bowled=player.bowling.balls_bowled,
            runs_conceded=player.bowling.runs_conceded,
            wickets=player.bowling.wickets,
            career=copy.copy(player.career) if player.career is not None else None,
        )


@dataclass(frozen=True)
class SimulationContext:
    """Everything a strategy may know about the over it is asked to bowl"""
    match_id: str
    innings_number: int
    over: int
    ball: int
    total_overs: int
    phase: Phase

    score: int
    wickets: int
    balls_remaining: int
    target: Optional[int]
    runs_needed: Optional[int]
    required_run_rate: Optional[float]
    current_run_rate: float
    wickets_in_hand: int
    partnership_runs: int
    partnership_balls: int

    pressure_index: float
    momentum: Momentum
    complexity: int
    dot_ball_pressure: int
    boundary_pressure: int

    striker_form: float
    bowler_form: float
    aggression: int
    effective_aggression: float

    striker: PlayerSnapshot
    non_striker: PlayerSnapshot
    bowler: PlayerSnapshot
    batting_team_name: str
    bowling_team_name: str
    fielder_ids: tuple[int, ...] = ()
    wicket_keeper_id: Optional[int] = None
    special_players: dict[int, str] = field(default_factory=dict)
    is_free_hit: bool = False

    @property
    def overs_remaining(self) -> float:
        return self.balls_remaining / 6

    @property
    def is_chasing(self) -> bool:
        return self.target is not None

    @property
    def rrr(self) -> float:
        """Required rate, 0 when not chasing"""
        return self.required_run_rate or 0.0

    @property
    def striker_profile(self) -> Optional[str]:
        return self.special_players.get(self.striker.id)

    @property
    def non_striker_profile(self) -> Optional[str]:
        return self.special_players.get(self.non_striker.id)

    @property
    def bowler_profile(self) -> Optional[str]:
        return self.special_players.get(self.bowler.id)

    @property
    def has_special_player(self) -> bool:
        return self.striker_profile is not None or self.bowler_profile is not None


def _clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


def detect_phase(over: int, total_overs: int) -> Phase:
    """
    Powerplay is the first 30% of the overs, death the last 25%.
    For a T20 that gives overs 0-5, 6-14 and 15-19.
    """
    powerplay_overs = max(1, round(0.3 * total_overs))
    death_overs = max(1, round(0.25 * total_overs))
    if over < powerplay_overs:
        return Phase.POWERPLAY
    if over >= total_overs - death_overs:
        return Phase.DEATH
    return Phase.MIDDLE


def track_momentum(innings: Innings) -> Momentum:
    """Momentum over the last 12 deliveries, and the last 6 for the over itself"""
    timeline = innings.timeline
    batting = bowling = over = 0.0

    for ball in timeline[-12:]:
        if ball.event == BallEvent.RUN and ball.runs >= 4:
            batting += ball.runs
        if ball.is_wicket:
            bowling += 10
        elif ball.event == BallEvent.RUN and ball.runs == 0:
            bowling += 1
        elif ball.event == BallEvent.RUN and ball.runs == 1:
            batting += 0.5
            bowling -= 0.5

    for ball in timeline[-6:]:
        if ball.event == BallEvent.RUN and ball.runs >= 4:
            over += ball.runs
        if ball.is_wicket:
            over -= 5
        elif ball.event == BallEvent.RUN and ball.runs == 0:
            over -= 1

    return Momentum(
        batting=_clamp(batting, -10, 10),
        bowling=_clamp(bowling, -10, 10),
        over=_clamp(over, -10, 10),
    )


def calculate_complexity(
    phase: Phase,
    required_run_rate: Optional[float],
    wickets_in_hand: int,
    momentum: Momentum,
) -> int:
    """How hard the situation is to simulate believably, 1-10"""
    complexity = 1

    if phase == Phase.DEATH:
        complexity += 3
    elif phase == Phase.POWERPLAY:
        complexity += 1

    rrr = required_run_rate or 0.0
    if rrr > 12:
        complexity += 2
    if rrr > 15:
        complexity += 1
    if wickets_in_hand <= 3:
        complexity += 2

    if abs(momentum.batting) > 7:
        complexity += 1

    return int(_clamp(complexity, 1, 10))


def calculate_pressure(innings: Innings, required_run_rate: Optional[float]) -> float:
    wickets_lost = innings.wickets / innings.max_wickets if innings.max_wickets else 0.0
    total_balls = innings.overs_limit * 6
    balls_used = innings.legal_balls / total_balls if total_balls else 0.0

    chase = 0.0
    if required_run_rate is not None:
        chase = _clamp((required_run_rate - innings.run_rate) / 12)

    return round(_clamp(0.45 * wickets_lost + 0.25 * balls_used + 0.30 * chase), 4)


def _dot_ball_pressure(innings: Innings) -> int:
    """Consecutive dot balls at the end of the timeline"""
    count = 0
    for ball in reversed(innings.timeline):
        if ball.event == BallEvent.RUN and ball.runs == 0:
            count += 1
        else:
            break
    return count


def _boundary_pressure(innings: Innings) -> int:
    """Legal balls since the last boundary"""
    count = 0
    for ball in reversed(innings.timeline):
        if ball.event == BallEvent.RUN and ball.runs in (4, 6):
            break
        if ball.delivery.is_legal:
            count += 1
    return count


def _striker_form(player: Player) -> float:
    if player.career is None or not player.career.has_batting:
        return 1.0
    return round(_clamp(player.career.strike_rate / PAR_STRIKE_RATE, 0.5, 1.5), 3)


def _bowler_form(player: Player) -> float:
    if player.career is None or not player.career.has_bowling:
        return 1.0
    if player.career.economy == 0:
        return 1.5
    return round(_clamp(PAR_ECONOMY / player.career.economy, 0.5, 1.5), 3)


def _effective_aggression(
    aggression: int,
    phase: Phase,
    required_run_rate: Optional[float],
    current_run_rate: float,
    wickets_in_hand: int,
) -> float:
    value = float(aggression)
    if phase == Phase.POWERPLAY:
        value += 0.5
    elif phase == Phase.DEATH:
        value += 1.5

    if required_run_rate is not None:
        if required_run_rate > current_run_rate + 2:
            value += 1
        if required_run_rate > 12:
            value += 1

    if wickets_in_hand <= 3:
        value -= 2

    return _clamp(value, 0, 10)


def normalize_special_players(special_player_ids: SpecialPlayerIds) -> dict[int, str]:
    """A bare collection of ids gets the default profile for everyone"""
    if special_player_ids is None:
        return {}
    if isinstance(special_player_ids, Mapping):
        return {int(pid): str(profile) for pid, profile in special_player_ids.items()}
    return {int(pid): DEFAULT_SPECIAL_PROFILE for pid in special_player_ids}


def _validate_references(
    match: Match,
    innings: Innings,
    batting_team: Team,
    bowling_team: Team,
    striker: Player,
    non_striker: Player,
    bowler: Player,
    aggression: int,
) -> None:
    if not any(i is innings for i in match.innings):
        raise InvalidInputError("Innings does not belong to this match")
    if batting_team.id != innings.batting_team.id:
        raise InvalidInputError(f"{batting_team.name} is not batting in this innings")
    if bowling_team.id != innings.bowling_team.id:
        raise InvalidInputError(f"{bowling_team.name} is not bowling in this innings")
    if not batting_team.has_player(striker.id):
        raise InvalidInputError(f"Striker {striker.name} is not in {batting_team.name}")
    if not batting_team.has_player(non_striker.id):
        raise InvalidInputError(f"Non-striker {non_striker.name} is not in {batting_team.name}")
    if striker.id == non_striker.id:
        raise InvalidInputError("Striker and non-striker must be different players")
    if not bowling_team.has_player(bowler.id):
        raise InvalidInputError(f"Bowler {bowler.name} is not in {bowling_team.name}")
    if not 0 <= aggression <= 10:
        raise InvalidInputError(f"Aggression must be between 0 and 10, got {aggression}")


def analyze(
    match: Match,
    innings: Innings,
    batting_team: Team,
    bowling_team: Team,
    striker: Player,
    non_striker: Player,
    bowler: Player,
    special_player_ids: SpecialPlayerIds = None,
    aggression: int = 5,
) -> SimulationContext:
    """
    Build the context for the next over of `innings`.

    Pure: reads the state and never touches it. Missing history falls back to
    neutral values. Broken references raise InvalidInputError.
    """
    _validate_references(match, innings, batting_team, bowling_team, striker, non_striker, bowler, aggression)

    phase = detect_phase(innings.overs, innings.overs_limit)
    required_run_rate = innings.required_rate
    if required_run_rate is not None:
        required_run_rate = round(required_run_rate, 2)
    current_run_rate = round(innings.run_rate, 2)
    wickets_in_hand = innings.wickets_in_hand
    momentum = track_momentum(innings)

    fielding_xi = bowling_team.playing_xi
    keeper = next((p for p in fielding_xi if p.role == PlayerRole.WICKET_KEEPER), None)
    partnership = innings.partnership
    logger.debug(
        "%s inns %d over %d: phase=%s rrr=%s wih=%d momentum=%s",
        match.id, innings.number, innings.overs, phase.value, required_run_rate, wickets_in_hand, momentum,
    )

    return SimulationContext(
        match_id=match.id,
        innings_number=innings.number,
        over=innings.overs,
        ball=innings.balls_this_over,
        total_overs=innings.overs_limit,
        phase=phase,
        score=innings.score,
        wickets=innings.wickets,
        balls_remaining=innings.balls_remaining,
        target=innings.target,
        runs_needed=innings.runs_needed,
        required_run_rate=required_run_rate,
        current_run_rate=current_run_rate,
        wickets_in_hand=wickets_in_hand,
        partnership_runs=partnership.runs if partnership else 0,
        partnership_balls=partnership.balls if partnership else 0,
        pressure_index=calculate_pressure(innings, required_run_rate),
        momentum=momentum,
        complexity=calculate_complexity(phase, required_run_rate, wickets_in_hand, momentum),
        dot_ball_pressure=_dot_ball_pressure(innings),
        boundary_pressure=_boundary_pressure(innings),
        striker_form=_striker_form(striker),
        bowler_form=_bowler_form(bowler),
        aggression=aggression,
        effective_aggression=_effective_aggression(
            aggression, phase, required_run_rate, current_run_rate, wickets_in_hand
        ),
        striker=PlayerSnapshot.of(striker),
        non_striker=PlayerSnapshot.of(non_striker),
        bowler=PlayerSnapshot.of(bowler),
        batting_team_name=batting_team.name,
        bowling_team_name=bowling_team.name,
        fielder_ids=tuple(p.id for p in fielding_xi),
        wicket_keeper_id=keeper.id if keeper else None,
        special_players=normalize_special_players(special_player_ids),
        is_free_hit=innings.is_free_hit,
    )
