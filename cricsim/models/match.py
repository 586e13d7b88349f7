from dataclasses import dataclass, field
from typing import Optional
import enum

from cricsim.models.team import Team


class MatchStatus(enum.Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    FINISHED = "finished"


class InningsStatus(enum.Enum):
    NOT_STARTED = "not_started"
    BATTING = "batting"
    COMPLETED = "completed"


class MatchType(enum.Enum):
    T20 = "T20"
    TEN_OVERS = "10 Overs"
    FIVE_OVERS = "5 Overs"
    TWO_OVERS = "2 Overs"
    FIFTY_OVERS = "50 Overs"

    @property
    def overs(self) -> int:
        return {
            MatchType.T20: 20,
            MatchType.TEN_OVERS: 10,
            MatchType.FIVE_OVERS: 5,
            MatchType.TWO_OVERS: 2,
            MatchType.FIFTY_OVERS: 50,
        }[self]


class TossDecision(enum.Enum):
    BAT = "bat"
    BOWL = "bowl"


class BallEvent(enum.Enum):
    RUN = "run"
    WICKET = "w"
    WIDE = "wd"
    NO_BALL = "nb"
    LEG_BYE = "lb"
    BYE = "b"

    @property
    def is_legal(self) -> bool:
        """Wides and no-balls are re-bowled and don't use up a ball of the over"""
        return self not in (BallEvent.WIDE, BallEvent.NO_BALL)


class WicketType(enum.Enum):
    BOWLED = "Bowled"
    CAUGHT = "Caught"
    LBW = "LBW"
    RUN_OUT = "Run Out"
    STUMPED = "Stumped"
    HIT_WICKET = "Hit Wicket"

    @property
    def needs_fielder(self) -> bool:
        return self in (WicketType.CAUGHT, WicketType.RUN_OUT, WicketType.STUMPED)

    @property
    def credited_to_bowler(self) -> bool:
        return self != WicketType.RUN_OUT


@dataclass(frozen=True)
class Delivery:
    """The outcome of one delivery, as produced by a scorer or a strategy"""
    event: BallEvent
    runs: int = 0  # off the bat
    extras: int = 0
    wicket_type: Optional[WicketType] = None
    fielder_id: Optional[int] = None

    @classmethod
    def dot(cls) -> "Delivery":
        return cls(BallEvent.RUN, 0)

    @classmethod
    def scoring(cls, runs: int) -> "Delivery":
        return cls(BallEvent.RUN, runs)

    @classmethod
    def wicket(cls, wicket_type: WicketType, fielder_id: Optional[int] = None, runs: int = 0) -> "Delivery":
        return cls(BallEvent.WICKET, runs, 0, wicket_type, fielder_id)

    @classmethod
    def wide(cls, extras: int = 1) -> "Delivery":
        return cls(BallEvent.WIDE, 0, extras)

    @classmethod
    def no_ball(cls, runs: int = 0, extras: int = 1) -> "Delivery":
        return cls(BallEvent.NO_BALL, runs, extras)

    @classmethod
    def leg_bye(cls, extras: int = 1) -> "Delivery":
        return cls(BallEvent.LEG_BYE, 0, extras)

    @classmethod
    def bye(cls, extras: int = 1) -> "Delivery":
        return cls(BallEvent.BYE, 0, extras)

    @property
    def is_legal(self) -> bool:
        return self.event.is_legal

    @property
    def is_wicket(self) -> bool:
        return self.event == BallEvent.WICKET

    @property
    def total_runs(self) -> int:
        return self.runs + self.extras

    @property
    def running_runs(self) -> int:
        """Runs physically run between the wickets (decides strike rotation)"""
        if self.event in (BallEvent.LEG_BYE, BallEvent.BYE):
            return self.extras
        if self.event == BallEvent.WIDE:
            return max(0, self.extras - 1)
        if self.event == BallEvent.NO_BALL:
            return self.runs + max(0, self.extras - 1)
        return self.runs

    @property
    def bowler_runs(self) -> int:
        """Runs charged to the bowler; byes and leg byes are not"""
        if self.event in (BallEvent.LEG_BYE, BallEvent.BYE):
            return 0
        return self.total_runs

    @property
    def display(self) -> str:
        if self.event == BallEvent.RUN:
            return str(self.runs)
        if self.event == BallEvent.WICKET:
            return "W"
        if self.event in (BallEvent.WIDE, BallEvent.NO_BALL):
            return self.event.value
        return f"{self.extras}{self.event.value}"

    def to_record(self) -> dict:
        """Plain dict in the shape exchanged with callers"""
        record = {"event": self.event.value, "runs": self.runs, "extras": self.extras}
        if self.wicket_type is not None:
            record["wicketType"] = self.wicket_type.value
        if self.fielder_id is not None:
            record["fielderId"] = self.fielder_id
        return record


@dataclass(frozen=True)
class Ball:
    """A delivery once recorded in an innings timeline"""
    delivery: Delivery
    striker_id: int
    bowler_id: int
    display: str
    over: float  # e.g. 4.2 = fifth over, third legal ball

    @property
    def event(self) -> BallEvent:
        return self.delivery.event

    @property
    def runs(self) -> int:
        return self.delivery.runs

    @property
    def extras(self) -> int:
        return self.delivery.extras

    @property
    def is_wicket(self) -> bool:
        return self.delivery.is_wicket

    @property
    def wicket_type(self) -> Optional[WicketType]:
        return self.delivery.wicket_type

    @property
    def fielder_id(self) -> Optional[int]:
        return self.delivery.fielder_id


@dataclass(frozen=True)
class FallOfWicket:
    wicket: int
    score: int
    over: float
    player_id: int
    player_name: str


@dataclass
class Partnership:
    batsman1: int
    batsman2: int
    runs: int = 0
    balls: int = 0


@dataclass
class Innings:
    batting_team: Team
    bowling_team: Team
    number: int  # 1 or 2
    overs_limit: int
    target: Optional[int] = None

    score: int = 0
    wickets: int = 0
    extras: int = 0
    overs: int = 0
    balls_this_over: int = 0
    over_runs_conceded: int = 0  # charged to the bowler this over, for maidens

    timeline: list[Ball] = field(default_factory=list)
    fall_of_wickets: list[FallOfWicket] = field(default_factory=list)
    partnership: Optional[Partnership] = None
    partnerships: list[Partnership] = field(default_factory=list)  # completed stands

    striker_id: Optional[int] = None
    non_striker_id: Optional[int] = None
    current_bowler_id: Optional[int] = None
    previous_bowler_id: Optional[int] = None

    is_free_hit: bool = False
    status: InningsStatus = InningsStatus.NOT_STARTED

    @property
    def legal_balls(self) -> int:
        return self.overs * 6 + self.balls_this_over

    @property
    def balls_remaining(self) -> int:
        return max(0, self.overs_limit * 6 - self.legal_balls)

    @property
    def overs_display(self) -> str:
        return f"{self.overs}.{self.balls_this_over}"

    @property
    def current_over_number(self) -> float:
        return self.overs + self.balls_this_over / 10

    @property
    def run_rate(self) -> float:
        if self.legal_balls == 0:
            return 0.0
        return (self.score / self.legal_balls) * 6

    @property
    def is_chasing(self) -> bool:
        return self.target is not None

    @property
    def runs_needed(self) -> Optional[int]:
        if self.target is None:
            return None
        return max(0, self.target - self.score)

    @property
    def required_rate(self) -> Optional[float]:
        if self.target is None:
            return None
        remaining = self.target - self.score
        if self.balls_remaining <= 0:
            return 99.99 if remaining > 0 else 0.0
        return (remaining / self.balls_remaining) * 6

    @property
    def max_wickets(self) -> int:
        return self.batting_team.max_wickets

    @property
    def wickets_in_hand(self) -> int:
        return max(0, self.max_wickets - self.wickets)

    @property
    def is_all_out(self) -> bool:
        return self.wickets >= self.max_wickets

    @property
    def overs_exhausted(self) -> bool:
        return self.overs >= self.overs_limit

    @property
    def target_reached(self) -> bool:
        return self.target is not None and self.score >= self.target

    @property
    def is_complete(self) -> bool:
        return self.status == InningsStatus.COMPLETED

    def __repr__(self):
        return f"<Innings {self.number}: {self.score}/{self.wickets} ({self.overs_display})>"


@dataclass(frozen=True)
class Substitution:
    """An impact-player swap and when it was made"""
    team_id: int
    out_player_id: int
    in_player_id: int
    after_ball: int  # balls recorded in the match before the swap


@dataclass(frozen=True)
class Toss:
    winner_id: int
    decision: TossDecision


@dataclass
class MatchSettings:
    teams: tuple[Team, Team]
    overs_per_innings: int
    toss: Toss
    match_type: Optional[MatchType] = None
    match_id: Optional[str] = None


@dataclass
class Match:
    id: str
    teams: tuple[Team, Team]
    overs_per_innings: int
    toss: Toss
    match_type: Optional[MatchType] = None
    innings: list[Innings] = field(default_factory=list)
    current_innings_number: int = 1
    status: MatchStatus = MatchStatus.PENDING
    result: Optional[str] = None
    winner_id: Optional[int] = None
    substitutions: list[Substitution] = field(default_factory=list)

    @property
    def current_innings(self) -> Optional[Innings]:
        if len(self.innings) < self.current_innings_number:
            return None
        return self.innings[self.current_innings_number - 1]

    @property
    def is_finished(self) -> bool:
        return self.status == MatchStatus.FINISHED

    def get_team(self, team_id: int) -> Optional[Team]:
        return next((t for t in self.teams if t.id == team_id), None)

    def other_team(self, team: Team) -> Team:
        return self.teams[1] if self.teams[0].id == team.id else self.teams[0]

    def __repr__(self):
        return f"<Match {self.teams[0].name} vs {self.teams[1].name} ({self.status.value})>"
