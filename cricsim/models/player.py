from dataclasses import dataclass, field
from typing import Optional
import enum


class PlayerRole(enum.Enum):
    BATSMAN = "batsman"
    BOWLER = "bowler"
    ALL_ROUNDER = "all_rounder"
    WICKET_KEEPER = "wicket_keeper"


class BattingStatus(enum.Enum):
    NOT_OUT = "not out"
    OUT = "out"
    DID_NOT_BAT = "did not bat"


@dataclass
class BattingRecord:
    """A player's batting in the current match"""
    runs: int = 0
    balls_faced: int = 0
    fours: int = 0
    sixes: int = 0
    status: BattingStatus = BattingStatus.DID_NOT_BAT
    dismissal: Optional[str] = None
    strike_rate: float = 0.0


@dataclass
class BowlingRecord:
    """A player's bowling in the current match"""
    balls_bowled: int = 0
    runs_conceded: int = 0
    maidens: int = 0
    wickets: int = 0
    economy_rate: float = 0.0

    @property
    def overs_display(self) -> str:
        return f"{self.balls_bowled // 6}.{self.balls_bowled % 6}"


@dataclass
class CareerStats:
    """Aggregated history across finished matches"""
    matches: int = 0
    innings: int = 0
    runs: int = 0
    balls_faced: int = 0
    fours: int = 0
    sixes: int = 0
    dismissals: int = 0
    balls_bowled: int = 0
    runs_conceded: int = 0
    wickets: int = 0
    maidens: int = 0

    @property
    def has_batting(self) -> bool:
        return self.balls_faced > 0

    @property
    def has_bowling(self) -> bool:
        return self.balls_bowled > 0

    @property
    def strike_rate(self) -> float:
        if self.balls_faced == 0:
            return 0.0
        return (self.runs / self.balls_faced) * 100

    @property
    def boundary_rate(self) -> float:
        if self.balls_faced == 0:
            return 0.0
        return (self.fours + self.sixes) / self.balls_faced

    @property
    def dismissal_rate(self) -> float:
        """Dismissals per ball faced"""
        if self.balls_faced == 0:
            return 0.0
        return self.dismissals / self.balls_faced

    @property
    def economy(self) -> float:
        if self.balls_bowled == 0:
            return 0.0
        return (self.runs_conceded / self.balls_bowled) * 6

    @property
    def wicket_rate(self) -> float:
        """Wickets per ball bowled"""
        if self.balls_bowled == 0:
            return 0.0
        return self.wickets / self.balls_bowled


@dataclass
class Player:
    id: int
    name: str
    rating: Optional[int] = None  # 0-100
    role: Optional[PlayerRole] = None
    is_substitute: bool = False
    is_impact_player: bool = False

    batting: BattingRecord = field(default_factory=BattingRecord)
    bowling: BowlingRecord = field(default_factory=BowlingRecord)
    career: Optional[CareerStats] = None

    @property
    def in_playing_xi(self) -> bool:
        return not self.is_substitute or self.is_impact_player

    @property
    def has_history(self) -> bool:
        return self.career is not None and (self.career.has_batting or self.career.has_bowling)

    def reset_match_records(self) -> None:
        self.batting = BattingRecord()
        self.bowling = BowlingRecord()

    def __repr__(self):
        return f"<Player {self.id} {self.name} ({self.rating if self.rating is not None else '-'})>"
