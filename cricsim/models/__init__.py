from cricsim.models.player import Player, PlayerRole, BattingStatus, BattingRecord, BowlingRecord, CareerStats
from cricsim.models.team import Team, MAX_PLAYERS
from cricsim.models.match import (
    Match,
    MatchSettings,
    MatchStatus,
    MatchType,
    Innings,
    InningsStatus,
    Ball,
    BallEvent,
    Delivery,
    WicketType,
    FallOfWicket,
    Partnership,
    Substitution,
    Toss,
    TossDecision,
)

__all__ = [
    "Player",
    "PlayerRole",
    "BattingStatus",
    "BattingRecord",
    "BowlingRecord",
    "CareerStats",
    "Team",
    "MAX_PLAYERS",
    "Match",
    "MatchSettings",
    "MatchStatus",
    "MatchType",
    "Innings",
    "InningsStatus",
    "Ball",
    "BallEvent",
    "Delivery",
    "WicketType",
    "FallOfWicket",
    "Partnership",
    "Substitution",
    "Toss",
    "TossDecision",
]
