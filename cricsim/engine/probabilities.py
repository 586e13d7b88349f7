"""
Outcome distributions used by the sampling strategies.
"""
import enum

from cricsim.engine.context_analyzer import Phase
from cricsim.models.match import WicketType


class Outcome(enum.Enum):
    DOT = "dot"
    SINGLE = "single"
    DOUBLE = "double"
    TRIPLE = "triple"
    FOUR = "four"
    SIX = "six"
    WICKET = "wicket"
    WIDE = "wide"
    NO_BALL = "no_ball"
    BYE = "bye"
    LEG_BYE = "leg_bye"


OUTCOME_RUNS = {
    Outcome.DOT: 0,
    Outcome.SINGLE: 1,
    Outcome.DOUBLE: 2,
    Outcome.TRIPLE: 3,
    Outcome.FOUR: 4,
    Outcome.SIX: 6,
}


# Per-ball outcome probabilities by phase
TRANSITION_MATRICES = {
    Phase.POWERPLAY: {
        Outcome.DOT: 0.25,
        Outcome.SINGLE: 0.35,
        Outcome.DOUBLE: 0.10,
        Outcome.FOUR: 0.18,
        Outcome.SIX: 0.07,
        Outcome.WICKET: 0.05,
        Outcome.WIDE: 0.02,
        Outcome.NO_BALL: 0.01,
        Outcome.BYE: 0.005,
        Outcome.LEG_BYE: 0.005,
    },
    Phase.MIDDLE: {
        Outcome.DOT: 0.38,
        Outcome.SINGLE: 0.40,
        Outcome.DOUBLE: 0.08,
        Outcome.FOUR: 0.08,
        Outcome.SIX: 0.02,
        Outcome.WICKET: 0.04,
        Outcome.WIDE: 0.02,
        Outcome.NO_BALL: 0.01,
        Outcome.BYE: 0.005,
        Outcome.LEG_BYE: 0.005,
    },
    Phase.DEATH: {
        Outcome.DOT: 0.15,
        Outcome.SINGLE: 0.25,
        Outcome.DOUBLE: 0.10,
        Outcome.FOUR: 0.25,
        Outcome.SIX: 0.15,
        Outcome.WICKET: 0.10,
        Outcome.WIDE: 0.02,
        Outcome.NO_BALL: 0.01,
        Outcome.BYE: 0.005,
        Outcome.LEG_BYE: 0.005,
    },
}

DISMISSAL_WEIGHTS = [
    (WicketType.CAUGHT, 50),
    (WicketType.BOWLED, 20),
    (WicketType.LBW, 15),
    (WicketType.RUN_OUT, 6),
    (WicketType.STUMPED, 5),
    (WicketType.HIT_WICKET, 4),
]


class PressureBand(enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def of(cls, pressure_index: float) -> "PressureBand":
        if pressure_index < 0.35:
            return cls.LOW
        if pressure_index < 0.65:
            return cls.MEDIUM
        return cls.HIGH


# Fallback table: phase x pressure band -> fixed distribution.
# Higher pressure means fewer loose balls and more wickets.
RULE_TABLE = {
    (Phase.POWERPLAY, PressureBand.LOW): {
        Outcome.DOT: 30, Outcome.SINGLE: 34, Outcome.DOUBLE: 8, Outcome.FOUR: 16,
        Outcome.SIX: 5, Outcome.WICKET: 4, Outcome.WIDE: 2, Outcome.LEG_BYE: 1,
    },
    (Phase.POWERPLAY, PressureBand.MEDIUM): {
        Outcome.DOT: 36, Outcome.SINGLE: 32, Outcome.DOUBLE: 7, Outcome.FOUR: 13,
        Outcome.SIX: 4, Outcome.WICKET: 6, Outcome.WIDE: 2,
    },
    (Phase.POWERPLAY, PressureBand.HIGH): {
        Outcome.DOT: 42, Outcome.SINGLE: 30, Outcome.DOUBLE: 6, Outcome.FOUR: 10,
        Outcome.SIX: 3, Outcome.WICKET: 8, Outcome.WIDE: 1,
    },
    (Phase.MIDDLE, PressureBand.LOW): {
        Outcome.DOT: 34, Outcome.SINGLE: 42, Outcome.DOUBLE: 9, Outcome.FOUR: 8,
        Outcome.SIX: 3, Outcome.WICKET: 3, Outcome.WIDE: 1,
    },
    (Phase.MIDDLE, PressureBand.MEDIUM): {
        Outcome.DOT: 38, Outcome.SINGLE: 40, Outcome.DOUBLE: 8, Outcome.FOUR: 7,
        Outcome.SIX: 2, Outcome.WICKET: 4, Outcome.WIDE: 1,
    },
    (Phase.MIDDLE, PressureBand.HIGH): {
        Outcome.DOT: 44, Outcome.SINGLE: 34, Outcome.DOUBLE: 6, Outcome.FOUR: 6,
        Outcome.SIX: 3, Outcome.WICKET: 6, Outcome.WIDE: 1,
    },
    (Phase.DEATH, PressureBand.LOW): {
        Outcome.DOT: 18, Outcome.SINGLE: 30, Outcome.DOUBLE: 12, Outcome.FOUR: 20,
        Outcome.SIX: 12, Outcome.WICKET: 5, Outcome.WIDE: 2, Outcome.NO_BALL: 1,
    },
    (Phase.DEATH, PressureBand.MEDIUM): {
        Outcome.DOT: 20, Outcome.SINGLE: 28, Outcome.DOUBLE: 10, Outcome.FOUR: 18,
        Outcome.SIX: 12, Outcome.WICKET: 9, Outcome.WIDE: 2, Outcome.NO_BALL: 1,
    },
    (Phase.DEATH, PressureBand.HIGH): {
        Outcome.DOT: 24, Outcome.SINGLE: 24, Outcome.DOUBLE: 8, Outcome.FOUR: 16,
        Outcome.SIX: 13, Outcome.WICKET: 13, Outcome.WIDE: 1, Outcome.NO_BALL: 1,
    },
}


# Hand-tuned per-ball weights for known standout players.
# "batting" applies while the player is on strike, "bowling" while they bowl.
SPECIAL_PROFILES = {
    "marquee": {
        "batting": {
            Outcome.DOT: 18, Outcome.SINGLE: 32, Outcome.DOUBLE: 14,
            Outcome.FOUR: 20, Outcome.SIX: 15, Outcome.WICKET: 1,
        },
        "bowling": {
            Outcome.DOT: 50, Outcome.SINGLE: 28, Outcome.FOUR: 5,
            Outcome.SIX: 2, Outcome.WICKET: 15,
        },
    },
    "liability": {
        "batting": {
            Outcome.DOT: 45, Outcome.SINGLE: 15, Outcome.FOUR: 5, Outcome.WICKET: 35,
        },
        "bowling": {
            Outcome.DOT: 20, Outcome.SINGLE: 30, Outcome.DOUBLE: 16, Outcome.FOUR: 16,
            Outcome.SIX: 10, Outcome.WICKET: 2, Outcome.WIDE: 4, Outcome.NO_BALL: 2,
        },
    },
    "all_rounder": {
        "batting": {
            Outcome.DOT: 30, Outcome.SINGLE: 30, Outcome.FOUR: 15,
            Outcome.SIX: 15, Outcome.WICKET: 10,
        },
        "bowling": {
            Outcome.DOT: 55, Outcome.SINGLE: 30, Outcome.FOUR: 8, Outcome.WICKET: 7,
        },
    },
    "strike_bowler": {
        "batting": {
            Outcome.DOT: 45, Outcome.SINGLE: 30, Outcome.FOUR: 6,
            Outcome.SIX: 4, Outcome.WICKET: 15,
        },
        "bowling": {
            Outcome.DOT: 40, Outcome.SINGLE: 30, Outcome.FOUR: 6,
            Outcome.SIX: 4, Outcome.WICKET: 20,
        },
    },
}
