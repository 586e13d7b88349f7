"""
Canned over patterns for the template strategy.
Each pattern has phase / situation tags and one or more variations.
"""
from dataclasses import dataclass, field
from typing import Optional, Union

from cricsim.engine.probabilities import Outcome
from cricsim.models.match import WicketType

# An outcome, or a wicket with its type already decided
PatternBall = Union[Outcome, tuple[Outcome, WicketType]]

O = Outcome
W = Outcome.WICKET


@dataclass
class PatternVariation:
    outcomes: list[PatternBall]
    context_tags: list[str] = field(default_factory=list)


@dataclass
class OverPattern:
    id: str
    description: str
    base_weight: float
    tags: list[str]  # "powerplay", "middle", "death", "pressure", "momentum-swing", "normal"
    variations: list[PatternVariation]


def _pattern(id: str, description: str, weight: float, tags: list[str], *variations: tuple) -> OverPattern:
    return OverPattern(
        id=id,
        description=description,
        base_weight=weight,
        tags=tags,
        variations=[PatternVariation(outcomes=list(o), context_tags=list(t)) for o, t in variations],
    )


OVER_PATTERNS = [
    _pattern(
        "TIGHT_FINISH", "A very tight over at the end of the innings.", 3, ["death", "pressure"],
        ([O.SINGLE, O.SINGLE, O.DOT, O.SINGLE, O.DOUBLE, O.DOT], ["yorkers"]),
    ),
    _pattern(
        "PARTNERSHIP_BUILDER", "A steady over focused on building a partnership.", 8, ["middle"],
        ([O.SINGLE] * 6, ["rotating_strike"]),
        ([O.SINGLE, O.DOUBLE, O.SINGLE, O.SINGLE, O.DOT, O.SINGLE], ["partnership"]),
    ),
    _pattern(
        "POWERPLAY_ONSLAUGHT", "An expensive powerplay over.", 9, ["powerplay", "momentum-swing"],
        ([O.FOUR, O.FOUR, O.DOT, O.SIX, O.DOT, O.SINGLE], ["attacking_batting", "batting_momentum"]),
        ([O.FOUR, O.WIDE, O.SIX, O.FOUR, O.DOT, O.SINGLE], ["loose_bowling"]),
    ),
    _pattern(
        "MIDDLE_OVERS_BREAKTHROUGH", "A wicket falls in the middle overs, breaking a partnership.", 6,
        ["middle", "momentum-swing"],
        ([O.SINGLE, O.DOT, (W, WicketType.STUMPED), O.DOT, O.SINGLE, O.DOT], ["spin_bowling"]),
        ([O.SINGLE, O.DOT, (W, WicketType.CAUGHT), O.SINGLE, O.DOT, O.SINGLE], ["bowling_momentum"]),
    ),
    _pattern(
        "DEATH_OVERS_WICKET", "A wicket falls in the death overs.", 7, ["death", "pressure"],
        ([O.SIX, (W, WicketType.CAUGHT), O.SINGLE, O.DOT, O.SINGLE, O.DOT], ["slogging_error", "high_rrr"]),
        ([O.DOT, O.SINGLE, O.DOT, O.SINGLE, O.DOT, (W, WicketType.BOWLED)], ["yorkers"]),
    ),
    _pattern(
        "EXPENSIVE_WICKET_OVER", "A wicket falls, but the over is still expensive.", 4,
        ["powerplay", "death", "momentum-swing"],
        ([O.FOUR, (W, WicketType.CAUGHT), O.SIX, O.DOT, O.SINGLE, O.DOT], ["aggressive_batting"]),
    ),
    _pattern(
        "RUN_OUT_MIXUP", "A run-out occurs due to a mix-up between the batsmen.", 2, ["middle", "pressure"],
        ([O.SINGLE, O.DOT, (W, WicketType.RUN_OUT), O.DOT, O.SINGLE, O.DOT], ["miscommunication"]),
    ),
    _pattern(
        "NO_BALL_WICKET", "A wicket falls on a free hit (run-out).", 1, ["pressure"],
        ([O.NO_BALL, (W, WicketType.RUN_OUT), O.DOT, O.SINGLE, O.DOT, O.FOUR], ["drama"]),
    ),
    _pattern(
        "HAT_TRICK_BALL", "A bowler is on a hat-trick.", 0.1, ["pressure", "momentum-swing"],
        ([(W, WicketType.BOWLED), (W, WicketType.LBW), (W, WicketType.CAUGHT)], ["history"]),
    ),
    _pattern(
        "LAST_BALL_THRILLER", "The match goes down to the last ball.", 1, ["death", "pressure"],
        ([O.SINGLE, O.SINGLE, O.DOUBLE, (W, WicketType.RUN_OUT), O.SINGLE, O.SIX], ["clutch", "high_rrr"]),
    ),
    _pattern(
        "MAIDEN_OVER", "A maiden over with no runs scored.", 3, ["pressure", "middle"],
        ([O.DOT] * 6, ["tight_bowling", "pressure"]),
        ([O.DOT, O.DOT, O.DOT, O.SINGLE, O.DOT, O.DOT], ["bowling_momentum"]),
    ),
    _pattern(
        "BOUNDARY_BURST", "An over with multiple boundaries.", 6, ["powerplay", "momentum-swing"],
        ([O.FOUR, O.FOUR, O.SINGLE, O.FOUR, O.DOT, O.SINGLE], ["aggressive_batting", "batting_momentum"]),
    ),
    _pattern(
        "SPIN_CONTROL", "A controlled over by a spinner in the middle overs.", 8, ["middle"],
        ([O.SINGLE, O.DOT, O.SINGLE, O.DOT, O.SINGLE, O.DOT], ["spin_bowling"]),
    ),
    _pattern(
        "DEATH_SLOG", "A high-scoring over in the death overs.", 5, ["death", "momentum-swing"],
        ([O.SIX, O.FOUR, O.SIX, O.DOT, O.SINGLE, O.DOUBLE], ["slogging", "high_rrr"]),
        ([O.SIX, O.SIX, O.FOUR, O.SINGLE, O.SIX, O.DOT], ["batting_momentum"]),
    ),
    _pattern(
        "WIDE_AND_DOT", "An over with a mix of wides and dot balls.", 4, ["pressure", "normal"],
        ([O.WIDE, O.DOT, O.DOT, O.WIDE, O.DOT, O.SINGLE, O.DOT, O.DOT], ["erratic_bowling"]),
    ),
    _pattern(
        "DOUBLE_WICKET", "Two wickets fall in a single over.", 3, ["middle", "momentum-swing"],
        ([(W, WicketType.BOWLED), O.SINGLE, (W, WicketType.CAUGHT), O.DOT, O.DOT, O.SINGLE], ["collapse"]),
        ([(W, WicketType.STUMPED), O.SINGLE, (W, WicketType.LBW), O.DOT, O.SINGLE, O.DOT], ["spin_bowling"]),
    ),
    _pattern(
        "CAUTIOUS_START", "A cautious start in the powerplay with minimal risks.", 9, ["powerplay", "normal"],
        ([O.SINGLE, O.DOT, O.SINGLE, O.SINGLE, O.DOT, O.SINGLE], ["defensive_batting"]),
        ([O.SINGLE, O.DOUBLE, O.SINGLE, O.DOT, O.SINGLE, O.DOT], ["cautious_batting"]),
    ),
    _pattern(
        "DEATH_YORKERS", "An over dominated by pinpoint yorkers in the death.", 6, ["death", "pressure"],
        ([O.DOT, O.SINGLE, O.DOT, O.SINGLE, O.DOT, (W, WicketType.BOWLED)], ["yorkers", "bowling_momentum"]),
    ),
    _pattern(
        "NO_BALL_BONANZA", "An over with no-balls and runs.", 3, ["powerplay", "death"],
        ([O.NO_BALL, O.FOUR, O.NO_BALL, O.SINGLE, O.DOT, O.SIX, O.SINGLE, O.DOT], ["erratic_bowling"]),
    ),
    _pattern(
        "DEFENSIVE_MIDDLE", "A defensive over in the middle with minimal scoring.", 7, ["middle", "pressure"],
        ([O.DOT, O.SINGLE, O.DOT, O.SINGLE, O.DOT, O.DOT], ["tight_bowling", "pressure"]),
        ([O.DOT, O.DOT, O.LEG_BYE, O.DOT, O.DOT, O.SINGLE], ["pace_bowling"]),
    ),
    _pattern(
        "DEATH_BOUNCER", "A bouncer-heavy over in the death.", 4, ["death", "pressure"],
        ([O.DOT, O.SINGLE, O.DOT, (W, WicketType.CAUGHT), O.SINGLE, O.DOT], ["bouncer_tactic"]),
        ([O.DOT, O.BYE, O.DOT, O.SINGLE, O.WIDE, O.SINGLE, O.DOT], ["erratic_bowling"]),
    ),
    _pattern(
        "POWERPLAY_TIGHT", "A tight powerplay over with minimal scoring.", 7, ["powerplay", "pressure"],
        ([O.SINGLE, O.DOT, O.SINGLE, O.DOT, O.DOT, O.SINGLE], ["tight_bowling", "pressure"]),
    ),
    _pattern(
        "POWERPLAY_WICKET", "A wicket falls early in the powerplay.", 6, ["powerplay", "momentum-swing"],
        ([(W, WicketType.BOWLED), O.SINGLE, O.DOT, O.SINGLE, O.DOT, O.SINGLE], ["early_breakthrough"]),
        ([O.FOUR, (W, WicketType.CAUGHT), O.SINGLE, O.DOT, O.SINGLE, O.DOT], ["mixed_momentum"]),
    ),
    _pattern(
        "MIDDLE_RUN_RATE_BOOST", "An over that boosts the run rate in the middle.", 6, ["middle", "momentum-swing"],
        ([O.FOUR, O.SINGLE, O.SIX, O.SINGLE, O.FOUR, O.DOT], ["attacking_batting", "high_rrr"]),
        ([O.FOUR, O.SINGLE, O.FOUR, O.DOT, O.SINGLE, O.TRIPLE], ["fielding_error"]),
    ),
    _pattern(
        "MIDDLE_STEADY_SINGLES", "An over with consistent singles in the middle.", 8, ["middle", "normal"],
        ([O.SINGLE, O.SINGLE, O.SINGLE, O.SINGLE, O.SINGLE, O.DOT], ["rotating_strike"]),
    ),
    _pattern(
        "DEATH_EXTRAS", "An over with extras in the death overs.", 4, ["death"],
        ([O.WIDE, O.SINGLE, O.NO_BALL, O.SINGLE, O.DOT, O.SINGLE, O.DOUBLE, O.FOUR], ["erratic_bowling"]),
    ),
    _pattern(
        "WICKET_AND_SIX", "A wicket and a six in the same over.", 5, ["death", "momentum-swing"],
        ([(W, WicketType.CAUGHT), O.SIX, O.SINGLE, O.DOT, O.SINGLE, O.DOT], ["mixed_momentum"]),
    ),
]


def get_pattern(pattern_id: str) -> Optional[OverPattern]:
    return next((p for p in OVER_PATTERNS if p.id == pattern_id), None)
