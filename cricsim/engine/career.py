"""
Post-match bookkeeping: career aggregates and rating changes.
"""
import logging

from cricsim.models.match import Match, MatchStatus
from cricsim.models.player import BattingStatus, CareerStats, Player
from cricsim.errors import MatchStateError

logger = logging.getLogger(__name__)

BASE_RATING = 75


def calculate_rating_update(player: Player) -> int:
    """New rating (1-100) from this match's batting and bowling"""
    change = 0.0
    base = player.rating or BASE_RATING

    batting = player.batting
    if batting.balls_faced > 0:
        change += batting.runs * 0.1
        if batting.runs >= 100:
            change += 10
        elif batting.runs >= 50:
            change += 5

        if batting.strike_rate > 150:
            change += (batting.strike_rate - 150) * 0.02
        if batting.strike_rate < 80 and batting.balls_faced > 10:
            change -= (80 - batting.strike_rate) * 0.02

    bowling = player.bowling
    if bowling.balls_bowled > 0:
        change += bowling.wickets * 2
        if bowling.wickets >= 5:
            change += 10
        elif bowling.wickets >= 3:
            change += 5
        change += bowling.maidens * 2

        if bowling.economy_rate < 4.0 and bowling.balls_bowled >= 12:
            change += 4.0 - bowling.economy_rate
        if bowling.economy_rate > 10.0 and bowling.balls_bowled >= 12:
            change -= (bowling.economy_rate - 10.0) * 0.5

    return int(round(max(1, min(100, base + change))))


def _fold(player: Player) -> None:
    career = player.career or CareerStats()
    batting, bowling = player.batting, player.bowling

    career.matches += 1
    if batting.status != BattingStatus.DID_NOT_BAT:
        career.innings += 1
    career.runs += batting.runs
    career.balls_faced += batting.balls_faced
    career.fours += batting.fours
    career.sixes += batting.sixes
    if batting.status == BattingStatus.OUT:
        career.dismissals += 1

    career.balls_bowled += bowling.balls_bowled
    career.runs_conceded += bowling.runs_conceded
    career.wickets += bowling.wickets
    career.maidens += bowling.maidens
    player.career = career


def record_match(match: Match, update_ratings: bool = True) -> list[Player]:
    """
    Fold a finished match into each XI player's career stats and, optionally,
    move their ratings. Bench players are left alone.
    """
    if match.status != MatchStatus.FINISHED:
        raise MatchStateError("Only finished matches can be recorded")

    updated = []
    for team in match.teams:
        for player in team.playing_xi:
            if update_ratings:
                old = player.rating
                player.rating = calculate_rating_update(player)
                if old != player.rating:
                    logger.debug("%s rating %s -> %s", player.name, old, player.rating)
            _fold(player)
            updated.append(player)

    logger.info("%s: recorded %d player careers", match.id, len(updated))
    return updated
