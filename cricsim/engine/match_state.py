"""
Ball-by-ball scoring.

Every delivery, whether entered by a scorer or produced by the simulator,
goes through apply_ball. A delivery is validated before anything changes,
so a rejected ball leaves the innings exactly as it was.
"""
import logging
import math
import random
import threading
import uuid
from typing import Optional

from cricsim.errors import IllegalDeliveryError, InvalidInputError, MatchStateError
from cricsim.models.match import (
    Ball,
    BallEvent,
    Delivery,
    FallOfWicket,
    Innings,
    InningsStatus,
    Match,
    MatchSettings,
    MatchStatus,
    Partnership,
    Substitution,
    TossDecision,
    WicketType,
)
from cricsim.models.player import BattingStatus, Player, PlayerRole
from cricsim.models.team import Team
from cricsim.validators.delivery_validator import BALLS_PER_OVER, DeliveryValidator

logger = logging.getLogger(__name__)


def max_overs_per_bowler(overs_per_innings: int) -> int:
    """A fifth of the innings, rounded up (4 in a T20)"""
    return max(1, math.ceil(overs_per_innings / 5))


def create_match(settings: MatchSettings) -> Match:
    """Create a pending match from validated settings"""
    team1, team2 = settings.teams
    if team1.id == team2.id:
        raise InvalidInputError("A match needs two different teams")

    overs = settings.overs_per_innings
    if overs is None and settings.match_type is not None:
        overs = settings.match_type.overs
    if not overs or overs < 1:
        raise InvalidInputError(f"Overs per innings must be at least 1, got {overs}")

    if settings.toss.winner_id not in (team1.id, team2.id):
        raise InvalidInputError(f"Toss winner {settings.toss.winner_id} is not playing this match")

    for team in (team1, team2):
        team.mark_substitutes()
        team.impact_player_used = False
        if len(team.playing_xi) < 2:
            raise InvalidInputError(f"{team.name} needs at least 2 players")
        for player in team.players:
            player.reset_match_records()

    match = Match(
        id=settings.match_id or f"match_{uuid.uuid4().hex[:12]}",
        teams=(team1, team2),
        overs_per_innings=overs,
        toss=settings.toss,
        match_type=settings.match_type,
    )
    logger.info("Created %s (%d overs)", match, overs)
    return match


def batting_order(match: Match) -> tuple[Team, Team]:
    """(team batting first, team bowling first) from the toss"""
    winner = match.get_team(match.toss.winner_id)
    loser = match.other_team(winner)
    if match.toss.decision == TossDecision.BAT:
        return winner, loser
    return loser, winner


def create_innings(
    batting_team: Team,
    bowling_team: Team,
    number: int,
    overs_limit: int,
    target: Optional[int] = None,
) -> Innings:
    """Openers are the first two of the playing XI"""
    xi = batting_team.playing_xi
    for player in batting_team.players:
        player.batting.status = BattingStatus.DID_NOT_BAT
    for opener in xi[:2]:
        opener.batting.status = BattingStatus.NOT_OUT

    return Innings(
        batting_team=batting_team,
        bowling_team=bowling_team,
        number=number,
        overs_limit=overs_limit,
        target=target,
        partnership=Partnership(batsman1=xi[0].id, batsman2=xi[1].id),
        striker_id=xi[0].id,
        non_striker_id=xi[1].id,
    )


def start_match(match: Match) -> Match:
    if match.status != MatchStatus.PENDING:
        raise MatchStateError(f"Cannot start a match that is {match.status.value}")

    batting_team, bowling_team = batting_order(match)
    match.innings = [create_innings(batting_team, bowling_team, 1, match.overs_per_innings)]
    match.current_innings_number = 1
    match.status = MatchStatus.IN_PROGRESS
    logger.info("%s: %s to bat first", match.id, batting_team.name)
    return match


def overs_bowled(player: Player) -> int:
    return player.bowling.balls_bowled // BALLS_PER_OVER


def check_bowler(innings: Innings, bowler_id: int) -> list[str]:
    """Reasons `bowler_id` may not bowl the next over; empty if they may"""
    errors = []
    bowler = innings.bowling_team.get_player(bowler_id)
    if bowler is None or not bowler.in_playing_xi:
        return [f"Player {bowler_id} is not in the bowling side's playing XI"]

    if innings.previous_bowler_id == bowler_id:
        errors.append(f"{bowler.name} bowled the previous over")

    limit = max_overs_per_bowler(innings.overs_limit)
    if overs_bowled(bowler) >= limit:
        errors.append(f"{bowler.name} has bowled the maximum {limit} overs")

    return errors


def set_bowler(match: Match, bowler_id: int) -> Match:
    if match.status != MatchStatus.IN_PROGRESS:
        raise MatchStateError(f"Cannot pick a bowler while the match is {match.status.value}")

    innings = match.current_innings
    if innings.balls_this_over > 0 and innings.current_bowler_id not in (None, bowler_id):
        raise MatchStateError("Cannot change the bowler in the middle of an over")

    errors = check_bowler(innings, bowler_id)
    if errors:
        raise InvalidInputError("; ".join(errors))

    innings.current_bowler_id = bowler_id
    return match


def select_bowler(innings: Innings, rng: random.Random = None) -> Player:
    """Pick the next bowler (not the same as last over, capped overs), weighted by rating"""
    rng = rng or random
    xi = innings.bowling_team.playing_xi
    bowlers = [p for p in xi if p.role in (PlayerRole.BOWLER, PlayerRole.ALL_ROUNDER)] or xi

    available = [b for b in bowlers if not check_bowler(innings, b.id)]
    if not available:
        # Fallback: anyone in the XI who is allowed
        available = [p for p in xi if not check_bowler(innings, p.id)]
    if not available:
        available = [p for p in xi if p.id != innings.previous_bowler_id] or xi

    weights = [b.rating if b.rating else 50 for b in available]
    return rng.choices(available, weights=weights)[0]


def _dismissal_text(wicket_type: WicketType, bowler: Player, fielder: Optional[Player]) -> str:
    fielder_name = fielder.name if fielder else "sub"
    if wicket_type == WicketType.CAUGHT:
        if fielder is not None and fielder.id == bowler.id:
            return f"c & b {bowler.name}"
        return f"c {fielder_name} b {bowler.name}"
    if wicket_type == WicketType.RUN_OUT:
        return f"run out ({fielder_name})"
    if wicket_type == WicketType.STUMPED:
        return f"st {fielder_name} b {bowler.name}"
    if wicket_type == WicketType.LBW:
        return f"lbw b {bowler.name}"
    if wicket_type == WicketType.HIT_WICKET:
        return f"hit wicket b {bowler.name}"
    return f"b {bowler.name}"


def _next_batter(team: Team) -> Optional[Player]:
    return next((p for p in team.playing_xi if p.batting.status == BattingStatus.DID_NOT_BAT), None)


def _refresh_rates(*players: Player) -> None:
    for player in players:
        if player.batting.balls_faced > 0:
            player.batting.strike_rate = round((player.batting.runs / player.batting.balls_faced) * 100, 2)
        if player.bowling.balls_bowled > 0:
            player.bowling.economy_rate = round(player.bowling.runs_conceded / (player.bowling.balls_bowled / 6), 2)


def _swap_strike(innings: Innings) -> None:
    innings.striker_id, innings.non_striker_id = innings.non_striker_id, innings.striker_id


def apply_ball(innings: Innings, delivery: Delivery, rotate_strike_on_wicket_runs: bool = True) -> Innings:
    """
    Apply one delivery to the innings.

    The dismissed batter on a wicket is always the striker; the new batter
    comes in at the striker's end, then runs completed before the wicket
    rotate strike as usual (unless rotate_strike_on_wicket_runs is off).

    Raises IllegalDeliveryError (nothing applied) for a delivery that breaks
    the rules, MatchStateError if the innings cannot take a ball.
    """
    if innings.is_complete:
        raise MatchStateError(f"Innings {innings.number} is already complete")
    if innings.current_bowler_id is None:
        raise MatchStateError("No bowler selected for this over")
    if innings.striker_id is None or innings.non_striker_id is None:
        raise MatchStateError("Both batters must be at the crease")

    fielders = innings.bowling_team.playing_xi
    errors = DeliveryValidator.validate(
        delivery,
        free_hit=innings.is_free_hit,
        fielder_ids=[p.id for p in fielders],
    )
    if errors:
        raise IllegalDeliveryError(errors)

    striker = innings.batting_team.get_player(innings.striker_id)
    bowler = innings.bowling_team.get_player(innings.current_bowler_id)
    if innings.status == InningsStatus.NOT_STARTED:
        innings.status = InningsStatus.BATTING

    event = delivery.event
    ball = Ball(
        delivery=delivery,
        striker_id=striker.id,
        bowler_id=bowler.id,
        display=delivery.display,
        over=innings.current_over_number,
    )

    # Score and extras
    innings.score += delivery.total_runs
    if event in (BallEvent.WIDE, BallEvent.NO_BALL, BallEvent.LEG_BYE, BallEvent.BYE):
        innings.extras += delivery.extras
    bowler.bowling.runs_conceded += delivery.bowler_runs
    innings.over_runs_conceded += delivery.bowler_runs

    if delivery.is_legal:
        innings.balls_this_over += 1
        bowler.bowling.balls_bowled += 1
        striker.batting.balls_faced += 1

    if event in (BallEvent.RUN, BallEvent.NO_BALL, BallEvent.WICKET):
        striker.batting.runs += delivery.runs
        if delivery.runs == 4:
            striker.batting.fours += 1
        elif delivery.runs == 6:
            striker.batting.sixes += 1

    if innings.partnership is not None:
        innings.partnership.runs += delivery.total_runs
        if delivery.is_legal:
            innings.partnership.balls += 1

    # Free hit follows a no-ball and survives wides
    if event == BallEvent.NO_BALL:
        innings.is_free_hit = True
    elif delivery.is_legal:
        innings.is_free_hit = False

    if delivery.is_wicket:
        innings.wickets += 1
        fielder = innings.bowling_team.get_player(delivery.fielder_id) if delivery.fielder_id else None
        striker.batting.status = BattingStatus.OUT
        striker.batting.dismissal = _dismissal_text(delivery.wicket_type, bowler, fielder)
        if delivery.wicket_type.credited_to_bowler:
            bowler.bowling.wickets += 1

        completed_overs = innings.overs + innings.balls_this_over // BALLS_PER_OVER
        innings.fall_of_wickets.append(FallOfWicket(
            wicket=innings.wickets,
            score=innings.score,
            over=completed_overs + (innings.balls_this_over % BALLS_PER_OVER) / 10,
            player_id=striker.id,
            player_name=striker.name,
        ))
        if innings.partnership is not None:
            innings.partnerships.append(innings.partnership)

        new_batter = _next_batter(innings.batting_team) if not innings.is_all_out else None
        if new_batter is not None:
            new_batter.batting.status = BattingStatus.NOT_OUT
            innings.striker_id = new_batter.id
            innings.partnership = Partnership(batsman1=new_batter.id, batsman2=innings.non_striker_id)
            if rotate_strike_on_wicket_runs and delivery.running_runs % 2 == 1:
                _swap_strike(innings)
        else:
            innings.striker_id = None
            innings.partnership = None
    elif delivery.running_runs % 2 == 1:
        _swap_strike(innings)

    # End of over
    if innings.balls_this_over == BALLS_PER_OVER:
        innings.overs += 1
        innings.balls_this_over = 0
        if innings.over_runs_conceded == 0:
            bowler.bowling.maidens += 1
        innings.over_runs_conceded = 0
        innings.previous_bowler_id = bowler.id
        innings.current_bowler_id = None
        if innings.striker_id is not None:
            _swap_strike(innings)

    _refresh_rates(striker, bowler)
    innings.timeline.append(ball)

    if innings.is_all_out or innings.overs_exhausted or innings.target_reached:
        innings.status = InningsStatus.COMPLETED
        innings.current_bowler_id = None
        innings.is_free_hit = False
        if innings.partnership is not None:
            innings.partnerships.append(innings.partnership)
            innings.partnership = None
        logger.info(
            "Innings %d complete: %s %d/%d (%s)",
            innings.number, innings.batting_team.name, innings.score, innings.wickets, innings.overs_display,
        )

    return innings


def result_text(match: Match) -> tuple[str, Optional[int]]:
    """(result string, winning team id) for a match whose innings are done"""
    first = match.innings[0]
    second = match.innings[1] if len(match.innings) > 1 else None
    if second is None:
        return "No result", None

    if second.score >= second.target:
        margin = second.wickets_in_hand
        unit = "wicket" if margin == 1 else "wickets"
        return f"{second.batting_team.name} won by {margin} {unit}", second.batting_team.id
    if second.score == first.score:
        return "Match tied", None
    margin = first.score - second.score
    unit = "run" if margin == 1 else "runs"
    return f"{first.batting_team.name} won by {margin} {unit}", first.batting_team.id


def swap_players(team: Team, player_out: Player, player_in: Player) -> None:
    """Move a bench player into the XI in place of player_out"""
    player_in.is_substitute = False
    player_in.is_impact_player = True
    player_out.is_substitute = True
    player_out.is_impact_player = False
    if player_out.batting.status != BattingStatus.OUT:
        player_out.batting.status = BattingStatus.DID_NOT_BAT
    team.impact_player_used = True


def _replay_swaps(match: Match, swaps: list[Substitution], balls_recorded: int) -> None:
    for swap in swaps:
        if swap.after_ball == balls_recorded:
            team = match.get_team(swap.team_id)
            swap_players(team, team.get_player(swap.out_player_id), team.get_player(swap.in_player_id))
            match.substitutions.append(swap)


def _save_state(match: Match) -> tuple:
    """Everything undo replaces; the saved records themselves are not mutated by a replay"""
    players = [
        (p, p.batting, p.bowling, p.is_substitute, p.is_impact_player)
        for team in match.teams
        for p in team.players
    ]
    teams = [(team, team.impact_player_used) for team in match.teams]
    fields = (
        list(match.innings),
        match.current_innings_number,
        match.status,
        match.result,
        match.winner_id,
        list(match.substitutions),
    )
    return players, teams, fields


def _restore_state(match: Match, saved: tuple) -> None:
    players, teams, fields = saved
    for player, batting, bowling, is_substitute, is_impact_player in players:
        player.batting = batting
        player.bowling = bowling
        player.is_substitute = is_substitute
        player.is_impact_player = is_impact_player
    for team, used in teams:
        team.impact_player_used = used
    (
        match.innings,
        match.current_innings_number,
        match.status,
        match.result,
        match.winner_id,
        match.substitutions,
    ) = fields


class MatchStateMachine:
    """
    Match-level scoring: innings changes, results, undo and substitutions.

    Every mutating call for a given match holds that match's lock, so two
    callers can never interleave deliveries on the same innings. Different
    matches do not block each other.
    """

    def __init__(self, rotate_strike_on_wicket_runs: bool = True):
        self.rotate_strike_on_wicket_runs = rotate_strike_on_wicket_runs
        self._locks: dict[str, threading.RLock] = {}
        self._registry_lock = threading.Lock()

    def lock_for(self, match: Match) -> threading.RLock:
        """The match's lock; a finished match gives its lock up and gets a new one if touched again"""
        with self._registry_lock:
            lock = self._locks.get(match.id)
            if lock is None:
                lock = self._locks[match.id] = threading.RLock()
            return lock

    def release(self, match: Match) -> None:
        """Forget the lock of a match that will not be scored again"""
        with self._registry_lock:
            self._locks.pop(match.id, None)

    def start_match(self, match: Match) -> Match:
        with self.lock_for(match):
            return start_match(match)

    def set_bowler(self, match: Match, bowler_id: int) -> Match:
        with self.lock_for(match):
            return set_bowler(match, bowler_id)

    def apply_ball(self, match: Match, delivery: Delivery) -> Match:
        with self.lock_for(match):
            if match.status != MatchStatus.IN_PROGRESS:
                raise MatchStateError(f"Cannot score a ball while the match is {match.status.value}")
            innings = match.current_innings
            apply_ball(innings, delivery, self.rotate_strike_on_wicket_runs)
            if innings.is_complete:
                self._end_innings(match)
            return match

    def _end_innings(self, match: Match) -> None:
        if match.current_innings_number == 1:
            first = match.innings[0]
            second = create_innings(
                first.bowling_team,
                first.batting_team,
                2,
                match.overs_per_innings,
                target=first.score + 1,
            )
            match.innings.append(second)
            match.current_innings_number = 2
            logger.info("%s: %s need %d to win", match.id, second.batting_team.name, second.target)
            return
        self._finish(match)

    def _finish(self, match: Match) -> None:
        match.result, match.winner_id = result_text(match)
        match.status = MatchStatus.FINISHED
        logger.info("%s finished: %s", match.id, match.result)
        self.release(match)

    def declare_no_result(self, match: Match) -> Match:
        with self.lock_for(match):
            if match.status == MatchStatus.FINISHED:
                raise MatchStateError("Match is already finished")
            innings = match.current_innings
            if innings is not None and not innings.is_complete:
                innings.status = InningsStatus.COMPLETED
                innings.current_bowler_id = None
            match.status = MatchStatus.FINISHED
            match.result = "No result"
            match.winner_id = None
            logger.info("%s abandoned: no result", match.id)
            self.release(match)
            return match

    def undo_last_ball(self, match: Match) -> Match:
        """
        Remove the last recorded ball by replaying every earlier one on a
        fresh start with the original XIs. Impact substitutions are made
        again at the point they were first made; one made after the removed
        ball is dropped. The bowler of each replayed ball is taken from the
        timeline, so no bowler selection is needed. If the replay fails the
        match is left exactly as it was.
        """
        with self.lock_for(match):
            balls = [ball for innings in match.innings for ball in innings.timeline]
            if not balls:
                raise MatchStateError("No balls to undo")
            balls.pop()

            saved = _save_state(match)
            try:
                self._replay(match, balls)
            except Exception:
                _restore_state(match, saved)
                raise
            logger.info("%s: undid last ball, %d balls replayed", match.id, len(balls))
            return match

    def _replay(self, match: Match, balls: list[Ball]) -> None:
        swaps = [s for s in match.substitutions if s.after_ball <= len(balls)]
        for team in match.teams:
            team.mark_substitutes()
            team.impact_player_used = False
            for player in team.players:
                player.reset_match_records()
        match.innings = []
        match.substitutions = []
        match.status = MatchStatus.PENDING
        match.result = None
        match.winner_id = None

        _replay_swaps(match, swaps, 0)
        start_match(match)
        for count, ball in enumerate(balls, start=1):
            innings = match.current_innings
            innings.current_bowler_id = ball.bowler_id
            apply_ball(innings, ball.delivery, self.rotate_strike_on_wicket_runs)
            if innings.is_complete:
                self._end_innings(match)
            _replay_swaps(match, swaps, count)

        innings = match.current_innings
        if balls and innings.balls_this_over > 0:
            innings.current_bowler_id = balls[-1].bowler_id

    def use_impact_player(self, match: Match, team_id: int, out_player_id: int, in_player_id: int) -> Match:
        """Swap a bench player into the XI; once per team per match"""
        with self.lock_for(match):
            if match.status == MatchStatus.FINISHED:
                raise MatchStateError("Match is already finished")
            team = match.get_team(team_id)
            if team is None:
                raise InvalidInputError(f"Team {team_id} is not playing this match")
            if team.impact_player_used:
                raise MatchStateError(f"{team.name} has already used their impact player")

            player_out = team.get_player(out_player_id)
            player_in = team.get_player(in_player_id)
            if player_out is None or not player_out.in_playing_xi:
                raise InvalidInputError(f"Player {out_player_id} is not in {team.name}'s playing XI")
            if player_in is None or player_in.in_playing_xi:
                raise InvalidInputError(f"Player {in_player_id} is not on {team.name}'s bench")

            innings = match.current_innings
            if innings is not None and not innings.is_complete:
                busy = (innings.striker_id, innings.non_striker_id, innings.current_bowler_id)
                if out_player_id in busy:
                    raise MatchStateError(f"{player_out.name} is on the field right now")

            swap_players(team, player_out, player_in)
            match.substitutions.append(Substitution(
                team_id=team.id,
                out_player_id=player_out.id,
                in_player_id=player_in.id,
                after_ball=sum(len(i.timeline) for i in match.innings),
            ))
            logger.info("%s: %s replaces %s", team.name, player_in.name, player_out.name)
            return match
