"""
Tests for ball-by-ball scoring and match transitions.
"""
import random

import pytest

from cricsim.engine import match_state
from cricsim.engine.match_state import (
    MatchStateMachine,
    apply_ball,
    check_bowler,
    max_overs_per_bowler,
    select_bowler,
    set_bowler,
)
from cricsim.errors import IllegalDeliveryError, InvalidInputError, MatchStateError
from cricsim.models import (
    BattingStatus,
    Delivery,
    InningsStatus,
    MatchStatus,
    TossDecision,
    WicketType,
)
from tests.factories import bowl, create_test_match, dots, next_bowler_id

FOURS = [Delivery.scoring(4) for _ in range(6)]


def started_match(overs: int = 20, **kwargs):
    machine = MatchStateMachine()
    match = create_test_match(overs=overs, **kwargs)
    machine.start_match(match)
    return machine, match


class TestMatchLifecycle:
    """Match and innings status transitions"""

    def test_new_match_is_pending(self):
        """Verify a new match is pending with no innings."""
        match = create_test_match()
        assert match.status == MatchStatus.PENDING
        assert match.innings == []
        assert match.current_innings is None

    def test_start_creates_first_innings_from_toss(self):
        """Verify starting the match opens innings one for the side chosen at the toss."""
        machine, match = started_match()
        innings = match.current_innings
        assert match.status == MatchStatus.IN_PROGRESS
        assert innings.number == 1
        assert innings.batting_team.name == "Team A"
        assert innings.status == InningsStatus.NOT_STARTED
        assert (innings.striker_id, innings.non_striker_id) == (1, 2)

    def test_toss_winner_bowling_bats_second(self):
        """Verify a toss winner who bowls bats second."""
        machine, match = started_match(decision=TossDecision.BOWL)
        assert match.current_innings.batting_team.name == "Team B"

    def test_cannot_start_twice(self):
        """Verify a started match cannot be started again."""
        machine, match = started_match()
        with pytest.raises(MatchStateError):
            machine.start_match(match)

    def test_cannot_score_before_start(self):
        """Verify balls are rejected before the match starts."""
        machine = MatchStateMachine()
        match = create_test_match()
        with pytest.raises(MatchStateError):
            machine.apply_ball(match, Delivery.dot())

    def test_first_ball_starts_batting(self):
        """Verify the first ball moves the innings to batting."""
        machine, match = started_match()
        bowl(machine, match, [Delivery.dot()])
        assert match.current_innings.status == InningsStatus.BATTING

    def test_ball_without_bowler_rejected(self):
        """Verify a ball needs a bowler."""
        machine, match = started_match()
        with pytest.raises(MatchStateError):
            machine.apply_ball(match, Delivery.dot())


class TestChaseScenario:
    """Team A sets 50, Team B gets there at 51/3 in 4.2 overs"""

    def play(self):
        machine, match = started_match(overs=5)
        first_innings = FOURS + FOURS + [Delivery.scoring(1)] + dots(5) + dots(6) + dots(6)
        bowl(machine, match, first_innings)
        assert match.current_innings_number == 2

        second_innings = (
            [Delivery.wicket(WicketType.BOWLED)] + FOURS[:5]
            + [Delivery.wicket(WicketType.CAUGHT, fielder_id=3)] + FOURS[:5]
            + [Delivery.wicket(WicketType.LBW)] + [Delivery.scoring(1) for _ in range(5)]
            + dots(6)
            + [Delivery.dot(), Delivery.scoring(6)]
        )
        bowl(machine, match, second_innings)
        return match

    def test_first_innings_sets_target(self):
        """Verify the first innings score sets the target."""
        match = self.play()
        first, second = match.innings
        assert first.score == 49
        assert first.status == InningsStatus.COMPLETED
        assert second.target == 50

    def test_chase_result(self):
        """Verify the chase ends when the target is passed."""
        match = self.play()
        second = match.innings[1]
        assert second.score == 51
        assert second.wickets == 3
        assert second.overs_display == "4.2"
        assert match.status == MatchStatus.FINISHED
        assert match.result == "Team B won by 7 wickets"
        assert match.winner_id == 2

    def test_fall_of_wickets(self):
        """Verify fall of wickets records the score and over."""
        match = self.play()
        fow = match.innings[1].fall_of_wickets
        assert [(f.wicket, f.score, f.over) for f in fow] == [(1, 0, 0.1), (2, 20, 1.1), (3, 40, 2.1)]
        assert fow[0].player_id == 101

    def test_dismissal_details(self):
        """Verify dismissal text names the bowler and fielder."""
        match = self.play()
        team_b = match.teams[1]
        assert team_b.get_player(101).batting.dismissal == "b Team A 11"
        assert team_b.get_player(102).batting.dismissal == "c Team A 3 b Team A 10"
        assert team_b.get_player(101).batting.status == BattingStatus.OUT
        assert match.teams[0].get_player(11).bowling.wickets == 1

    def test_maidens(self):
        """Verify runless overs are counted as maidens."""
        match = self.play()
        team_a, team_b = match.teams
        assert team_a.get_player(8).bowling.maidens == 1
        assert team_b.get_player(108).bowling.maidens == 1
        assert team_b.get_player(109).bowling.maidens == 0

    def test_cannot_score_after_finish(self):
        """Verify a finished match rejects more balls."""
        match = self.play()
        with pytest.raises(MatchStateError):
            MatchStateMachine().apply_ball(match, Delivery.dot())


class TestResults:
    """Result strings"""

    def one_over_match(self, first: list, second: list):
        machine, match = started_match(overs=1)
        bowl(machine, match, first)
        bowl(machine, match, second)
        return match

    def test_tie(self):
        """Verify equal scores tie the match."""
        match = self.one_over_match([Delivery.scoring(4)] + dots(5), [Delivery.scoring(4)] + dots(5))
        assert match.result == "Match tied"
        assert match.winner_id is None

    def test_won_by_one_run_is_singular(self):
        """Verify a one-run margin reads "1 run"."""
        match = self.one_over_match([Delivery.scoring(4)] + dots(5), [Delivery.scoring(3)] + dots(5))
        assert match.result == "Team A won by 1 run"
        assert match.winner_id == 1

    def test_won_by_runs(self):
        """Verify the side batting first wins by the run margin."""
        match = self.one_over_match([Delivery.scoring(6)] + dots(5), [Delivery.scoring(2)] + dots(5))
        assert match.result == "Team A won by 4 runs"

    def test_all_out_ends_innings(self):
        """Verify ten wickets end the innings."""
        machine, match = started_match(overs=5)
        bowl(machine, match, [Delivery.wicket(WicketType.BOWLED) for _ in range(10)])
        first = match.innings[0]
        assert first.wickets == 10
        assert first.overs_display == "1.4"
        assert first.status == InningsStatus.COMPLETED
        assert first.striker_id is None

        bowl(machine, match, [Delivery.scoring(1)])
        assert match.result == "Team B won by 10 wickets"

    def test_declare_no_result(self):
        """Verify an abandoned match finishes with no result."""
        machine, match = started_match()
        bowl(machine, match, dots(3))
        machine.declare_no_result(match)
        assert match.status == MatchStatus.FINISHED
        assert match.result == "No result"
        assert match.current_innings.status == InningsStatus.COMPLETED
        assert match.id not in machine._locks
        with pytest.raises(MatchStateError):
            machine.declare_no_result(match)


class TestDeliveryRules:
    """Extras, free hits and rejected deliveries"""

    def test_wide_does_not_use_a_ball(self):
        """Verify a wide adds an extra without using a ball."""
        machine, match = started_match()
        bowl(machine, match, [Delivery.wide()])
        innings = match.current_innings
        assert innings.score == 1
        assert innings.extras == 1
        assert innings.balls_this_over == 0
        assert innings.bowling_team.get_player(innings.current_bowler_id).bowling.runs_conceded == 1

    def test_leg_bye_not_charged_to_bowler(self):
        """Verify leg byes are not charged to the bowler."""
        machine, match = started_match()
        bowl(machine, match, [Delivery.leg_bye(1)])
        innings = match.current_innings
        bowler = innings.bowling_team.get_player(innings.current_bowler_id)
        assert innings.score == 1
        assert innings.extras == 1
        assert bowler.bowling.runs_conceded == 0
        assert innings.batting_team.get_player(1).batting.balls_faced == 1
        assert innings.batting_team.get_player(1).batting.runs == 0
        assert innings.striker_id == 2

    def test_boundaries_counted(self):
        """Verify fours and sixes are counted for the batter."""
        machine, match = started_match()
        bowl(machine, match, [Delivery.scoring(4), Delivery.scoring(6)])
        striker = match.teams[0].get_player(1)
        assert (striker.batting.runs, striker.batting.fours, striker.batting.sixes) == (10, 1, 1)
        assert striker.batting.strike_rate == 500.0

    def test_caught_without_fielder_rejected(self):
        """Verify a caught ball without a fielder leaves the innings unchanged."""
        machine, match = started_match()
        bowl(machine, match, [Delivery.scoring(2)])
        innings = match.current_innings

        with pytest.raises(IllegalDeliveryError) as exc:
            machine.apply_ball(match, Delivery.wicket(WicketType.CAUGHT))

        assert any("needs a fielder" in r for r in exc.value.reasons)
        assert innings.score == 2
        assert innings.wickets == 0
        assert len(innings.timeline) == 1
        assert innings.balls_this_over == 1

    def test_fielder_from_batting_side_rejected(self):
        """Verify a fielder from the batting side is rejected."""
        machine, match = started_match()
        bowl(machine, match, [Delivery.dot()])
        with pytest.raises(IllegalDeliveryError):
            machine.apply_ball(match, Delivery.wicket(WicketType.CAUGHT, fielder_id=5))

    def test_free_hit_after_no_ball(self):
        """Verify a no-ball sets a free hit."""
        machine, match = started_match()
        bowl(machine, match, [Delivery.no_ball()])
        innings = match.current_innings
        assert innings.is_free_hit

        with pytest.raises(IllegalDeliveryError):
            machine.apply_ball(match, Delivery.wicket(WicketType.BOWLED))
        assert innings.wickets == 0

        # Carried through a wide
        machine.apply_ball(match, Delivery.wide())
        assert innings.is_free_hit

        machine.apply_ball(match, Delivery.wicket(WicketType.RUN_OUT, fielder_id=105))
        assert innings.wickets == 1
        assert not innings.is_free_hit
        assert innings.batting_team.get_player(1).batting.dismissal == "run out (Team B 5)"

    def test_legal_ball_uses_up_free_hit(self):
        """Verify a legal ball clears the free hit."""
        machine, match = started_match()
        bowl(machine, match, [Delivery.no_ball(), Delivery.dot()])
        assert not match.current_innings.is_free_hit

    def test_no_ball_runs_go_to_batter(self):
        """Verify runs off a no-ball are credited to the batter."""
        machine, match = started_match()
        bowl(machine, match, [Delivery.no_ball(runs=4)])
        innings = match.current_innings
        assert innings.score == 5
        assert innings.extras == 1
        assert innings.batting_team.get_player(1).batting.runs == 4
        assert innings.batting_team.get_player(1).batting.balls_faced == 0


class TestStrikeRotation:
    """Strike changes on odd running runs and at the end of every over"""

    @pytest.mark.parametrize("seed", range(5))
    def test_random_sequences(self, seed):
        """Verify strike follows odd runs and over ends over random deliveries."""
        rng = random.Random(seed)
        choices = [
            Delivery.dot(), Delivery.scoring(1), Delivery.scoring(2), Delivery.scoring(3),
            Delivery.scoring(4), Delivery.scoring(6), Delivery.leg_bye(1), Delivery.leg_bye(2),
            Delivery.bye(1), Delivery.wide(), Delivery.wide(2), Delivery.no_ball(), Delivery.no_ball(runs=1),
        ]
        machine, match = started_match(overs=10)
        innings = match.current_innings

        while not innings.is_complete:
            if innings.current_bowler_id is None:
                set_bowler(match, next_bowler_id(match))
            delivery = rng.choice(choices)
            striker, non_striker, overs = innings.striker_id, innings.non_striker_id, innings.overs

            apply_ball(innings, delivery)

            expected = (striker, non_striker)
            if delivery.running_runs % 2 == 1:
                expected = expected[::-1]
            if innings.overs != overs:
                expected = expected[::-1]
            assert (innings.striker_id, innings.non_striker_id) == expected

        assert innings.overs == 10

    def test_new_batter_takes_strike(self):
        """Verify the new batter comes in on strike."""
        machine, match = started_match()
        bowl(machine, match, [Delivery.wicket(WicketType.BOWLED)])
        innings = match.current_innings
        assert (innings.striker_id, innings.non_striker_id) == (3, 2)
        assert innings.partnership.batsman1 == 3

    def test_run_out_with_a_run_rotates(self):
        """Verify a completed run before a run out rotates strike."""
        machine, match = started_match()
        bowl(machine, match, [Delivery.wicket(WicketType.RUN_OUT, fielder_id=101, runs=1)])
        innings = match.current_innings
        assert innings.score == 1
        assert (innings.striker_id, innings.non_striker_id) == (2, 3)

    def test_run_out_rotation_can_be_disabled(self):
        """Verify rotation on a run out can be turned off."""
        machine = MatchStateMachine(rotate_strike_on_wicket_runs=False)
        match = create_test_match()
        machine.start_match(match)
        bowl(machine, match, [Delivery.wicket(WicketType.RUN_OUT, fielder_id=101, runs=1)])
        assert match.current_innings.striker_id == 3


class TestBowlers:
    """Bowler eligibility"""

    def test_max_overs(self):
        """Verify the per-bowler quota is a fifth of the overs."""
        assert max_overs_per_bowler(20) == 4
        assert max_overs_per_bowler(50) == 10
        assert max_overs_per_bowler(1) == 1

    def test_no_consecutive_overs(self):
        """Verify a bowler cannot bowl two overs in a row."""
        machine, match = started_match()
        machine.set_bowler(match, 111)
        bowl(machine, match, dots(6))
        assert check_bowler(match.current_innings, 111)
        with pytest.raises(InvalidInputError):
            machine.set_bowler(match, 111)

    def test_bowler_must_be_fielding(self):
        """Verify the bowler must come from the fielding side."""
        machine, match = started_match()
        with pytest.raises(InvalidInputError):
            machine.set_bowler(match, 1)

    def test_cannot_change_bowler_mid_over(self):
        """Verify the bowler cannot change mid-over."""
        machine, match = started_match()
        machine.set_bowler(match, 111)
        bowl(machine, match, dots(2))
        with pytest.raises(MatchStateError):
            machine.set_bowler(match, 110)

    def test_overs_cap(self):
        """Verify a bowler cannot exceed the quota."""
        machine, match = started_match(overs=5)
        machine.set_bowler(match, 111)
        bowl(machine, match, dots(6))
        machine.set_bowler(match, 110)
        bowl(machine, match, dots(6))
        errors = check_bowler(match.current_innings, 111)
        assert any("maximum" in e for e in errors)

    def test_select_bowler_respects_rules(self):
        """Verify automatic bowler selection follows the rules."""
        machine, match = started_match()
        rng = random.Random(7)
        for _ in range(12):
            innings = match.current_innings
            bowler = select_bowler(innings, rng)
            assert bowler.id != innings.previous_bowler_id
            assert not check_bowler(innings, bowler.id)
            machine.set_bowler(match, bowler.id)
            bowl(machine, match, dots(6))


class TestUndo:
    """Undoing the last ball replays the rest"""

    def test_undo_restores_previous_state(self):
        """Verify undo restores the state before the last ball."""
        machine, match = started_match()
        bowl(machine, match, [Delivery.scoring(4), Delivery.scoring(1), Delivery.wide()])
        innings = match.current_innings
        before = (innings.score, innings.wickets, innings.striker_id, innings.balls_this_over, len(innings.timeline))

        bowl(machine, match, [Delivery.wicket(WicketType.BOWLED)])
        machine.undo_last_ball(match)

        innings = match.current_innings
        after = (innings.score, innings.wickets, innings.striker_id, innings.balls_this_over, len(innings.timeline))
        assert after == before
        assert innings.current_bowler_id == 111
        assert match.teams[0].get_player(1).batting.status == BattingStatus.NOT_OUT
        assert match.teams[0].get_player(3).batting.status == BattingStatus.DID_NOT_BAT
        assert match.teams[1].get_player(111).bowling.runs_conceded == 6

    def test_undo_reopens_finished_match(self):
        """Verify undoing the winning ball reopens the match."""
        machine, match = started_match(overs=1)
        bowl(machine, match, [Delivery.scoring(4)] + dots(5))
        bowl(machine, match, [Delivery.scoring(6)])
        assert match.is_finished

        machine.undo_last_ball(match)
        assert match.status == MatchStatus.IN_PROGRESS
        assert match.result is None
        assert match.current_innings_number == 2
        assert match.current_innings.score == 0

    def test_undo_with_no_balls(self):
        """Verify undo needs a recorded ball."""
        machine, match = started_match()
        with pytest.raises(MatchStateError):
            machine.undo_last_ball(match)

    def test_undo_after_impact_swap(self):
        """Verify undo replays balls caught by a fielder who was later swapped out."""
        machine, match = started_match(squad_size=12)
        bowl(machine, match, [Delivery.wicket(WicketType.CAUGHT, fielder_id=105)] + dots(5))
        machine.use_impact_player(match, 2, 105, 112)
        bowl(machine, match, [Delivery.dot()])
        assert match.current_innings.previous_bowler_id == 111

        machine.undo_last_ball(match)

        innings = match.current_innings
        team_b = match.teams[1]
        assert len(innings.timeline) == 6
        assert (innings.score, innings.wickets, innings.legal_balls) == (0, 1, 6)
        assert innings.fall_of_wickets[0].player_id == 1
        assert innings.striker_id == 2
        assert team_b.get_player(112).in_playing_xi
        assert not team_b.get_player(105).in_playing_xi
        assert team_b.get_player(112).bowling.balls_bowled == 0
        assert team_b.impact_player_used
        assert len(match.substitutions) == 1

    def test_undo_drops_later_swap(self):
        """Verify a substitution made after the removed ball is undone with it."""
        machine, match = started_match(squad_size=12)
        bowl(machine, match, [Delivery.scoring(1)])
        machine.use_impact_player(match, 2, 105, 112)

        machine.undo_last_ball(match)

        team_b = match.teams[1]
        assert team_b.get_player(105).in_playing_xi
        assert not team_b.get_player(112).in_playing_xi
        assert not team_b.impact_player_used
        assert match.substitutions == []

    def test_failed_replay_leaves_match_untouched(self, monkeypatch):
        """Verify a replay error restores the match as it was before undo."""
        machine, match = started_match()
        bowl(machine, match, [Delivery.scoring(4), Delivery.scoring(1), Delivery.dot()])
        innings = match.current_innings
        opener = match.teams[0].get_player(1)

        def broken_apply_ball(*args, **kwargs):
            raise RuntimeError("replay failed")

        monkeypatch.setattr(match_state, "apply_ball", broken_apply_ball)
        with pytest.raises(RuntimeError):
            machine.undo_last_ball(match)

        assert match.current_innings is innings
        assert match.status == MatchStatus.IN_PROGRESS
        assert (innings.score, len(innings.timeline)) == (5, 3)
        assert opener.batting.runs == 5
        assert match.teams[1].get_player(111).bowling.runs_conceded == 5



class TestImpactPlayer:
    """One bench substitution per team"""

    def test_swap(self):
        """Verify the impact player joins the XI in place of the outgoing player."""
        machine, match = started_match(squad_size=12)
        team_b = match.teams[1]
        assert [p.id for p in team_b.bench] == [112]

        machine.use_impact_player(match, 2, 111, 112)
        assert team_b.get_player(112).in_playing_xi
        assert team_b.get_player(112).is_impact_player
        assert not team_b.get_player(111).in_playing_xi
        assert team_b.impact_player_used

    def test_only_once(self):
        """Verify a team gets one impact substitution."""
        machine, match = started_match(squad_size=12)
        machine.use_impact_player(match, 2, 111, 112)
        with pytest.raises(MatchStateError):
            machine.use_impact_player(match, 2, 110, 111)

    def test_player_at_crease_cannot_leave(self):
        """Verify a batter at the crease cannot be swapped out."""
        machine, match = started_match(squad_size=12)
        with pytest.raises(MatchStateError):
            machine.use_impact_player(match, 1, 1, 12)

    def test_incoming_must_be_on_bench(self):
        """Verify the incoming player must be on the bench."""
        machine, match = started_match(squad_size=12)
        with pytest.raises(InvalidInputError):
            machine.use_impact_player(match, 2, 111, 110)

    def test_impact_player_can_bowl(self):
        """Verify the impact player can bowl."""
        machine, match = started_match(squad_size=12)
        machine.use_impact_player(match, 2, 111, 112)
        machine.set_bowler(match, 112)
        bowl(machine, match, [Delivery.dot()])
        assert match.teams[1].get_player(112).bowling.balls_bowled == 1
