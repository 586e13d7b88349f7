"""
Tests for delivery and over legality, and the ball record schema.
"""
import pytest
from pydantic import ValidationError

from cricsim.models import BallEvent, Delivery, WicketType
from cricsim.schemas import OverBallSchema, SimulatedOverSchema
from cricsim.validators import DeliveryValidator, OverValidator

FIELDERS = [101, 102, 103]


class TestDeliveryValidator:
    """Single-delivery rules"""

    @pytest.mark.parametrize("delivery", [
        Delivery.dot(),
        Delivery.scoring(6),
        Delivery.wide(),
        Delivery.wide(5),
        Delivery.no_ball(runs=4),
        Delivery.leg_bye(2),
        Delivery.bye(4),
        Delivery.wicket(WicketType.BOWLED),
        Delivery.wicket(WicketType.CAUGHT, fielder_id=101),
        Delivery.wicket(WicketType.RUN_OUT, fielder_id=102, runs=1),
    ])
    def test_legal_deliveries(self, delivery):
        """Verify well-formed deliveries pass validation."""
        assert DeliveryValidator.validate(delivery, fielder_ids=FIELDERS) == []

    @pytest.mark.parametrize("delivery", [
        Delivery(BallEvent.RUN, 7),
        Delivery(BallEvent.RUN, -1),
        Delivery(BallEvent.RUN, 1, 1),
        Delivery(BallEvent.LEG_BYE, 1, 1),
        Delivery(BallEvent.BYE, 0, 0),
        Delivery(BallEvent.WIDE, 1, 1),
        Delivery(BallEvent.WIDE, 0, 0),
        Delivery(BallEvent.NO_BALL, 0, 0),
        Delivery(BallEvent.WICKET, 0, 0),
        Delivery(BallEvent.WICKET, 0, 1, WicketType.BOWLED),
        Delivery(BallEvent.RUN, 0, 0, WicketType.BOWLED),
        Delivery.wicket(WicketType.CAUGHT),
        Delivery.wicket(WicketType.STUMPED),
        Delivery.wicket(WicketType.LBW, fielder_id=101),
        Delivery(BallEvent.RUN, 1, 0, None, 101),
    ])
    def test_illegal_deliveries(self, delivery):
        """Verify malformed deliveries are reported."""
        assert DeliveryValidator.validate(delivery) != []

    def test_fielder_must_be_fielding(self):
        """Verify the fielder must belong to the fielding side."""
        errors = DeliveryValidator.validate(Delivery.wicket(WicketType.CAUGHT, fielder_id=5), fielder_ids=FIELDERS)
        assert errors == ["Fielder 5 is not in the fielding side"]

    def test_free_hit_only_run_out(self):
        """Verify only a run out can dismiss on a free hit."""
        assert DeliveryValidator.validate(Delivery.wicket(WicketType.BOWLED), free_hit=True)
        assert DeliveryValidator.validate(Delivery.wicket(WicketType.CAUGHT, fielder_id=101), free_hit=True)
        assert DeliveryValidator.validate(Delivery.wicket(WicketType.RUN_OUT, fielder_id=101), free_hit=True) == []


class TestOverValidator:
    """Whole-over rules"""

    def test_six_legal_balls(self):
        """Verify an over of six dots is valid."""
        result = OverValidator.validate([Delivery.dot()] * 6)
        assert result["valid"]
        assert result["breakdown"]["legal"] == 6

    def test_extras_do_not_count(self):
        """Verify wides and no-balls do not count toward the six."""
        over = [Delivery.wide(), Delivery.no_ball()] + [Delivery.scoring(1)] * 6
        result = OverValidator.validate(over)
        assert result["valid"]
        assert result["breakdown"] == {"legal": 6, "wides": 1, "no_balls": 1, "wickets": 0, "runs": 8}

    @pytest.mark.parametrize("count", [5, 7])
    def test_wrong_length(self, count):
        """Verify overs with too few or too many legal balls are rejected."""
        result = OverValidator.validate([Delivery.dot()] * count)
        assert not result["valid"]
        assert "exactly 6 legal deliveries" in result["errors"][-1]

    def test_free_hit_tracked_across_over(self):
        """Verify a free hit survives a wide within the over."""
        over = [Delivery.no_ball(), Delivery.wide(), Delivery.wicket(WicketType.BOWLED)] + [Delivery.dot()] * 5
        result = OverValidator.validate(over)
        assert not result["valid"]
        assert result["errors"][0].startswith("Delivery 3:")

    def test_free_hit_used_up(self):
        """Verify a legal ball uses up the free hit."""
        over = [Delivery.no_ball(), Delivery.dot(), Delivery.wicket(WicketType.BOWLED)] + [Delivery.dot()] * 4
        assert OverValidator.validate(over)["valid"]

    def test_free_hit_carried_in(self):
        """Verify a free hit pending from the last over applies to the first ball."""
        over = [Delivery.wicket(WicketType.LBW)] + [Delivery.dot()] * 5
        assert not OverValidator.validate(over, free_hit=True)["valid"]
        assert OverValidator.validate(over, free_hit=False)["valid"]

    def test_empty_fielder_set_is_ignored(self):
        """Verify fielders are only checked when a fielding side is given."""
        over = [Delivery.wicket(WicketType.CAUGHT, fielder_id=9)] + [Delivery.dot()] * 5
        assert OverValidator.validate(over, fielder_ids=[])["valid"]
        assert not OverValidator.validate(over, fielder_ids=FIELDERS)["valid"]


class TestOverBallSchema:
    """Ball records exchanged with callers and the model"""

    def test_parses_aliases(self):
        """Verify camelCase keys are accepted."""
        ball = OverBallSchema.model_validate(
            {"event": "w", "runs": 0, "extras": 0, "wicketType": "Caught", "fielderId": 101}
        )
        assert ball.to_delivery() == Delivery.wicket(WicketType.CAUGHT, fielder_id=101)

    def test_rejects_illegal_ball(self):
        """Verify a caught ball without a fielder fails the schema."""
        with pytest.raises(ValidationError):
            OverBallSchema.model_validate({"event": "w", "wicketType": "Caught"})

    def test_rejects_unknown_event(self):
        """Verify an unknown event code fails the schema."""
        with pytest.raises(ValidationError):
            OverBallSchema.model_validate({"event": "x"})

    def test_record_round_trip(self):
        """Verify a delivery's record passes through the schema unchanged."""
        delivery = Delivery.wicket(WicketType.RUN_OUT, fielder_id=7, runs=1)
        record = OverBallSchema.model_validate(delivery.to_record()).model_dump(by_alias=True, exclude_none=True)
        assert record == {"event": "w", "runs": 1, "extras": 0, "wicketType": "Run Out", "fielderId": 7}

    def test_simulated_over(self):
        """Verify a model reply parses into deliveries."""
        parsed = SimulatedOverSchema.model_validate({
            "over": [{"event": "run", "runs": 1}] * 5 + [{"event": "lb", "extras": 1}],
            "commentary": "Quiet over",
        })
        deliveries = parsed.to_deliveries()
        assert len(deliveries) == 6
        assert deliveries[-1] == Delivery.leg_bye(1)
