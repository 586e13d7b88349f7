from typing import Iterable, Optional

from cricsim.models.match import BallEvent, Delivery, WicketType

BALLS_PER_OVER = 6


class DeliveryValidator:
    @staticmethod
    def validate(
        delivery: Delivery,
        free_hit: bool = False,
        fielder_ids: Optional[Iterable[int]] = None,
    ) -> list[str]:
        """
        Check a single delivery against the legality rules.

        Rules:
        1. Runs off the bat 0-6, extras never negative
        2. Byes and leg byes: no runs off the bat, at least 1 extra
        3. Wides: no runs off the bat, at least 1 extra. No-balls: at least 1 extra
        4. Scoring shots carry no extras
        5. Wickets need a wicket type and carry no extras; nothing else may have one
        6. A fielder is named for Caught, Run Out and Stumped, and only for those
        7. On a free hit the striker can only be run out

        Returns a list of reasons; empty means the delivery is legal.
        """
        errors = []
        event = delivery.event

        if not isinstance(event, BallEvent):
            return [f"Unknown event {event!r}"]

        if not 0 <= delivery.runs <= 6:
            errors.append(f"Runs off the bat must be between 0 and 6, got {delivery.runs}")
        if delivery.extras < 0:
            errors.append(f"Extras cannot be negative, got {delivery.extras}")

        if event in (BallEvent.LEG_BYE, BallEvent.BYE):
            if delivery.runs != 0:
                errors.append(f"A {event.value} delivery cannot have runs off the bat, got {delivery.runs}")
            if delivery.extras < 1:
                errors.append(f"A {event.value} delivery needs at least 1 extra")
        elif event == BallEvent.WIDE:
            if delivery.runs != 0:
                errors.append(f"A wide cannot have runs off the bat, got {delivery.runs}")
            if delivery.extras < 1:
                errors.append("A wide needs at least 1 extra")
        elif event == BallEvent.NO_BALL:
            if delivery.extras < 1:
                errors.append("A no-ball needs at least 1 extra")
        elif event == BallEvent.RUN:
            if delivery.extras != 0:
                errors.append(f"A scoring shot cannot carry extras, got {delivery.extras}")
        elif event == BallEvent.WICKET:
            if delivery.extras != 0:
                errors.append(f"A wicket delivery cannot carry extras, got {delivery.extras}")

        wicket_type = delivery.wicket_type
        if event == BallEvent.WICKET:
            if wicket_type is None:
                errors.append("A wicket needs a wicket type")
            elif not isinstance(wicket_type, WicketType):
                errors.append(f"Unknown wicket type {wicket_type!r}")
        elif wicket_type is not None:
            errors.append(f"Only a wicket can have a wicket type, got {event.value}")

        if isinstance(wicket_type, WicketType) and event == BallEvent.WICKET:
            if wicket_type.needs_fielder and delivery.fielder_id is None:
                errors.append(f"{wicket_type.value} needs a fielder")
            if not wicket_type.needs_fielder and delivery.fielder_id is not None:
                errors.append(f"{wicket_type.value} cannot name a fielder")
            if free_hit and wicket_type != WicketType.RUN_OUT:
                errors.append(f"Only a run out can dismiss the striker on a free hit, got {wicket_type.value}")
        elif event != BallEvent.WICKET and delivery.fielder_id is not None:
            errors.append("Only a wicket can name a fielder")

        if fielder_ids is not None and delivery.fielder_id is not None:
            if delivery.fielder_id not in set(fielder_ids):
                errors.append(f"Fielder {delivery.fielder_id} is not in the fielding side")

        return errors


class OverValidator:
    @staticmethod
    def validate(
        deliveries: list[Delivery],
        free_hit: bool = False,
        fielder_ids: Optional[Iterable[int]] = None,
    ) -> dict:
        """
        Validate a simulated over.

        Rules:
        1. Exactly 6 legal deliveries
        2. Every delivery legal on its own
        3. Free hits follow no-balls: carried through wides, used up by the next legal ball
        """
        errors = []
        fielders = set(fielder_ids) if fielder_ids is not None else None
        if fielders is not None and not fielders:
            fielders = None

        legal = 0
        wides = no_balls = wickets = 0
        for index, delivery in enumerate(deliveries):
            for reason in DeliveryValidator.validate(delivery, free_hit=free_hit, fielder_ids=fielders):
                errors.append(f"Delivery {index + 1}: {reason}")

            event = delivery.event
            if event == BallEvent.NO_BALL:
                no_balls += 1
                free_hit = True
            elif event == BallEvent.WIDE:
                wides += 1
            else:
                legal += 1
                free_hit = False
            if event == BallEvent.WICKET:
                wickets += 1

        if legal != BALLS_PER_OVER:
            errors.append(f"An over needs exactly {BALLS_PER_OVER} legal deliveries, got {legal}")

        return {
            "valid": len(errors) == 0,
            "errors": errors,
            "breakdown": {
                "legal": legal,
                "wides": wides,
                "no_balls": no_balls,
                "wickets": wickets,
                "runs": sum(d.total_runs for d in deliveries),
            }
        }
