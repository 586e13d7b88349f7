"""
Pydantic schemas for the ball-shaped records exchanged with callers and models
"""
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from cricsim.models.match import BallEvent, Delivery, WicketType
from cricsim.validators.delivery_validator import DeliveryValidator


class BallEventEnum(str, Enum):
    RUN = "run"
    WICKET = "w"
    WIDE = "wd"
    NO_BALL = "nb"
    LEG_BYE = "lb"
    BYE = "b"


class WicketTypeEnum(str, Enum):
    BOWLED = "Bowled"
    CAUGHT = "Caught"
    LBW = "LBW"
    RUN_OUT = "Run Out"
    STUMPED = "Stumped"
    HIT_WICKET = "Hit Wicket"


class OverBallSchema(BaseModel):
    event: BallEventEnum
    runs: int = Field(0, ge=0, le=6)
    extras: int = Field(0, ge=0)
    wicket_type: Optional[WicketTypeEnum] = Field(None, alias="wicketType")
    fielder_id: Optional[int] = Field(None, alias="fielderId")

    class Config:
        populate_by_name = True

    @model_validator(mode="after")
    def check_legal(self):
        errors = DeliveryValidator.validate(self.to_delivery())
        if errors:
            raise ValueError("; ".join(errors))
        return self

    def to_delivery(self) -> Delivery:
        return Delivery(
            event=BallEvent(self.event.value),
            runs=self.runs,
            extras=self.extras,
            wicket_type=WicketType(self.wicket_type.value) if self.wicket_type else None,
            fielder_id=self.fielder_id,
        )


class SimulatedOverSchema(BaseModel):
    """What a generative model must return for one over"""
    over: list[OverBallSchema]
    commentary: Optional[str] = None

    def to_deliveries(self) -> list[Delivery]:
        return [ball.to_delivery() for ball in self.over]
