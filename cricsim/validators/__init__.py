from cricsim.validators.delivery_validator import DeliveryValidator, OverValidator, BALLS_PER_OVER

__all__ = ["DeliveryValidator", "OverValidator", "BALLS_PER_OVER"]
