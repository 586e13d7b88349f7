"""
Exception hierarchy for the scoring and simulation core.
"""


class CricsimError(Exception):
    """Base class for every error raised by cricsim"""


class InvalidInputError(CricsimError):
    """Malformed match, innings, team or player references"""


class MatchStateError(InvalidInputError):
    """Operation not allowed in the match's current state"""


class IllegalDeliveryError(CricsimError):
    """A delivery that breaks the legality rules. Nothing was applied."""

    def __init__(self, reasons: list[str]):
        self.reasons = list(reasons)
        super().__init__("; ".join(self.reasons) or "Illegal delivery")


class StrategyError(CricsimError):
    """A strategy could not produce an over. Recovered by the engine."""


class StrategyTimeoutError(StrategyError):
    pass


class CacheMissError(StrategyError):
    pass


class ModelResponseError(StrategyError):
    """The generative model returned something unusable"""


class ChainExhaustedError(CricsimError):
    """No strategy produced an over. The rule-based fallback should make this impossible."""
