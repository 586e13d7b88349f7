import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Optional

from pydantic import ValidationError

from cricsim.config import settings
from cricsim.engine.context_analyzer import SimulationContext
from cricsim.engine.llm_client import OverModel
from cricsim.engine.strategies.base import OverResult, OverStrategy
from cricsim.errors import ModelResponseError, StrategyError, StrategyTimeoutError
from cricsim.schemas import SimulatedOverSchema

logger = logging.getLogger(__name__)

COST_PER_CALL = 0.02


class AiStrategy(OverStrategy):
    """
    Delegates complex overs to a generative model.

    The model call runs on a worker thread and is bounded by `timeout`; a
    timeout, a transport error or an unusable reply raises StrategyError and
    nothing from the call is kept.

    A call that is already running cannot be cancelled, so it holds its
    worker until the client gives up (the OpenAI client is built with the
    same timeout). Size max_workers for the number of overs that may be
    waiting on the model at once.
    """
    name = "AI"

    def __init__(
        self,
        model: Optional[OverModel] = None,
        complexity_threshold: int = None,
        lookahead: int = None,
        aggression: Optional[int] = None,
        timeout: float = None,
        executor: ThreadPoolExecutor = None,
        max_workers: int = 4,
    ):
        self.model = model
        self.complexity_threshold = complexity_threshold if complexity_threshold is not None else settings.AI_COMPLEXITY_THRESHOLD
        self.lookahead = lookahead if lookahead is not None else settings.AI_LOOKAHEAD
        self.aggression = aggression
        self.timeout = timeout if timeout is not None else settings.AI_TIMEOUT
        self._executor = executor
        self._owns_executor = executor is None
        self.max_workers = max_workers

    @property
    def executor(self) -> ThreadPoolExecutor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="cricsim-ai")
        return self._executor

    def can_handle(self, context: SimulationContext) -> bool:
        return self.model is not None and context.complexity >= self.complexity_threshold

    def simulate_over(self, context: SimulationContext) -> OverResult:
        aggression = self.aggression if self.aggression is not None else context.aggression
        future = self.executor.submit(self.model.generate_over, context, self.lookahead, aggression)
        try:
            raw = future.result(timeout=self.timeout)
        except FutureTimeoutError as exc:
            future.cancel()
            raise StrategyTimeoutError(f"Model did not answer within {self.timeout}s") from exc
        except StrategyError:
            raise
        except Exception as exc:
            raise ModelResponseError(f"Model call failed: {exc}") from exc

        try:
            parsed = SimulatedOverSchema.model_validate(raw)
        except ValidationError as exc:
            raise ModelResponseError(f"Model reply failed validation: {exc.error_count()} errors") from exc

        return OverResult(
            deliveries=tuple(parsed.to_deliveries()),
            strategy=self.name,
            commentary=parsed.commentary or "AI-generated over simulation.",
            cost=COST_PER_CALL,
            debug={"lookahead": self.lookahead, "aggression": aggression, "complexity": context.complexity},
        )

    def close(self) -> None:
        if self._executor is not None and self._owns_executor:
            self._executor.shutdown(wait=False, cancel_futures=True)
            self._executor = None
