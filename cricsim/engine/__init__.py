from cricsim.engine.cache import OverCache
from cricsim.engine.context_analyzer import Phase, SimulationContext, analyze
from cricsim.engine.match_runner import MatchRunner, PlayedOver
from cricsim.engine.match_state import MatchStateMachine, apply_ball, create_match, set_bowler, start_match
from cricsim.engine.simulation_engine import SimulationEngine, build_default_engine

__all__ = [
    "OverCache",
    "Phase",
    "SimulationContext",
    "analyze",
    "MatchRunner",
    "PlayedOver",
    "MatchStateMachine",
    "apply_ball",
    "create_match",
    "set_bowler",
    "start_match",
    "SimulationEngine",
    "build_default_engine",
]
