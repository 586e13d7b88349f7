from cricsim.generators.player_generator import PlayerGenerator
from cricsim.generators.team_generator import FRANCHISE_TEAMS, TeamGenerator

__all__ = ["PlayerGenerator", "TeamGenerator", "FRANCHISE_TEAMS"]
