"""
Team Generator - fictional franchise sides for simulated matches
"""
from typing import Optional

from cricsim.errors import InvalidInputError
from cricsim.generators.player_generator import PlayerGenerator
from cricsim.models.team import Team

FRANCHISE_TEAMS = [
    "Mumbai Titans",
    "Chennai Kings",
    "Bangalore Warriors",
    "Kolkata Knights",
    "Delhi Capitals",
    "Hyderabad Sunrisers",
    "Rajasthan Royals",
    "Punjab Lions",
]


class TeamGenerator:
    """Builds franchise teams with generated squads"""

    @classmethod
    def create_team(
        cls,
        index: int,
        squad_size: int = 12,
        with_history: bool = False,
        name: Optional[str] = None,
    ) -> Team:
        """
        Args:
            index: Position (0-7) in FRANCHISE_TEAMS; also the team id - 1
            squad_size: Players in the squad; anyone after the first 11 starts on the bench
            with_history: Give every player a generated career record
            name: Override the franchise name
        """
        return Team(
            id=index + 1,
            name=name or FRANCHISE_TEAMS[index % len(FRANCHISE_TEAMS)],
            players=PlayerGenerator.generate_squad(squad_size, with_history=with_history),
        )

    @classmethod
    def create_teams(cls, count: int = 2, squad_size: int = 12, with_history: bool = False) -> list[Team]:
        if not 2 <= count <= len(FRANCHISE_TEAMS):
            raise InvalidInputError(f"count must be between 2 and {len(FRANCHISE_TEAMS)}")
        return [cls.create_team(i, squad_size, with_history) for i in range(count)]
