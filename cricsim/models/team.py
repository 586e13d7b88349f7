from dataclasses import dataclass, field
from typing import Optional

from cricsim.models.player import Player

MAX_PLAYERS = 11


@dataclass
class Team:
    id: int
    name: str
    players: list[Player] = field(default_factory=list)  # batting order
    impact_player_used: bool = False

    @property
    def playing_xi(self) -> list[Player]:
        return [p for p in self.players if p.in_playing_xi]

    @property
    def bench(self) -> list[Player]:
        return [p for p in self.players if not p.in_playing_xi]

    @property
    def max_wickets(self) -> int:
        """Wickets that end an innings: everyone but the last batter out"""
        return max(1, len(self.playing_xi) - 1)

    def get_player(self, player_id: int) -> Optional[Player]:
        return next((p for p in self.players if p.id == player_id), None)

    def has_player(self, player_id: int) -> bool:
        return self.get_player(player_id) is not None

    def mark_substitutes(self) -> None:
        """Everyone after the first eleven starts on the bench"""
        for i, player in enumerate(self.players):
            player.is_substitute = i >= MAX_PLAYERS
            player.is_impact_player = False

    def __repr__(self):
        return f"<Team {self.name} ({len(self.players)} players)>"
