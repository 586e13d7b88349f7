import itertools
import random
from typing import Optional

from faker import Faker

from cricsim.models.player import CareerStats, Player, PlayerRole

# Use en_US where Faker has no matching locale
fake_in = Faker('en_IN')
fake_au = Faker('en_AU')
fake_en = Faker('en_GB')
fake_za = Faker('en_US')
fake_nz = Faker('en_NZ')


class PlayerGenerator:
    """Generates fictional cricket players with ratings and, optionally, a career record"""

    NATIONALITIES = [
        ("India", fake_in, 60),
        ("Australia", fake_au, 12),
        ("England", fake_en, 10),
        ("South Africa", fake_za, 8),
        ("New Zealand", fake_nz, 10),
    ]

    ROLE_WEIGHTS = {
        PlayerRole.BATSMAN: 30,
        PlayerRole.BOWLER: 35,
        PlayerRole.ALL_ROUNDER: 20,
        PlayerRole.WICKET_KEEPER: 15,
    }

    # Rating range by tier
    TIER_RATINGS = {
        "elite": (82, 95),
        "star": (72, 85),
        "good": (62, 75),
        "solid": (50, 65),
    }

    # Order of a balanced XI: openers and top order, keeper, all-rounders, bowlers
    XI_TEMPLATE = [
        PlayerRole.BATSMAN,
        PlayerRole.BATSMAN,
        PlayerRole.BATSMAN,
        PlayerRole.BATSMAN,
        PlayerRole.WICKET_KEEPER,
        PlayerRole.ALL_ROUNDER,
        PlayerRole.ALL_ROUNDER,
        PlayerRole.BOWLER,
        PlayerRole.BOWLER,
        PlayerRole.BOWLER,
        PlayerRole.BOWLER,
    ]

    _ids = itertools.count(1)

    @staticmethod
    def _weighted_choice(choices: list[tuple]) -> any:
        """Select from weighted choices [(item, weight), ...]"""
        items = [c[0] for c in choices]
        weights = [c[1] for c in choices]
        return random.choices(items, weights=weights, k=1)[0]

    @classmethod
    def seed(cls, seed: int) -> None:
        """Make names, ratings and ids reproducible"""
        random.seed(seed)
        Faker.seed(seed)
        cls._ids = itertools.count(1)

    @classmethod
    def next_id(cls) -> int:
        return next(cls._ids)

    @classmethod
    def generate_career(cls, role: PlayerRole, rating: int, matches: Optional[int] = None) -> CareerStats:
        """
        Plausible T20 history for a player of this role and rating.
        Better batters score faster and get out less; better bowlers go for
        fewer and take more wickets.
        """
        matches = matches or random.randint(5, 60)
        skill = rating / 100

        bats_high = role in (PlayerRole.BATSMAN, PlayerRole.WICKET_KEEPER, PlayerRole.ALL_ROUNDER)
        balls_per_match = random.randint(14, 24) if bats_high else random.randint(2, 7)
        balls_faced = matches * balls_per_match
        strike_rate = (95 + 60 * skill if bats_high else 70 + 40 * skill) + random.uniform(-10, 10)
        runs = int(balls_faced * strike_rate / 100)
        boundary_rate = max(0.03, 0.06 + 0.14 * skill + random.uniform(-0.03, 0.03))
        boundaries = int(balls_faced * boundary_rate)
        sixes = int(boundaries * random.uniform(0.2, 0.45))
        dismissal_rate = max(0.015, 0.09 - 0.06 * skill) if bats_high else 0.12
        dismissals = min(matches, max(1, int(balls_faced * dismissal_rate)))

        career = CareerStats(
            matches=matches,
            innings=matches,
            runs=runs,
            balls_faced=balls_faced,
            fours=boundaries - sixes,
            sixes=sixes,
            dismissals=dismissals,
        )

        if role in (PlayerRole.BOWLER, PlayerRole.ALL_ROUNDER):
            balls_bowled = matches * random.choice([18, 24, 24, 24])
            economy = max(5.5, 10.5 - 4 * skill + random.uniform(-0.8, 0.8))
            career.balls_bowled = balls_bowled
            career.runs_conceded = int(balls_bowled / 6 * economy)
            career.wickets = int(balls_bowled * (0.02 + 0.04 * skill))
            career.maidens = int(matches * 0.1 * skill)
        return career

    @classmethod
    def generate_player(
        cls,
        role: PlayerRole = None,
        nationality: str = None,
        tier: str = "solid",
        with_history: bool = False,
    ) -> Player:
        """
        Generate a single player.

        Args:
            role: Specific role, or weighted random if None
            nationality: Specific nationality, or weighted random if None
            tier: "elite", "star", "good" or "solid"
            with_history: Attach a generated career record
        """
        if nationality is None:
            nat_data = cls._weighted_choice([(n, n[2]) for n in cls.NATIONALITIES])
        else:
            nat_data = next((n for n in cls.NATIONALITIES if n[0] == nationality), cls.NATIONALITIES[0])
        faker_instance = nat_data[1]

        if role is None:
            role = cls._weighted_choice(list(cls.ROLE_WEIGHTS.items()))

        low, high = cls.TIER_RATINGS.get(tier, cls.TIER_RATINGS["solid"])
        rating = random.randint(low, high)

        return Player(
            id=cls.next_id(),
            name=faker_instance.name_male(),
            rating=rating,
            role=role,
            career=cls.generate_career(role, rating) if with_history else None,
        )

    @classmethod
    def generate_squad(cls, size: int = 11, with_history: bool = False) -> list[Player]:
        """
        A squad in batting order: a balanced XI first, then any extras
        (bench players for an impact substitution) with random roles.
        """
        players = []
        for i in range(size):
            role = cls.XI_TEMPLATE[i] if i < len(cls.XI_TEMPLATE) else None
            tier = cls._weighted_choice([("elite", 10), ("star", 25), ("good", 35), ("solid", 30)])
            players.append(cls.generate_player(role=role, tier=tier, with_history=with_history))
        return players
