#!/usr/bin/env python3
"""
CLI for the cricsim match simulator
"""
import logging
import random
from collections import Counter, defaultdict

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.progress import track
from rich.table import Table

from cricsim.config import settings
from cricsim.engine import MatchRunner, OverCache, build_default_engine, create_match
from cricsim.engine.career import record_match
from cricsim.generators import PlayerGenerator, TeamGenerator
from cricsim.models import Innings, Match, MatchSettings, Toss, TossDecision

console = Console()


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
    )


def _new_match(overs: int, with_history: bool, rng: random.Random) -> Match:
    team1, team2 = TeamGenerator.create_teams(2, with_history=with_history)
    toss = Toss(
        winner_id=rng.choice([team1.id, team2.id]),
        decision=rng.choice([TossDecision.BAT, TossDecision.BOWL]),
    )
    return create_match(MatchSettings(teams=(team1, team2), overs_per_innings=overs, toss=toss))


@click.group()
@click.option("--log-level", default=None, help="Logging level (default from CRICSIM_LOG_LEVEL)")
def cli(log_level: str):
    """cricsim - ball-by-ball cricket match simulation"""
    _setup_logging(log_level or settings.LOG_LEVEL)


@cli.command()
@click.option("--count", default=2, help="Number of franchise squads to generate")
@click.option("--seed", type=int, default=None, help="Random seed")
def teams(count: int, seed: int):
    """List generated squads"""
    if seed is not None:
        PlayerGenerator.seed(seed)

    for team in TeamGenerator.create_teams(count, with_history=True):
        table = Table(title=team.name)
        table.add_column("ID", justify="right")
        table.add_column("Name", style="cyan")
        table.add_column("Role", style="magenta")
        table.add_column("OVR", justify="right", style="green")
        table.add_column("SR", justify="right")
        table.add_column("Econ", justify="right")
        table.add_column("XI")

        for player in team.players:
            career = player.career
            table.add_row(
                str(player.id),
                player.name,
                player.role.value if player.role else "-",
                str(player.rating),
                f"{career.strike_rate:.1f}" if career and career.has_batting else "-",
                f"{career.economy:.2f}" if career and career.has_bowling else "-",
                "yes" if player.in_playing_xi else "bench",
            )
        console.print(table)


@cli.command()
@click.option("--overs", default=20, help="Overs per innings")
@click.option("--aggression", default=5, type=click.IntRange(0, 10), help="Batting aggression 0-10")
@click.option("--seed", type=int, default=None, help="Random seed")
@click.option("--special", multiple=True, type=int, help="Player id to treat as a special player (repeatable)")
@click.option("--no-ai", is_flag=True, help="Never call the generative model")
@click.option("--history/--no-history", default=True, help="Give players a career record")
@click.option("--record", is_flag=True, help="Update careers and ratings after the match")
def simulate(overs: int, aggression: int, seed: int, special: tuple, no_ai: bool, history: bool, record: bool):
    """Simulate a match between two generated teams"""
    if seed is not None:
        PlayerGenerator.seed(seed)
    rng = random.Random(seed)

    match = _new_match(overs, history, rng)
    for team in match.teams:
        console.print(Panel(f"[bold cyan]{team.name}[/bold cyan]"))
        for p in team.playing_xi:
            console.print(f"  {p.id:>3} {p.name} ({p.role.value}) - OVR: {p.rating}")

    toss_winner = match.get_team(match.toss.winner_id)
    console.print(f"\n{toss_winner.name} won the toss and chose to {match.toss.decision.value}")
    console.print("[yellow]Simulating match...[/yellow]\n")

    engine = build_default_engine(rng=rng, use_ai=not no_ai)
    runner = MatchRunner(engine, special_player_ids=list(special) or None, aggression=aggression, rng=rng)
    strategies = Counter()
    try:
        while not match.is_finished:
            played = runner.play_over(match)
            strategies[played.result.strategy] += 1
    finally:
        engine.close()

    console.print(Panel("[bold]Match Result[/bold]"))
    for innings in match.innings:
        console.print(
            f"[cyan]{innings.batting_team.name}:[/cyan] {innings.score}/{innings.wickets} "
            f"({innings.overs_display} overs) - RR: {innings.run_rate:.2f}"
        )
    console.print(f"\n[bold green]{match.result}[/bold green]")
    console.print("Overs by strategy: " + ", ".join(f"{name} {n}" for name, n in strategies.most_common()))

    for number, innings in enumerate(match.innings, start=1):
        console.print(f"\n[bold]Innings {number} Scorecard:[/bold]")
        _print_scorecard(innings)

    if record:
        _print_rating_changes(match)


def _print_scorecard(innings: Innings):
    """Print innings scorecard"""
    bat_table = Table(title=f"{innings.batting_team.name} Batting")
    bat_table.add_column("Batter", style="cyan")
    bat_table.add_column("Dismissal")
    bat_table.add_column("R", justify="right")
    bat_table.add_column("B", justify="right")
    bat_table.add_column("4s", justify="right")
    bat_table.add_column("6s", justify="right")
    bat_table.add_column("SR", justify="right")

    for player in innings.batting_team.playing_xi:
        bi = player.batting
        if bi.status.value == "did not bat":
            continue
        bat_table.add_row(
            player.name,
            bi.dismissal or bi.status.value,
            str(bi.runs),
            str(bi.balls_faced),
            str(bi.fours),
            str(bi.sixes),
            f"{bi.strike_rate:.1f}",
        )
    console.print(bat_table)
    console.print(f"Extras: {innings.extras}   Total: {innings.score}/{innings.wickets} ({innings.overs_display})")

    bowl_table = Table(title=f"{innings.bowling_team.name} Bowling")
    bowl_table.add_column("Bowler", style="magenta")
    bowl_table.add_column("O", justify="right")
    bowl_table.add_column("M", justify="right")
    bowl_table.add_column("R", justify="right")
    bowl_table.add_column("W", justify="right")
    bowl_table.add_column("Econ", justify="right")

    for player in innings.bowling_team.playing_xi:
        spell = player.bowling
        if spell.balls_bowled == 0:
            continue
        bowl_table.add_row(
            player.name,
            spell.overs_display,
            str(spell.maidens),
            str(spell.runs_conceded),
            str(spell.wickets),
            f"{spell.economy_rate:.1f}",
        )
    console.print(bowl_table)

    if innings.fall_of_wickets:
        fow = ", ".join(f"{f.score}-{f.wicket} ({f.player_name}, {f.over})" for f in innings.fall_of_wickets)
        console.print(f"[dim]Fall of wickets: {fow}[/dim]")


def _print_rating_changes(match: Match):
    before = {p.id: p.rating for team in match.teams for p in team.playing_xi}
    players = record_match(match)

    table = Table(title="Rating Changes")
    table.add_column("Player", style="cyan")
    table.add_column("Before", justify="right")
    table.add_column("After", justify="right", style="green")
    for player in players:
        if player.rating != before[player.id]:
            table.add_row(player.name, str(before[player.id]), str(player.rating))
    console.print(table)


@cli.command()
@click.option("--matches", default=20, help="Number of matches to simulate")
@click.option("--overs", default=20, help="Overs per innings")
@click.option("--seed", type=int, default=None, help="Random seed")
@click.option("--history/--no-history", default=True, help="Give players a career record")
def benchmark(matches: int, overs: int, seed: int, history: bool):
    """Run multiple simulations to test realism"""
    if seed is not None:
        PlayerGenerator.seed(seed)
    rng = random.Random(seed)

    engine = build_default_engine(rng=rng, use_ai=False)
    runner = MatchRunner(engine, rng=rng)
    stats = defaultdict(list)
    strategies = Counter()

    console.print(f"[yellow]Running {matches} simulations...[/yellow]")
    for _ in track(range(matches), description="Simulating..."):
        match = _new_match(overs, history, rng)
        while not match.is_finished:
            strategies[runner.play_over(match).result.strategy] += 1

        first, second = match.innings
        stats["scores"].extend([first.score, second.score])
        stats["wickets"].extend([first.wickets, second.wickets])
        stats["chasing_wins"].append(1 if match.winner_id == second.batting_team.id else 0)

    console.print(Panel("[bold]Simulation Statistics[/bold]"))
    scores = stats["scores"]
    console.print(f"[cyan]Average Score:[/cyan] {sum(scores) / len(scores):.1f}")
    console.print(f"[cyan]Min Score:[/cyan] {min(scores)}")
    console.print(f"[cyan]Max Score:[/cyan] {max(scores)}")
    console.print(f"[cyan]Average Wickets:[/cyan] {sum(stats['wickets']) / len(stats['wickets']):.1f}")
    chase_win_pct = sum(stats["chasing_wins"]) / len(stats["chasing_wins"]) * 100
    console.print(f"[cyan]Chasing Win %:[/cyan] {chase_win_pct:.1f}%")

    console.print("\n[bold]Overs by Strategy:[/bold]")
    total = sum(strategies.values())
    for name, count in strategies.most_common():
        pct = count / total * 100
        bar = "█" * int(pct / 2)
        console.print(f"  {name:>12}: {bar} {pct:.1f}%")


@cli.command("cache-stats")
@click.option("--matches", default=5, help="Matches to simulate through one shared cache")
@click.option("--overs", default=20, help="Overs per innings")
@click.option("--size", default=None, type=int, help="Cache capacity (default from CRICSIM_CACHE_SIZE)")
@click.option("--seed", type=int, default=None, help="Random seed")
def cache_stats(matches: int, overs: int, size: int, seed: int):
    """Show how often overs are served from the shared cache"""
    if seed is not None:
        PlayerGenerator.seed(seed)
    rng = random.Random(seed)

    cache = OverCache(max_size=size)
    engine = build_default_engine(cache=cache, rng=rng, use_ai=False)
    runner = MatchRunner(engine, rng=rng)
    served = Counter()

    # Same two squads every match so situations repeat
    team1, team2 = TeamGenerator.create_teams(2, with_history=False)
    for _ in track(range(matches), description="Simulating..."):
        toss = Toss(winner_id=team1.id, decision=TossDecision.BAT)
        match = create_match(MatchSettings(teams=(team1, team2), overs_per_innings=overs, toss=toss))
        while not match.is_finished:
            served[runner.play_over(match).result.strategy] += 1

    numbers = cache.stats()
    table = Table(title="Over Cache")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    for key in ("size", "max_size", "hits", "misses"):
        table.add_row(key, str(numbers[key]))
    table.add_row("overs served from cache", str(served["Cache"]))
    table.add_row("overs simulated", str(sum(served.values())))
    console.print(table)


if __name__ == "__main__":
    cli()
