"""Simulate rounds of a catalog game with random scores.

Usage: python -m cli.simulate --games 50 --spec five_points [--seed 42] [--verbose]

Each simulated round goes through the mutation commands, and after every hole
the game is checked for integrity and the scoreboard is recomputed twice to
confirm it is deterministic.
"""

from __future__ import annotations

import argparse
import random
import time

from golfscore.db.memory import InMemoryGameRepository
from golfscore.game.catalog import create_game, default_seed_path, load_spec
from golfscore.game.commands import GameCommands
from golfscore.game.integrity import validate_game_integrity
from golfscore.game.models import Game, Player, Tee, Team, TeeHole
from golfscore.scoring.logic import LogicError
from golfscore.scoring.multipliers import get_multiplier_controls
from golfscore.scoring.pipeline import score, score_with_context

PARS = [4, 5, 3, 4, 4, 3, 4, 5, 4, 4, 3, 5, 4, 4, 3, 4, 5, 4]
ALLOCATIONS = [7, 3, 17, 1, 11, 15, 5, 9, 13, 8, 16, 2, 10, 4, 18, 12, 6, 14]


def default_tee() -> Tee:
    return Tee(
        name="Sim",
        slope=125,
        rating=71.2,
        holes=[
            TeeHole(hole=str(i + 1), par=par, allocation=ALLOCATIONS[i])
            for i, par in enumerate(PARS)
        ],
    )


def random_gross(par: int, rng: random.Random) -> int:
    """Mostly pars and bogeys, the odd birdie or blow-up."""
    return max(1, par + rng.choice([-1, 0, 0, 1, 1, 1, 2, 3]))


def setup_game(spec_name: str, seed_path: str, num_players: int, rng: random.Random) -> Game:
    spec = load_spec(seed_path, spec_name)
    players = [Player(player_id=f"p{i + 1}", name=f"Player {i + 1}") for i in range(num_players)]
    game = create_game(spec, players, tee=default_tee())
    for round_ in game.rounds:
        round_.course_handicap = rng.randint(0, 20)
    if spec.teams_config.teams:
        ids = [p.player_id for p in players]
        rng.shuffle(ids)
        half = len(ids) // 2
        game.holes[0].teams = [Team(team="1", player_ids=ids[:half]), Team(team="2", player_ids=ids[half:])]
    return game


def play_hole(commands: GameCommands, game: Game, hole: str, rng: random.Random) -> Game:
    ctx = score_with_context(game)
    hole_result = ctx.scoreboard.hole(hole)

    for team in hole_result.sorted_teams():
        for control in get_multiplier_controls(ctx, hole, team.team_id):
            if control.togglable and not control.selected and rng.random() < 0.15:
                result = commands.toggle_team_multiplier(game.game_id, hole, team.team_id, control.name)
                if result.success:
                    game = result.game

    par = hole_result.par
    for player_id in ctx.scoreboard.meta.player_order:
        result = commands.set_score(game.game_id, player_id, hole, random_gross(par, rng))
        if not result.success:
            raise ValueError(f"set_score failed: {result.error}")
        game = result.game
    return game


def simulate_game(
    spec_name: str, seed_path: str, num_players: int, rng: random.Random, verbose: bool = False
) -> dict:
    """Simulate one complete round. Returns stats dict."""
    repo = InMemoryGameRepository()
    commands = GameCommands(repo)
    game = setup_game(spec_name, seed_path, num_players, rng)
    repo.save_game(game)
    game = repo.get_game(game.game_id)

    for game_hole in game.ordered_holes():
        try:
            game = play_hole(commands, game, game_hole.hole, rng)
        except (ValueError, LogicError) as e:
            return {"error": f"Hole {game_hole.hole}: {e}", "holes": game_hole.hole}

        errors = validate_game_integrity(game)
        if errors:
            return {"error": f"Integrity: {errors}", "holes": game_hole.hole}
        if score(game) != score(game):
            return {"error": "Scoreboard not deterministic", "holes": game_hole.hole}

        if verbose:
            board = score(game)
            totals = {t.team_id: t.running_total for t in board.holes[game_hole.hole].sorted_teams()}
            print(f"  Hole {game_hole.hole}: {totals}")

    board = score(game)
    return {
        "error": None,
        "teams": {tid: t.points_total for tid, t in board.cumulative.teams.items()},
        "leader": next(
            (tid for tid, t in board.cumulative.teams.items() if t.rank == 1), None
        ),
    }


def main() -> None:
    parser = argparse.ArgumentParser(description="golfscore round simulator")
    parser.add_argument("--games", type=int, default=20)
    parser.add_argument("--players", type=int, default=4, choices=[2, 3, 4])
    parser.add_argument("--spec", default="five_points")
    parser.add_argument("--seed-path", default=default_seed_path())
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args()

    base_seed = args.seed if args.seed is not None else int(time.time())
    print(f"Simulating {args.games} {args.spec} rounds with {args.players} players (base seed: {base_seed})")

    errors = 0
    leaders: dict[str, int] = {}
    for i in range(args.games):
        rng = random.Random(base_seed + i)
        result = simulate_game(args.spec, args.seed_path, args.players, rng, verbose=args.verbose)
        if result["error"]:
            errors += 1
            print(f"  Round {i + 1}: ERROR - {result['error']}")
            continue
        leader = result["leader"] or "none"
        leaders[leader] = leaders.get(leader, 0) + 1
        if args.verbose:
            print(f"  Round {i + 1}: leader={leader}, points={result['teams']}")

    print("\nResults:")
    print(f"  Rounds completed: {args.games - errors}/{args.games}")
    print(f"  Errors: {errors}")
    print(f"  Leaders: {leaders}")


if __name__ == "__main__":
    main()
