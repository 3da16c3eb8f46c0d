"""Inspect and validate a saved game snapshot.

Usage:
  python -m cli.inspect_scoreboard --file data/games/five_points_sample.json
  python -m cli.inspect_scoreboard --file game.json --hole 3
  python -m cli.inspect_scoreboard --file game.json --show json
  python -m cli.inspect_scoreboard --file game.json --validate
"""

from __future__ import annotations

import argparse
import json
import logging
import sys

from golfscore.game.integrity import validate_game_integrity
from golfscore.game.models import Game
from golfscore.scoring.multipliers import get_multiplier_controls
from golfscore.scoring.pipeline import NOT_READY, score_with_context
from golfscore.scoring.results import HoleResult, Scoreboard


def _format_hole(hole: HoleResult) -> list[str]:
    status = "complete" if hole.complete else f"{hole.scores_entered} score(s)"
    lines = [f"Hole {hole.hole} (par {hole.par}, x{hole.hole_multiplier:g}) - {status}"]
    for team in hole.sorted_teams():
        junk = ", ".join(j.name for j in team.junk) or "-"
        mults = ", ".join(f"{m.name} x{m.value:g}" for m in team.multipliers) or "-"
        score = "-" if team.score is None else f"{team.score:g}"
        lines.append(
            f"  Team {team.team_id} {team.player_ids}: score {score}, "
            f"points {team.points:g}, total {team.running_total:g} | junk {junk} | mult {mults}"
        )
        for player_id in team.player_ids:
            p = hole.players.get(player_id)
            if p is None or not p.has_score:
                continue
            pj = ", ".join(j.name for j in p.junk)
            lines.append(
                f"    {player_id}: {p.gross} gross, {p.pops} pops, {p.net} net"
                + (f" [{pj}]" if pj else "")
            )
    lines.extend(f"  ! {w}" for w in hole.warnings)
    return lines


def _format_totals(scoreboard: Scoreboard) -> list[str]:
    lines = ["Totals:"]
    for total in sorted(scoreboard.cumulative.teams.values(), key=lambda t: t.team_id):
        match = f", match {total.match_diff}" if total.match_diff is not None else ""
        lines.append(f"  Team {total.team_id}: {total.points_total:g} pts (rank {total.rank}){match}")
    for total in scoreboard.cumulative.players.values():
        lines.append(
            f"  {total.player_id}: {total.gross_total} gross / {total.net_total} net "
            f"over {total.holes_played} hole(s)"
        )
    return lines


def inspect_scoreboard(file_path: str, hole: str | None, show: str | None, validate: bool) -> None:
    with open(file_path) as f:
        data = json.load(f)

    game = Game.from_dict(data)

    if validate:
        errors = validate_game_integrity(game)
        if errors:
            print("Integrity errors:")
            for e in errors:
                print(f"  - {e}")
            sys.exit(1)
        print("Game state valid")
        return

    ctx = score_with_context(game)
    if ctx is NOT_READY:
        print("Game is not fully loaded")
        sys.exit(1)
    scoreboard = ctx.scoreboard

    if show == "json":
        print(json.dumps(scoreboard.to_dict(), indent=2))
        return

    if hole:
        result = scoreboard.hole(hole)
        if result is None:
            print(f"Hole {hole} not found")
            sys.exit(1)
        for line in _format_hole(result):
            print(line)
        print("Multiplier controls:")
        for team in result.sorted_teams():
            controls = get_multiplier_controls(ctx, hole, team.team_id)
            names = ", ".join(
                f"{c.name}{'*' if c.selected else ''}{'' if c.togglable else ' (inherited)'}"
                for c in controls
            )
            print(f"  Team {team.team_id}: {names or '-'}")
        return

    print(f"Game ID: {game.game_id}")
    print(f"Name: {game.name}")
    print(f"Holes played: {', '.join(scoreboard.meta.holes_played) or '-'}")
    for h in scoreboard.meta.holes_played:
        for line in _format_hole(scoreboard.holes[h]):
            print(line)
    for line in _format_totals(scoreboard):
        print(line)


def main() -> None:
    parser = argparse.ArgumentParser(description="Inspect a golfscore game snapshot")
    parser.add_argument("--file", required=True, help="Path to game JSON")
    parser.add_argument("--hole", help="Hole to inspect")
    parser.add_argument("--show", choices=["json"], help="Dump the whole scoreboard")
    parser.add_argument("--validate", action="store_true", help="Validate integrity")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args()
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)
    inspect_scoreboard(args.file, args.hole, args.show, args.validate)


if __name__ == "__main__":
    main()
