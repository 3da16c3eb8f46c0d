"""Integrity checks for a golfscore game snapshot."""

from __future__ import annotations

from collections import Counter

from golfscore.game.models import Game, JunkOption, MultiplierOption
from golfscore.scoring.options import effective_options_for_hole
from golfscore.utils.constants import TEE_FLIP_DECLINED, TEE_FLIP_WINNER


def validate_game_integrity(game: Game) -> list[str]:
    """Validate game invariants. Returns list of errors (empty = OK).

    Checks:
    1. Players are unique and every round belongs to one
    2. Hole numbers are unique
    3. Team members are known players, on at most one team per hole
    4. Team selections name a known option and a known first hole
    5. Option records are keyed by their own name
    6. Gross scores are positive
    """
    errors: list[str] = []
    if not game.is_loaded:
        return errors

    # 1. Players and rounds
    player_counts = Counter(game.player_ids)
    for player_id, count in player_counts.items():
        if count > 1:
            errors.append(f"Player {player_id} listed {count} times")
    known_players = set(player_counts)
    for round_ in game.rounds:
        if round_.player_id not in known_players:
            errors.append(f"Round for unknown player {round_.player_id}")

    # 2. Holes
    hole_counts = Counter(h.hole for h in game.holes)
    for hole, count in hole_counts.items():
        if count > 1:
            errors.append(f"Hole {hole} listed {count} times")
    known_holes = set(hole_counts)

    # 5. Game-level options
    for name, option in game.spec.items():
        if option.name != name:
            errors.append(f"Option keyed {name} is named {option.name}")

    for game_hole in game.holes:
        hole = game_hole.hole
        for name, option in game_hole.options.items():
            if option.name != name:
                errors.append(f"Hole {hole}: option keyed {name} is named {option.name}")

        # 3. Team membership
        seen: dict[str, str] = {}
        for team in game_hole.teams:
            for player_id in team.player_ids:
                if player_id not in known_players:
                    errors.append(f"Hole {hole}: team {team.team} has unknown player {player_id}")
                if player_id in seen:
                    errors.append(
                        f"Hole {hole}: player {player_id} on teams {seen[player_id]} and {team.team}"
                    )
                seen[player_id] = team.team

        # 4. Team selections
        options = effective_options_for_hole(hole, game)
        for team in game_hole.teams:
            for selection in team.options:
                name = selection.option_name
                if name not in (TEE_FLIP_WINNER, TEE_FLIP_DECLINED):
                    option = options.get(name)
                    if not isinstance(option, (JunkOption, MultiplierOption)):
                        errors.append(f"Hole {hole}: team {team.team} selected unknown option {name}")
                if selection.first_hole is not None and selection.first_hole not in known_holes:
                    errors.append(
                        f"Hole {hole}: {name} on team {team.team} starts on unknown hole {selection.first_hole}"
                    )
                if selection.player_id and selection.player_id not in known_players:
                    errors.append(f"Hole {hole}: {name} given to unknown player {selection.player_id}")

    # 6. Scores
    for round_ in game.rounds:
        for hole, score in round_.scores.items():
            if score.gross <= 0:
                errors.append(f"Player {round_.player_id} hole {hole}: gross {score.gross} is not positive")
            if hole not in known_holes:
                errors.append(f"Player {round_.player_id} scored unknown hole {hole}")

    return errors
