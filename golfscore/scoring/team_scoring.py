"""Team score methods."""

from __future__ import annotations

from typing import Iterable

from golfscore.scoring.results import PlayerHoleResult, TeamHoleResult
from golfscore.utils.constants import (
    METHOD_AVERAGE,
    METHOD_BEST_BALL,
    METHOD_SUM,
    METHOD_WORST_BALL,
)


def calculate_team_score(method: str, scores: list[float]) -> float | None:
    """Combine player scores. ``None`` when no player on the team has scored."""
    if method == METHOD_BEST_BALL:
        return min(scores) if scores else None
    if method == METHOD_WORST_BALL:
        return max(scores) if scores else None
    if method == METHOD_SUM:
        return sum(scores) if scores else None
    if method == METHOD_AVERAGE:
        return sum(scores) / len(scores) if scores else None
    raise ValueError(f"Unknown team scoring method: {method}")


def team_scores_for(
    player_ids: Iterable[str],
    players: dict[str, PlayerHoleResult],
    field: str = "net",
) -> list[float]:
    """Scores of the team's players that have one recorded."""
    scores = []
    for player_id in player_ids:
        player = players.get(player_id)
        if player is not None and player.has_score:
            scores.append(getattr(player, field))
    return scores


def count_team_junk(player_ids: Iterable[str], players: dict[str, PlayerHoleResult]) -> float:
    """Sum of junk values awarded to the team's players."""
    total = 0
    for player_id in player_ids:
        player = players.get(player_id)
        if player is not None:
            total += sum(j.value for j in player.junk)
    return total


def team_junk_points(team: TeamHoleResult, players: dict[str, PlayerHoleResult]) -> float:
    """Team junk plus the junk of its players, before any multiplier."""
    return sum(j.value for j in team.junk) + count_team_junk(team.player_ids, players)


def team_has_junk(team: TeamHoleResult, players: dict[str, PlayerHoleResult], junk_name: str) -> bool:
    if any(j.name == junk_name for j in team.junk):
        return True
    return any(
        j.name == junk_name
        for player_id in team.player_ids
        if player_id in players
        for j in players[player_id].junk
    )
