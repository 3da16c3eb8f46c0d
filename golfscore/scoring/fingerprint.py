"""Content fingerprint of the scoring-relevant part of a game."""

from __future__ import annotations

import hashlib
import json

from golfscore.game.models import Game, options_to_dict
from golfscore.scoring.pipeline import NOT_READY, score
from golfscore.scoring.results import Scoreboard


def _relevant(game: Game) -> dict:
    return {
        "spec": options_to_dict(game.spec),
        "specRef": game.spec_ref.to_dict() if game.spec_ref else None,
        "teamsConfig": game.scope.teams_config.to_dict(),
        "players": game.player_ids,
        "rounds": {
            r.player_id: {
                "handicaps": [r.course_handicap, r.game_handicap, r.handicap_index],
                "tee": r.tee.to_dict() if r.tee else None,
                "scores": {hole: s.gross for hole, s in (r.scores or {}).items()},
            }
            for r in game.rounds or []
        },
        "holes": {
            h.hole: {
                "seq": h.seq,
                "teams": [t.to_dict() for t in h.teams or []],
                "options": options_to_dict(h.options),
            }
            for h in game.holes or []
        },
    }


def scoreboard_fingerprint(game: Game) -> str | None:
    """sha256 of the canonical JSON of what scoring reads; ``None`` when not loaded."""
    if not game.is_loaded:
        return None
    canonical = json.dumps(_relevant(game), sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


class ScoreboardCache:
    """Recompute only when the fingerprint changes.

    While the game is not ready the previous scoreboard is kept.
    """

    def __init__(self) -> None:
        self._fingerprint: str | None = None
        self._scoreboard: Scoreboard | None = None

    @property
    def fingerprint(self) -> str | None:
        return self._fingerprint

    def get(self, game: Game) -> Scoreboard | None:
        fingerprint = scoreboard_fingerprint(game)
        if fingerprint is None or fingerprint == self._fingerprint:
            return self._scoreboard
        result = score(game)
        if result is not NOT_READY:
            self._scoreboard = result
            self._fingerprint = fingerprint
        return self._scoreboard
