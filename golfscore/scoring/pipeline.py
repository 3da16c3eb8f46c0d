"""Scoreboard computation for a game snapshot."""

from __future__ import annotations

import json
import logging

from golfscore.game.models import Game
from golfscore.scoring.context import ScoringContext
from golfscore.scoring.results import Scoreboard
from golfscore.scoring.stages import FINAL_STAGES, HOLE_STAGES, SETUP_STAGES

logger = logging.getLogger("golfscore.pipeline")


class NotReady:
    """Returned instead of a scoreboard while the snapshot is still loading."""

    _instance: NotReady | None = None

    def __new__(cls) -> NotReady:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "NOT_READY"


NOT_READY = NotReady()


def build_context(game: Game) -> ScoringContext:
    return ScoringContext(game=game)


def run_pipeline(ctx: ScoringContext) -> ScoringContext:
    for stage in SETUP_STAGES:
        ctx = stage(ctx)
    for hole in list(ctx.hole_order):
        for hole_stage in HOLE_STAGES:
            ctx = hole_stage(ctx, hole)
    for stage in FINAL_STAGES:
        ctx = stage(ctx)
    return ctx


def score_with_context(game: Game) -> ScoringContext | NotReady:
    """Run every stage and keep the context (the game plus its scoreboard)."""
    if not game.is_loaded:
        logger.debug(json.dumps({"event": "score_skipped", "game_id": game.game_id, "reason": "not_ready"}))
        return NOT_READY
    ctx = run_pipeline(build_context(game))
    logger.debug(json.dumps({
        "event": "scoreboard_computed",
        "game_id": game.game_id,
        "holes_played": len(ctx.scoreboard.meta.holes_played),
    }))
    return ctx


def score(game: Game) -> Scoreboard | NotReady:
    ctx = score_with_context(game)
    if ctx is NOT_READY:
        return NOT_READY
    return ctx.scoreboard
