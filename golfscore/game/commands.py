"""Game mutations issued by the UI.

Each command loads the game, changes it, and saves it back in a single
repository write. All state lives in the ``Game`` / repository.
"""

from __future__ import annotations

import copy
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from golfscore.db.repository import GameRepository
from golfscore.game.models import (
    Game,
    GameHole,
    GameOption,
    JunkOption,
    MultiplierOption,
    Round,
    Score,
    Team,
    TeamOption,
)
from golfscore.scoring.invalidation import (
    InvalidatedItem,
    InvalidationResult,
    MultiplierInvalidation,
    TeeFlipInvalidation,
    find_invalidations,
)
from golfscore.scoring.multipliers import (
    depends_on_multiplier,
    get_custom_multiplier_option,
    override_owner,
)
from golfscore.scoring.options import (
    get_multiplier_option,
    get_option_for_hole,
    option_value,
)
from golfscore.scoring.pipeline import NOT_READY, score, score_with_context
from golfscore.utils.constants import (
    LIMIT_ONE_PER_GROUP,
    SCOPE_HOLE,
    SCOPE_PLAYER,
    SCOPE_TEAM,
    TEE_FLIP_DECLINED,
    TEE_FLIP_WINNER,
    TRUE_VALUE,
    VALUE_BOOL,
    VALUE_MENU,
    VALUE_NUM,
)

logger = logging.getLogger("golfscore.commands")

PURGED_BY_OVERRIDE = (SCOPE_HOLE, SCOPE_TEAM, SCOPE_PLAYER)


@dataclass
class CommandResult:
    success: bool
    game: Game | None
    error: str | None = None
    message: str | None = None
    events: list[dict] = field(default_factory=list)
    invalidations: InvalidationResult | None = None
    kept_rounds: list[Round] = field(default_factory=list)


class GameCommands:
    """Stateless command handler. All state lives in Game / repository."""

    def __init__(self, repo: GameRepository) -> None:
        self._repo = repo

    # -------------------------------------------------------------------------
    # Scores
    # -------------------------------------------------------------------------

    def set_score(self, game_id: str, player_id: str, hole: str, gross: int) -> CommandResult:
        """Record a gross score. Editing an earlier hole reports what it invalidated."""
        game = self._repo.get_game(game_id)
        if game is None:
            return CommandResult(success=False, game=None, error="Game not found")
        if game.get_hole(hole) is None:
            return CommandResult(success=False, game=game, error=f"Unknown hole {hole}")
        if gross <= 0:
            return CommandResult(success=False, game=game, error="Gross score must be positive")
        round_ = game.get_round(player_id)
        if round_ is None:
            return CommandResult(success=False, game=game, error=f"No round for player {player_id}")

        before = score_with_context(copy.deepcopy(game))
        if round_.scores is None:
            round_.scores = {}
        existing = round_.scores.get(hole)
        if existing is None:
            round_.scores[hole] = Score(gross=gross)
            previous = None
        else:
            previous = existing.gross
            existing.history.append({"gross": existing.gross, "at": self._now()})
            existing.gross = gross

        event = {
            "event": "score_set",
            "game_id": game_id,
            "player_id": player_id,
            "hole": hole,
            "gross": gross,
            "previous": previous,
        }
        result = self._save(game, event)
        result.invalidations = self._invalidations(before, result.game, hole)
        return result

    def clear_score(self, game_id: str, player_id: str, hole: str) -> CommandResult:
        game = self._repo.get_game(game_id)
        if game is None:
            return CommandResult(success=False, game=None, error="Game not found")
        round_ = game.get_round(player_id)
        if round_ is None or round_.score_for(hole) is None:
            return CommandResult(success=True, game=game, message=f"No score for {player_id} on hole {hole}")

        before = score_with_context(copy.deepcopy(game))
        removed = round_.scores.pop(hole)
        event = {
            "event": "score_cleared",
            "game_id": game_id,
            "player_id": player_id,
            "hole": hole,
            "previous": removed.gross,
        }
        result = self._save(game, event)
        result.invalidations = self._invalidations(before, result.game, hole)
        return result

    # -------------------------------------------------------------------------
    # Options
    # -------------------------------------------------------------------------

    def set_game_option(self, game_id: str, name: str, value: str) -> CommandResult:
        game = self._repo.get_game(game_id)
        if game is None:
            return CommandResult(success=False, game=None, error="Game not found")
        option = (game.spec or {}).get(name)
        if option is None:
            return CommandResult(success=False, game=game, error=f"Unknown option {name}")

        error = self._assign_value(option, value)
        if error:
            return CommandResult(success=False, game=game, error=error)

        event = {"event": "game_option_set", "game_id": game_id, "option": name, "value": value}
        return self._save(game, event)

    def set_hole_option(self, game_id: str, hole: str, name: str, value: str) -> CommandResult:
        """Override an option on one hole; matching the game value removes the override."""
        game = self._repo.get_game(game_id)
        if game is None:
            return CommandResult(success=False, game=None, error="Game not found")
        game_hole = game.get_hole(hole)
        if game_hole is None:
            return CommandResult(success=False, game=game, error=f"Unknown hole {hole}")
        base = (game.spec or {}).get(name)
        if base is None:
            return CommandResult(success=False, game=game, error=f"Unknown option {name}")

        override = copy.deepcopy(base)
        error = self._assign_value(override, value)
        if error:
            return CommandResult(success=False, game=game, error=error)

        if game_hole.options is None:
            game_hole.options = {}
        if option_value(override) == option_value(base):
            if name not in game_hole.options:
                return CommandResult(
                    success=True, game=game, message=f"{name} on hole {hole} already matches the game value"
                )
            del game_hole.options[name]
            action = "removed"
        else:
            game_hole.options[name] = override
            action = "set"

        event = {
            "event": "hole_option_set",
            "game_id": game_id,
            "hole": hole,
            "option": name,
            "value": value,
            "override": action,
        }
        return self._save(game, event)

    def clear_hole_option(self, game_id: str, hole: str, name: str) -> CommandResult:
        game = self._repo.get_game(game_id)
        if game is None:
            return CommandResult(success=False, game=None, error="Game not found")
        game_hole = game.get_hole(hole)
        if game_hole is None:
            return CommandResult(success=False, game=game, error=f"Unknown hole {hole}")
        if not game_hole.options or name not in game_hole.options:
            return CommandResult(success=True, game=game, message=f"No override for {name} on hole {hole}")

        del game_hole.options[name]
        event = {"event": "hole_option_cleared", "game_id": game_id, "hole": hole, "option": name}
        return self._save(game, event)

    def reset_spec_from_catalog(self, game_id: str) -> CommandResult:
        """Restore the working option copy from the catalog spec it came from."""
        game = self._repo.get_game(game_id)
        if game is None:
            return CommandResult(success=False, game=None, error="Game not found")
        if game.spec_ref is None:
            return CommandResult(success=False, game=game, error="Game has no catalog spec")

        original = game.spec_ref.options
        current = game.spec or {}
        changed = [name for name, opt in original.items() if current.get(name) != opt]
        extra = [name for name in current if name not in original]
        if not changed and not extra:
            return CommandResult(success=True, game=game, message="Nothing to reset")

        game.spec = copy.deepcopy(original)
        count = len(changed) + len(extra)
        event = {
            "event": "spec_reset",
            "game_id": game_id,
            "changed": sorted(changed),
            "removed": sorted(extra),
        }
        result = self._save(game, event)
        result.message = f"Reset {count} option(s)"
        return result

    # -------------------------------------------------------------------------
    # Junk and multipliers
    # -------------------------------------------------------------------------

    def toggle_player_junk(self, game_id: str, hole: str, player_id: str, junk_name: str) -> CommandResult:
        game = self._repo.get_game(game_id)
        if game is None:
            return CommandResult(success=False, game=None, error="Game not found")
        game_hole = game.get_hole(hole)
        if game_hole is None:
            return CommandResult(success=False, game=game, error=f"Unknown hole {hole}")
        option = get_option_for_hole(junk_name, hole, game)
        if not isinstance(option, JunkOption):
            return CommandResult(success=False, game=game, error=f"Unknown junk {junk_name}")

        self._materialize_teams(game, game_hole)
        team = game_hole.team_of(player_id)
        if team is None:
            return CommandResult(success=False, game=game, error=f"Player {player_id} is not on a team on hole {hole}")

        held = [o for o in team.options if o.option_name == junk_name and o.player_id == player_id]
        removed_from: list[str] = []
        if held:
            team.options = [o for o in team.options if o not in held]
            granted = False
        else:
            if option.limit == LIMIT_ONE_PER_GROUP:
                for other in game_hole.teams:
                    keep = []
                    for o in other.options:
                        if o.option_name == junk_name and o.player_id:
                            removed_from.append(o.player_id)
                        else:
                            keep.append(o)
                    other.options = keep
            team.options.append(TeamOption(option_name=junk_name, value=TRUE_VALUE, player_id=player_id))
            granted = True

        event = {
            "event": "player_junk_toggled",
            "game_id": game_id,
            "hole": hole,
            "player_id": player_id,
            "junk": junk_name,
            "granted": granted,
            "removed_from": removed_from,
        }
        return self._save(game, event)

    def toggle_team_multiplier(self, game_id: str, hole: str, team_id: str, name: str) -> CommandResult:
        """Press or release a multiplier; releasing also drops other teams' dependents."""
        game = self._repo.get_game(game_id)
        if game is None:
            return CommandResult(success=False, game=None, error="Game not found")
        game_hole = game.get_hole(hole)
        if game_hole is None:
            return CommandResult(success=False, game=game, error=f"Unknown hole {hole}")
        option = get_multiplier_option(name, hole, game)
        if option is None:
            return CommandResult(success=False, game=game, error=f"Unknown multiplier {name}")

        self._materialize_teams(game, game_hole)
        team = game_hole.get_team(team_id)
        if team is None:
            return CommandResult(success=False, game=game, error=f"Unknown team {team_id} on hole {hole}")

        current = [o for o in team.team_options(name) if o.first_hole in (None, hole)]
        cascaded: list[dict] = []
        if current:
            team.options = [o for o in team.options if o not in current]
            cascaded = self._cascade_removal(game, game_hole, team_id, name)
            active = False
        else:
            scoreboard = score(game)
            if scoreboard is not NOT_READY and hole in scoreboard.holes:
                owner = override_owner(scoreboard.holes[hole])
                if owner is not None and owner != team_id:
                    return CommandResult(
                        success=False, game=game, error=f"Team {owner} has an override multiplier on hole {hole}"
                    )
            team.options.append(TeamOption(option_name=name, value=TRUE_VALUE, first_hole=hole))
            active = True

        event = {
            "event": "team_multiplier_toggled",
            "game_id": game_id,
            "hole": hole,
            "team_id": team_id,
            "multiplier": name,
            "active": active,
            "cascaded": cascaded,
        }
        return self._save(game, event)

    def set_custom_multiplier(
        self, game_id: str, hole: str, team_id: str, value: float | None
    ) -> CommandResult:
        """Set (or clear, with ``None``) the typed-in multiplier for a hole."""
        game = self._repo.get_game(game_id)
        if game is None:
            return CommandResult(success=False, game=None, error="Game not found")
        game_hole = game.get_hole(hole)
        if game_hole is None:
            return CommandResult(success=False, game=game, error=f"Unknown hole {hole}")
        option = get_custom_multiplier_option(game, hole)
        if option is None:
            return CommandResult(success=False, game=game, error=f"No custom multiplier on hole {hole}")
        if value is not None and value <= 0:
            return CommandResult(success=False, game=game, error="Multiplier must be positive")

        self._materialize_teams(game, game_hole)
        team = game_hole.get_team(team_id)
        if team is None:
            return CommandResult(success=False, game=game, error=f"Unknown team {team_id} on hole {hole}")

        for t in game_hole.teams:
            t.options = [
                o for o in t.options
                if not (o.option_name == option.name and o.first_hole in (None, hole))
            ]

        purged: list[dict] = []
        if value is not None:
            if option.override:
                purged = self._purge_hole_multipliers(game, game_hole)
            team.options.append(TeamOption(option_name=option.name, value=f"{value:g}", first_hole=hole))

        event = {
            "event": "custom_multiplier_set",
            "game_id": game_id,
            "hole": hole,
            "team_id": team_id,
            "value": value,
            "purged": purged,
        }
        return self._save(game, event)

    # -------------------------------------------------------------------------
    # Tee flips
    # -------------------------------------------------------------------------

    def record_tee_flip(self, game_id: str, hole: str, winner_team_id: str) -> CommandResult:
        game = self._repo.get_game(game_id)
        if game is None:
            return CommandResult(success=False, game=None, error="Game not found")
        game_hole = game.get_hole(hole)
        if game_hole is None:
            return CommandResult(success=False, game=game, error=f"Unknown hole {hole}")

        self._materialize_teams(game, game_hole)
        winner = game_hole.get_team(winner_team_id)
        if winner is None:
            return CommandResult(success=False, game=game, error=f"Unknown team {winner_team_id} on hole {hole}")

        self._clear_tee_flip(game_hole)
        winner.options.append(TeamOption(option_name=TEE_FLIP_WINNER, value=TRUE_VALUE, first_hole=hole))
        event = {"event": "tee_flip_recorded", "game_id": game_id, "hole": hole, "winner": winner_team_id}
        return self._save(game, event)

    def decline_tee_flip(self, game_id: str, hole: str) -> CommandResult:
        game = self._repo.get_game(game_id)
        if game is None:
            return CommandResult(success=False, game=None, error="Game not found")
        game_hole = game.get_hole(hole)
        if game_hole is None:
            return CommandResult(success=False, game=game, error=f"Unknown hole {hole}")

        self._materialize_teams(game, game_hole)
        if not game_hole.teams:
            return CommandResult(success=False, game=game, error=f"No teams on hole {hole}")

        self._clear_tee_flip(game_hole)
        first = sorted(game_hole.teams, key=lambda t: t.team)[0]
        first.options.append(TeamOption(option_name=TEE_FLIP_DECLINED, value=TRUE_VALUE, first_hole=hole))
        event = {"event": "tee_flip_declined", "game_id": game_id, "hole": hole}
        return self._save(game, event)

    # -------------------------------------------------------------------------
    # Invalidation and lifecycle
    # -------------------------------------------------------------------------

    def remove_invalidated_item(self, game_id: str, item: InvalidatedItem) -> CommandResult:
        game = self._repo.get_game(game_id)
        if game is None:
            return CommandResult(success=False, game=None, error="Game not found")

        if isinstance(item, MultiplierInvalidation):
            hole = item.first_hole
        elif isinstance(item, TeeFlipInvalidation):
            hole = item.hole
        else:
            return CommandResult(success=False, game=game, error=f"Unsupported item kind {item.kind}")

        game_hole = game.get_hole(hole)
        team = game_hole.get_team(item.team_id) if game_hole else None
        if team is None:
            return CommandResult(success=True, game=game, message="Item already removed")

        kept = [
            o for o in team.options
            if not (o.option_name == item.option_name and not o.player_id and o.first_hole in (None, hole))
        ]
        if len(kept) == len(team.options):
            return CommandResult(success=True, game=game, message="Item already removed")
        team.options = kept

        event = {
            "event": "invalidated_item_removed",
            "game_id": game_id,
            "kind": item.kind,
            "hole": hole,
            "team_id": item.team_id,
            "option": item.option_name,
        }
        return self._save(game, event)

    def delete_game(self, game_id: str) -> CommandResult:
        """Delete a game. Rounds holding scores are detached and returned."""
        game = self._repo.get_game(game_id)
        if game is None:
            return CommandResult(success=False, game=None, error="Game not found")

        kept = [r for r in game.rounds or [] if r.has_scores]
        self._repo.delete_game(game_id)
        event = {
            "event": "game_deleted",
            "game_id": game_id,
            "kept_rounds": [r.player_id for r in kept],
        }
        logger.info(json.dumps(event))
        return CommandResult(
            success=True,
            game=None,
            message=f"Deleted game, kept {len(kept)} round(s) with scores",
            events=[event],
            kept_rounds=kept,
        )

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _save(self, game: Game, event: dict) -> CommandResult:
        self._repo.save_game(game)
        game = self._repo.get_game(game.game_id)
        logger.info(json.dumps(event))
        return CommandResult(success=True, game=game, events=[event])

    @staticmethod
    def _assign_value(option, value: str) -> str | None:
        if isinstance(option, GameOption):
            if option.value_type == VALUE_BOOL and value not in ("true", "false"):
                return f"{option.name} must be true or false"
            if option.value_type == VALUE_NUM:
                try:
                    float(value)
                except ValueError:
                    return f"{option.name} must be a number"
            if option.value_type == VALUE_MENU and option.choices:
                if value not in {c.name for c in option.choices}:
                    return f"{value} is not a choice for {option.name}"
            option.value = value
            return None
        try:
            number = float(value)
        except ValueError:
            return f"{option.name} must be a number"
        option.value = int(number) if number.is_integer() else number
        return None

    @staticmethod
    def _materialize_teams(game: Game, game_hole: GameHole) -> None:
        """Write the resolved roster onto a hole that has no teams of its own."""
        if game_hole.teams:
            return
        scoreboard = score(game)
        if scoreboard is NOT_READY or game_hole.hole not in scoreboard.holes:
            return
        game_hole.teams = [
            Team(team=t.team_id, player_ids=list(t.player_ids))
            for t in scoreboard.holes[game_hole.hole].sorted_teams()
        ]

    @staticmethod
    def _cascade_removal(game: Game, game_hole: GameHole, team_id: str, name: str) -> list[dict]:
        removed: list[dict] = []
        pending = [(team_id, name)]
        while pending:
            source_team, source_name = pending.pop(0)
            for other in game_hole.teams:
                if other.team == source_team:
                    continue
                keep = []
                for o in other.options:
                    option = None
                    if not o.player_id and o.first_hole in (None, game_hole.hole):
                        option = get_multiplier_option(o.option_name, game_hole.hole, game)
                    if isinstance(option, MultiplierOption) and depends_on_multiplier(option, source_name):
                        removed.append({"team_id": other.team, "multiplier": o.option_name})
                        pending.append((other.team, o.option_name))
                    else:
                        keep.append(o)
                other.options = keep
        return removed

    @staticmethod
    def _purge_hole_multipliers(game: Game, game_hole: GameHole) -> list[dict]:
        purged: list[dict] = []
        for team in game_hole.teams:
            keep = []
            for o in team.options:
                option = get_multiplier_option(o.option_name, game_hole.hole, game)
                if (
                    option is not None
                    and not option.override
                    and option.scope in PURGED_BY_OVERRIDE
                    and o.first_hole == game_hole.hole
                ):
                    purged.append({"team_id": team.team, "multiplier": o.option_name})
                else:
                    keep.append(o)
            team.options = keep
        return purged

    @staticmethod
    def _clear_tee_flip(game_hole: GameHole) -> None:
        for team in game_hole.teams:
            team.options = [
                o for o in team.options
                if o.option_name not in (TEE_FLIP_WINNER, TEE_FLIP_DECLINED)
            ]

    @staticmethod
    def _invalidations(before, game: Game, hole: str) -> InvalidationResult | None:
        after = score_with_context(copy.deepcopy(game))
        if before is NOT_READY or after is NOT_READY:
            return None
        return find_invalidations(before, after, hole)

    @staticmethod
    def _now() -> str:
        return datetime.now(timezone.utc).isoformat()
