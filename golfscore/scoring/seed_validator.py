"""Offline check of the expressions stored in seed option files.

Every ``logic`` and ``availability`` string under ``<seed>/options/*.json`` is
parsed and its operators checked against the evaluator's known set, and every
``score_to_par`` condition is parsed, so a typo is caught before a game ever
evaluates it.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path

from golfscore.scoring.junk import parse_score_to_par
from golfscore.scoring.logic import LogicError, build_tree, load_json, unknown_operators

CHECKED_FIELDS = ("logic", "availability")


@dataclass(frozen=True)
class SeedError:
    file: str
    field: str
    expression: str | None
    error: str

    def __str__(self) -> str:
        location = f"{self.file} [{self.field}]" if self.field else self.file
        if self.expression is None:
            return f"{location}: {self.error}"
        return f"{location}: {self.error}\n    {self.expression}"


@dataclass
class SeedValidationResult:
    valid: bool
    errors: list[SeedError] = field(default_factory=list)
    files_checked: int = 0
    expressions_checked: int = 0


def validate_expression(expression: str) -> str | None:
    """Error message for one expression, ``None`` when it is fine."""
    try:
        tree = build_tree(load_json(expression))
    except LogicError as e:
        return str(e)
    unknown = unknown_operators(tree)
    if unknown:
        return f"Unknown operator(s): {', '.join(unknown)}"
    return None


def validate_score_to_par(condition: object) -> str | None:
    if not isinstance(condition, str):
        return f"score_to_par must be a string, got {type(condition).__name__}"
    try:
        parse_score_to_par(condition)
    except ValueError as e:
        return str(e)
    return None


def _option_records(data: object) -> list[dict]:
    if isinstance(data, list):
        return [d for d in data if isinstance(d, dict)]
    if isinstance(data, dict):
        return [data]
    return []


def validate_option_file(path: Path) -> tuple[list[SeedError], int]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        return [SeedError(path.name, "", None, f"Invalid JSON: {e}")], 0

    errors: list[SeedError] = []
    checked = 0
    for record in _option_records(data):
        for field_name in CHECKED_FIELDS:
            expression = record.get(field_name)
            if not expression:
                continue
            checked += 1
            message = validate_expression(expression)
            if message is not None:
                errors.append(SeedError(path.name, field_name, expression, message))
        condition = record.get("score_to_par")
        if condition:
            checked += 1
            message = validate_score_to_par(condition)
            if message is not None:
                errors.append(SeedError(path.name, "score_to_par", str(condition), message))
    return errors, checked


def validate_seed(seed_path: str | Path) -> SeedValidationResult:
    options_dir = Path(seed_path) / "options"
    if not options_dir.is_dir():
        error = SeedError(str(options_dir), "", None, "Options directory not found")
        return SeedValidationResult(valid=False, errors=[error])

    result = SeedValidationResult(valid=True)
    for path in sorted(options_dir.glob("*.json")):
        errors, checked = validate_option_file(path)
        result.errors.extend(errors)
        result.files_checked += 1
        result.expressions_checked += checked
    result.valid = not result.errors
    return result
