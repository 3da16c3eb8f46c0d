"""DynamoDB game repository for production."""

from __future__ import annotations

import json
import os
from decimal import Decimal

import boto3
from botocore.exceptions import ClientError

from golfscore.game.models import Game

# Initialize DynamoDB resource at module level for Lambda warm starts
_dynamodb = None
_prefix = os.environ.get("GOLFSCORE_TABLE_PREFIX", "Golfscore")


def _get_dynamodb():
    global _dynamodb
    if _dynamodb is None:
        _dynamodb = boto3.resource("dynamodb")
    return _dynamodb


def _to_item(game: Game) -> dict:
    # DynamoDB rejects float; numbers go in as Decimal.
    return json.loads(json.dumps(game.to_dict()), parse_float=Decimal)


def _from_item(item: dict) -> Game:
    def number(value: Decimal) -> int | float:
        return int(value) if value == value.to_integral_value() else float(value)

    return Game.from_dict(json.loads(json.dumps(item, default=number)))


class DynamoDBGameRepository:
    def __init__(self, table_name: str | None = None, table=None) -> None:
        self._table_name = table_name or f"{_prefix}_Games"
        self._table = table if table is not None else _get_dynamodb().Table(self._table_name)

    def get_game(self, game_id: str) -> Game | None:
        response = self._table.get_item(
            Key={"gameId": game_id},
            ConsistentRead=True,
        )
        item = response.get("Item")
        if not item:
            return None
        return _from_item(item)

    def save_game(self, game: Game) -> None:
        item = _to_item(game)
        item["version"] = game.version + 1
        try:
            self._table.put_item(
                Item=item,
                ConditionExpression=(
                    "attribute_not_exists(gameId) OR version = :v"
                ),
                ExpressionAttributeValues={":v": game.version},
            )
        except ClientError as e:
            if e.response["Error"]["Code"] == "ConditionalCheckFailedException":
                raise ValueError("Version conflict") from e
            raise

    def delete_game(self, game_id: str) -> None:
        self._table.delete_item(Key={"gameId": game_id})

    def list_games(self) -> list[str]:
        # Scan is acceptable for the handful of games a group keeps
        response = self._table.scan(ProjectionExpression="gameId")
        items = response.get("Items", [])
        while "LastEvaluatedKey" in response:
            response = self._table.scan(
                ProjectionExpression="gameId",
                ExclusiveStartKey=response["LastEvaluatedKey"],
            )
            items.extend(response.get("Items", []))
        return sorted(item["gameId"] for item in items)
