"""Minimal money settlement: pool payouts, net positions and who pays whom."""

from __future__ import annotations

from dataclasses import dataclass, field

from golfscore.scoring.points import calculate_position_points, position_lookup
from golfscore.scoring.ranking import get_winners, rank_with_ties
from golfscore.scoring.results import Scoreboard
from golfscore.utils.constants import (
    DEFAULT_PAYOUT_PCTS,
    DEFAULT_PLACES_PAID,
    HIGHER,
    SETTLEMENT_EPSILON,
    SPLIT_PER_UNIT,
    SPLIT_PLACES,
    SPLIT_WINNER_TAKE_ALL,
)


@dataclass
class Pool:
    """A pot paid out on a per-player metric where higher is better."""

    name: str
    amount: float
    metrics: dict[str, float] = field(default_factory=dict)
    split: str = SPLIT_PLACES
    places_paid: int = DEFAULT_PLACES_PAID
    payout_pcts: list[float] | None = None


@dataclass(frozen=True)
class Payout:
    player_id: str
    pool: str
    amount: float

    def to_dict(self) -> dict:
        return {"playerId": self.player_id, "pool": self.pool, "amount": self.amount}


@dataclass(frozen=True)
class Debt:
    from_player: str
    to_player: str
    amount: float

    def to_dict(self) -> dict:
        return {"from": self.from_player, "to": self.to_player, "amount": self.amount}


@dataclass
class Settlement:
    payouts: list[Payout]
    positions: dict[str, float]
    debts: list[Debt]

    def to_dict(self) -> dict:
        return {
            "payouts": [p.to_dict() for p in self.payouts],
            "positions": dict(self.positions),
            "debts": [d.to_dict() for d in self.debts],
        }


def _place_prizes(pool: Pool, field_size: int) -> list[float]:
    places = max(min(pool.places_paid, field_size), 1)
    pcts = pool.payout_pcts or DEFAULT_PAYOUT_PCTS.get(places, DEFAULT_PAYOUT_PCTS[DEFAULT_PLACES_PAID])
    pcts = list(pcts[:places])
    prizes = [round(pool.amount * pct / 100, 2) for pct in pcts]
    prizes[-1] = round(pool.amount - sum(prizes[:-1]), 2)
    return prizes


def calculate_pool_payouts(pool: Pool) -> list[Payout]:
    """Split one pool. Players with a zero metric only share in ``places`` pools."""
    candidates = [
        (player_id, metric) for player_id, metric in pool.metrics.items()
        if pool.split == SPLIT_PLACES or metric > 0
    ]
    if not candidates or pool.amount <= 0:
        return []

    if pool.split == SPLIT_PER_UNIT:
        units = sum(metric for _, metric in candidates)
        return [
            Payout(player_id, pool.name, round(pool.amount * metric / units, 2))
            for player_id, metric in candidates
        ]

    ranked = rank_with_ties(candidates, lambda c: c[1], HIGHER)
    if pool.split == SPLIT_WINNER_TAKE_ALL:
        winners = get_winners(ranked)
        share = round(pool.amount / len(winners), 2)
        return [Payout(player_id, pool.name, share) for player_id, _ in winners]

    if pool.split != SPLIT_PLACES:
        raise ValueError(f"Unknown split {pool.split!r} for pool {pool.name!r}")
    lookup = position_lookup(_place_prizes(pool, len(ranked)))
    payouts = []
    for r in ranked:
        amount = round(calculate_position_points(r.rank, r.tie_count, lookup), 2)
        if amount > 0:
            payouts.append(Payout(r.item[0], pool.name, amount))
    return payouts


def calculate_all_payouts(pools: list[Pool]) -> list[Payout]:
    payouts: list[Payout] = []
    for pool in pools:
        payouts.extend(calculate_pool_payouts(pool))
    return payouts


def calculate_net_positions(
    player_ids: list[str], buy_in: float, payouts: list[Payout]
) -> dict[str, float]:
    positions = {player_id: -buy_in for player_id in player_ids}
    for payout in payouts:
        positions[payout.player_id] = positions.get(payout.player_id, -buy_in) + payout.amount
    return {player_id: round(amount, 2) for player_id, amount in positions.items()}


def reconcile_debts(positions: dict[str, float]) -> list[Debt]:
    """Greedy: the biggest loser pays the biggest winner until everyone is square."""
    creditors = sorted(
        ([pid, amt] for pid, amt in positions.items() if amt > SETTLEMENT_EPSILON),
        key=lambda c: -c[1],
    )
    debtors = sorted(
        ([pid, -amt] for pid, amt in positions.items() if amt < -SETTLEMENT_EPSILON),
        key=lambda d: -d[1],
    )
    debts: list[Debt] = []
    i = j = 0
    while i < len(debtors) and j < len(creditors):
        debtor, creditor = debtors[i], creditors[j]
        amount = min(debtor[1], creditor[1])
        if amount > SETTLEMENT_EPSILON:
            debts.append(Debt(debtor[0], creditor[0], round(amount, 2)))
        debtor[1] -= amount
        creditor[1] -= amount
        if debtor[1] <= SETTLEMENT_EPSILON:
            i += 1
        if creditor[1] <= SETTLEMENT_EPSILON:
            j += 1
    return debts


def calculate_settlement(pools: list[Pool], player_ids: list[str], buy_in: float) -> Settlement:
    payouts = calculate_all_payouts(pools)
    positions = calculate_net_positions(player_ids, buy_in, payouts)
    return Settlement(payouts=payouts, positions=positions, debts=reconcile_debts(positions))


def player_points_metrics(scoreboard: Scoreboard) -> dict[str, float]:
    """Points totals per player, for pools paid on points."""
    return {pid: total.points_total for pid, total in scoreboard.cumulative.players.items()}


def team_points_metrics(scoreboard: Scoreboard) -> dict[str, float]:
    """Each player credited with their team's points, for team pools."""
    metrics: dict[str, float] = {}
    last = scoreboard.hole(scoreboard.meta.hole_order[-1]) if scoreboard.meta.hole_order else None
    for team_id, total in scoreboard.cumulative.teams.items():
        members = last.teams[team_id].player_ids if last and team_id in last.teams else []
        for player_id in members:
            metrics[player_id] = total.points_total
    return metrics
