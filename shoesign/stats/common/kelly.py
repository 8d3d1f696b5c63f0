"""
shoesign.stats.common.kelly
===========================

Kelly-criterion stake sizing for fixed-odds bets with a push outcome.

The full Kelly fraction for a bet that pays `payout` per unit on a win, loses
the unit with probability `p_lose` and is otherwise returned is

    f* = (p_win * payout - p_lose) / payout

The engine scales f* by a configured safety fraction and discretizes the
result into whole-unit tiers.

Examples
--------
>>> round(kelly_fraction(0.55, 0.40, 0.95), 6)
0.128947
>>> kelly_fraction(0.40, 0.55, 0.95) < 0
True
>>> stake_tier(0.12), stake_tier(0.02), stake_tier(0.021)
(3, 0, 1)
"""

from __future__ import annotations
from typing import Sequence, Tuple

# (exclusive lower bound on the scaled fraction, units), checked in order.
DEFAULT_STAKE_TIERS: Tuple[Tuple[float, int], ...] = (
    (0.15, 4),
    (0.10, 3),
    (0.05, 2),
    (0.02, 1),
)


def kelly_fraction(p_win: float, p_lose: float, payout: float) -> float:
    """Full Kelly fraction of bankroll; non-positive means no edge."""
    if payout <= 0:
        raise ValueError(f"payout must be positive, got {payout}")
    return (p_win * payout - p_lose) / payout


def stake_tier(
    fraction: float, tiers: Sequence[Tuple[float, int]] = DEFAULT_STAKE_TIERS
) -> int:
    """Map a (scaled) Kelly fraction to whole stake units."""
    for threshold, units in tiers:
        if fraction > threshold:
            return units
    return 0
