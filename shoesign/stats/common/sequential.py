"""
shoesign.stats.common.sequential
================================

Generic building blocks for online change detection and sequential testing
on Bernoulli indicators.

These functions are independent of the outcome scheme; the three-way scheme
wires them into stateful detectors in
`shoesign.stats.schemes.three_way.detectors`.

- `wald_boundaries`: SPRT acceptance boundaries on the log-likelihood ratio
- `bernoulli_llr_increment`: per-observation log-likelihood ratio
- `cusum_step`: one step of a one-sided upper CUSUM accumulator

Examples
--------
>>> upper, lower = wald_boundaries(0.05, 0.10)
>>> round(upper, 6), round(lower, 6)
(2.890372, -2.251292)
>>> cusum_step(0.0, 1, target=0.25, drift=0.25)
0.5
>>> cusum_step(0.2, 0, target=0.25, drift=0.25)
0.0
"""

from __future__ import annotations
import math
from typing import Tuple


def wald_boundaries(alpha: float, beta: float) -> Tuple[float, float]:
    """
    Compute Wald's SPRT boundaries on the cumulative log-likelihood ratio.

    Args:
        alpha: Type I error rate (false acceptance of H1)
        beta: Type II error rate (false acceptance of H0)

    Returns:
        (upper, lower) with upper = ln((1-β)/α) and lower = ln(β/(1-α))

    Mathematical foundation:
        Crossing `upper` accepts H1, crossing `lower` accepts H0; Wald's
        approximation bounds the error rates by roughly α and β.
    """
    if not (0.0 < alpha < 1.0):
        raise ValueError(f"alpha must be in (0, 1), got {alpha}")
    if not (0.0 < beta < 1.0):
        raise ValueError(f"beta must be in (0, 1), got {beta}")
    return math.log((1.0 - beta) / alpha), math.log(beta / (1.0 - alpha))


def bernoulli_llr_increment(x_t: int, p0: float, p1: float) -> float:
    """
    Log-likelihood ratio contribution of one Bernoulli observation.

        x_t * ln(p1/p0) + (1 - x_t) * ln((1-p1)/(1-p0))

    Both probabilities must lie strictly inside (0, 1).
    """
    if x_t:
        return math.log(p1 / p0)
    return math.log((1.0 - p1) / (1.0 - p0))


def cusum_step(s: float, x_t: int, *, target: float, drift: float) -> float:
    """
    Advance a one-sided upper CUSUM accumulator by one observation.

        S_t = max(0, S_{t-1} + x_t - (target + drift))
    """
    return max(0.0, s + (x_t - (target + drift)))
