"""
shoesign.stats.schemes.three_way.detectors
==========================================

Stateful detectors run on the favoured-category indicator every round.

- `CusumDetector`: one-sided upper CUSUM against the break-even probability;
  latches a change-point once the sum exceeds the threshold
- `SprtDetector`: Wald SPRT of H0: p = p_ref vs H1: p = p_ref + epsilon;
  decisions are terminal, accepting H0 (or an untestable p1 >= 1) disables it

Both are informational: the engine records them and penalises confidence on a
change-point, but neither gates a bet directly.

Examples
--------
>>> cusum = CusumDetector(drift=0.05, threshold=1.2)
>>> for _ in range(3):
...     cusum.update(1, 0.45)
>>> cusum.change_point, round(cusum.sum, 2)
(True, 1.5)
>>> sprt = SprtDetector(alpha=0.05, beta=0.10, epsilon=0.01)
>>> sprt.update(1, 0.995)
>>> sprt.disabled, sprt.decision.value
(True, 'inconclusive')
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Any, Dict

from shoesign.core.components import Detector
from shoesign.core.names import SprtDecision
from shoesign.stats.common.sequential import (
    bernoulli_llr_increment,
    cusum_step,
    wald_boundaries,
)
from shoesign.stats.schemes.three_way.model import SprtStatePayload

logger = logging.getLogger(__name__)


@dataclass(kw_only=True)
class CusumDetector(Detector):
    tag: str = "detector:cusum"
    drift: float = 0.05
    threshold: float = 4.0
    sum: float = 0.0
    change_point: bool = False

    def update(self, x_t: int, p_ref: float) -> None:
        if self.change_point:
            return
        self.sum = cusum_step(self.sum, x_t, target=p_ref, drift=self.drift)
        if self.sum > self.threshold:
            self.change_point = True
            logger.debug("CUSUM change-point at sum=%.4f", self.sum)

    @property
    def disabled(self) -> bool:
        return self.change_point

    def reset(self) -> None:
        self.sum = 0.0
        self.change_point = False

    def snapshot(self) -> Dict[str, Any]:
        return {"sum": self.sum, "change_point": self.change_point}


@dataclass(kw_only=True)
class SprtDetector(Detector):
    """
    Wald sequential probability ratio test on the favoured-category rate.

    The reference probability may move every round; each increment uses the
    current p0 = p_ref and p1 = p_ref + epsilon.
    """

    tag: str = "detector:sprt"
    alpha: float = 0.05
    beta: float = 0.10
    epsilon: float = 0.01
    log_lr: float = 0.0
    decision: SprtDecision = SprtDecision.INCONCLUSIVE
    upper_boundary: float = field(init=False)
    lower_boundary: float = field(init=False)
    _disabled: bool = field(default=False, init=False, repr=False)

    def __post_init__(self) -> None:
        self.upper_boundary, self.lower_boundary = wald_boundaries(
            self.alpha, self.beta
        )

    def update(self, x_t: int, p_ref: float) -> None:
        if self.decision is not SprtDecision.INCONCLUSIVE:
            return
        p0 = p_ref
        p1 = p_ref + self.epsilon
        if p1 >= 1.0:
            self._disabled = True
            return
        self.log_lr += bernoulli_llr_increment(x_t, p0, p1)
        if self.log_lr >= self.upper_boundary:
            self.decision = SprtDecision.ACCEPT_H1
            logger.debug("SPRT accepted H1 at log_lr=%.4f", self.log_lr)
        elif self.log_lr <= self.lower_boundary:
            self.decision = SprtDecision.ACCEPT_H0
            self._disabled = True
            logger.debug("SPRT accepted H0 at log_lr=%.4f", self.log_lr)

    @property
    def disabled(self) -> bool:
        return self._disabled

    def reset(self) -> None:
        self.log_lr = 0.0
        self.decision = SprtDecision.INCONCLUSIVE
        self._disabled = False

    def snapshot(self) -> SprtStatePayload:  # type: ignore[override]
        return {
            "log_lr": self.log_lr,
            "upper_boundary": self.upper_boundary,
            "lower_boundary": self.lower_boundary,
            "decision": self.decision.value,
        }
