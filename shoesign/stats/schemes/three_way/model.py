"""
shoesign.stats.schemes.three_way.model
======================================

Typed payloads for the *three-way* scheme.

- `Decision`: the stake recommendation of one round
- `AnalysisBundle`: diagnostics computed alongside the decision
- `DecisionLog`: the immutable per-round record returned by the engine
- `SprtStatePayload`: TypedDict for the SPRT snapshot

Examples
--------
>>> from shoesign.core.names import Category
>>> from shoesign.stats.schemes.three_way.model import Decision
>>> d = Decision(target=Category.B, stake=2, reason="confidence 91.00%")
>>> d.is_bet
True
>>> Decision.no_bet("warm-up").to_payload()
{'betOn': None, 'stake': 0, 'reason': 'warm-up'}
>>> Decision.from_payload({"betOn": "B", "stake": 1, "reason": "x"}).stake
1
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, TypedDict

from shoesign.core.names import CATEGORIES, Category


# --- Typed payloads (mypy-friendly) ---


class SprtStatePayload(TypedDict):
    log_lr: float
    upper_boundary: float
    lower_boundary: float
    decision: str


# --- Typed objects ---


@dataclass(frozen=True)
class Decision:
    """Stake recommendation; `target` is None when nothing is staked."""

    target: Optional[Category]
    stake: int
    reason: str

    @classmethod
    def no_bet(cls, reason: str) -> "Decision":
        return cls(target=None, stake=0, reason=reason)

    @property
    def is_bet(self) -> bool:
        return self.target is not None and self.stake > 0

    def to_payload(self) -> Dict[str, Any]:
        return {
            "betOn": self.target.value if self.target is not None else None,
            "stake": self.stake,
            "reason": self.reason,
        }

    @classmethod
    def from_payload(cls, d: Dict[str, Any]) -> "Decision":
        return cls(
            target=Category.parse(d.get("betOn")),
            stake=int(d.get("stake", 0)),
            reason=str(d.get("reason", "")),
        )


@dataclass(frozen=True)
class AnalysisBundle:
    """Per-round diagnostics; informational, never gates betting by itself."""

    raw_confidence: float
    calibrated_confidence: float
    expected_value: float
    kelly_fraction: float
    ensemble_agrees: bool
    ensemble_votes: Dict[str, bool]
    change_point: bool
    cusum_sum: float
    sprt_state: SprtStatePayload
    strict_signal: bool
    p_b_credible_interval: Tuple[float, float]
    total_staked: float
    current_max_exposure: float
    current_stop_loss: float
    betting_disabled_reasons: List[str] = field(default_factory=list)

    def to_payload(self) -> Dict[str, Any]:
        return {
            "raw_confidence": self.raw_confidence,
            "calibrated_confidence": self.calibrated_confidence,
            "expected_value": self.expected_value,
            "kelly_fraction": self.kelly_fraction,
            "ensemble_agrees": self.ensemble_agrees,
            "ensemble_votes": dict(self.ensemble_votes),
            "change_point": self.change_point,
            "cusum_sum": self.cusum_sum,
            "sprt_state": dict(self.sprt_state),
            "strict_signal": self.strict_signal,
            "p_b_credible_interval": list(self.p_b_credible_interval),
            "total_staked": self.total_staked,
            "current_max_exposure": self.current_max_exposure,
            "current_stop_loss": self.current_stop_loss,
            "betting_disabled_reasons": list(self.betting_disabled_reasons),
        }


@dataclass(frozen=True)
class DecisionLog:
    """Everything the engine knows after one accepted outcome."""

    round: int
    outcome: Category
    counts: Dict[Category, float]
    posterior_mean: Dict[Category, float]
    p_b_star: float
    confidence: float
    net_profit: float
    decision: Decision
    analysis: AnalysisBundle

    def to_payload(self) -> Dict[str, Any]:
        """Render a JSON-safe dict (category keys become letters)."""
        return {
            "round": self.round,
            "outcome": self.outcome.value,
            "counts": {c.value: self.counts[c] for c in CATEGORIES},
            "posterior_mean": {c.value: self.posterior_mean[c] for c in CATEGORIES},
            "p_b_star": self.p_b_star,
            "confidence": self.confidence,
            "net_profit": self.net_profit,
            "decision": self.decision.to_payload(),
            "analysis": self.analysis.to_payload(),
        }

