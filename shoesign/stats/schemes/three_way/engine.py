"""
shoesign.stats.schemes.three_way.engine
=======================================

`SequentialDecisionEngine`: the per-shoe state machine.

Each accepted outcome runs one fixed pipeline:

1. settle the previous round's decision against the new outcome
2. update counts and the bounded recent history
3. shrink the posterior mean toward baseline rates
4. break-even probability ``p_b_star = (1 - pm.T) / (1 + payout)``
5. raw confidence ``1 - I_{p_b_star}(shrunk.B, shrunk.P + shrunk.T)``
6. CUSUM then SPRT; a change-point penalises the raw confidence
7. calibration step function
8. expected value per unit; non-positive EV forces confidence to 0
9. ensemble agreement of the window heuristics
10. adaptive risk adjustments, then the latching stop conditions
11. fractional Kelly stake tier, trimmed to the remaining exposure
12. first-match decision rule
13. immutable `DecisionLog`

Stakes are only ever placed on the favoured category (`Category.B`).

Examples
--------
>>> from shoesign.stats.schemes.three_way.config import StrategyConfig
>>> engine = SequentialDecisionEngine(StrategyConfig())
>>> log = engine.add_outcome("B")
>>> log.round, log.decision.stake, log.decision.reason
(1, 0, 'warm-up')
>>> engine.add_outcome("X") is None, engine.rejected_outcomes
(True, 1)
"""

from __future__ import annotations
import logging
import math
from collections import deque
from typing import Any, Deque, Dict, Mapping, Optional, Tuple, Union

from shoesign.core.names import CATEGORIES, Category, SprtDecision
from shoesign.stats.common.kelly import kelly_fraction, stake_tier
from shoesign.stats.common.special import beta_cdf_inv, regularized_incomplete_beta
from shoesign.stats.schemes.three_way.config import (
    BASELINE_RATES,
    StrategyConfig,
    coerce_counts,
)
from shoesign.stats.schemes.three_way.detectors import CusumDetector, SprtDetector
from shoesign.stats.schemes.three_way.ensemble import Ensemble
from shoesign.stats.schemes.three_way.model import AnalysisBundle, Decision, DecisionLog

logger = logging.getLogger(__name__)

FAVORED = Category.B

CREDIBLE_LOWER = 0.025
CREDIBLE_UPPER = 0.975


class SequentialDecisionEngine:
    """
    Confidence model and stake recommendation for one shoe.

    Parameters
    ----------
    config : StrategyConfig, optional
        Validated on construction; defaults to `StrategyConfig()`.
    prior : mapping, optional
        Starting pseudo-counts; defaults to `config.initial_prior`.

    Attributes
    ----------
    round : int
        Accepted outcomes since the last `reset()`.
    betting_disabled : bool
        One-way latch; only `reset()` clears it.
    rejected_outcomes : int
        Outcomes refused because they were not a known category.
    """

    def __init__(
        self,
        config: Optional[StrategyConfig] = None,
        *,
        prior: Optional[Mapping[Any, float]] = None,
    ) -> None:
        self.config = config if config is not None else StrategyConfig()
        self.config.validate()
        self.cusum = CusumDetector(
            drift=self.config.cusum.drift, threshold=self.config.cusum.threshold
        )
        self.sprt = SprtDetector(
            alpha=self.config.sprt.alpha,
            beta=self.config.sprt.beta,
            epsilon=self.config.sprt.epsilon,
        )
        self.ensemble = Ensemble(mode=self.config.ensemble_mode)
        self.reset(prior if prior is not None else self.config.initial_prior)

    # ---- lifecycle ----

    def reset(self, prior: Optional[Mapping[Any, float]] = None) -> None:
        """Start a new shoe from `prior` (or the configured initial prior)."""
        self.prior = coerce_counts(
            prior if prior is not None else self.config.initial_prior
        )
        self.counts: Dict[Category, float] = dict(self.prior)
        self.round = 0
        self.net_profit = 0.0
        self.total_staked = 0.0
        self.history: Deque[Category] = deque(maxlen=self.config.history_size)
        self.betting_disabled = False
        self.stop_reason: Optional[str] = None
        self.current_max_exposure = float(self.config.max_exposure)
        self.current_stop_loss = float(self.config.net_profit_stop_loss)
        self.consecutive_high_confidence_rounds = 0
        self.consecutive_low_confidence_rounds = 0
        self.current_decision: Optional[Decision] = None
        self.last_log: Optional[DecisionLog] = None
        self.rejected_outcomes = 0
        self.cusum.reset()
        self.sprt.reset()

    # ---- per-outcome pipeline ----

    def add_outcome(self, outcome: Union[Category, str]) -> Optional[DecisionLog]:
        """Apply one outcome; unknown categories are refused and return None."""
        category = Category.parse(outcome)
        if category is None:
            self.rejected_outcomes += 1
            logger.debug("Rejected unknown outcome %r", outcome)
            return None

        self.round += 1
        self._settle(category)
        self.counts[category] += 1.0
        self.history.append(category)

        shrunk = self._shrunk_counts()
        total = sum(shrunk.values())
        posterior_mean = {c: shrunk[c] / total for c in CATEGORIES}
        p_b_star = (1.0 - posterior_mean[Category.T]) / (1.0 + self.config.payout)
        a = shrunk[Category.B]
        b = shrunk[Category.P] + shrunk[Category.T]

        raw = self._raw_confidence(p_b_star, a, b)
        x_t = 1 if category is FAVORED else 0
        self.cusum.update(x_t, p_b_star)
        self.sprt.update(x_t, p_b_star)
        if self.cusum.change_point:
            raw *= self.config.change_point_penalty

        calibrated = self.config.calibration.apply(raw)
        expected_value = (
            posterior_mean[Category.B] * self.config.payout - posterior_mean[Category.P]
        )
        confidence = calibrated if expected_value > 0 else 0.0

        votes = self.ensemble.vote(self.history, FAVORED)
        agrees = self.ensemble.combine(votes)

        self._adapt_risk(confidence)
        self._check_stops()

        full_kelly = kelly_fraction(
            posterior_mean[Category.B], posterior_mean[Category.P], self.config.payout
        )
        scaled_kelly = full_kelly * self.config.kelly_fraction if full_kelly > 0 else 0.0
        decision = self._decide(stake_tier(scaled_kelly), agrees, confidence)
        if decision.is_bet:
            self.total_staked += decision.stake
        self.current_decision = decision

        interval = self._credible_interval(a, b)
        strict_signal = (
            not self.cusum.change_point
            and not self.sprt.disabled
            and posterior_mean[Category.B] > p_b_star
            and interval[0] > p_b_star
            and self.sprt.decision is SprtDecision.ACCEPT_H1
        )

        analysis = AnalysisBundle(
            raw_confidence=raw,
            calibrated_confidence=calibrated,
            expected_value=expected_value,
            kelly_fraction=scaled_kelly,
            ensemble_agrees=agrees,
            ensemble_votes=votes,
            change_point=self.cusum.change_point,
            cusum_sum=self.cusum.sum,
            sprt_state=self.sprt.snapshot(),
            strict_signal=strict_signal,
            p_b_credible_interval=interval,
            total_staked=self.total_staked,
            current_max_exposure=self.current_max_exposure,
            current_stop_loss=self.current_stop_loss,
            betting_disabled_reasons=[self.stop_reason] if self.stop_reason else [],
        )
        log = DecisionLog(
            round=self.round,
            outcome=category,
            counts=dict(self.counts),
            posterior_mean=posterior_mean,
            p_b_star=p_b_star,
            confidence=confidence,
            net_profit=self.net_profit,
            decision=decision,
            analysis=analysis,
        )
        self.last_log = log
        logger.debug(
            "round=%d outcome=%s confidence=%.4f stake=%d reason=%s",
            self.round,
            category.value,
            confidence,
            decision.stake,
            decision.reason,
        )
        return log

    # ---- steps ----

    def _settle(self, outcome: Category) -> None:
        pending = self.current_decision
        if pending is None or not pending.is_bet:
            return
        if pending.target is outcome:
            self.net_profit += pending.stake * self.config.payout
        else:
            # ties settle a favoured-category bet as a loss
            self.net_profit -= pending.stake

    def _shrunk_counts(self) -> Dict[Category, float]:
        k = self.config.shrinkage_strength
        return {c: self.counts[c] + k * BASELINE_RATES[c] for c in CATEGORIES}

    @staticmethod
    def _raw_confidence(p_b_star: float, a: float, b: float) -> float:
        confidence = 1.0 - regularized_incomplete_beta(p_b_star, a, b)
        if math.isnan(confidence):
            return 0.0
        return min(1.0, max(0.0, confidence))

    @staticmethod
    def _credible_interval(a: float, b: float) -> Tuple[float, float]:
        return beta_cdf_inv(CREDIBLE_LOWER, a, b), beta_cdf_inv(CREDIBLE_UPPER, a, b)

    def _adapt_risk(self, confidence: float) -> None:
        adaptive = self.config.adaptive

        if confidence >= adaptive.high_confidence_threshold:
            self.consecutive_high_confidence_rounds += 1
        else:
            self.consecutive_high_confidence_rounds = 0
        if (
            adaptive.loosened_stop_loss is not None
            and self.consecutive_high_confidence_rounds >= adaptive.high_confidence_rounds
            and self.current_stop_loss != adaptive.loosened_stop_loss
        ):
            self.current_stop_loss = float(adaptive.loosened_stop_loss)
            logger.info("Stop-loss moved to %g units", self.current_stop_loss)

        for level, cap in sorted(adaptive.exposure_tiers, reverse=True):
            if self.net_profit >= level:
                if cap > self.current_max_exposure:
                    self.current_max_exposure = float(cap)
                    logger.info("Exposure cap raised to %g units", cap)
                break

        if adaptive.low_confidence_rounds and self.round > self.config.warm_up_rounds:
            if confidence < adaptive.low_confidence_threshold:
                self.consecutive_low_confidence_rounds += 1
            else:
                self.consecutive_low_confidence_rounds = 0
            if self.consecutive_low_confidence_rounds >= adaptive.low_confidence_rounds:
                self._latch(
                    f"confidence < {adaptive.low_confidence_threshold * 100:g}% "
                    f"for {adaptive.low_confidence_rounds} rounds"
                )

    def _check_stops(self) -> None:
        if self.net_profit <= self.current_stop_loss:
            self._latch(f"net profit reached {self.current_stop_loss:g} units")
        if self.total_staked >= self.current_max_exposure:
            self._latch(f"max exposure of {self.current_max_exposure:g} units reached")

    def _latch(self, reason: str) -> None:
        if self.betting_disabled:
            return
        self.betting_disabled = True
        self.stop_reason = reason
        logger.info("Betting disabled at round %d: %s", self.round, reason)

    def _decide(self, stake: int, agrees: bool, confidence: float) -> Decision:
        if self.round <= self.config.warm_up_rounds:
            return Decision.no_bet("warm-up")
        if self.betting_disabled:
            return Decision.no_bet(f"stop: {self.stop_reason}")
        if self.config.require_ensemble and not agrees:
            return Decision.no_bet("ensemble disagreement")
        if stake == 0:
            return Decision.no_bet("EV/Kelly non-positive")
        # whole units only; a fractional cap can be exceeded by less than one unit
        headroom = math.floor(self.current_max_exposure - self.total_staked)
        stake = min(stake, max(1, headroom))
        return Decision(
            target=FAVORED, stake=stake, reason=f"confidence {confidence * 100:.2f}%"
        )

    # ---- inspection ----

    def snapshot(self) -> Dict[str, Any]:
        """JSON-safe copy of the mutable session state."""
        return {
            "round": self.round,
            "counts": {c.value: self.counts[c] for c in CATEGORIES},
            "net_profit": self.net_profit,
            "total_staked": self.total_staked,
            "betting_disabled": self.betting_disabled,
            "stop_reason": self.stop_reason,
            "current_max_exposure": self.current_max_exposure,
            "current_stop_loss": self.current_stop_loss,
            "history": [c.value for c in self.history],
            "cusum": self.cusum.snapshot(),
            "sprt": dict(self.sprt.snapshot()),
            "rejected_outcomes": self.rejected_outcomes,
        }
