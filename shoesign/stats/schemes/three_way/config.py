"""
shoesign.stats.schemes.three_way.config
=======================================

Configuration for the three-way sequential decision engine.

All knobs have defaults; `StrategyConfig.validate()` rejects inconsistent
values with `ValueError` at construction time so the per-outcome path never
has to.

Examples
--------
>>> cfg = StrategyConfig()
>>> cfg.warm_up_rounds, cfg.max_exposure, cfg.payout
(12, 10.0, 0.95)
>>> cfg.calibration.apply(0.93)
0.82
>>> StrategyConfig.from_dict({"warm_up_rounds": 3, "cusum": {"threshold": 6}}).cusum.threshold
6.0
"""

from __future__ import annotations
import bisect
from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, Mapping, Optional, Tuple

from shoesign.core.names import CATEGORIES, Category, EnsembleMode

# Long-run category rates the posterior is shrunk toward.
BASELINE_RATES: Dict[Category, float] = {
    Category.B: 0.4585,
    Category.P: 0.4462,
    Category.T: 0.0953,
}

DEFAULT_PRIOR: Dict[Category, float] = {
    Category.B: 1.0,
    Category.P: 1.0,
    Category.T: 1.0,
}


def coerce_counts(counts: Mapping[Any, float]) -> Dict[Category, float]:
    """
    Normalize a {category: count} mapping keyed by letters or `Category`.

    Missing categories raise `ValueError`, as do negative counts.
    """
    out: Dict[Category, float] = {}
    for key, value in counts.items():
        cat = Category.parse(key)
        if cat is None:
            raise ValueError(f"Unknown category in counts: {key!r}")
        out[cat] = float(value)
    missing = [c.value for c in CATEGORIES if c not in out]
    if missing:
        raise ValueError(f"Counts missing categories: {missing}")
    negative = [c.value for c, v in out.items() if v < 0]
    if negative:
        raise ValueError(f"Counts must be non-negative, got negatives for {negative}")
    return out


@dataclass(frozen=True)
class CalibrationTable:
    """
    Monotone step-function map from raw to calibrated confidence.

    `breakpoints` is a sequence of (raw, calibrated) pairs sorted by raw.
    A confidence maps to the calibrated value of the highest breakpoint whose
    raw value does not exceed it; below the first breakpoint it maps to 0.
    An empty table is the identity.
    """

    breakpoints: Tuple[Tuple[float, float], ...] = (
        (0.00, 0.00),
        (0.50, 0.48),
        (0.60, 0.55),
        (0.70, 0.63),
        (0.80, 0.72),
        (0.90, 0.82),
        (0.95, 0.88),
        (0.99, 0.92),
    )

    def validate(self) -> None:
        """Validate calibration breakpoints."""
        prev_raw, prev_cal = -1.0, -1.0
        for raw, cal in self.breakpoints:
            if not (0.0 <= raw <= 1.0 and 0.0 <= cal <= 1.0):
                raise ValueError(f"Calibration breakpoint out of [0, 1]: {(raw, cal)}")
            if raw <= prev_raw:
                raise ValueError("Calibration raw values must be strictly increasing")
            if cal < prev_cal:
                raise ValueError("Calibrated values must be non-decreasing")
            prev_raw, prev_cal = raw, cal

    def apply(self, confidence: float) -> float:
        """Look up the calibrated confidence."""
        if not self.breakpoints:
            return confidence
        raws = [raw for raw, _ in self.breakpoints]
        idx = bisect.bisect_right(raws, confidence) - 1
        if idx < 0:
            return 0.0
        return self.breakpoints[idx][1]


@dataclass
class CusumConfig:
    """One-sided CUSUM on the favoured-category indicator."""

    drift: float = 0.05
    threshold: float = 4.0

    def validate(self) -> None:
        if self.drift < 0:
            raise ValueError(f"CUSUM drift must be non-negative, got {self.drift}")
        if self.threshold <= 0:
            raise ValueError(f"CUSUM threshold must be positive, got {self.threshold}")


@dataclass
class SprtConfig:
    """Wald SPRT of p = p_b_star against p = p_b_star + epsilon."""

    alpha: float = 0.05
    beta: float = 0.10
    epsilon: float = 0.01

    def validate(self) -> None:
        if not (0 < self.alpha < 1):
            raise ValueError(f"SPRT alpha must be in (0,1), got {self.alpha}")
        if not (0 < self.beta < 1):
            raise ValueError(f"SPRT beta must be in (0,1), got {self.beta}")
        if not (0 < self.epsilon < 1):
            raise ValueError(f"SPRT epsilon must be in (0,1), got {self.epsilon}")


@dataclass
class AdaptiveRiskConfig:
    """
    Within-shoe adjustments of the stop thresholds.

    - A streak of `high_confidence_rounds` rounds at or above
      `high_confidence_threshold` moves the stop-loss to `loosened_stop_loss`.
    - `exposure_tiers` raises the exposure cap once net profit reaches a
      level: ((profit_at_least, cap), ...). Empty disables tiering.
    - `low_confidence_rounds` consecutive post-warm-up rounds below
      `low_confidence_threshold` latch a stop; 0 disables the rule.
    """

    high_confidence_threshold: float = 0.85
    high_confidence_rounds: int = 3
    loosened_stop_loss: Optional[float] = -5.0
    exposure_tiers: Tuple[Tuple[float, float], ...] = ()
    low_confidence_threshold: float = 0.60
    low_confidence_rounds: int = 0

    def validate(self) -> None:
        if not (0 <= self.high_confidence_threshold <= 1):
            raise ValueError("high_confidence_threshold must be in [0,1]")
        if self.high_confidence_rounds < 1:
            raise ValueError("high_confidence_rounds must be at least 1")
        if self.loosened_stop_loss is not None and self.loosened_stop_loss >= 0:
            raise ValueError("loosened_stop_loss must be negative")
        for level, cap in self.exposure_tiers:
            if cap <= 0:
                raise ValueError(f"Exposure tier cap must be positive, got {cap}")
        if not (0 <= self.low_confidence_threshold <= 1):
            raise ValueError("low_confidence_threshold must be in [0,1]")
        if self.low_confidence_rounds < 0:
            raise ValueError("low_confidence_rounds must be non-negative")


@dataclass
class StrategyConfig:
    """
    Configuration for `SequentialDecisionEngine`.

    Parameters
    ----------
    initial_prior : dict
        Pseudo-counts {B, P, T} a fresh shoe starts from.
    warm_up_rounds : int
        Rounds observed before any stake is recommended.
    max_exposure : float
        Cumulative units staked per shoe before betting is latched off.
    net_profit_stop_loss : float
        Net profit (units, negative) at which betting is latched off.
    shrinkage_strength : float
        Pseudo-count weight k of the baseline rates added to the counts.
    calibration : CalibrationTable
        Raw to calibrated confidence step function.
    change_point_penalty : float
        Multiplier in [0, 1] applied to raw confidence after a change-point.
    ensemble_mode : EnsembleMode
        Combination of the momentum, streak and chop heuristics.
    require_ensemble : bool
        Whether ensemble disagreement blocks a bet.
    kelly_fraction : float
        Safety multiplier in (0, 1] applied to the full Kelly fraction.
    payout : float
        Net units won per unit staked on the favoured category.
    prior_shrinkage_factor : float
        Weight of a finished shoe's counts in the next shoe's prior.
    history_size : int
        Length of the bounded recent-outcome history.
    """

    initial_prior: Dict[Category, float] = field(
        default_factory=lambda: dict(DEFAULT_PRIOR)
    )
    warm_up_rounds: int = 12
    max_exposure: float = 10.0
    net_profit_stop_loss: float = -3.0
    shrinkage_strength: float = 10.0
    calibration: CalibrationTable = field(default_factory=CalibrationTable)
    change_point_penalty: float = 0.5
    ensemble_mode: EnsembleMode = EnsembleMode.ANY
    require_ensemble: bool = True
    kelly_fraction: float = 0.25
    cusum: CusumConfig = field(default_factory=CusumConfig)
    sprt: SprtConfig = field(default_factory=SprtConfig)
    adaptive: AdaptiveRiskConfig = field(default_factory=AdaptiveRiskConfig)
    payout: float = 0.95
    prior_shrinkage_factor: float = 0.2
    history_size: int = 64

    def __post_init__(self) -> None:
        self.initial_prior = coerce_counts(self.initial_prior)
        self.ensemble_mode = EnsembleMode(self.ensemble_mode)

    def validate(self) -> None:
        """Validate the configuration."""
        if self.warm_up_rounds < 0:
            raise ValueError(f"warm_up_rounds must be non-negative, got {self.warm_up_rounds}")
        if self.max_exposure <= 0:
            raise ValueError(f"max_exposure must be positive, got {self.max_exposure}")
        if self.net_profit_stop_loss >= 0:
            raise ValueError(
                f"net_profit_stop_loss must be negative, got {self.net_profit_stop_loss}"
            )
        if self.shrinkage_strength < 0:
            raise ValueError("shrinkage_strength must be non-negative")
        if not (0 <= self.change_point_penalty <= 1):
            raise ValueError(
                f"change_point_penalty must be in [0,1], got {self.change_point_penalty}"
            )
        if not (0 < self.kelly_fraction <= 1):
            raise ValueError(f"kelly_fraction must be in (0,1], got {self.kelly_fraction}")
        if self.payout <= 0:
            raise ValueError(f"payout must be positive, got {self.payout}")
        if self.prior_shrinkage_factor < 0:
            raise ValueError("prior_shrinkage_factor must be non-negative")
        if self.history_size < 15:
            raise ValueError("history_size must cover the 15-round momentum window")
        if sum(self.initial_prior.values()) <= 0:
            raise ValueError("initial_prior must have positive total mass")
        self.calibration.validate()
        self.cusum.validate()
        self.sprt.validate()
        self.adaptive.validate()

    def with_overrides(self, **changes: Any) -> "StrategyConfig":
        """Return a validated copy with some fields replaced."""
        updated = replace(self, **changes)
        updated.validate()
        return updated

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "StrategyConfig":
        """
        Build a configuration from a plain mapping (e.g. decoded JSON).

        Nested sections (`cusum`, `sprt`, `adaptive`) may be given as
        mappings; `calibration` as a list of [raw, calibrated] pairs.
        Unknown keys raise `ValueError`.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown configuration keys: {unknown}")

        kwargs: Dict[str, Any] = dict(data)
        if "cusum" in kwargs and isinstance(kwargs["cusum"], Mapping):
            kwargs["cusum"] = CusumConfig(
                **{k: float(v) for k, v in kwargs["cusum"].items()}
            )
        if "sprt" in kwargs and isinstance(kwargs["sprt"], Mapping):
            kwargs["sprt"] = SprtConfig(
                **{k: float(v) for k, v in kwargs["sprt"].items()}
            )
        if "adaptive" in kwargs and isinstance(kwargs["adaptive"], Mapping):
            adaptive = dict(kwargs["adaptive"])
            if "exposure_tiers" in adaptive:
                adaptive["exposure_tiers"] = tuple(
                    (float(level), float(cap)) for level, cap in adaptive["exposure_tiers"]
                )
            kwargs["adaptive"] = AdaptiveRiskConfig(**adaptive)
        if "calibration" in kwargs and not isinstance(
            kwargs["calibration"], CalibrationTable
        ):
            kwargs["calibration"] = CalibrationTable(
                tuple((float(r), float(c)) for r, c in kwargs["calibration"])
            )
        return cls(**kwargs)
