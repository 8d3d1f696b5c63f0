"""
Three-way outcome scheme.

A Bayesian-with-shrinkage confidence model over {B, P, T} outcomes, guarded by
CUSUM / SPRT detectors, window heuristics and adaptive risk limits, with
fractional-Kelly stake recommendations on the favoured category.

Examples
--------
>>> from shoesign.stats.schemes.three_way import SequentialDecisionEngine, StrategyConfig
>>> engine = SequentialDecisionEngine(StrategyConfig(warm_up_rounds=2))
>>> engine.add_outcome("B").decision.reason
'warm-up'
"""

from shoesign.stats.schemes.three_way.config import StrategyConfig
from shoesign.stats.schemes.three_way.engine import SequentialDecisionEngine
from shoesign.stats.schemes.three_way.model import Decision, DecisionLog

__all__ = ["StrategyConfig", "SequentialDecisionEngine", "Decision", "DecisionLog"]
