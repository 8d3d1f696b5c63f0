"""
shoesign.reporting.performance
==============================

`PerformanceTracker`: per-shoe aggregation of settled decisions.

Each call to `record_decision(log, actual)` settles the decision carried by
`log` against the outcome that followed it. Staked decisions update profit
and the win/loss tallies (the *relaxed* strategy, the one actually bet);
independently, the strict composite signal of the log is scored against
whether the favoured category came up. Pure aggregation, no gating.

Examples
--------
>>> from shoesign.stats.schemes.three_way.engine import SequentialDecisionEngine
>>> from shoesign.stats.schemes.three_way.model import Decision
>>> from shoesign.core.names import Category
>>> engine = SequentialDecisionEngine()
>>> log = engine.add_outcome("B")
>>> tracker = PerformanceTracker()
>>> tracker.record_decision(log, Category.P)
>>> tracker.outcomes_observed, tracker.bets_made
(1, 0)
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Union

import polars as pl

from shoesign.core.names import Category
from shoesign.stats.schemes.three_way.engine import FAVORED
from shoesign.stats.schemes.three_way.model import DecisionLog

_HISTORY_SCHEMA = {
    "round": pl.Int64,
    "target": pl.Utf8,
    "stake": pl.Int64,
    "outcome": pl.Utf8,
    "result": pl.Utf8,
}


@dataclass
class PerformanceTracker:
    """Counters for one shoe; `reset()` zeroes everything."""

    payout: float = 0.95
    outcomes_observed: int = 0
    net_profit_units: float = 0.0
    bets_made: int = 0
    units_staked: float = 0.0
    wins: int = 0
    losses: int = 0
    strict_true_positives: int = 0
    strict_false_positives: int = 0
    strict_false_negatives: int = 0
    strict_true_negatives: int = 0
    bet_history: List[Dict[str, Any]] = field(default_factory=list)

    def reset(self) -> None:
        self.outcomes_observed = 0
        self.net_profit_units = 0.0
        self.bets_made = 0
        self.units_staked = 0.0
        self.wins = 0
        self.losses = 0
        self.strict_true_positives = 0
        self.strict_false_positives = 0
        self.strict_false_negatives = 0
        self.strict_true_negatives = 0
        self.bet_history = []

    def record_decision(self, log: DecisionLog, actual: Union[Category, str]) -> None:
        """Settle `log.decision` against the outcome that followed it."""
        outcome = Category.parse(actual)
        if outcome is None:
            raise ValueError(f"Unknown outcome category: {actual!r}")
        self.outcomes_observed += 1

        decision = log.decision
        if decision.is_bet:
            won = decision.target is outcome
            if won:
                self.net_profit_units += decision.stake * self.payout
                self.wins += 1
            else:
                self.net_profit_units -= decision.stake
                self.losses += 1
            self.bets_made += 1
            self.units_staked += decision.stake
            self.bet_history.append(
                {
                    "round": log.round,
                    "target": decision.target.value if decision.target else None,
                    "stake": decision.stake,
                    "outcome": outcome.value,
                    "result": "WIN" if won else "LOSE",
                }
            )

        signal = log.analysis.strict_signal
        hit = outcome is FAVORED
        if signal and hit:
            self.strict_true_positives += 1
        elif signal:
            self.strict_false_positives += 1
        elif hit:
            self.strict_false_negatives += 1
        else:
            self.strict_true_negatives += 1

    # ---- derived metrics ----

    @property
    def relaxed_win_rate(self) -> float:
        return self.wins / self.bets_made if self.bets_made else 0.0

    @property
    def strict_win_rate(self) -> float:
        signals = self.strict_true_positives + self.strict_false_positives
        return self.strict_true_positives / signals if signals else 0.0

    @property
    def ev_per_bet(self) -> float:
        return self.net_profit_units / self.bets_made if self.bets_made else 0.0

    def metrics(self) -> Dict[str, Any]:
        return {
            "outcomes_observed": self.outcomes_observed,
            "net_profit_units": self.net_profit_units,
            "bets_made": self.bets_made,
            "units_staked": self.units_staked,
            "wins": self.wins,
            "losses": self.losses,
            "ev_per_bet": self.ev_per_bet,
            "relaxed_win_rate": self.relaxed_win_rate,
            "strict_win_rate": self.strict_win_rate,
            "strict_signals": self.strict_true_positives + self.strict_false_positives,
            "strict_confusion": {
                "tp": self.strict_true_positives,
                "fp": self.strict_false_positives,
                "fn": self.strict_false_negatives,
                "tn": self.strict_true_negatives,
            },
        }

    def get_summary(self) -> str:
        """Human-readable report of the shoe so far."""
        m = self.metrics()
        lines = [
            "--- Shoe Performance Summary ---",
            f"Rounds observed: {m['outcomes_observed']}",
            f"Net profit: {m['net_profit_units']:+.2f} units",
            f"Bets made: {m['bets_made']} ({m['units_staked']:g} units staked)",
            f"EV/bet: {m['ev_per_bet']:+.3f} units",
            f"Relaxed win rate: {m['relaxed_win_rate'] * 100:.1f}% "
            f"({m['wins']}W / {m['losses']}L)",
            f"Strict win rate: {m['strict_win_rate'] * 100:.1f}% "
            f"over {m['strict_signals']} signal(s)",
        ]
        return "\n".join(lines)

    def history_frame(self) -> pl.DataFrame:
        """Settled bets as a Polars frame."""
        return pl.DataFrame(self.bet_history, schema=_HISTORY_SCHEMA)
