"""
shoesign.stats.schemes.three_way.ensemble
=========================================

Window heuristics voting on whether the recent run supports the favoured
category, and their combination.

Examples
--------
>>> from shoesign.core.names import Category, EnsembleMode
>>> B, P = Category.B, Category.P
>>> ens = Ensemble(mode=EnsembleMode.ANY)
>>> ens.vote([P, B, B, B], B)
{'momentum': False, 'streak': True, 'chop': False}
>>> ens.agrees([P, B, B, B], B)
True
>>> ChopHeuristic().agrees([B, P, B, P], B)
True
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Sequence

from shoesign.core.components import Heuristic
from shoesign.core.names import Category, EnsembleMode


@dataclass(kw_only=True)
class MomentumHeuristic(Heuristic):
    """Favoured category holds a strict majority of the last `window` outcomes."""

    name: str = "momentum"
    window: int = 15
    min_samples: int = 10

    def agrees(self, history: Sequence[Category], favored: Category) -> bool:
        recent = list(history)[-self.window :]
        if len(recent) < self.min_samples:
            return False
        hits = sum(1 for c in recent if c is favored)
        return 2 * hits > len(recent)


@dataclass(kw_only=True)
class StreakHeuristic(Heuristic):
    """The last `length` outcomes are all the favoured category."""

    name: str = "streak"
    length: int = 3

    def agrees(self, history: Sequence[Category], favored: Category) -> bool:
        recent = list(history)[-self.length :]
        return len(recent) == self.length and all(c is favored for c in recent)


@dataclass(kw_only=True)
class ChopHeuristic(Heuristic):
    """
    The last `length` outcomes alternate favoured / other, ending on other.

    An alternating run ending on a non-favoured outcome predicts the favoured
    category next.
    """

    name: str = "chop"
    length: int = 4

    def agrees(self, history: Sequence[Category], favored: Category) -> bool:
        recent = list(history)[-self.length :]
        if len(recent) < self.length:
            return False
        for i, c in enumerate(recent):
            expected_favored = i % 2 == 0
            if (c is favored) != expected_favored:
                return False
        return True


def default_heuristics() -> List[Heuristic]:
    return [MomentumHeuristic(), StreakHeuristic(), ChopHeuristic()]


@dataclass
class Ensemble:
    """Combine heuristic votes with ANY or ALL semantics."""

    mode: EnsembleMode = EnsembleMode.ANY
    heuristics: List[Heuristic] = field(default_factory=default_heuristics)

    def vote(self, history: Sequence[Category], favored: Category) -> Dict[str, bool]:
        return {h.name: h.agrees(history, favored) for h in self.heuristics}

    def combine(self, votes: Dict[str, bool]) -> bool:
        if not votes:
            return False
        if self.mode is EnsembleMode.ALL:
            return all(votes.values())
        return any(votes.values())

    def agrees(self, history: Sequence[Category], favored: Category) -> bool:
        return self.combine(self.vote(history, favored))
