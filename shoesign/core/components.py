"""
shoesign.core.components
========================

Base classes for the small, independent sub-state machines an engine
composes each round.

Instead of one monolithic strategy object, the engine owns a fixed list of
components and updates them in a fixed order. Each component keeps only its
own state and exposes a JSON-safe snapshot for the decision log.

Component Types:
- `Detector`: consumes one Bernoulli indicator per round against a moving
  reference probability and may latch a terminal state
- `Heuristic`: votes on whether a window of recent outcomes supports
  staking on the favoured category

Examples
--------
>>> from shoesign.core.names import Category
>>> class AlwaysAgrees(Heuristic):
...     name: str = "always"
...     def agrees(self, history, favored):
...         return True
>>> AlwaysAgrees().agrees([], Category.B)
True
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Sequence

from shoesign.core.names import Category


class ComponentBase(ABC):
    """
    Base class for all per-round components.

    Requires subclasses to implement `reset()` and `snapshot()`.
    """

    @abstractmethod
    def reset(self) -> None:
        """Return the component to its start-of-session state."""
        pass

    @abstractmethod
    def snapshot(self) -> Dict[str, Any]:
        """Return a JSON-safe copy of the component's state."""
        pass


@dataclass(kw_only=True)
class Detector(ComponentBase):
    """
    Base class for online detectors.

    Detectors see the indicator `x_t = 1 if outcome is favoured else 0` and the
    current break-even probability each round. Once a detector reaches a
    terminal state it stays there until `reset()`.
    """

    tag: str = "detector:generic"

    def update(self, x_t: int, p_ref: float) -> None:
        """Override this method to consume one round."""
        raise NotImplementedError("Subclasses must implement update()")

    @property
    def disabled(self) -> bool:
        """True once the detector has latched a terminal state."""
        return False

    def reset(self) -> None:
        raise NotImplementedError("Subclasses must implement reset()")

    def snapshot(self) -> Dict[str, Any]:
        raise NotImplementedError("Subclasses must implement snapshot()")


@dataclass(kw_only=True)
class Heuristic:
    """
    Base class for window heuristics.

    Heuristics are stateless: they vote from the recent outcome history alone.
    """

    name: str = "heuristic"

    def agrees(self, history: Sequence[Category], favored: Category) -> bool:
        """Override this method to vote on the given history."""
        raise NotImplementedError("Subclasses must implement agrees()")
