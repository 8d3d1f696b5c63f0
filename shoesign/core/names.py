"""
shoesign.core.names
===================

Typed names shared across the package.

- `Category`: the three outcome categories of a shoe.
- `Namespace`: well-known journal namespaces.
- `EnsembleMode`, `SprtDecision`: small closed choices used by the engine.
- `StreamId`: NewType wrapper for stream keys.

Examples
--------
>>> from shoesign.core.names import Category, Namespace
>>> Category.parse("B") is Category.B
True
>>> Category.parse("x") is None
True
>>> Namespace.OBS.value
'obs'
"""

from __future__ import annotations
from enum import Enum
from typing import Any, NewType, Optional


class Category(str, Enum):
    """Outcome categories.

    - B: the favoured category (the one stakes are placed on)
    - P: the opposing category
    - T: tie
    """

    B = "B"
    P = "P"
    T = "T"

    @classmethod
    def parse(cls, value: Any) -> Optional["Category"]:
        """Return the category for a tag letter (or a Category), else None."""
        if isinstance(value, Category):
            return value
        if isinstance(value, str):
            try:
                return cls(value)
            except ValueError:
                return None
        return None


CATEGORIES = (Category.B, Category.P, Category.T)


class Namespace(str, Enum):
    """Well-known ledger namespaces.

    - OBS: accepted and dropped outcomes
    - STATS: per-round decision logs
    - SIGNALS: session boundaries
    """

    OBS = "obs"
    STATS = "stats"
    SIGNALS = "signals"


class EnsembleMode(str, Enum):
    """How the window heuristics are combined into one agreement flag."""

    ANY = "any"
    ALL = "all"


class SprtDecision(str, Enum):
    """Terminal states of the sequential probability ratio test."""

    INCONCLUSIVE = "inconclusive"
    ACCEPT_H0 = "accept_h0"
    ACCEPT_H1 = "accept_h1"


StreamId = NewType("StreamId", str)
