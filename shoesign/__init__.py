"""
shoesign: sequential decision signals for three-way outcome streams.

A shoe is a bounded run of outcomes in {B, P, T} that shares one running
count state. After every new outcome shoesign recomputes a Bayesian
confidence that the favoured category beats its break-even probability,
shrinks it toward fixed baseline rates, calibrates it, cross-checks it
against CUSUM and SPRT detectors, and turns it into a discrete stake via
fractional Kelly sizing behind adaptive risk gates.

The layout follows the usual split between generic numerics
(`shoesign.stats.common`), the three-way scheme that composes them
(`shoesign.stats.schemes.three_way`), the runtime that feeds engines from a
replay-style report stream (`shoesign.runtime`), reporting, and the framing
used to hand decision logs to a display process (`shoesign.transport`).
Every accepted outcome, decision and session boundary can additionally be
appended to a typed ledger for audit and offline calibration.

Example
-------
>>> import shoesign
>>> assert hasattr(shoesign, "core")
>>> assert hasattr(shoesign, "stats")
"""

from shoesign import core, stats  # noqa: F401
from shoesign.__version__ import __version__  # noqa: F401
