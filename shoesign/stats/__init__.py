"""
Statistical building blocks for sequential decisions.

1. **Common** (shoesign.stats.common):
   Scheme-independent numerics: special functions for Beta posteriors,
   sequential test primitives (Wald boundaries, CUSUM) and Kelly sizing.

2. **Schemes** (shoesign.stats.schemes):
   Problem-specific engines composing the common pieces for a particular
   outcome space.

Example:
--------
>>> from shoesign.stats.common.special import regularized_incomplete_beta
>>> round(regularized_incomplete_beta(0.5, 2.0, 2.0), 6)
0.5

>>> from shoesign.stats.schemes.three_way.engine import SequentialDecisionEngine
>>> engine = SequentialDecisionEngine()
"""
