"""
shoesign.runtime
================

Runtime pieces that turn a replay-style feed into engine updates.

Key Components
--------------
- `PriorStore`: per-stream prior carried across shoes
- `SessionStateManager`: reconciles full-history reports with live engines
- `LatestReportCoalescer`: keeps only the newest pending report per stream
"""
