"""
shoesign.reporting.generic
==========================

Reporting over a `PolarsLedger` round journal: streams and shoes seen,
namespace x kind counts, per-shoe category counts and a per-round
decision table.

Examples
--------
>>> from shoesign.backends.polars.ledger import PolarsLedger
>>> from shoesign.reporting.generic import LedgerReporter
>>> from shoesign.runtime.session_manager import SessionStateManager
>>> from shoesign.runtime.stores import PriorStore
>>> L = PolarsLedger()
>>> _ = SessionStateManager(store=PriorStore(), ledger=L).process_report("bac-1", ["B", "P"])
>>> rep = LedgerReporter(L)
>>> rep.unique_streams()
['bac-1']
>>> rep.decision_table().height
2
"""

from __future__ import annotations
import json
from dataclasses import dataclass
from typing import List, Optional

import polars as pl

from shoesign.backends.polars.ledger import PolarsLedger
from shoesign.core.names import Namespace


@dataclass
class LedgerReporter:
    """Pull-based reports over one journal."""

    ledger: PolarsLedger

    def _unique(self, column: str) -> List[str]:
        df = self.ledger.frame()
        values = df.get_column(column).drop_nulls().unique().to_list()
        return sorted(values)

    def unique_streams(self) -> List[str]:
        return self._unique("stream_id")

    def unique_namespaces(self) -> List[str]:
        return self._unique("namespace")

    def unique_kinds(self) -> List[str]:
        return self._unique("kind")

    def namespace_kind_counts(self) -> pl.DataFrame:
        """Counts of records grouped by namespace and kind."""
        return (
            self.ledger.frame()
            .group_by(["namespace", "kind"])
            .agg(pl.len().alias("count"))
            .sort(["namespace", "kind"])
        )

    def shoe_category_counts(self, stream_id: Optional[str] = None) -> pl.DataFrame:
        """Accepted outcomes per stream, shoe and category (B, P, T columns)."""
        df = self.ledger.frame().filter(
            (pl.col("namespace") == Namespace.OBS.value) & (pl.col("kind") == "accepted")
        )
        if stream_id is not None:
            df = df.filter(pl.col("stream_id") == stream_id)
        return (
            df.group_by(["stream_id", "shoe"])
            .agg(
                (pl.col("category") == "B").sum().cast(pl.Int64).alias("B"),
                (pl.col("category") == "P").sum().cast(pl.Int64).alias("P"),
                (pl.col("category") == "T").sum().cast(pl.Int64).alias("T"),
            )
            .sort(["stream_id", "shoe"])
        )

    def decision_table(self, stream_id: Optional[str] = None) -> pl.DataFrame:
        """One row per logged round, in append order."""
        df = self.ledger.frame().filter(
            (pl.col("namespace") == Namespace.STATS.value)
            & (pl.col("kind") == "decision")
        )
        if stream_id is not None:
            df = df.filter(pl.col("stream_id") == stream_id)

        # net profit, target and the strict flag only live in the payload
        extras = []
        for raw in df.get_column("payload").to_list():
            payload = json.loads(raw)
            extras.append(
                {
                    "net_profit": float(payload["net_profit"]),
                    "bet_on": payload["decision"]["betOn"],
                    "strict_signal": bool(payload["analysis"]["strict_signal"]),
                }
            )
        extra = pl.DataFrame(
            extras,
            schema={"net_profit": pl.Float64, "bet_on": pl.Utf8, "strict_signal": pl.Boolean},
        )
        return pl.concat(
            [
                df.select(
                    "stream_id",
                    "shoe",
                    "round",
                    pl.col("category").alias("outcome"),
                    "confidence",
                    "stake",
                    "reason",
                ),
                extra,
            ],
            how="horizontal",
        )
