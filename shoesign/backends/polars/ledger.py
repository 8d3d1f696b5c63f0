"""
shoesign.backends.polars.ledger
===============================

A **Polars-backed** round journal: one frame, one row per record.

Stream, shoe and round are key columns; category, stake, confidence and
reason are stored flat so that calibration queries stay columnar. The full
record goes into a JSON-UTF8 payload column. No persistence here (see
`shoesign.backends.polars.io`).

Examples
--------
>>> from shoesign.backends.polars.ledger import PolarsLedger
>>> from shoesign.core.names import Category
>>> L = PolarsLedger()
>>> L.record_outcome(stream_id="bac-1", shoe=1, round=1, category=Category.P, position=0)
>>> L.reader().count(namespace="obs", shoe=1)
1
>>> L.shoe_frame("bac-1", 1).get_column("category").to_list()
['P']
"""

from __future__ import annotations
import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, Mapping, Optional, cast

import polars as pl

from shoesign.core.ledger import (
    LedgerReader,
    NamespaceLike,
    PayloadRegistry,
    Row,
    namespace_value,
)
from shoesign.core.traits import LedgerOps

logger = logging.getLogger(__name__)


class PolarsLedger(LedgerOps):
    """Polars-backed append-only round journal."""

    _SCHEMA = {
        "uuid": pl.Utf8,
        "ts": pl.Datetime(time_unit="us", time_zone="UTC"),
        "stream_id": pl.Utf8,
        "shoe": pl.Int64,
        "round": pl.Int64,
        "namespace": pl.Utf8,
        "kind": pl.Utf8,
        "category": pl.Utf8,
        "stake": pl.Int64,
        "confidence": pl.Float64,
        "reason": pl.Utf8,
        "payload_type": pl.Utf8,
        "payload": pl.Utf8,  # JSON string
    }

    def __init__(self, df: Optional[pl.DataFrame] = None) -> None:
        self._df = (
            df if df is not None else pl.DataFrame(schema=cast(Any, self._SCHEMA))
        )

    def __len__(self) -> int:
        return self._df.height

    # ---- Ledger interface ----

    def append(
        self,
        *,
        ts: datetime,
        stream_id: str,
        shoe: int,
        round: int,
        namespace: NamespaceLike,
        kind: str,
        payload_type: str,
        payload: Mapping[str, Any],
        category: Optional[str] = None,
        stake: Optional[int] = None,
        confidence: Optional[float] = None,
        reason: Optional[str] = None,
    ) -> "PolarsLedger":
        if ts.tzinfo is None:
            ts = ts.replace(tzinfo=timezone.utc)
        else:
            ts = ts.astimezone(timezone.utc)
        row = pl.DataFrame(
            {
                "uuid": [str(uuid.uuid4())],
                "ts": [ts],
                "stream_id": [stream_id],
                "shoe": [shoe],
                "round": [round],
                "namespace": [namespace_value(namespace)],
                "kind": [kind],
                "category": [category],
                "stake": [stake],
                "confidence": [confidence],
                "reason": [reason],
                "payload_type": [payload_type],
                "payload": [json.dumps(dict(payload), separators=(",", ":"))],
            },
            schema=cast(Any, self._SCHEMA),
        )
        self._df = pl.concat([self._df, row], how="vertical_relaxed")
        return self

    class _Reader(LedgerReader):
        def __init__(self, df: pl.DataFrame) -> None:
            self.df = df

        def _filter(
            self,
            *,
            namespace: Optional[NamespaceLike] = None,
            kind: Optional[str] = None,
            stream_id: Optional[str] = None,
            shoe: Optional[int] = None,
        ) -> pl.DataFrame:
            q = self.df
            if namespace is not None:
                q = q.filter(pl.col("namespace") == namespace_value(namespace))
            if kind is not None:
                q = q.filter(pl.col("kind") == kind)
            if stream_id is not None:
                q = q.filter(pl.col("stream_id") == stream_id)
            if shoe is not None:
                q = q.filter(pl.col("shoe") == shoe)
            return q

        @staticmethod
        def _to_row(rec: Dict[str, Any]) -> Row:
            try:
                payload = json.loads(rec["payload"]) if rec["payload"] else {}
            except json.JSONDecodeError:
                logger.warning("Undecodable payload in journal row %s", rec["uuid"])
                payload = {}
            return Row(
                uuid=rec["uuid"],
                ts=rec["ts"],
                stream_id=rec["stream_id"],
                shoe=rec["shoe"],
                round=rec["round"],
                namespace=rec["namespace"],
                kind=rec["kind"],
                category=rec["category"],
                stake=rec["stake"],
                confidence=rec["confidence"],
                reason=rec["reason"],
                payload_type=rec["payload_type"],
                payload=PayloadRegistry.decode(rec["payload_type"], payload),
            )

        def iter_rows(
            self,
            *,
            namespace: Optional[NamespaceLike] = None,
            kind: Optional[str] = None,
            stream_id: Optional[str] = None,
            shoe: Optional[int] = None,
        ) -> Iterator[Row]:
            q = self._filter(namespace=namespace, kind=kind, stream_id=stream_id, shoe=shoe)
            for rec in q.iter_rows(named=True):
                yield self._to_row(rec)

        def latest(
            self,
            *,
            namespace: Optional[NamespaceLike] = None,
            kind: Optional[str] = None,
            stream_id: Optional[str] = None,
            shoe: Optional[int] = None,
        ) -> Optional[Row]:
            q = self._filter(namespace=namespace, kind=kind, stream_id=stream_id, shoe=shoe)
            if q.height == 0:
                return None
            return self._to_row(q.tail(1).to_dicts()[0])

        def count(self, **filters: Any) -> int:
            return int(self._filter(**filters).height)

    def reader(self) -> LedgerReader:
        return PolarsLedger._Reader(self._df)

    # ---- frame helpers (no I/O) ----

    def frame(self) -> pl.DataFrame:
        """Return a copy of the underlying Polars DataFrame."""
        return self._df.clone()

    def shoe_frame(self, stream_id: str, shoe: int) -> pl.DataFrame:
        """Accepted outcomes of one shoe, ordered by round."""
        return (
            self._df.filter(
                (pl.col("stream_id") == stream_id)
                & (pl.col("shoe") == shoe)
                & (pl.col("kind") == "accepted")
            )
            .select(["round", "category"])
            .sort("round")
        )

    def replace_with_frame(self, df: pl.DataFrame) -> None:
        """Replace the internal frame (missing columns are added as nulls)."""
        for c, t in self._SCHEMA.items():
            if c not in df.columns:
                df = df.with_columns(pl.lit(None, dtype=cast(Any, t)).alias(c))
        self._df = df.select(list(self._SCHEMA.keys())).cast(cast(Any, self._SCHEMA))
