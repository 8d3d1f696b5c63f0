"""
shoesign.core.traits
====================

Trait (mixin) that attaches the round-journal vocabulary to any `Ledger`.

This mixin assumes the host implements `Ledger.append` and `Ledger.reader`.
By inheriting `LedgerOps`, concrete ledgers gain:

- `record_outcome()` / `record_dropped()` : one `obs` record per feed entry
- `record_decision()` : one `stats` record per engine round
- `record_boundary()` : one `signals` record per new shoe
- `latest()` / `rows()` : typed convenience readers
- `category_totals()` : accepted outcomes per category for a stream or shoe

Examples
--------
>>> from shoesign.backends.polars.ledger import PolarsLedger
>>> from shoesign.core.names import Category
>>> L = PolarsLedger()
>>> L.record_outcome(stream_id="bac-1", shoe=1, round=1, category=Category.B, position=0)
>>> L.latest(kind="accepted").category
'B'
>>> L.category_totals(stream_id="bac-1")
{'B': 1, 'P': 0, 'T': 0}
"""

from __future__ import annotations
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Dict, Iterator, Mapping, Optional, Union

from shoesign.core.ledger import (
    BoundaryPayload,
    DroppedPayload,
    Ledger,
    NamespaceLike,
    OutcomePayload,
    Row,
)
from shoesign.core.names import CATEGORIES, Category, Namespace, StreamId

if TYPE_CHECKING:
    from shoesign.stats.schemes.three_way.model import DecisionLog


class LedgerOps(Ledger):
    """A trait that attaches typed journal writers and readers onto a `Ledger`."""

    @staticmethod
    def _now() -> datetime:
        return datetime.now(timezone.utc)

    # ---- writers ----

    def record_outcome(
        self,
        *,
        stream_id: Union[StreamId, str],
        shoe: int,
        round: int,
        category: Category,
        position: int,
        ts: Optional[datetime] = None,
    ) -> None:
        """Append an accepted outcome; `round` is the engine round it produced."""
        payload: OutcomePayload = {"category": category.value, "position": position}
        self.append(
            ts=ts or self._now(),
            stream_id=str(stream_id),
            shoe=shoe,
            round=round,
            namespace=Namespace.OBS,
            kind="accepted",
            payload_type="Outcome",
            payload=payload,
            category=category.value,
        )

    def record_dropped(
        self,
        *,
        stream_id: Union[StreamId, str],
        shoe: int,
        round: int,
        record: Any,
        position: int,
        ts: Optional[datetime] = None,
    ) -> None:
        """Append a feed entry that could not be classified."""
        payload: DroppedPayload = {"record": repr(record), "position": position}
        self.append(
            ts=ts or self._now(),
            stream_id=str(stream_id),
            shoe=shoe,
            round=round,
            namespace=Namespace.OBS,
            kind="dropped",
            payload_type="DroppedRecord",
            payload=payload,
        )

    def record_decision(
        self,
        *,
        stream_id: Union[StreamId, str],
        shoe: int,
        log: "DecisionLog",
        ts: Optional[datetime] = None,
    ) -> None:
        """Append one engine round with its decision columns flattened."""
        self.append(
            ts=ts or self._now(),
            stream_id=str(stream_id),
            shoe=shoe,
            round=log.round,
            namespace=Namespace.STATS,
            kind="decision",
            payload_type="DecisionLog",
            payload=log.to_payload(),
            category=log.outcome.value,
            stake=log.decision.stake,
            confidence=log.confidence,
            reason=log.decision.reason,
        )

    def record_boundary(
        self,
        *,
        stream_id: Union[StreamId, str],
        shoe: int,
        previous_length: int,
        reported_length: int,
        prior: Mapping[Category, float],
        ts: Optional[datetime] = None,
    ) -> None:
        """Append the start of shoe `shoe` together with the prior it was seeded from."""
        payload: BoundaryPayload = {
            "previous_length": previous_length,
            "reported_length": reported_length,
            "prior": {c.value: float(prior[c]) for c in CATEGORIES},
        }
        self.append(
            ts=ts or self._now(),
            stream_id=str(stream_id),
            shoe=shoe,
            round=0,
            namespace=Namespace.SIGNALS,
            kind="session_boundary",
            payload_type="Boundary",
            payload=payload,
        )

    # ---- readers ----

    def latest(
        self,
        *,
        namespace: Optional[NamespaceLike] = None,
        kind: Optional[str] = None,
        stream_id: Optional[Union[StreamId, str]] = None,
        shoe: Optional[int] = None,
    ) -> Optional[Row]:
        """Return latest row for given filters (or None)."""
        return self.reader().latest(
            namespace=namespace,
            kind=kind,
            stream_id=str(stream_id) if stream_id else None,
            shoe=shoe,
        )

    def rows(
        self,
        *,
        namespace: Optional[NamespaceLike] = None,
        kind: Optional[str] = None,
        stream_id: Optional[Union[StreamId, str]] = None,
        shoe: Optional[int] = None,
    ) -> Iterator[Row]:
        return self.reader().iter_rows(
            namespace=namespace,
            kind=kind,
            stream_id=str(stream_id) if stream_id else None,
            shoe=shoe,
        )

    # ---- aggregation utilities ----

    def category_totals(
        self,
        *,
        stream_id: Union[StreamId, str],
        shoe: Optional[int] = None,
    ) -> Dict[str, int]:
        """Count accepted outcomes per category for a stream, or one of its shoes."""
        totals: Dict[str, int] = {c.value: 0 for c in CATEGORIES}
        for row in self.rows(
            namespace=Namespace.OBS, kind="accepted", stream_id=stream_id, shoe=shoe
        ):
            if row.category in totals:
                totals[row.category] += 1
        return totals
