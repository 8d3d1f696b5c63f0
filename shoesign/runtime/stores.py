"""
shoesign.runtime.stores
=======================

`PriorStore`: the per-stream prior carried from one shoe to the next.

A stream starts from the default prior. When a shoe ends its final counts are
folded in as

    new_prior[c] = 1 + shrinkage_factor * final_count[c]

and the next shoe of that stream is seeded from the result. The store is an
explicit object handed to the session manager; nothing is kept in module
globals. It can be persisted through any `FrameSink` and restored from a
`FrameSource`.

Examples
--------
>>> from shoesign.core.names import Category
>>> store = PriorStore()
>>> store.get("bac-1")
{<Category.B: 'B'>: 1.0, <Category.P: 'P'>: 1.0, <Category.T: 'T'>: 1.0}
>>> new = store.fold("bac-1", {"B": 10, "P": 5, "T": 0}, factor=0.2)
>>> new[Category.B], new[Category.P], new[Category.T]
(3.0, 2.0, 1.0)
>>> store.to_frame().columns
['stream_id', 'B', 'P', 'T']
"""

from __future__ import annotations
import logging
from typing import Any, Dict, Iterator, Mapping, Optional, Union

import polars as pl

from shoesign.backends.polars.io import FrameSink, FrameSource
from shoesign.core.names import CATEGORIES, Category, StreamId
from shoesign.stats.schemes.three_way.config import DEFAULT_PRIOR, coerce_counts

logger = logging.getLogger(__name__)

Prior = Dict[Category, float]


class PriorStore:
    """
    Per-stream priors keyed by stream id.

    Parameters
    ----------
    default : mapping, optional
        Prior for streams never folded; defaults to {B: 1, P: 1, T: 1}.
    sink : FrameSink, optional
        When given, the whole table is written after every `fold()`.
    """

    def __init__(
        self,
        default: Optional[Mapping[Any, float]] = None,
        *,
        sink: Optional[FrameSink] = None,
    ) -> None:
        self.default: Prior = coerce_counts(default if default is not None else DEFAULT_PRIOR)
        self.sink = sink
        self._priors: Dict[str, Prior] = {}

    def __contains__(self, stream_id: object) -> bool:
        return str(stream_id) in self._priors

    def __len__(self) -> int:
        return len(self._priors)

    def __iter__(self) -> Iterator[str]:
        return iter(self._priors)

    def get(self, stream_id: Union[StreamId, str]) -> Prior:
        """Return a copy of the stream's prior (the default if none stored)."""
        return dict(self._priors.get(str(stream_id), self.default))

    def set(self, stream_id: Union[StreamId, str], prior: Mapping[Any, float]) -> None:
        self._priors[str(stream_id)] = coerce_counts(prior)

    def fold(
        self,
        stream_id: Union[StreamId, str],
        final_counts: Mapping[Any, float],
        *,
        factor: float,
    ) -> Prior:
        """Replace the stream's prior with one derived from a finished shoe."""
        if factor < 0:
            raise ValueError(f"factor must be non-negative, got {factor}")
        counts = coerce_counts(final_counts)
        prior = {c: 1.0 + factor * counts[c] for c in CATEGORIES}
        self._priors[str(stream_id)] = prior
        logger.info(
            "Prior for %s updated to B=%.3f P=%.3f T=%.3f",
            stream_id,
            prior[Category.B],
            prior[Category.P],
            prior[Category.T],
        )
        if self.sink is not None:
            self.save(self.sink)
        return dict(prior)

    # ---- persistence ----

    def to_frame(self) -> pl.DataFrame:
        return pl.DataFrame(
            {
                "stream_id": list(self._priors.keys()),
                **{
                    c.value: [p[c] for p in self._priors.values()]
                    for c in CATEGORIES
                },
            },
            schema={"stream_id": pl.Utf8, "B": pl.Float64, "P": pl.Float64, "T": pl.Float64},
        )

    def save(self, sink: FrameSink) -> None:
        sink.write(self.to_frame())

    @classmethod
    def load(
        cls,
        source: FrameSource,
        *,
        default: Optional[Mapping[Any, float]] = None,
        sink: Optional[FrameSink] = None,
    ) -> "PriorStore":
        """Restore a store from a frame with columns stream_id, B, P, T."""
        df = source.read()
        missing = [c for c in ("stream_id", "B", "P", "T") if c not in df.columns]
        if missing:
            raise ValueError(f"Prior table is missing columns: {missing}")
        store = cls(default, sink=sink)
        for rec in df.iter_rows(named=True):
            store.set(rec["stream_id"], {c.value: rec[c.value] for c in CATEGORIES})
        return store
