"""
shoesign.core.ledger
====================

Backend-neutral pieces of the round journal.

Every accepted or dropped outcome, every per-round decision and every shoe
boundary can be appended as one record keyed by stream, shoe and round. The
columns a calibration job filters on (category, stake, confidence, reason)
are stored flat; anything else travels in a JSON payload. Nothing in the
per-outcome path reads the journal back.

- `Row`: one immutable journal record
- `LedgerReader`: read-only query interface handed to consumers
- `PayloadRegistry`: optional decoders turning raw payload dicts into objects
- `OutcomePayload`, `DroppedPayload`, `BoundaryPayload`: payload contracts
- `Ledger`: abstract writer; concrete backends live in `shoesign.backends`

Examples
--------
>>> from shoesign.core.ledger import PayloadRegistry
>>> PayloadRegistry.register("Pair", lambda d: (d["a"], d["b"]))
>>> PayloadRegistry.decode("Pair", {"a": 1, "b": 2})
(1, 2)
>>> PayloadRegistry.decode("Unknown", {"a": 1})
{'a': 1}
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Iterator, Mapping, Optional, TypedDict, Union

from shoesign.core.names import Namespace

NamespaceLike = Union[Namespace, str]


def namespace_value(namespace: NamespaceLike) -> str:
    """Render a namespace (enum or plain string) as its stored string."""
    return namespace.value if isinstance(namespace, Namespace) else str(namespace)


# --- Payload contracts (mypy-friendly) ---


class OutcomePayload(TypedDict):
    category: str
    position: int


class DroppedPayload(TypedDict):
    record: str
    position: int


class BoundaryPayload(TypedDict):
    previous_length: int
    reported_length: int
    prior: Dict[str, float]


@dataclass(frozen=True)
class Row:
    """A single journal record."""

    uuid: str
    ts: datetime
    stream_id: str
    shoe: int
    round: int
    namespace: str
    kind: str
    category: Optional[str]
    stake: Optional[int]
    confidence: Optional[float]
    reason: Optional[str]
    payload_type: str
    payload: Any


class LedgerReader(ABC):
    """Read-only, filterable view over journal records."""

    @abstractmethod
    def iter_rows(
        self,
        *,
        namespace: Optional[NamespaceLike] = None,
        kind: Optional[str] = None,
        stream_id: Optional[str] = None,
        shoe: Optional[int] = None,
    ) -> Iterator[Row]:
        """Iterate matching rows in append order."""

    @abstractmethod
    def latest(
        self,
        *,
        namespace: Optional[NamespaceLike] = None,
        kind: Optional[str] = None,
        stream_id: Optional[str] = None,
        shoe: Optional[int] = None,
    ) -> Optional[Row]:
        """Return the most recent matching row, or None."""

    @abstractmethod
    def count(self, **filters: Any) -> int:
        """Count matching rows."""


class PayloadRegistry:
    """Registry of payload decoders keyed by payload type."""

    _decoders: Dict[str, Callable[[Dict[str, Any]], Any]] = {}

    @classmethod
    def register(
        cls, payload_type: str, decoder: Callable[[Dict[str, Any]], Any]
    ) -> None:
        cls._decoders[payload_type] = decoder

    @classmethod
    def decode(cls, payload_type: str, payload: Dict[str, Any]) -> Any:
        """Decode a raw payload, returning it unchanged if no decoder is known."""
        decoder = cls._decoders.get(payload_type)
        if decoder is None:
            return payload
        return decoder(payload)


class Ledger(ABC):
    """
    Abstract append-only journal.

    Backends implement `append()` and `reader()`; the typed writers in
    `shoesign.core.traits.LedgerOps` are expressed in terms of `append()`.
    """

    @abstractmethod
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
    ) -> "Ledger":
        """Append one record."""

    @abstractmethod
    def reader(self) -> LedgerReader:
        """Return a read-only view of the current records."""
