"""
shoesign.runtime.session_manager
================================

Reconciles a replay-style feed with live engines.

Every report for a stream carries the *entire* outcome history seen so far.
`SessionStateManager.process_report` turns that into ordered
`add_outcome` calls:

- no session yet, or the reported list is shorter than the last one: a
  session boundary. The ending shoe's counts are folded into the
  `PriorStore`, its performance summary is captured, and a fresh engine and
  tracker are seeded from the stream's prior.
- otherwise only the suffix beyond the last recorded length is replayed.
  A report of the same length changes nothing.

Diffing is by length only; a history rewritten in place without shrinking
cannot be detected.

Examples
--------
>>> from shoesign.runtime.stores import PriorStore
>>> manager = SessionStateManager(store=PriorStore())
>>> res = manager.process_report("bac-1", ["B", "P", "T"])
>>> res.boundary, res.applied, manager.session("bac-1").engine.round
(True, 3, 3)
>>> manager.process_report("bac-1", ["B", "P", "T"]).applied
0
>>> res = manager.process_report("bac-1", ["P"])
>>> res.boundary, manager.session("bac-1").engine.round
(True, 1)
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Union

from shoesign.backends.polars.ledger import PolarsLedger
from shoesign.core.names import CATEGORIES, StreamId
from shoesign.reporting.performance import PerformanceTracker
from shoesign.runtime.stores import PriorStore
from shoesign.stats.schemes.three_way.config import StrategyConfig
from shoesign.stats.schemes.three_way.engine import SequentialDecisionEngine
from shoesign.stats.schemes.three_way.ingest import classify_outcome
from shoesign.stats.schemes.three_way.model import DecisionLog

logger = logging.getLogger(__name__)


@dataclass
class SessionState:
    """Live state of one stream's current shoe."""

    engine: SequentialDecisionEngine
    tracker: PerformanceTracker
    shoe: int = 1
    last_length: int = 0
    last_log: Optional[DecisionLog] = None


@dataclass
class ReportResult:
    """What one `process_report` call did."""

    stream_id: str
    boundary: bool = False
    applied: int = 0
    dropped: int = 0
    logs: List[DecisionLog] = field(default_factory=list)
    last_log: Optional[DecisionLog] = None
    round: int = 0
    ended_summary: Optional[str] = None
    ended_metrics: Optional[Dict[str, Any]] = None


class SessionStateManager:
    """
    Per-stream session map driven by full-history reports.

    Parameters
    ----------
    store : PriorStore
        Per-stream priors; updated at every session boundary.
    config : StrategyConfig, optional
        Used for every engine the manager builds.
    ledger : PolarsLedger, optional
        When given, accepted/dropped outcomes, decision logs and boundaries
        are appended to it.
    """

    def __init__(
        self,
        store: PriorStore,
        config: Optional[StrategyConfig] = None,
        *,
        ledger: Optional[PolarsLedger] = None,
    ) -> None:
        if store is None:
            raise RuntimeError("SessionStateManager requires a PriorStore")
        self.store = store
        self.config = config if config is not None else StrategyConfig()
        self.config.validate()
        self.ledger = ledger
        self._sessions: Dict[str, SessionState] = {}

    def session(self, stream_id: Union[StreamId, str]) -> Optional[SessionState]:
        return self._sessions.get(str(stream_id))

    @property
    def streams(self) -> List[str]:
        return list(self._sessions)

    def process_report(
        self, stream_id: Union[StreamId, str], outcomes: Sequence[Any]
    ) -> ReportResult:
        """Apply the part of `outcomes` not yet seen for this stream."""
        key = str(stream_id)
        result = ReportResult(stream_id=key)
        state = self._sessions.get(key)

        if state is None or len(outcomes) < state.last_length:
            state = self._start_session(key, state, len(outcomes), result)

        new_records = list(outcomes[state.last_length :])
        for offset, record in enumerate(new_records):
            position = state.last_length + offset
            category = classify_outcome(record)
            if category is None:
                result.dropped += 1
                logger.debug("Dropped unclassifiable record %r for %s", record, key)
                if self.ledger is not None:
                    self.ledger.record_dropped(
                        stream_id=key,
                        shoe=state.shoe,
                        round=state.engine.round,
                        record=record,
                        position=position,
                    )
                continue

            previous = state.engine.last_log
            log = state.engine.add_outcome(category)
            if log is None:
                result.dropped += 1
                continue
            if previous is not None:
                state.tracker.record_decision(previous, category)
            result.applied += 1
            result.logs.append(log)
            state.last_log = log
            if self.ledger is not None:
                self.ledger.record_outcome(
                    stream_id=key,
                    shoe=state.shoe,
                    round=log.round,
                    category=category,
                    position=position,
                )
                self.ledger.record_decision(stream_id=key, shoe=state.shoe, log=log)

        state.last_length = max(state.last_length, len(outcomes))
        result.last_log = state.last_log
        result.round = state.engine.round
        if result.applied:
            logger.debug("%s: applied %d outcome(s), round %d", key, result.applied, result.round)
        return result

    def _start_session(
        self,
        key: str,
        ending: Optional[SessionState],
        reported_length: int,
        result: ReportResult,
    ) -> SessionState:
        result.boundary = True
        shoe = 1
        previous_length = 0
        if ending is not None:
            shoe = ending.shoe + 1
            previous_length = ending.last_length
            self.store.fold(
                key,
                {c: ending.engine.counts[c] for c in CATEGORIES},
                factor=self.config.prior_shrinkage_factor,
            )
            result.ended_summary = ending.tracker.get_summary()
            result.ended_metrics = ending.tracker.metrics()
            logger.info(
                "New shoe on %s: length %d -> %d", key, previous_length, reported_length
            )

        prior = self.store.get(key)
        state = SessionState(
            engine=SequentialDecisionEngine(self.config, prior=prior),
            tracker=PerformanceTracker(payout=self.config.payout),
            shoe=shoe,
        )
        self._sessions[key] = state
        if self.ledger is not None:
            self.ledger.record_boundary(
                stream_id=key,
                shoe=shoe,
                previous_length=previous_length,
                reported_length=reported_length,
                prior=prior,
            )
        return state
