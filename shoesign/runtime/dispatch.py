"""
shoesign.runtime.dispatch
=========================

Latest-wins coalescing of reports in front of a `SessionStateManager`.

Each stream has one pending slot. Submitting a report while an older one is
still pending replaces it (the older one is counted as superseded, never
queued). `drain()` processes pending reports until no slot is occupied,
including reports submitted while the drain is running, so processing for a
stream always runs to completion before its next report is taken.

Examples
--------
>>> from shoesign.runtime.session_manager import SessionStateManager
>>> from shoesign.runtime.stores import PriorStore
>>> co = LatestReportCoalescer(SessionStateManager(store=PriorStore()), autodrain=False)
>>> co.submit("bac-1", ["B"]); co.submit("bac-1", ["B", "P"])
>>> co.superseded, co.pending
(1, ['bac-1'])
>>> [r.applied for r in co.drain()]
[2]
"""

from __future__ import annotations
import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

from shoesign.runtime.session_manager import ReportResult, SessionStateManager

logger = logging.getLogger(__name__)


class LatestReportCoalescer:
    """
    One pending slot per stream in front of a manager.

    With `autodrain=True` every `submit()` drains immediately unless a drain
    is already in progress; `on_result` is called with each `ReportResult`.
    """

    def __init__(
        self,
        manager: SessionStateManager,
        *,
        autodrain: bool = True,
        on_result: Optional[Callable[[ReportResult], None]] = None,
    ) -> None:
        self.manager = manager
        self.autodrain = autodrain
        self.on_result = on_result
        self.superseded = 0
        self._pending: Dict[str, List[Any]] = {}
        self._draining = False

    @property
    def pending(self) -> List[str]:
        return list(self._pending)

    def submit(self, stream_id: str, outcomes: Sequence[Any]) -> None:
        key = str(stream_id)
        if key in self._pending:
            self.superseded += 1
            logger.debug("Superseded pending report for %s", key)
        # a re-submitted stream moves to the back of the drain order
        self._pending.pop(key, None)
        self._pending[key] = list(outcomes)
        if self.autodrain and not self._draining:
            self.drain()

    def drain(self) -> List[ReportResult]:
        """Process pending reports until every slot is empty."""
        if self._draining:
            return []
        self._draining = True
        results: List[ReportResult] = []
        try:
            while self._pending:
                key = next(iter(self._pending))
                outcomes = self._pending.pop(key)
                result = self.manager.process_report(key, outcomes)
                results.append(result)
                if self.on_result is not None:
                    self.on_result(result)
        finally:
            self._draining = False
        return results
