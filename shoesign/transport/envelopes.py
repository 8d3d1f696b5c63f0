"""
shoesign.transport.envelopes
============================

Messages sent to the display process.

- ``strategy_update``: the latest decision log of a stream plus its id
- ``strategy_no_data``: placeholder when a stream has no log yet
- ``shoe_summary``: performance summary of a finished shoe

`envelopes_for_result` maps one `ReportResult` onto the messages to send: a
summary when a shoe ended, then the newest log (re-sending the previous one
when the report added nothing) or a placeholder.

Examples
--------
>>> no_data("bac-1", 1)
{'type': 'strategy_no_data', 'payload': {'tableId': 'bac-1', 'round': 1}}
"""

from __future__ import annotations
from typing import Any, Dict, List, Optional

from shoesign.runtime.session_manager import ReportResult
from shoesign.stats.schemes.three_way.model import DecisionLog

Envelope = Dict[str, Any]

STRATEGY_UPDATE = "strategy_update"
STRATEGY_NO_DATA = "strategy_no_data"
SHOE_SUMMARY = "shoe_summary"


def strategy_update(stream_id: str, log: DecisionLog) -> Envelope:
    payload = log.to_payload()
    payload["tableId"] = stream_id
    return {"type": STRATEGY_UPDATE, "payload": payload}


def no_data(stream_id: str, round_hint: int) -> Envelope:
    return {"type": STRATEGY_NO_DATA, "payload": {"tableId": stream_id, "round": round_hint}}


def shoe_summary(
    stream_id: str, summary: str, metrics: Optional[Dict[str, Any]] = None
) -> Envelope:
    return {
        "type": SHOE_SUMMARY,
        "payload": {"tableId": stream_id, "summary": summary, "metrics": metrics or {}},
    }


def envelopes_for_result(result: ReportResult) -> List[Envelope]:
    messages: List[Envelope] = []
    if result.ended_summary is not None:
        messages.append(
            shoe_summary(result.stream_id, result.ended_summary, result.ended_metrics)
        )
    if result.last_log is not None:
        messages.append(strategy_update(result.stream_id, result.last_log))
    else:
        messages.append(no_data(result.stream_id, result.round + 1))
    return messages
