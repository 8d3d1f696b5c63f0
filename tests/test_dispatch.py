from shoesign.runtime.dispatch import LatestReportCoalescer
from shoesign.runtime.session_manager import SessionStateManager
from shoesign.runtime.stores import PriorStore


def _manager():
    return SessionStateManager(store=PriorStore())


def test_newer_report_supersedes_pending_one():
    manager = _manager()
    co = LatestReportCoalescer(manager, autodrain=False)
    co.submit("bac-1", ["B"])
    co.submit("bac-1", ["B", "P"])
    co.submit("bac-1", ["B", "P", "T"])
    co.submit("bac-2", ["P"])
    assert co.superseded == 2
    assert co.pending == ["bac-1", "bac-2"]
    results = co.drain()
    assert [(r.stream_id, r.applied) for r in results] == [("bac-1", 3), ("bac-2", 1)]
    assert co.pending == []
    assert manager.session("bac-1").engine.round == 3


def test_autodrain_processes_immediately():
    seen = []
    co = LatestReportCoalescer(_manager(), on_result=seen.append)
    co.submit("bac-1", ["B", "B"])
    assert [r.applied for r in seen] == [2]
    assert co.pending == []


def test_reports_submitted_during_a_drain_are_picked_up():
    seen = []
    co = LatestReportCoalescer(_manager(), autodrain=True)

    def on_result(result):
        seen.append((result.stream_id, result.applied))
        if result.stream_id == "bac-1" and len(seen) == 1:
            co.submit("bac-1", ["B", "P", "T", "B"])
            co.submit("bac-1", ["B", "P", "T", "B", "B"])

    co.on_result = on_result
    co.submit("bac-1", ["B", "P"])
    assert seen == [("bac-1", 2), ("bac-1", 3)]
    assert co.superseded == 1


def test_drain_with_nothing_pending():
    co = LatestReportCoalescer(_manager(), autodrain=False)
    assert co.drain() == []
