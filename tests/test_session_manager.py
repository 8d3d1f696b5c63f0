import pytest

from shoesign.backends.polars.ledger import PolarsLedger
from shoesign.core.names import Category, Namespace
from shoesign.runtime.session_manager import SessionStateManager
from shoesign.runtime.stores import PriorStore
from shoesign.stats.schemes.three_way.config import StrategyConfig


class CountingSink:
    def __init__(self):
        self.writes = 0
        self.last = None

    def write(self, df):
        self.writes += 1
        self.last = df


def test_first_report_opens_session_and_replays_everything():
    manager = SessionStateManager(store=PriorStore())
    res = manager.process_report("bac-1", ["B", "P", "T", "B"])
    assert res.boundary
    assert res.applied == 4
    assert [log.round for log in res.logs] == [1, 2, 3, 4]
    assert res.last_log.round == 4
    assert res.ended_summary is None
    assert manager.session("bac-1").last_length == 4


def test_only_the_suffix_is_replayed():
    manager = SessionStateManager(store=PriorStore())
    manager.process_report("bac-1", ["B"])
    res = manager.process_report("bac-1", ["B", "P", "T"])
    assert not res.boundary
    assert res.applied == 2
    assert manager.session("bac-1").engine.round == 3


def test_same_length_report_is_idempotent():
    manager = SessionStateManager(store=PriorStore())
    manager.process_report("bac-1", ["B", "P", "B"] * 6)
    state = manager.session("bac-1")
    before = state.engine.snapshot()
    tracker_before = state.tracker.metrics()
    res = manager.process_report("bac-1", ["B", "P", "B"] * 6)
    assert not res.boundary
    assert res.applied == 0 and res.dropped == 0
    assert state.engine.snapshot() == before
    assert state.tracker.metrics() == tracker_before
    assert manager.session("bac-1") is state


def test_shorter_report_folds_prior_once_and_starts_fresh():
    sink = CountingSink()
    store = PriorStore(sink=sink)
    manager = SessionStateManager(store=store)
    manager.process_report("bac-1", ["B"] * 10 + ["P"] * 5)
    assert sink.writes == 0

    res = manager.process_report("bac-1", [])
    assert res.boundary
    assert sink.writes == 1
    prior = store.get("bac-1")
    assert prior[Category.B] == pytest.approx(1 + 0.2 * 11)
    assert prior[Category.P] == pytest.approx(1 + 0.2 * 6)
    assert prior[Category.T] == pytest.approx(1 + 0.2 * 1)

    state = manager.session("bac-1")
    assert state.engine.round == 0
    assert state.engine.counts == prior
    assert state.shoe == 2
    assert res.ended_summary is not None
    assert res.ended_metrics["outcomes_observed"] == 14


def test_boundary_then_new_outcomes_in_same_report():
    manager = SessionStateManager(store=PriorStore())
    manager.process_report("bac-1", ["B", "B", "B"])
    res = manager.process_report("bac-1", ["P", "T"])
    assert res.boundary
    assert res.applied == 2
    assert manager.session("bac-1").engine.round == 2


def test_streams_are_independent():
    manager = SessionStateManager(store=PriorStore())
    manager.process_report("bac-1", ["B", "B"])
    manager.process_report("bac-2", ["P"])
    manager.process_report("bac-1", ["B"])
    assert manager.session("bac-2").engine.round == 1
    assert manager.session("bac-1").shoe == 2
    assert sorted(manager.streams) == ["bac-1", "bac-2"]


def test_unclassifiable_records_are_dropped_and_counted():
    manager = SessionStateManager(store=PriorStore())
    res = manager.process_report("bac-1", [{"c": "R"}, {"c": "G"}, None, "Player"])
    assert res.applied == 2
    assert res.dropped == 2
    state = manager.session("bac-1")
    assert state.engine.round == 2
    assert state.last_length == 4
    assert manager.process_report("bac-1", [{"c": "R"}, {"c": "G"}, None, "Player"]).applied == 0


def test_tracker_settles_previous_log_against_next_outcome():
    manager = SessionStateManager(store=PriorStore())
    manager.process_report("bac-1", ["B"] * 5)
    manager.process_report("bac-1", ["B"] * 8)
    assert manager.session("bac-1").tracker.outcomes_observed == 7


def test_bets_are_tracked_across_reports():
    manager = SessionStateManager(store=PriorStore())
    manager.process_report("bac-1", ["B"] * 14)
    tracker = manager.session("bac-1").tracker
    assert tracker.bets_made == 1
    assert tracker.wins == 1
    assert tracker.net_profit_units == pytest.approx(
        manager.session("bac-1").engine.net_profit
    )


def test_ledger_receives_outcomes_decisions_and_boundaries():
    ledger = PolarsLedger()
    manager = SessionStateManager(store=PriorStore(), ledger=ledger)
    manager.process_report("bac-1", ["B", "P", {"c": "X"}, "T", "B"])
    reader = ledger.reader()
    assert reader.count(namespace=Namespace.OBS, kind="accepted") == 4
    assert reader.count(namespace=Namespace.OBS, kind="dropped") == 1
    assert reader.count(namespace=Namespace.STATS, kind="decision") == 4
    assert reader.count(namespace=Namespace.SIGNALS) == 1
    assert ledger.category_totals(stream_id="bac-1") == {"B": 2, "P": 1, "T": 1}

    dropped = ledger.latest(kind="dropped")
    assert (dropped.shoe, dropped.round) == (1, 2)
    assert dropped.payload == {"record": "{'c': 'X'}", "position": 2}

    decision = ledger.latest(kind="decision", stream_id="bac-1")
    assert (decision.round, decision.category) == (4, "B")
    assert decision.stake == 0
    assert decision.reason == "warm-up"

    manager.process_report("bac-1", ["P"])
    boundary = ledger.latest(namespace=Namespace.SIGNALS, stream_id="bac-1")
    assert boundary.kind == "session_boundary"
    assert (boundary.shoe, boundary.round) == (2, 0)
    assert boundary.payload["previous_length"] == 5
    assert boundary.payload["reported_length"] == 1
    assert set(boundary.payload["prior"]) == {"B", "P", "T"}
    assert ledger.category_totals(stream_id="bac-1", shoe=2) == {"B": 0, "P": 1, "T": 0}


def test_custom_config_is_used_for_new_engines():
    cfg = StrategyConfig(warm_up_rounds=3, prior_shrinkage_factor=0.5)
    store = PriorStore()
    manager = SessionStateManager(store=store, config=cfg)
    manager.process_report("bac-1", ["B", "B"])
    manager.process_report("bac-1", ["B"])
    assert store.get("bac-1")[Category.B] == pytest.approx(1 + 0.5 * 3)
    assert manager.session("bac-1").engine.config.warm_up_rounds == 3


def test_manager_requires_store():
    with pytest.raises(RuntimeError):
        SessionStateManager(store=None)
