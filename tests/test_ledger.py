from datetime import datetime, timezone

import polars as pl

from shoesign.backends.polars.io import ParquetFileSink, ParquetFileSource
from shoesign.backends.polars.ledger import PolarsLedger
from shoesign.core.ledger import PayloadRegistry
from shoesign.core.names import Category, Namespace
from shoesign.reporting.generic import LedgerReporter
from shoesign.runtime.session_manager import SessionStateManager
from shoesign.runtime.stores import PriorStore
from shoesign.stats.schemes.three_way.engine import SequentialDecisionEngine


def _outcome(ledger, category, *, stream="bac-1", shoe=1, round=1):
    ledger.record_outcome(
        stream_id=stream, shoe=shoe, round=round, category=category, position=round - 1
    )


def test_append_and_read_back():
    ledger = PolarsLedger()
    _outcome(ledger, Category.B)
    _outcome(ledger, Category.P, stream="bac-2")
    assert len(ledger) == 2
    row = ledger.latest(namespace=Namespace.OBS)
    assert row.stream_id == "bac-2"
    assert (row.shoe, row.round, row.category) == (1, 1, "P")
    assert row.payload == {"category": "P", "position": 0}
    assert row.stake is None and row.confidence is None
    assert row.ts.tzinfo is not None
    assert [r.stream_id for r in ledger.rows(namespace=Namespace.OBS, stream_id="bac-1")] == ["bac-1"]
    assert ledger.latest(namespace=Namespace.SIGNALS) is None


def test_naive_timestamps_are_treated_as_utc():
    ledger = PolarsLedger()
    ledger.record_outcome(
        stream_id="s", shoe=1, round=1, category=Category.T, position=0,
        ts=datetime(2024, 1, 1, 12, 0),
    )
    assert ledger.latest().ts == datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


def test_decision_columns_are_flattened():
    engine = SequentialDecisionEngine()
    log = [engine.add_outcome("B") for _ in range(13)][-1]
    ledger = PolarsLedger()
    ledger.record_decision(stream_id="bac-1", shoe=3, log=log)

    row = ledger.latest(kind="decision")
    assert row.namespace == Namespace.STATS.value
    assert (row.shoe, row.round, row.category) == (3, 13, "B")
    assert row.stake == log.decision.stake > 0
    assert row.confidence == log.confidence
    assert row.reason.startswith("confidence ")
    assert row.payload["analysis"]["total_staked"] == log.decision.stake


def test_boundary_record_and_payload_decoder():
    ledger = PolarsLedger()
    ledger.record_boundary(
        stream_id="bac-1", shoe=2, previous_length=60, reported_length=1,
        prior={Category.B: 2.0, Category.P: 1.5, Category.T: 0.5},
    )
    row = ledger.latest(namespace=Namespace.SIGNALS)
    assert (row.kind, row.payload_type, row.round) == ("session_boundary", "Boundary", 0)
    assert row.payload["prior"] == {"B": 2.0, "P": 1.5, "T": 0.5}

    PayloadRegistry.register("Boundary", lambda d: d["previous_length"])
    try:
        assert ledger.latest(namespace=Namespace.SIGNALS).payload == 60
    finally:
        PayloadRegistry._decoders.pop("Boundary", None)


def test_category_totals_filters_by_kind_and_shoe():
    ledger = PolarsLedger()
    _outcome(ledger, Category.B)
    _outcome(ledger, Category.T, shoe=2)
    ledger.record_dropped(stream_id="bac-1", shoe=1, round=1, record="?", position=1)
    assert ledger.category_totals(stream_id="bac-1") == {"B": 1, "P": 0, "T": 1}
    assert ledger.category_totals(stream_id="bac-1", shoe=2) == {"B": 0, "P": 0, "T": 1}
    assert ledger.reader().count(kind="dropped", shoe=1) == 1


def test_shoe_frame_orders_by_round():
    ledger = PolarsLedger()
    _outcome(ledger, Category.P, round=2)
    _outcome(ledger, Category.B, round=1)
    _outcome(ledger, Category.T, shoe=2, round=1)
    frame = ledger.shoe_frame("bac-1", 1)
    assert frame.get_column("round").to_list() == [1, 2]
    assert frame.get_column("category").to_list() == ["B", "P"]


def test_frame_persistence(tmp_path):
    ledger = PolarsLedger()
    _outcome(ledger, Category.B)
    path = str(tmp_path / "journal.parquet")
    ParquetFileSink(path).write(ledger.frame())

    restored = PolarsLedger()
    restored.replace_with_frame(ParquetFileSource(path).read())
    assert len(restored) == 1
    assert restored.category_totals(stream_id="bac-1") == {"B": 1, "P": 0, "T": 0}


def test_replace_with_frame_fills_missing_columns():
    ledger = PolarsLedger()
    ledger.replace_with_frame(pl.DataFrame({"namespace": ["obs"], "kind": ["accepted"]}))
    assert ledger.frame().columns[0] == "uuid"
    assert ledger.frame().schema["shoe"] == pl.Int64
    assert ledger.reader().count(namespace="obs") == 1


def test_reporter_counts_and_decisions():
    ledger = PolarsLedger()
    manager = SessionStateManager(store=PriorStore(), ledger=ledger)
    manager.process_report("bac-1", ["B"] * 14)
    manager.process_report("bac-2", ["P", "X"])
    rep = LedgerReporter(ledger)

    assert rep.unique_streams() == ["bac-1", "bac-2"]
    assert rep.unique_namespaces() == ["obs", "signals", "stats"]
    counts = {
        (ns, kind): n for ns, kind, n in rep.namespace_kind_counts().iter_rows()
    }
    assert counts[("obs", "accepted")] == 16
    assert counts[("stats", "decision")] == 16
    assert counts[("signals", "session_boundary")] == 2

    per_shoe = rep.shoe_category_counts()
    assert per_shoe.rows() == [("bac-1", 1, 14, 0, 0), ("bac-2", 1, 0, 1, 1)]

    table = rep.decision_table("bac-1")
    assert table.height == 14
    assert table.get_column("round").to_list() == list(range(1, 15))
    assert set(table.get_column("outcome").to_list()) == {"B"}
    bets = table.filter(pl.col("stake") > 0)
    assert bets.get_column("bet_on").to_list() == ["B", "B"]
    assert table.get_column("net_profit").to_list()[-1] > 0
