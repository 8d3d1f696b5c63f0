from dataclasses import replace

import pytest

from shoesign.core.names import Category
from shoesign.reporting.performance import PerformanceTracker
from shoesign.stats.schemes.three_way.engine import SequentialDecisionEngine
from shoesign.stats.schemes.three_way.model import Decision


@pytest.fixture
def log():
    engine = SequentialDecisionEngine()
    return engine.add_outcome("B")


def _bet(log, stake=2, strict=False):
    return replace(
        log,
        decision=Decision(target=Category.B, stake=stake, reason="test"),
        analysis=replace(log.analysis, strict_signal=strict),
    )


def test_no_bet_only_counts_outcome(log):
    tracker = PerformanceTracker()
    tracker.record_decision(log, "P")
    assert tracker.outcomes_observed == 1
    assert tracker.bets_made == 0
    assert tracker.net_profit_units == 0.0
    assert tracker.bet_history == []


def test_win_loss_and_tie(log):
    tracker = PerformanceTracker()
    tracker.record_decision(_bet(log, 2), "B")
    tracker.record_decision(_bet(log, 1), "P")
    tracker.record_decision(_bet(log, 3), "T")
    assert tracker.net_profit_units == pytest.approx(1.9 - 1 - 3)
    assert tracker.bets_made == 3
    assert tracker.units_staked == 6
    assert (tracker.wins, tracker.losses) == (1, 2)
    assert [h["result"] for h in tracker.bet_history] == ["WIN", "LOSE", "LOSE"]
    assert tracker.relaxed_win_rate == pytest.approx(1 / 3)
    assert tracker.ev_per_bet == pytest.approx((1.9 - 4) / 3)


def test_strict_confusion_counts(log):
    tracker = PerformanceTracker()
    tracker.record_decision(_bet(log, strict=True), Category.B)
    tracker.record_decision(_bet(log, strict=True), Category.P)
    tracker.record_decision(log, Category.B)
    tracker.record_decision(log, Category.T)
    confusion = tracker.metrics()["strict_confusion"]
    assert confusion == {"tp": 1, "fp": 1, "fn": 1, "tn": 1}
    assert tracker.strict_win_rate == 0.5


def test_unknown_outcome_raises(log):
    with pytest.raises(ValueError):
        PerformanceTracker().record_decision(log, "X")


def test_summary_and_history_frame(log):
    tracker = PerformanceTracker()
    tracker.record_decision(_bet(log, 2), "B")
    summary = tracker.get_summary()
    assert "Rounds observed: 1" in summary
    assert "Net profit: +1.90 units" in summary
    assert "Relaxed win rate: 100.0%" in summary
    assert "Strict win rate" in summary
    df = tracker.history_frame()
    assert df.columns == ["round", "target", "stake", "outcome", "result"]
    assert df.row(0) == (1, "B", 2, "B", "WIN")


def test_empty_history_frame_and_reset(log):
    tracker = PerformanceTracker()
    assert tracker.history_frame().height == 0
    assert tracker.relaxed_win_rate == 0.0 and tracker.ev_per_bet == 0.0
    tracker.record_decision(_bet(log), "P")
    tracker.reset()
    assert tracker.metrics()["outcomes_observed"] == 0
    assert tracker.bet_history == []
    assert tracker.net_profit_units == 0.0
