from shoesign.core.names import SprtDecision
from shoesign.stats.schemes.three_way.detectors import CusumDetector, SprtDetector


def test_cusum_latches_and_stops_accumulating():
    det = CusumDetector(drift=0.05, threshold=4.0)
    for _ in range(20):
        det.update(1, 0.45)
    assert det.change_point
    assert det.disabled
    latched_sum = det.sum
    for _ in range(5):
        det.update(0, 0.45)
    assert det.change_point
    assert det.sum == latched_sum


def test_cusum_stays_quiet_below_target():
    det = CusumDetector(drift=0.05, threshold=4.0)
    for i in range(100):
        det.update(i % 3 == 0, 0.45)
    assert not det.change_point


def test_cusum_reset_clears_state():
    det = CusumDetector(threshold=0.1)
    det.update(1, 0.1)
    assert det.change_point
    det.reset()
    assert det.snapshot() == {"sum": 0.0, "change_point": False}


def test_sprt_accepts_h1_and_is_terminal():
    det = SprtDetector(alpha=0.05, beta=0.10, epsilon=0.01)
    for _ in range(200):
        det.update(1, 0.3)
    assert det.decision is SprtDecision.ACCEPT_H1
    assert not det.disabled
    log_lr = det.log_lr
    for _ in range(500):
        det.update(0, 0.3)
    assert det.decision is SprtDecision.ACCEPT_H1
    assert det.log_lr == log_lr


def test_sprt_accepting_h0_disables():
    det = SprtDetector(alpha=0.05, beta=0.10, epsilon=0.01)
    for _ in range(400):
        det.update(0, 0.3)
    assert det.decision is SprtDecision.ACCEPT_H0
    assert det.disabled
    assert det.log_lr <= det.lower_boundary


def test_sprt_untestable_alternative_disables_without_decision():
    det = SprtDetector(epsilon=0.01)
    det.update(1, 0.995)
    assert det.disabled
    assert det.decision is SprtDecision.INCONCLUSIVE
    assert det.log_lr == 0.0


def test_sprt_snapshot_and_reset():
    det = SprtDetector()
    for _ in range(400):
        det.update(0, 0.3)
    det.reset()
    snap = det.snapshot()
    assert snap["decision"] == "inconclusive"
    assert snap["log_lr"] == 0.0
    assert snap["upper_boundary"] > 0 > snap["lower_boundary"]
    assert not det.disabled
