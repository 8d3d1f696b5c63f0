from shoesign.core.names import Category, EnsembleMode
from shoesign.stats.schemes.three_way.ensemble import (
    ChopHeuristic,
    Ensemble,
    MomentumHeuristic,
    StreakHeuristic,
)

B, P, T = Category.B, Category.P, Category.T


def test_momentum_requires_ten_samples():
    assert not MomentumHeuristic().agrees([B] * 9, B)
    assert MomentumHeuristic().agrees([B] * 10, B)


def test_momentum_needs_strict_majority_of_last_fifteen():
    # only the last 15 count
    history = [P] * 20 + [B] * 8 + [P] * 7
    assert MomentumHeuristic().agrees(history, B)
    assert not MomentumHeuristic().agrees([B] * 7 + [P] * 7, B)


def test_streak_last_three():
    assert StreakHeuristic().agrees([P, B, B, B], B)
    assert not StreakHeuristic().agrees([B, B, T], B)
    assert not StreakHeuristic().agrees([B, B], B)


def test_chop_exact_alternation_ending_on_other():
    assert ChopHeuristic().agrees([P, P, B, P, B, T], B)
    assert not ChopHeuristic().agrees([P, B, P, B], B)
    assert not ChopHeuristic().agrees([B, P, P, P], B)
    assert not ChopHeuristic().agrees([P, B, P], B)


def test_any_mode_combines_votes():
    ens = Ensemble(mode=EnsembleMode.ANY)
    assert ens.agrees([P, B, B, B], B)
    assert not ens.agrees([B, P, P, P], B)


def test_all_mode_requires_every_heuristic():
    ens = Ensemble(mode=EnsembleMode.ALL)
    # streak and chop cannot hold at the same time
    assert not ens.agrees([B] * 15, B)
    assert ens.combine({"momentum": True, "streak": True, "chop": True})


def test_empty_ensemble_never_agrees():
    assert not Ensemble(heuristics=[]).agrees([B, B, B], B)
