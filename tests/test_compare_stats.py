import math

import pytest

from src.models.compare import BestPrice, CardMatch, MatchType, SortKey
from src.utils.compare_stats import (
    build_comparison,
    compute_stats,
    highest_price,
    lowest_price,
    sort_matches,
)


@pytest.fixture
def make_match(make_tcg, make_liga):
    def _make(label, match_type=MatchType.high, best_price=BestPrice.tcg, savings=0.0,
              tcg_price=None, liga_price=None, paired=True):
        tcg = make_tcg(label, market_price=tcg_price) if paired or liga_price is None else None
        liga = make_liga(label, price=liga_price or 0.0) if paired or tcg is None else None
        if not paired:
            match_type = MatchType.none
        return CardMatch(
            tcg_card=tcg,
            liga_card=liga,
            similarity=0.8 if paired else 0.0,
            best_price=best_price,
            savings=savings,
            match_type=match_type,
        )

    return _make


def labels(matches):
    return [(m.tcg_card or m.liga_card).name for m in matches]


# ---------- stats ----------

def test_compute_stats_counts_tiers_and_savings(make_match):
    matches = [
        make_match("a", MatchType.perfect, BestPrice.liga, savings=2.0),
        make_match("b", MatchType.high, BestPrice.tcg, savings=1.5),
        make_match("c", MatchType.medium, BestPrice.tcg, savings=0.5),
        make_match("d", MatchType.perfect, BestPrice.tie, savings=0.0),
        make_match("e", best_price=BestPrice.tcg, tcg_price=3.0, paired=False),
        make_match("f", best_price=BestPrice.liga, liga_price=20.0, paired=False),
    ]

    stats = compute_stats(matches)

    assert stats.perfect == 2
    assert stats.high == 1
    assert stats.medium == 1
    assert stats.good == 2
    assert stats.none == 2
    assert stats.tcg_better == 2
    assert stats.liga_better == 1
    assert stats.total_savings == pytest.approx(4.0)


def test_unmatched_listings_do_not_count_as_better(make_match):
    stats = compute_stats([make_match("solo", tcg_price=3.0, paired=False)])
    assert stats.tcg_better == 0
    assert stats.liga_better == 0
    assert stats.total_savings == 0.0


def test_compute_stats_empty():
    stats = compute_stats([])
    assert stats.model_dump() == {
        "perfect": 0,
        "high": 0,
        "medium": 0,
        "good": 0,
        "none": 0,
        "tcg_better": 0,
        "liga_better": 0,
        "total_savings": 0.0,
    }


# ---------- sorting ----------

def test_sort_by_savings_descending_and_stable(make_match):
    matches = [
        make_match("low", savings=1.0),
        make_match("high", savings=5.0),
        make_match("tie-a", savings=2.0),
        make_match("tie-b", savings=2.0),
        make_match("unmatched", tcg_price=1.0, paired=False, savings=None),
    ]

    ordered = sort_matches(matches, SortKey.savings)

    assert labels(ordered) == ["high", "tie-a", "tie-b", "low", "unmatched"]
    assert labels(matches)[0] == "low"


def test_sort_by_match_quality(make_match):
    matches = [
        make_match("medium", MatchType.medium),
        make_match("none", tcg_price=1.0, paired=False),
        make_match("perfect", MatchType.perfect),
        make_match("high", MatchType.high),
        make_match("perfect-2", MatchType.perfect),
    ]

    ordered = sort_matches(matches, SortKey.match)

    assert labels(ordered) == ["perfect", "perfect-2", "high", "medium", "none"]


def test_sort_by_lowest_price(make_match):
    matches = [
        make_match("pricey", tcg_price=30.0, liga_price=200.0),
        make_match("liga-only", liga_price=10.0, paired=False),
        make_match("no-price", tcg_price=None, paired=False),
        make_match("cheap", tcg_price=0.5, liga_price=100.0),
    ]

    ordered = sort_matches(matches, SortKey.price_low, exchange_rate=0.2)

    # liga-only: 10 BRL = 2 USD; no-price has no price at all and goes last
    assert labels(ordered) == ["cheap", "liga-only", "pricey", "no-price"]


def test_sort_by_highest_price(make_match):
    matches = [
        make_match("no-price", tcg_price=None, paired=False),
        make_match("mid", tcg_price=5.0, liga_price=10.0),
        make_match("top", tcg_price=1.0, liga_price=500.0),
    ]

    ordered = sort_matches(matches, SortKey.price_high, exchange_rate=0.2)

    assert labels(ordered) == ["top", "mid", "no-price"]


def test_price_helpers_ignore_missing_sides(make_match):
    solo = make_match("solo", tcg_price=None, paired=False)
    assert lowest_price(solo, 0.2) == math.inf
    assert highest_price(solo, 0.2) == 0.0

    pair = make_match("pair", tcg_price=4.0, liga_price=50.0)
    assert lowest_price(pair, 0.2) == pytest.approx(4.0)
    assert highest_price(pair, 0.2) == pytest.approx(10.0)


# ---------- build_comparison ----------

def test_build_comparison_waits_for_both_sides(make_tcg, make_liga):
    assert build_comparison(None, [make_liga("A")]) == []
    assert build_comparison([make_tcg("A")], None) == []


def test_build_comparison_matches_loaded_sides(make_tcg, make_liga):
    tcg = [make_tcg("Nami", number="OP01-016", set_name="Romance Dawn", market_price=1.0)]
    liga = [make_liga("Nami", code="OP01-016", set_name="Romance Dawn", price=10.0)]

    matches = build_comparison(tcg, liga, exchange_rate=0.2)

    assert len(matches) == 1
    assert matches[0].match_type == MatchType.perfect
    assert matches[0].best_price == BestPrice.liga
