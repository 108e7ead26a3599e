import asyncio

import pytest

from src.handlers import compare as compare_module
from src.handlers.compare import compare_prices
from src.handlers.tcgplayer_search import TCGPlayerError
from src.models.compare import BestPrice, MatchType, SortKey
from src.models.tcgplayer import TCGPlayerSearchResponse
from src.utils.playwright import ScraperError


class FakeRates:
    def __init__(self, rate=0.2, fallback=False, error=None):
        self.rate = rate
        self.fallback = fallback
        self.error = error

    async def get_rate(self, from_currency="BRL", to_currency="USD"):
        if self.error is not None:
            raise self.error
        return self.rate, self.fallback


@pytest.fixture
def listings(make_tcg, make_liga):
    tcg = [
        make_tcg("Monkey D. Luffy", number="OP06-054", set_name="Wings of the Captain", market_price=12.0),
        make_tcg("Nami", number="OP01-016", set_name="Romance Dawn", market_price=1.0),
    ]
    liga = [
        make_liga("Monkey D. Luffy", code="OP06-054", set_name="Wings of the Captain", price=50),
        make_liga("Nami", code="OP01-016", set_name="Romance Dawn", price=25),
        make_liga("Kaido", code="OP04-044", price=100),
    ]
    return tcg, liga


@pytest.fixture
def sources(monkeypatch, listings):
    """Patch both marketplace searches; set ``errors`` entries to make one fail."""
    tcg, liga = listings
    state = {"tcg": tcg, "liga": liga, "errors": {}}

    async def fake_tcg(client, query):
        if "tcg" in state["errors"]:
            raise state["errors"]["tcg"]
        return TCGPlayerSearchResponse(
            query=query, category_id=68, results=state["tcg"], total_found=len(state["tcg"])
        )

    async def fake_liga(scraper, query):
        if "liga" in state["errors"]:
            raise state["errors"]["liga"]
        return state["liga"]

    monkeypatch.setattr(compare_module, "search_tcgplayer", fake_tcg)
    monkeypatch.setattr(compare_module, "scrape_liga_cards", fake_liga)
    return state


def run_compare(rates=None, sort=SortKey.savings, query="luffy"):
    return asyncio.run(
        compare_prices(
            query, sort, http_client=None, scraper=None, rates=rates or FakeRates()
        )
    )


def test_compare_reconciles_both_sources(sources):
    response = run_compare()

    assert response.query == "luffy"
    assert response.exchange_rate == 0.2
    assert response.exchange_rate_fallback is False
    assert response.tcg_count == 2
    assert response.liga_count == 3
    assert response.errors.tcgplayer is None
    assert response.errors.liga is None

    assert response.stats.perfect == 2
    assert response.stats.none == 1
    assert response.stats.liga_better == 1
    assert response.stats.tcg_better == 1
    # Luffy: 12 vs 10 -> Liga saves 2; Nami: 1 vs 5 -> TCGplayer saves 4
    assert response.stats.total_savings == pytest.approx(6.0)


def test_compare_sorts_by_savings(sources):
    response = run_compare()

    first, second, third = response.matches
    assert first.tcg_card.name == "Nami"
    assert first.best_price == BestPrice.tcg
    assert second.tcg_card.name == "Monkey D. Luffy"
    assert third.liga_card.name == "Kaido"
    assert third.match_type == MatchType.none


def test_compare_attaches_usd_prices_to_liga_listings(sources):
    response = run_compare()
    luffy = response.matches[1].liga_card
    assert luffy.price_usd == pytest.approx(10.0)


def test_compare_honours_sort_key(sources):
    response = run_compare(sort=SortKey.price_low)
    assert response.sort == SortKey.price_low
    assert response.matches[0].tcg_card.name == "Nami"
    assert response.matches[-1].liga_card.name == "Kaido"


def test_tcgplayer_failure_keeps_liga_results(sources):
    sources["errors"]["tcg"] = TCGPlayerError("groups down")

    response = run_compare()

    assert response.errors.tcgplayer == "Failed to search TCGplayer"
    assert response.errors.liga is None
    assert response.tcg_count == 0
    assert len(response.matches) == 3
    assert all(m.tcg_card is None for m in response.matches)


def test_liga_failure_keeps_tcgplayer_results(sources):
    sources["errors"]["liga"] = ScraperError("timeout")

    response = run_compare()

    assert response.errors.liga == "Failed to search Liga One Piece"
    assert response.liga_count == 0
    assert [m.best_price for m in response.matches] == [BestPrice.tcg, BestPrice.tcg]


def test_both_sources_failing_returns_empty_comparison(sources):
    sources["errors"]["tcg"] = TCGPlayerError("down")
    sources["errors"]["liga"] = ScraperError("down")

    response = run_compare()

    assert response.matches == []
    assert response.errors.tcgplayer and response.errors.liga
    assert response.stats.none == 0


def test_rate_failure_uses_fallback_rate(sources):
    response = run_compare(rates=FakeRates(error=RuntimeError("rates down")))

    assert response.exchange_rate == 0.19
    assert response.exchange_rate_fallback is True
    luffy = next(m for m in response.matches if m.tcg_card and m.tcg_card.name == "Monkey D. Luffy")
    assert luffy.liga_card.price_usd == pytest.approx(9.5)
    assert luffy.savings == pytest.approx(2.5)


def test_cancelled_source_is_not_reported_as_failure(sources):
    sources["errors"]["liga"] = asyncio.CancelledError()

    with pytest.raises(asyncio.CancelledError):
        run_compare()
