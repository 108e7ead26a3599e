import asyncio

import pytest

from src.handlers.liga_search import (
    parse_brl_price,
    parse_liga_cards,
    scrape_liga_cards,
    search_liga,
)
from src.models.liga import PriceLevel
from src.utils.playwright import ScraperError

BASE_URL = "https://www.ligaonepiece.com.br"

SEARCH_PAGE = """
<html><body>
<div id="mtg-cards">
  <div class="box p25">
    <a class="main-link-card" href="/?view=cards/card&card=Monkey.D.Luffy"><img class="main-card" src="https://img.example/luffy.jpg"></a>
    <div class="mtg-name"><a>Monkey.D.Luffy</a></div>
    <div class="mtg-numeric-code">(OP06-054)</div>
    <div class="edition-name">Wings of the Captain</div>
    <div class="price-min">R$ 45,90</div>
    <div class="price-avg">R$ 60,00</div>
    <div class="price-max">R$ 1.234,56</div>
  </div>
  <div class="box p25">
    <a class="main-link-card" href="https://other.example/zoro"><img class="main-card" data-src="https://img.example/zoro.jpg"></a>
    <div class="mtg-name"><a>Roronoa Zoro</a></div>
    <div class="mtg-numeric-code">ST01-013</div>
    <div class="price-avg">R$ 12,00</div>
    <div class="price-max">R$ 20,00</div>
  </div>
  <div class="box p25">
    <div class="mtg-name"><a>Monkey.D.Luffy</a></div>
    <div class="mtg-numeric-code">(OP06-054)</div>
    <div class="price-min">R$ 10,00</div>
  </div>
  <div class="box p25">
    <div class="mtg-name"><a>Nami</a></div>
    <div class="mtg-numeric-code">OP01-016</div>
    <div class="price-min">Indisponível</div>
  </div>
  <div class="box p25">
    <div class="mtg-numeric-code">OP01-001</div>
    <div class="price-min">R$ 5,00</div>
  </div>
</div>
</body></html>
"""


class FakeScraper:
    def __init__(self, html=None, error=None):
        self.base_url = BASE_URL
        self.html = html
        self.error = error
        self.resets = 0

    async def fetch_search_html(self, query):
        if self.error is not None:
            raise self.error
        return self.html

    async def reset(self):
        self.resets += 1


class FakeRates:
    def __init__(self, rate=0.2, fallback=False):
        self.rate = rate
        self.fallback = fallback
        self.calls = 0

    async def get_rate(self, from_currency="BRL", to_currency="USD"):
        self.calls += 1
        return self.rate, self.fallback


# ---------- price parsing ----------

@pytest.mark.parametrize(
    "text,expected",
    [
        ("R$ 45,90", 45.90),
        ("R$ 1.234,56", 1234.56),
        ("R$12", 12.0),
        ("Indisponível", 0.0),
        ("", 0.0),
        (None, 0.0),
    ],
)
def test_parse_brl_price(text, expected):
    assert parse_brl_price(text) == pytest.approx(expected)


# ---------- page parsing ----------

def test_parse_liga_cards_extracts_offers():
    cards = parse_liga_cards(SEARCH_PAGE, BASE_URL)

    assert [c.name for c in cards] == ["Monkey.D.Luffy", "Roronoa Zoro"]

    luffy = cards[0]
    assert luffy.numeric_code == "OP06-054"
    assert luffy.price == pytest.approx(45.90)
    assert luffy.price_level == PriceLevel.cheap
    assert [p.type for p in luffy.all_prices] == ["min", "avg", "max"]
    assert luffy.set_name == "Wings of the Captain"
    assert luffy.url == f"{BASE_URL}/?view=cards/card&card=Monkey.D.Luffy"
    assert luffy.image_url == "https://img.example/luffy.jpg"
    assert luffy.currency == "BRL"
    assert luffy.condition == "NM"
    assert luffy.seller == "Liga One Piece"
    assert luffy.stock == 1


def test_parse_liga_cards_falls_back_to_first_available_price():
    zoro = parse_liga_cards(SEARCH_PAGE, BASE_URL)[1]

    assert zoro.price == pytest.approx(12.0)
    assert zoro.price_level == PriceLevel.medium
    assert zoro.url == "https://other.example/zoro"
    assert zoro.image_url == "https://img.example/zoro.jpg"


def test_parse_liga_cards_keeps_first_duplicate():
    cards = parse_liga_cards(SEARCH_PAGE, BASE_URL)
    luffys = [c for c in cards if c.name == "Monkey.D.Luffy"]
    assert len(luffys) == 1
    assert luffys[0].price == pytest.approx(45.90)


def test_parse_liga_cards_empty_page():
    assert parse_liga_cards("", BASE_URL) == []
    assert parse_liga_cards("<html><body>Nenhum card</body></html>", BASE_URL) == []


# ---------- scraping flow ----------

def test_scrape_liga_cards_parses_scraped_html():
    scraper = FakeScraper(html=SEARCH_PAGE)
    cards = asyncio.run(scrape_liga_cards(scraper, "luffy"))
    assert len(cards) == 2
    assert scraper.resets == 0


def test_scrape_liga_cards_resets_browser_on_failure():
    scraper = FakeScraper(error=RuntimeError("browser crashed"))

    with pytest.raises(ScraperError, match="browser crashed"):
        asyncio.run(scrape_liga_cards(scraper, "luffy"))

    assert scraper.resets == 1


def test_scrape_liga_cards_propagates_scraper_error():
    scraper = FakeScraper(error=ScraperError("timeout"))
    with pytest.raises(ScraperError, match="timeout"):
        asyncio.run(scrape_liga_cards(scraper, "luffy"))
    assert scraper.resets == 1


def test_search_liga_attaches_usd_prices():
    rates = FakeRates(rate=0.2)

    response = asyncio.run(search_liga(FakeScraper(html=SEARCH_PAGE), rates, "luffy"))

    assert response.total_found == 2
    assert response.source == "Liga One Piece"
    assert response.exchange_rate == 0.2
    assert response.results[0].price_usd == pytest.approx(9.18)
    assert response.results[1].price_usd == pytest.approx(2.4)


def test_search_liga_without_results_skips_rate_lookup():
    rates = FakeRates()

    response = asyncio.run(search_liga(FakeScraper(html="<html></html>"), rates, "nothing"))

    assert response.results == []
    assert response.exchange_rate is None
    assert rates.calls == 0
