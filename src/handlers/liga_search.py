import re
from typing import List, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from src.models.liga import LigaCard, LigaPrice, LigaSearchResponse, PriceLevel
from src.utils.config import LIGA_BASE_URL
from src.utils.currency import ExchangeRateClient
from src.utils.logger import scraper_logger
from src.utils.playwright import CARD_SELECTOR, LigaScraper, ScraperError

logger = scraper_logger

SOURCE_NAME = "Liga One Piece"
PRICE_LEVELS = {"min": PriceLevel.cheap, "avg": PriceLevel.medium, "max": PriceLevel.expensive}


def parse_brl_price(text: Optional[str]) -> float:
    """'R$ 1.234,56' -> 1234.56; anything unparseable is 0."""
    if not text:
        return 0.0
    cleaned = text.replace("R$", "").strip().replace(".", "").replace(",", ".")
    match = re.search(r"\d+(?:\.\d+)?", cleaned)
    return float(match.group(0)) if match else 0.0


def _text(element) -> str:
    return element.get_text(strip=True) if element else ""


def parse_liga_cards(html: str, base_url: str = LIGA_BASE_URL) -> List[LigaCard]:
    """Extract storefront offers from a fully loaded search results page."""
    if not html:
        return []

    soup = BeautifulSoup(html, "lxml")
    cards: List[LigaCard] = []
    seen = set()

    for element in soup.select(CARD_SELECTOR):
        name = _text(element.select_one(".mtg-name a"))
        numeric_code = _text(element.select_one(".mtg-numeric-code"))
        if numeric_code.startswith("(") and numeric_code.endswith(")"):
            numeric_code = numeric_code[1:-1].strip()

        prices = [
            LigaPrice(value=parse_brl_price(_text(element.select_one(f".price-{kind}"))), type=kind)
            for kind in ("min", "avg", "max")
        ]
        prices = [p for p in prices if p.value > 0]

        if not name or not prices:
            continue

        key = (name, numeric_code)
        if key in seen:
            continue
        seen.add(key)

        chosen = next((p for p in prices if p.type == "min"), prices[0])

        image = element.select_one(".main-card")
        image_url = (image.get("src") or image.get("data-src") or "") if image else ""

        link = element.select_one(".main-link-card")
        url = link.get("href", "") if link else ""
        if url and not url.startswith("http"):
            url = urljoin(base_url.rstrip("/") + "/", url)

        cards.append(
            LigaCard(
                name=name,
                numeric_code=numeric_code,
                price=chosen.value,
                currency="BRL",
                image_url=image_url,
                url=url,
                rarity="",
                set_name=_text(element.select_one(".edition-name")),
                condition="NM",
                seller=SOURCE_NAME,
                stock=1,
                price_level=PRICE_LEVELS[chosen.type],
                all_prices=prices,
            )
        )

    return cards


async def scrape_liga_cards(scraper: LigaScraper, query: str) -> List[LigaCard]:
    logger.info(f'🔍 Searching Liga for "{query}"')
    try:
        html = await scraper.fetch_search_html(query)
    except Exception as e:
        logger.error(f"❌ Liga scraping failed for \"{query}\": {e}")
        await scraper.reset()
        if isinstance(e, ScraperError):
            raise
        raise ScraperError(str(e)) from e

    cards = parse_liga_cards(html, scraper.base_url)
    logger.info(f'✅ Found {len(cards)} Liga cards for "{query}"')
    return cards


async def search_liga(
    scraper: LigaScraper, rates: ExchangeRateClient, query: str
) -> LigaSearchResponse:
    """Scrape Liga and attach USD shadow prices."""
    cards = await scrape_liga_cards(scraper, query)

    exchange_rate = None
    if cards:
        exchange_rate, _ = await rates.get_rate("BRL", "USD")
        for card in cards:
            card.price_usd = card.price * exchange_rate if card.price > 0 else None

    return LigaSearchResponse(
        query=query,
        source=SOURCE_NAME,
        results=cards,
        total_found=len(cards),
        exchange_rate=exchange_rate,
    )
