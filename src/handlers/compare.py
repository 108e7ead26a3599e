"""
Runs both marketplace searches side by side and reconciles their results.

A failing source never aborts the comparison: it contributes no listings and
an entry in ``errors`` while the other source is still reported.
"""

import asyncio
from typing import List

import httpx

from src.handlers.liga_search import scrape_liga_cards
from src.handlers.tcgplayer_search import search_tcgplayer
from src.models.compare import CompareErrors, CompareResponse, SortKey
from src.models.liga import LigaCard
from src.models.tcgplayer import TCGPlayerCard
from src.utils.compare_stats import build_comparison, compute_stats, sort_matches
from src.utils.config import FALLBACK_EXCHANGE_RATE
from src.utils.currency import ExchangeRateClient
from src.utils.logger import api_logger, log_failure, log_success
from src.utils.playwright import LigaScraper

TCGPLAYER_ERROR = "Failed to search TCGplayer"
LIGA_ERROR = "Failed to search Liga One Piece"


def _failed(outcome) -> bool:
    """True for an ordinary source failure; cancellation and interrupts propagate."""
    if isinstance(outcome, Exception):
        return True
    if isinstance(outcome, BaseException):
        raise outcome
    return False


async def compare_prices(
    query: str,
    sort: SortKey = SortKey.savings,
    *,
    http_client: httpx.AsyncClient,
    scraper: LigaScraper,
    rates: ExchangeRateClient,
) -> CompareResponse:
    tcg_outcome, liga_outcome, rate_outcome = await asyncio.gather(
        search_tcgplayer(http_client, query),
        scrape_liga_cards(scraper, query),
        rates.get_rate("BRL", "USD"),
        return_exceptions=True,
    )

    errors = CompareErrors()

    tcg_cards: List[TCGPlayerCard] = []
    if _failed(tcg_outcome):
        log_failure(api_logger, f"TCGplayer search for \"{query}\": {tcg_outcome}")
        errors.tcgplayer = TCGPLAYER_ERROR
    else:
        tcg_cards = tcg_outcome.results

    liga_cards: List[LigaCard] = []
    if _failed(liga_outcome):
        log_failure(api_logger, f"Liga search for \"{query}\": {liga_outcome}")
        errors.liga = LIGA_ERROR
    else:
        liga_cards = liga_outcome

    exchange_rate, rate_fallback = FALLBACK_EXCHANGE_RATE, True
    if _failed(rate_outcome):
        log_failure(api_logger, f"exchange rate lookup: {rate_outcome}")
    else:
        exchange_rate, rate_fallback = rate_outcome

    for card in liga_cards:
        card.price_usd = card.price * exchange_rate if card.price > 0 else None

    matches = build_comparison(tcg_cards, liga_cards, exchange_rate)
    stats = compute_stats(matches)

    log_success(
        api_logger,
        f"compared \"{query}\": {len(tcg_cards)} tcg, {len(liga_cards)} liga, "
        f"{stats.perfect} perfect, {stats.good} good, {stats.none} unmatched",
    )
    return CompareResponse(
        query=query,
        sort=sort,
        exchange_rate=exchange_rate,
        exchange_rate_fallback=rate_fallback,
        tcg_count=len(tcg_cards),
        liga_count=len(liga_cards),
        matches=sort_matches(matches, sort, exchange_rate),
        stats=stats,
        errors=errors,
    )
