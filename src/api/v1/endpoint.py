import math
from typing import Optional

import httpx
from fastapi import APIRouter, Depends, HTTPException, Query, Request

from src.handlers.compare import compare_prices
from src.handlers.liga_search import search_liga
from src.handlers.tcgplayer_search import (
    TCGPlayerError,
    get_tcgplayer_categories,
    search_tcgplayer,
)
from src.models.compare import CompareResponse, SortKey
from src.models.currency import CurrencyConversion
from src.models.liga import LigaSearchResponse
from src.models.tcgplayer import TCGPlayerSearchResponse
from src.utils.currency import ExchangeRateClient, ExchangeRateUnavailable
from src.utils.logger import api_logger, log_api_request
from src.utils.playwright import LigaScraper, ScraperError
from src.utils.safe_handler import safe_handler

router = APIRouter()


# Dependency injection
def get_http_client(request: Request) -> httpx.AsyncClient:
    return request.app.state.http_client


def get_liga_scraper(request: Request) -> LigaScraper:
    return request.app.state.liga_scraper


def get_rate_client(request: Request) -> ExchangeRateClient:
    return request.app.state.rate_client


def _require_query(q: Optional[str]) -> str:
    if not q or not q.strip():
        raise HTTPException(status_code=400, detail="Query parameter 'q' is required")
    return q.strip()


# ===============================================================
# TCGPLAYER
# ===============================================================


@router.get(
    "/tcgplayer/search",
    summary="Search TCGplayer One Piece products",
    response_model=TCGPlayerSearchResponse,
)
@safe_handler(default_detail="Failed to search TCGplayer")
async def tcgplayer_search(
    q: Optional[str] = Query(None, description="Card name or code, e.g. 'luffy'"),
    client: httpx.AsyncClient = Depends(get_http_client),
):
    log_api_request(api_logger, "GET", "/tcgplayer/search", {"q": q})
    query = _require_query(q)
    try:
        return await search_tcgplayer(client, query)
    except TCGPlayerError as e:
        api_logger.error(f"❌ TCGplayer search failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to search TCGplayer")


@router.get("/tcgplayer/categories", summary="List TCGplayer categories")
@safe_handler(default_detail="Failed to fetch categories")
async def tcgplayer_categories(client: httpx.AsyncClient = Depends(get_http_client)):
    log_api_request(api_logger, "GET", "/tcgplayer/categories")
    try:
        return await get_tcgplayer_categories(client)
    except TCGPlayerError as e:
        api_logger.error(f"❌ Categories request failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch categories")


# ===============================================================
# LIGA ONE PIECE
# ===============================================================


@router.get(
    "/liga/search",
    summary="Search the Liga One Piece storefront",
    response_model=LigaSearchResponse,
)
@safe_handler(default_detail="Failed to search Liga One Piece")
async def liga_search(
    q: Optional[str] = Query(None, description="Card name or code, e.g. 'luffy'"),
    scraper: LigaScraper = Depends(get_liga_scraper),
    rates: ExchangeRateClient = Depends(get_rate_client),
):
    log_api_request(api_logger, "GET", "/liga/search", {"q": q})
    query = _require_query(q)
    try:
        return await search_liga(scraper, rates, query)
    except ScraperError:
        raise HTTPException(status_code=500, detail="Failed to search Liga One Piece")


# ===============================================================
# CURRENCY
# ===============================================================


@router.get(
    "/currency/convert",
    summary="Convert an amount between currencies",
    response_model=CurrencyConversion,
)
@safe_handler(default_detail="Currency conversion failed")
async def currency_convert(
    from_currency: str = Query("BRL", alias="from", min_length=3, max_length=3),
    to_currency: str = Query("USD", alias="to", min_length=3, max_length=3),
    amount: str = Query("1", description="Amount in the source currency"),
    rates: ExchangeRateClient = Depends(get_rate_client),
):
    log_api_request(
        api_logger,
        "GET",
        "/currency/convert",
        {"from": from_currency, "to": to_currency, "amount": amount},
    )
    try:
        value = float(amount)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid amount")
    if not math.isfinite(value) or value < 0:
        raise HTTPException(status_code=400, detail="Invalid amount")

    try:
        return await rates.convert(value, from_currency, to_currency)
    except ExchangeRateUnavailable as e:
        api_logger.error(f"❌ {e}")
        raise HTTPException(status_code=502, detail=str(e))


# ===============================================================
# COMPARISON
# ===============================================================


@router.get(
    "/compare",
    summary="Compare TCGplayer and Liga prices for a query",
    response_model=CompareResponse,
)
@safe_handler(default_detail="Failed to compare prices")
async def compare(
    q: Optional[str] = Query(None, description="Card name or code, e.g. 'luffy'"),
    sort: SortKey = Query(SortKey.savings, description="Ordering of the matches"),
    client: httpx.AsyncClient = Depends(get_http_client),
    scraper: LigaScraper = Depends(get_liga_scraper),
    rates: ExchangeRateClient = Depends(get_rate_client),
):
    log_api_request(api_logger, "GET", "/compare", {"q": q, "sort": sort.value})
    query = _require_query(q)
    return await compare_prices(
        query, sort, http_client=client, scraper=scraper, rates=rates
    )
