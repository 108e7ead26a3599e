import time
from datetime import date, datetime, timezone
from decimal import ROUND_HALF_EVEN, Decimal
from typing import Dict, Optional, Tuple

import httpx

from src.models.currency import CurrencyConversion
from src.utils.config import (
    EXCHANGE_RATE_API_URL,
    EXCHANGE_RATE_CACHE_SECONDS,
    FALLBACK_EXCHANGE_RATE,
)
from src.utils.httpx import fetch_json
from src.utils.logger import currency_logger

logger = currency_logger

FALLBACK_RATES: Dict[Tuple[str, str], float] = {
    ("BRL", "USD"): FALLBACK_EXCHANGE_RATE,
    ("USD", "BRL"): 1 / FALLBACK_EXCHANGE_RATE,
}


class ExchangeRateUnavailable(RuntimeError):
    """No live, cached or static rate exists for a currency pair."""


def quantize_amount(value: float) -> float:
    """Round to cents with bankers rounding."""
    return float(Decimal(str(value)).quantize(Decimal("0.00"), rounding=ROUND_HALF_EVEN))


def _today() -> str:
    return date.today().isoformat()


class ExchangeRateClient:
    """
    Live exchange rates with a per-pair in-memory cache.

    When the rate API fails, a cached rate younger than the TTL is served,
    then the static fallback table; both are flagged as fallbacks.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        base_url: str = EXCHANGE_RATE_API_URL,
        ttl_seconds: float = EXCHANGE_RATE_CACHE_SECONDS,
        clock=time.time,
    ):
        self._client = client
        self._base_url = base_url.rstrip("/")
        self._ttl = ttl_seconds
        self._clock = clock
        self._cache: Dict[Tuple[str, str], Tuple[float, float]] = {}

    async def _fetch_rate(self, src: str, dst: str) -> Tuple[float, float, str]:
        data = await fetch_json(self._client, f"{self._base_url}/{src}")
        if not isinstance(data, dict):
            raise ValueError("Exchange rate API returned a non-object payload")
        if data.get("success") is False:
            raise ValueError("Exchange rate API returned error")

        rate = (data.get("rates") or {}).get(dst)
        if not rate:
            raise ValueError(f"Exchange rate not found for {src} to {dst}")

        timestamp = float(data.get("time_last_updated") or data.get("timestamp") or self._clock())
        rate_date = data.get("date") or datetime.fromtimestamp(timestamp, tz=timezone.utc).date().isoformat()
        return float(rate), timestamp, rate_date

    def _cached(self, pair: Tuple[str, str]) -> Optional[Tuple[float, float]]:
        entry = self._cache.get(pair)
        if entry and self._clock() - entry[1] < self._ttl:
            return entry
        return None

    async def convert(
        self, amount: float = 1.0, from_currency: str = "BRL", to_currency: str = "USD"
    ) -> CurrencyConversion:
        src = from_currency.upper()
        dst = to_currency.upper()

        if src == dst:
            return CurrencyConversion(
                from_currency=src,
                to_currency=dst,
                amount=amount,
                rate=1.0,
                converted_amount=quantize_amount(amount),
                timestamp=self._clock(),
                date=_today(),
            )

        pair = (src, dst)
        try:
            rate, timestamp, rate_date = await self._fetch_rate(src, dst)
        except (httpx.HTTPError, ValueError, TypeError) as e:
            logger.warning(f"⚠️ Exchange rate lookup failed for {src}->{dst}: {e}")
            return self._fallback(amount, src, dst)

        self._cache[pair] = (rate, self._clock())
        return CurrencyConversion(
            from_currency=src,
            to_currency=dst,
            amount=amount,
            rate=rate,
            converted_amount=quantize_amount(amount * rate),
            timestamp=timestamp,
            date=rate_date,
        )

    def _fallback(self, amount: float, src: str, dst: str) -> CurrencyConversion:
        cached = self._cached((src, dst))
        if cached:
            rate, fetched_at = cached
            logger.info(f"💱 Using cached {src}->{dst} rate {rate}")
            return CurrencyConversion(
                from_currency=src,
                to_currency=dst,
                amount=amount,
                rate=rate,
                converted_amount=quantize_amount(amount * rate),
                timestamp=fetched_at,
                date=_today(),
                fallback=True,
                warning="Using cached exchange rate",
            )

        rate = FALLBACK_RATES.get((src, dst))
        if rate is None:
            raise ExchangeRateUnavailable(f"No exchange rate available for {src} to {dst}")

        logger.warning(f"⚠️ Using fallback {src}->{dst} rate {rate}")
        return CurrencyConversion(
            from_currency=src,
            to_currency=dst,
            amount=amount,
            rate=rate,
            converted_amount=quantize_amount(amount * rate),
            timestamp=self._clock(),
            date=_today(),
            fallback=True,
            warning="Using fallback exchange rate due to API error",
        )

    async def get_rate(self, from_currency: str = "BRL", to_currency: str = "USD") -> Tuple[float, bool]:
        conversion = await self.convert(1.0, from_currency, to_currency)
        return conversion.rate, conversion.fallback
