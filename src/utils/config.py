"""Environment-driven settings. Values come from the process environment or a local .env file."""

import os

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    try:
        return int(raw) if raw and raw.strip() else default
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    try:
        return float(raw) if raw and raw.strip() else default
    except ValueError:
        return default


ENV = (os.environ.get("ENV") or os.environ.get("APP_ENV") or "development").lower()
LOG_LEVEL = (os.environ.get("LOG_LEVEL") or "INFO").upper()

# --- TCGplayer (tcgcsv.com mirror) ---
TCGCSV_BASE_URL = os.environ.get("TCGCSV_BASE_URL", "https://tcgcsv.com/tcgplayer")
TCGCSV_CATEGORIES_URL = os.environ.get(
    "TCGCSV_CATEGORIES_URL", "https://tcgcsv.com/categories.json"
)
ONE_PIECE_CATEGORY_ID = _env_int("ONE_PIECE_CATEGORY_ID", 68)
TCGPLAYER_MAX_RESULTS = _env_int("TCGPLAYER_MAX_RESULTS", 100)
UPSTREAM_CONCURRENCY = _env_int("UPSTREAM_CONCURRENCY", 8)
HTTP_TIMEOUT_SECONDS = _env_float("HTTP_TIMEOUT_SECONDS", 20.0)
HTTP_USER_AGENT = "OnePieceComparator/1.0"

# --- Liga One Piece storefront ---
LIGA_BASE_URL = os.environ.get("LIGA_BASE_URL", "https://www.ligaonepiece.com.br")
LIGA_HEADLESS = _env_bool("LIGA_HEADLESS", True)
LIGA_MAX_LOAD_ATTEMPTS = _env_int("LIGA_MAX_LOAD_ATTEMPTS", 20)
LIGA_NAVIGATION_TIMEOUT_SECONDS = _env_float("LIGA_NAVIGATION_TIMEOUT_SECONDS", 30.0)
LIGA_PAGE_CONCURRENCY = _env_int("LIGA_PAGE_CONCURRENCY", 2)

# --- Exchange rates ---
EXCHANGE_RATE_API_URL = os.environ.get(
    "EXCHANGE_RATE_API_URL", "https://api.exchangerate-api.com/v4/latest"
)
EXCHANGE_RATE_CACHE_SECONDS = _env_int("EXCHANGE_RATE_CACHE_SECONDS", 600)
# BRL -> USD, used when the rate API and the cache are both unavailable
FALLBACK_EXCHANGE_RATE = _env_float("FALLBACK_EXCHANGE_RATE", 0.19)


def is_production() -> bool:
    return ENV == "production"
