from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.v1 import router as v1_endpoint
from src.utils.config import is_production
from src.utils.currency import ExchangeRateClient
from src.utils.httpx import create_http_client
from src.utils.logger import api_logger
from src.utils.logging_filter import HealthCheckFilter
from src.utils.playwright import LigaScraper, ensure_playwright_browsers


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logging.getLogger("uvicorn.access").addFilter(HealthCheckFilter())
    if not is_production():
        ensure_playwright_browsers()

    http_client = create_http_client()
    app.state.http_client = http_client
    app.state.rate_client = ExchangeRateClient(http_client)
    app.state.liga_scraper = LigaScraper()
    api_logger.info("Services ready")
    try:
        yield
    finally:
        # Shutdown
        api_logger.info("Closing scraper and HTTP client...")
        await app.state.liga_scraper.close()
        await http_client.aclose()


app = FastAPI(
    title="One Piece Compare API",
    description="Compare One Piece TCG prices between TCGplayer and Liga One Piece",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(v1_endpoint, prefix="/api/v1", tags=["API Version 1"])


@app.get("/", tags=["Root"])
def read_root():
    return {"status": "ok", "message": "Welcome to One Piece Compare API!"}


@app.get("/health", tags=["Health"])
def health_check():
    """Health check endpoint for monitoring"""
    return {"status": "healthy", "message": "One Piece Compare API is running", "version": "1.0.0"}

# To run this application for development:
# uvicorn main:app --reload
