"""
Console logging for the comparison service.

Lines are aligned as ``[time] level │ component │ message``. On a terminal the
level and component get ANSI colors and emojis; in production or when output
is piped (container logs) the same layout is emitted as plain text.
"""

import logging
import sys
from datetime import datetime
from typing import Optional

from src.utils.config import LOG_LEVEL, is_production

ANSI = {
    "DEBUG": "\033[36m",
    "INFO": "\033[32m",
    "WARNING": "\033[33m",
    "ERROR": "\033[31m",
    "CRITICAL": "\033[35m",
}
RESET = "\033[0m"
BOLD = "\033[1m"
DIM = "\033[2m"

LEVEL_EMOJIS = {
    "DEBUG": "🔍",
    "INFO": "✅",
    "WARNING": "⚠️",
    "ERROR": "❌",
    "CRITICAL": "🚨",
}

# matched against the last segment of the logger name
COMPONENT_EMOJIS = {
    "api": "🌐",
    "scraper": "🕷️",
    "httpx": "✈️",
    "match": "🧩",
    "currency": "💱",
}


class ColorFormatter(logging.Formatter):
    """Aligned single-line formatter; colors and emojis only when ``use_color``."""

    def __init__(self, use_color: Optional[bool] = None):
        super().__init__()
        if use_color is None:
            use_color = sys.stdout.isatty() and not is_production()
        self.use_color = use_color

    def _paint(self, text: str, *codes: str) -> str:
        if not self.use_color:
            return text
        return f"{''.join(codes)}{text}{RESET}"

    def format(self, record):
        component = record.name.split(".")[-1]
        level = f"{record.levelname:<8}"
        timestamp = datetime.now().strftime("%H:%M:%S")

        if self.use_color:
            level = f"{LEVEL_EMOJIS.get(record.levelname, '📝')} {level}"
            name = f"{COMPONENT_EMOJIS.get(component, '•')} {component[:12]:<12}"
        else:
            name = f"{component[:12]:<12}"

        line = " ".join(
            [
                self._paint(f"[{timestamp}]", DIM),
                self._paint(level, ANSI.get(record.levelname, ""), BOLD),
                self._paint("│", DIM),
                self._paint(name, BOLD),
                self._paint("│", DIM),
                record.getMessage(),
            ]
        )

        if record.exc_info:
            line += f"\n{self.formatException(record.exc_info)}"
        return line


def setup_logger(name: str, level: str = LOG_LEVEL) -> logging.Logger:
    """
    Attach the console handler to ``name`` once and stop propagation.

    Args:
        name: dotted logger name, e.g. "opcompare.api"
        level: DEBUG, INFO, WARNING, ERROR or CRITICAL
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    log_level = getattr(logging, level.upper(), logging.INFO)
    logger.setLevel(log_level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(ColorFormatter())
    logger.addHandler(handler)
    logger.propagate = False
    return logger


def log_api_request(
    logger: logging.Logger, method: str, endpoint: str, params: Optional[dict] = None
):
    params_str = f" {params}" if params else ""
    logger.info(f"🌐 {method} {endpoint}{params_str}")


def log_scrape_progress(logger: logging.Logger, current: int, total: int, query: str):
    """One line per load-more round while a storefront page is expanded."""
    percentage = (current / total * 100) if total > 0 else 0
    logger.info(f"🔍 Loading [{current}/{total}] {percentage:.1f}% - {query}")


def log_success(logger: logging.Logger, message: str):
    logger.info(f"[OK] {message}")


def log_failure(logger: logging.Logger, message: str):
    logger.error(f"[FAIL] {message}")


api_logger = setup_logger("opcompare.api")
scraper_logger = setup_logger("opcompare.scraper")
httpx_logger = setup_logger("opcompare.httpx")
match_logger = setup_logger("opcompare.match")
currency_logger = setup_logger("opcompare.currency")
