import asyncio
import re
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from src.models.tcgplayer import (
    ExtendedDataField,
    TCGPlayerCard,
    TCGPlayerGroup,
    TCGPlayerPrice,
    TCGPlayerSearchResponse,
)
from src.utils.config import (
    ONE_PIECE_CATEGORY_ID,
    TCGCSV_BASE_URL,
    TCGCSV_CATEGORIES_URL,
    TCGPLAYER_MAX_RESULTS,
    UPSTREAM_CONCURRENCY,
)
from src.utils.httpx import fetch_json
from src.utils.logger import httpx_logger

logger = httpx_logger

SET_CODES_BY_NAME = {
    "romance dawn": "OP01",
    "paramount war": "OP02",
    "pillars of strength": "OP03",
    "kingdoms of intrigue": "OP04",
    "awakening of the new era": "OP05",
    "wings of the captain": "OP06",
    "wings of captain": "OP06",
    "500 years in the future": "OP07",
    "two legends": "OP08",
    "starter deck": "ST01",
    "starter deck luffy": "ST01",
    "starter deck ace": "ST02",
    "starter deck nami": "ST03",
    "starter deck kaido": "ST04",
    "starter deck uta": "ST05",
    "starter deck absolute justice": "ST06",
    "starter deck big mom": "ST07",
    "starter deck monkey d luffy": "ST08",
    "starter deck yamato": "ST09",
    "starter deck issho": "ST10",
    "starter deck zoro and sanji": "ST12",
    "memorial collection": "EB01",
    "extra booster": "EB01",
    "promotional": "P",
    "promo": "P",
    "pre-release": "PR01",
    "championship": "CH01",
}


class TCGPlayerError(RuntimeError):
    """The tcgcsv API could not be searched."""


def _results(payload: Any) -> Any:
    """tcgcsv wraps most lists in {"results": [...]}, some endpoints return them bare."""
    if isinstance(payload, dict) and "results" in payload:
        return payload["results"]
    return payload


def set_code_from_extended_data(extended_data: Optional[List[ExtendedDataField]]) -> Optional[str]:
    """Set prefix of the ``Number`` attribute, e.g. ``OP06`` for ``OP06-054``."""
    if not extended_data:
        return None
    for entry in extended_data:
        if entry.name.lower() == "number" and entry.value:
            match = re.match(r"^([A-Z0-9]+)-\d+", entry.value)
            if match:
                return match.group(1)
    return None


def set_code_from_set_name(set_name: str) -> str:
    lower = (set_name or "").lower()
    for name, code in SET_CODES_BY_NAME.items():
        if name in lower:
            return code
    return "UNK"


def product_matches_query(product: Dict[str, Any], query: str) -> bool:
    """Whole query in the name, or failing that any term longer than one character."""
    name = str(product.get("name") or "").lower()
    clean_name = str(product.get("cleanName") or "").lower()
    needle = query.lower()

    if needle in name or needle in clean_name:
        return True

    terms = [term for term in needle.split(" ") if len(term) > 1]
    return any(term in name or term in clean_name for term in terms)


async def _search_group(
    client: httpx.AsyncClient,
    group: TCGPlayerGroup,
    query: str,
    semaphore: asyncio.Semaphore,
) -> List[TCGPlayerCard]:
    base = f"{TCGCSV_BASE_URL}/{ONE_PIECE_CATEGORY_ID}/{group.group_id}"

    async with semaphore:
        try:
            products = _results(await fetch_json(client, f"{base}/products"))
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"❌ Products request failed for group {group.group_id}: {e}")
            return []

        if not isinstance(products, list):
            logger.warning(f"⚠️ Unexpected products payload for group {group.group_id}")
            return []

        matching = [p for p in products if isinstance(p, dict) and product_matches_query(p, query)]
        if not matching:
            return []
        logger.info(f'✅ Found {len(matching)} matches in "{group.name}"')

        prices: Dict[int, Dict[str, Any]] = {}
        try:
            price_rows = _results(await fetch_json(client, f"{base}/prices"))
            if isinstance(price_rows, list):
                # first row per product wins
                for row in price_rows:
                    if isinstance(row, dict) and "productId" in row:
                        prices.setdefault(row["productId"], row)
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"❌ Prices request failed for group {group.group_id}: {e}")

    cards: List[TCGPlayerCard] = []
    for product in matching:
        try:
            card = TCGPlayerCard.model_validate(product)
        except ValidationError as e:
            logger.warning(
                f"⚠️ Skipping malformed product {product.get('productId')} "
                f"in group {group.group_id}: {e.error_count()} validation error(s)"
            )
            continue

        price_row = prices.get(card.product_id)
        if price_row is not None:
            try:
                card.price = TCGPlayerPrice.model_validate(price_row)
            except ValidationError:
                logger.warning(f"⚠️ Ignoring malformed price row for product {card.product_id}")
        card.set_name = group.name
        card.set_code = (
            set_code_from_extended_data(card.extended_data)
            or group.abbreviation
            or set_code_from_set_name(group.name)
        )
        cards.append(card)
    return cards


async def search_tcgplayer(client: httpx.AsyncClient, query: str) -> TCGPlayerSearchResponse:
    """Search every One Piece group on tcgcsv for products matching the query."""
    groups_url = f"{TCGCSV_BASE_URL}/{ONE_PIECE_CATEGORY_ID}/groups"
    logger.info(f"🔍 Fetching groups for category {ONE_PIECE_CATEGORY_ID}")

    try:
        raw_groups = _results(await fetch_json(client, groups_url))
    except (httpx.HTTPError, ValueError) as e:
        raise TCGPlayerError(f"Groups request failed: {e}") from e

    if not isinstance(raw_groups, list):
        raise TCGPlayerError("Groups response is not a list")

    groups: List[TCGPlayerGroup] = []
    for raw in raw_groups:
        if not isinstance(raw, dict):
            continue
        try:
            groups.append(TCGPlayerGroup.model_validate(raw))
        except ValidationError:
            logger.warning(f"⚠️ Skipping malformed group {raw.get('groupId')!r}")

    semaphore = asyncio.Semaphore(UPSTREAM_CONCURRENCY)
    per_group = await asyncio.gather(
        *(_search_group(client, group, query, semaphore) for group in groups)
    )
    results = [card for cards in per_group for card in cards]

    logger.info(f"📊 {len(results)} TCGplayer matches for \"{query}\"")
    return TCGPlayerSearchResponse(
        query=query,
        category_id=ONE_PIECE_CATEGORY_ID,
        results=results[:TCGPLAYER_MAX_RESULTS],
        total_found=len(results),
    )


async def get_tcgplayer_categories(client: httpx.AsyncClient) -> Any:
    try:
        return await fetch_json(client, TCGCSV_CATEGORIES_URL)
    except (httpx.HTTPError, ValueError) as e:
        raise TCGPlayerError(f"Categories request failed: {e}") from e
