"""Summary counts and orderings over a list of card matches."""

import math
from typing import List, Optional, Sequence

from src.match_engine import liga_price_usd, match_cards
from src.models.compare import BestPrice, CardMatch, CompareStats, MatchType, SortKey
from src.models.liga import LigaCard
from src.models.tcgplayer import TCGPlayerCard
from src.utils.config import FALLBACK_EXCHANGE_RATE

MATCH_TYPE_RANK = {
    MatchType.perfect: 3,
    MatchType.high: 2,
    MatchType.medium: 1,
    MatchType.none: 0,
}


def build_comparison(
    tcg_cards: Optional[Sequence[TCGPlayerCard]],
    liga_cards: Optional[Sequence[LigaCard]],
    exchange_rate: float = FALLBACK_EXCHANGE_RATE,
) -> List[CardMatch]:
    """Match both result sets; an empty list while either side has not loaded."""
    if tcg_cards is None or liga_cards is None:
        return []
    return match_cards(tcg_cards, liga_cards, exchange_rate)


def compute_stats(matches: Sequence[CardMatch]) -> CompareStats:
    counts = {tier: 0 for tier in MatchType}
    tcg_better = 0
    liga_better = 0
    total_savings = 0.0

    for match in matches:
        counts[match.match_type] += 1
        savings = match.savings or 0.0
        if savings > 0:
            total_savings += savings
            if match.best_price == BestPrice.tcg:
                tcg_better += 1
            elif match.best_price == BestPrice.liga:
                liga_better += 1

    return CompareStats(
        perfect=counts[MatchType.perfect],
        high=counts[MatchType.high],
        medium=counts[MatchType.medium],
        good=counts[MatchType.high] + counts[MatchType.medium],
        none=counts[MatchType.none],
        tcg_better=tcg_better,
        liga_better=liga_better,
        total_savings=total_savings,
    )


def _tcg_price(match: CardMatch) -> Optional[float]:
    if match.tcg_card is None:
        return None
    return match.tcg_card.market_price or None


def _liga_price(match: CardMatch, exchange_rate: float) -> Optional[float]:
    if match.liga_card is None or not match.liga_card.price:
        return None
    return liga_price_usd(match.liga_card, exchange_rate)


def lowest_price(match: CardMatch, exchange_rate: float) -> float:
    """Cheaper of the two USD prices; a missing side never wins."""
    prices = [p for p in (_tcg_price(match), _liga_price(match, exchange_rate)) if p]
    return min(prices, default=math.inf)


def highest_price(match: CardMatch, exchange_rate: float) -> float:
    prices = [p for p in (_tcg_price(match), _liga_price(match, exchange_rate)) if p]
    return max(prices, default=0.0)


def sort_matches(
    matches: Sequence[CardMatch],
    sort_key: SortKey = SortKey.savings,
    exchange_rate: float = FALLBACK_EXCHANGE_RATE,
) -> List[CardMatch]:
    """Return a re-ordered copy; ties keep their original relative order."""
    if sort_key == SortKey.savings:
        return sorted(matches, key=lambda m: m.savings or 0.0, reverse=True)
    if sort_key == SortKey.match:
        return sorted(matches, key=lambda m: MATCH_TYPE_RANK[m.match_type], reverse=True)
    if sort_key == SortKey.price_low:
        return sorted(matches, key=lambda m: lowest_price(m, exchange_rate))
    if sort_key == SortKey.price_high:
        return sorted(matches, key=lambda m: highest_price(m, exchange_rate), reverse=True)
    return list(matches)
