"""
Deterministic cross-platform matching engine: pairs TCGplayer listings with
Liga One Piece listings, classifies each pair's confidence and decides which
platform is cheaper.

Matching is a two-pass greedy assignment. Pass 1 locks in every pair scoring
at least 0.8, scanning TCGplayer listings in input order. Pass 2 repeats the
scan at 0.6 over whatever is left. Every listing not paired by then is emitted
as its own single-sided record, so each input appears in exactly one output.
"""

import math
from typing import Callable, List, Optional, Sequence, Set, Tuple

from src.models.compare import BestPrice, CardMatch, MatchType
from src.models.liga import LigaCard
from src.models.tcgplayer import TCGPlayerCard
from src.utils.card_code import identify_variation
from src.utils.config import FALLBACK_EXCHANGE_RATE
from src.utils.logger import match_logger
from src.utils.similarity import SimilarityAnalysis, calculate_similarity, tcg_card_code

Scorer = Callable[[TCGPlayerCard, LigaCard], SimilarityAnalysis]

HIGH_CONFIDENCE_THRESHOLD = 0.8
MEDIUM_CONFIDENCE_THRESHOLD = 0.6

TIER_THRESHOLDS = [
    (0.9, MatchType.perfect),
    (0.7, MatchType.high),
    (0.5, MatchType.medium),
]

NO_MATCH = "No match found"


def classify_match_type(score: float) -> MatchType:
    """Step function from similarity score to confidence tier."""
    for threshold, tier in TIER_THRESHOLDS:
        if score >= threshold:
            return tier
    return MatchType.none


def confidence_score(score: float) -> int:
    """Score as a 0-100 integer, rounding halves up."""
    return int(math.floor(score * 100 + 0.5))


def liga_price_usd(liga_card: LigaCard, exchange_rate: float) -> float:
    return liga_card.price * exchange_rate


def create_card_match(
    tcg_card: TCGPlayerCard,
    liga_card: LigaCard,
    analysis: SimilarityAnalysis,
    exchange_rate: float = FALLBACK_EXCHANGE_RATE,
) -> CardMatch:
    """Price and classify a committed pair."""
    tcg_price = tcg_card.market_price or 0.0
    liga_price = liga_price_usd(liga_card, exchange_rate)

    best_price = BestPrice.tie
    savings = 0.0
    if tcg_price < liga_price:
        best_price = BestPrice.tcg
        savings = liga_price - tcg_price
    elif tcg_price > liga_price:
        best_price = BestPrice.liga
        savings = tcg_price - liga_price

    return CardMatch(
        tcg_card=tcg_card,
        liga_card=liga_card,
        similarity=analysis.score,
        best_price=best_price,
        savings=savings,
        match_type=classify_match_type(analysis.score),
        match_method=analysis.method,
        confidence_score=confidence_score(analysis.score),
        match_reasons=list(analysis.reasons),
        variation=identify_variation(liga_card.numeric_code),
    )


def unmatched_tcg(tcg_card: TCGPlayerCard) -> CardMatch:
    return CardMatch(
        tcg_card=tcg_card,
        similarity=0.0,
        best_price=BestPrice.tcg,
        match_type=MatchType.none,
        match_method=NO_MATCH,
        confidence_score=0,
        match_reasons=[NO_MATCH],
        variation=identify_variation(tcg_card_code(tcg_card)),
    )


def unmatched_liga(liga_card: LigaCard) -> CardMatch:
    return CardMatch(
        liga_card=liga_card,
        similarity=0.0,
        best_price=BestPrice.liga,
        match_type=MatchType.none,
        match_method=NO_MATCH,
        confidence_score=0,
        match_reasons=[NO_MATCH],
        variation=identify_variation(liga_card.numeric_code),
    )


def _best_candidate(
    tcg_card: TCGPlayerCard,
    liga_cards: Sequence[LigaCard],
    used_liga: Set[int],
    threshold: float,
    scorer: Scorer,
) -> Optional[Tuple[int, SimilarityAnalysis]]:
    """
    Highest-scoring unused Liga listing at or above the threshold.
    Only a strictly higher score replaces the current best, so ties go to
    the earliest listing.
    """
    best_index = -1
    best_score = 0.0
    best_analysis: Optional[SimilarityAnalysis] = None

    for liga_index, liga_card in enumerate(liga_cards):
        if liga_index in used_liga:
            continue
        analysis = scorer(tcg_card, liga_card)
        if analysis.score > best_score and analysis.score >= threshold:
            best_index = liga_index
            best_score = analysis.score
            best_analysis = analysis

    if best_index == -1:
        return None
    return best_index, best_analysis


def match_cards(
    tcg_cards: Sequence[TCGPlayerCard],
    liga_cards: Sequence[LigaCard],
    exchange_rate: float = FALLBACK_EXCHANGE_RATE,
    scorer: Scorer = calculate_similarity,
) -> List[CardMatch]:
    """
    Reconcile both listing sets.

    Output order: pass-1 pairs, pass-2 pairs, unmatched TCGplayer listings,
    unmatched Liga listings, each group in input order.
    """
    matches: List[CardMatch] = []
    used_tcg: Set[int] = set()
    used_liga: Set[int] = set()
    pass_counts = []

    for threshold in (HIGH_CONFIDENCE_THRESHOLD, MEDIUM_CONFIDENCE_THRESHOLD):
        paired = 0
        for tcg_index, tcg_card in enumerate(tcg_cards):
            if tcg_index in used_tcg:
                continue
            candidate = _best_candidate(tcg_card, liga_cards, used_liga, threshold, scorer)
            if candidate is None:
                continue
            liga_index, analysis = candidate
            used_tcg.add(tcg_index)
            used_liga.add(liga_index)
            matches.append(
                create_card_match(tcg_card, liga_cards[liga_index], analysis, exchange_rate)
            )
            paired += 1
        pass_counts.append(paired)

    for tcg_index, tcg_card in enumerate(tcg_cards):
        if tcg_index not in used_tcg:
            matches.append(unmatched_tcg(tcg_card))

    for liga_index, liga_card in enumerate(liga_cards):
        if liga_index not in used_liga:
            matches.append(unmatched_liga(liga_card))

    match_logger.info(
        f"🧩 matched {len(tcg_cards)} tcg x {len(liga_cards)} liga: "
        f"pass1={pass_counts[0]} pass2={pass_counts[1]} "
        f"unmatched_tcg={len(tcg_cards) - len(used_tcg)} "
        f"unmatched_liga={len(liga_cards) - len(used_liga)}"
    )
    return matches
