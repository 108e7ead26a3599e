"""
Weighted similarity between a TCGplayer listing and a Liga listing.

Evidence is accumulated out of 100 points and normalized to [0, 1]:

- set name agreement: 30 points (case-insensitive, trimmed, exact)
- title agreement: 40 points for identical normalized names
- code agreement: 30 points for the same base code, or 15 points when only
  the raw set prefix (text before the first hyphen) agrees
"""

from dataclasses import dataclass, field
from typing import List, Optional

from src.models.liga import LigaCard
from src.models.tcgplayer import TCGPlayerCard
from src.utils.card_code import extract_code, normalize_code, normalize_name

SET_NAME_POINTS = 30
IDENTICAL_NAME_POINTS = 40
# Containment is reported as a 25% signal but has always scored nothing.
# Kept at 0 so existing pairings do not shift.
SIMILAR_NAME_POINTS = 0
BASE_CODE_POINTS = 30
CODE_SET_POINTS = 15

METHOD_THRESHOLDS = [
    (0.9, "Perfect Match"),
    (0.7, "Good Match"),
    (0.5, "Partial Match"),
]


@dataclass
class SimilarityAnalysis:
    score: float = 0.0
    reasons: List[str] = field(default_factory=list)
    method: str = "Basic Matching"


def tcg_card_code(card: TCGPlayerCard) -> Optional[str]:
    """The card's ``Number`` attribute, falling back to a code embedded in its name."""
    for entry in card.extended_data or []:
        if entry.name == "Number" and entry.value:
            return entry.value
    return extract_code(card.name)


def match_method(score: float) -> str:
    for threshold, label in METHOD_THRESHOLDS:
        if score >= threshold:
            return label
    return "Basic Matching"


def calculate_similarity(tcg_card: TCGPlayerCard, liga_card: LigaCard) -> SimilarityAnalysis:
    reasons: List[str] = []
    total = 0

    tcg_set = (tcg_card.set_name or "").lower().strip()
    liga_set = (liga_card.set_name or "").lower().strip()
    if tcg_set and liga_set and tcg_set == liga_set:
        total += SET_NAME_POINTS
        reasons.append(f'Same set: "{tcg_set}" (30%)')

    tcg_name = normalize_name(tcg_card.name)
    liga_name = normalize_name(liga_card.name)
    if tcg_name and liga_name:
        if tcg_name == liga_name:
            total += IDENTICAL_NAME_POINTS
            reasons.append(f'Identical name: "{tcg_name}" (40%)')
        elif tcg_name in liga_name or liga_name in tcg_name:
            total += SIMILAR_NAME_POINTS
            reasons.append(f'Names similar: "{tcg_name}" ~ "{liga_name}" (25%)')

    tcg_code = tcg_card_code(tcg_card)
    liga_code = liga_card.numeric_code
    if tcg_code and liga_code:
        tcg_base = normalize_code(tcg_code)
        liga_base = normalize_code(liga_code)
        if tcg_base == liga_base:
            total += BASE_CODE_POINTS
            reasons.append(f"Base code: {tcg_base} (30%)")
        else:
            # raw codes on purpose: the prefix is unaffected by suffix stripping
            tcg_prefix = tcg_code.split("-")[0]
            if tcg_prefix == liga_code.split("-")[0]:
                total += CODE_SET_POINTS
                reasons.append(f"Same set in code: {tcg_prefix} (15%)")

    score = min(total / 100, 1.0)
    return SimilarityAnalysis(score=score, reasons=reasons, method=match_method(score))
