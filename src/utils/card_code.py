"""
Card code extraction and listing-name normalization for One Piece TCG listings.

Card codes look like ``OP06-054``, ``ST10-005``, ``EB01-012``, ``PRB01-001`` or
``P-001``, optionally followed by variant letters (``OP06-054SR``). All helpers
are total: missing input yields an empty/default value, never an exception.
"""

import re
from typing import Optional

from src.models.compare import CardVariation

# Ordered: first match wins, the generic family is the last resort
CODE_PATTERNS = [
    re.compile(r"(OP\d{2}-\d{3}[A-Z]*)", re.IGNORECASE),
    re.compile(r"(ST\d{2}-\d{3}[A-Z]*)", re.IGNORECASE),
    re.compile(r"(EB\d{2}-\d{3}[A-Z]*)", re.IGNORECASE),
    re.compile(r"(PRB\d{2}-\d{3}[A-Z]*)", re.IGNORECASE),
    re.compile(r"(P-\d{3}[A-Z]*)", re.IGNORECASE),
    re.compile(r"([A-Z]{2,4}\d{1,2}-\d{3}[A-Z]*)", re.IGNORECASE),
]

_VARIANT_SUFFIX = re.compile(r"(?<=\d)[-_]?[A-Z]{1,3}$")
_BRACKETS = re.compile(r"[()\[\]]")
_WHITESPACE = re.compile(r"\s+")

VARIATIONS = {
    "E": CardVariation(code="E", name="Special", description="Special edition", rarity="Special", emoji="⭐"),
    "AA": CardVariation(code="AA", name="Alternate Art", description="Alternate artwork", rarity="Super Rare", emoji="🎨"),
    "RE": CardVariation(code="RE", name="Reprint", description="Reprint", rarity="Common", emoji="🔄"),
    "FA": CardVariation(code="FA", name="Full Art", description="Full artwork", rarity="Rare", emoji="🖼️"),
    "AS": CardVariation(code="AS", name="Anniversary Set", description="Anniversary edition", rarity="Secret Rare", emoji="🎂"),
    "BS": CardVariation(code="BS", name="Best Selection", description="Special selection", rarity="Super Rare", emoji="🏆"),
    "CH": CardVariation(code="CH", name="Championship", description="Championship edition", rarity="Promo", emoji="🥇"),
    "PR": CardVariation(code="PR", name="Promo", description="Promotional card", rarity="Promo", emoji="🎁"),
    "SP": CardVariation(code="SP", name="Special", description="Special edition", rarity="Special", emoji="✨"),
    "SR": CardVariation(code="SR", name="Super Rare", description="Super rare", rarity="Super Rare", emoji="💎"),
}


def extract_code(name: Optional[str]) -> Optional[str]:
    """Return the first card code found in a display name, upper-cased, or None."""
    if not name:
        return None

    for pattern in CODE_PATTERNS:
        match = pattern.search(name)
        if match:
            return match.group(1).upper()

    return None


def normalize_name(name: Optional[str]) -> str:
    """
    Strip embedded card codes and brackets from a display name, collapse
    whitespace and lower-case it, so titles can be compared across sources.
    """
    if not name:
        return ""

    cleaned = name
    for pattern in CODE_PATTERNS:
        cleaned = pattern.sub("", cleaned)

    # brackets go first so the collapse below also removes the gaps they leave
    cleaned = _BRACKETS.sub("", cleaned)
    cleaned = _WHITESPACE.sub(" ", cleaned)
    return cleaned.strip().lower()


def normalize_code(code: Optional[str]) -> str:
    """Drop a trailing variant suffix: ``OP06-054SR`` and ``OP06-054_AA`` become ``OP06-054``."""
    if not code:
        return ""
    return _VARIANT_SUFFIX.sub("", code)


def identify_variation(code: Optional[str]) -> CardVariation:
    """Look up the variant denoted by the letters after the last hyphen of a code."""
    last_segment = (code or "").split("-")[-1]
    suffix = re.sub(r"^\d+", "", last_segment)

    variation = VARIATIONS.get(suffix)
    if variation is not None:
        return variation

    return CardVariation(
        code=suffix,
        name="Standard",
        description="Standard version",
        rarity="Normal",
        emoji="📄",
    )
