"""
Pydantic models for the cross-platform price comparison.
"""

from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field, model_validator

from src.models.liga import LigaCard
from src.models.tcgplayer import TCGPlayerCard


class BestPrice(str, Enum):
    tcg = "tcg"
    liga = "liga"
    tie = "tie"


class MatchType(str, Enum):
    perfect = "perfect"
    high = "high"
    medium = "medium"
    none = "none"


class SortKey(str, Enum):
    savings = "savings"
    match = "match"
    price_low = "price-low"
    price_high = "price-high"


class CardVariation(BaseModel):
    """Print variant denoted by the trailing letters of a card code."""

    code: str
    name: str
    description: str
    rarity: str
    emoji: str

    class Config:
        frozen = True


class CardMatch(BaseModel):
    """
    A reconciled pair of listings, or a single unmatched listing from either side.
    """

    tcg_card: Optional[TCGPlayerCard] = None
    liga_card: Optional[LigaCard] = None
    similarity: float = Field(0.0, ge=0.0, le=1.0)
    best_price: BestPrice
    savings: Optional[float] = None
    match_type: MatchType
    match_method: Optional[str] = None
    confidence_score: int = Field(0, ge=0, le=100)
    match_reasons: List[str] = Field(default_factory=list)
    variation: Optional[CardVariation] = None

    @model_validator(mode="after")
    def _check_sides(self):
        if self.tcg_card is None and self.liga_card is None:
            raise ValueError("a card match needs at least one listing")
        if (self.tcg_card is None or self.liga_card is None) and (
            self.match_type != MatchType.none
        ):
            raise ValueError("a single-sided match must have match_type 'none'")
        return self

    @property
    def is_paired(self) -> bool:
        return self.tcg_card is not None and self.liga_card is not None


class CompareStats(BaseModel):
    perfect: int = Field(0, description="Perfect matches")
    high: int = Field(0, description="High-confidence matches")
    medium: int = Field(0, description="Medium-confidence matches")
    good: int = Field(0, description="High + medium matches")
    none: int = Field(0, description="Unmatched listings")
    tcg_better: int = Field(0, description="Matches where TCGplayer is cheaper")
    liga_better: int = Field(0, description="Matches where Liga is cheaper")
    total_savings: float = Field(0.0, description="Sum of positive savings (USD)")


class CompareErrors(BaseModel):
    tcgplayer: Optional[str] = None
    liga: Optional[str] = None


class CompareResponse(BaseModel):
    """Response model for a combined TCGplayer / Liga comparison."""

    query: str = Field(..., description="Search query used")
    sort: SortKey = Field(SortKey.savings, description="Ordering applied to matches")
    exchange_rate: float = Field(..., description="BRL -> USD rate used for pricing")
    exchange_rate_fallback: bool = Field(
        False, description="True when the live rate was unavailable"
    )
    tcg_count: int = Field(0, description="TCGplayer listings compared")
    liga_count: int = Field(0, description="Liga listings compared")
    matches: List[CardMatch] = Field(default_factory=list)
    stats: CompareStats = Field(default_factory=CompareStats)
    errors: CompareErrors = Field(default_factory=CompareErrors)

    class Config:
        json_schema_extra = {
            "example": {
                "query": "luffy",
                "sort": "savings",
                "exchange_rate": 0.19,
                "exchange_rate_fallback": False,
                "tcg_count": 12,
                "liga_count": 9,
                "matches": [],
                "stats": {
                    "perfect": 4,
                    "high": 2,
                    "medium": 1,
                    "good": 3,
                    "none": 7,
                    "tcg_better": 3,
                    "liga_better": 4,
                    "total_savings": 21.4,
                },
                "errors": {},
            }
        }
